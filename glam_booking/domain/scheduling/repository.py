"""Appointment repository - Database operations for appointments"""

from datetime import date, time
from typing import Optional

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session, joinedload

from ...models import ACTIVE_STATUSES, Appointment, AppointmentStatus, Customer

_OPEN_STATUSES = [AppointmentStatus.SCHEDULED.value, AppointmentStatus.CONFIRMED.value]


class AppointmentRepository:
    """Repository for appointment database operations"""

    @staticmethod
    def list_by_date(db: Session, day: date) -> list[Appointment]:
        """All appointments on a day, any status, ordered by start"""
        return (
            db.query(Appointment)
            .filter(Appointment.appointment_date == day)
            .order_by(Appointment.start_time)
            .all()
        )

    @staticmethod
    def list_between(
        db: Session, start: date, end: date, status: Optional[str] = None
    ) -> list[Appointment]:
        """Appointments with start <= date <= end, with customer and service loaded"""
        query = (
            db.query(Appointment)
            .options(joinedload(Appointment.customer), joinedload(Appointment.service))
            .filter(Appointment.appointment_date >= start, Appointment.appointment_date <= end)
        )

        if status:
            query = query.filter(Appointment.status == status)

        return query.order_by(Appointment.appointment_date, Appointment.start_time).all()

    @staticmethod
    def get(db: Session, appointment_id: int, for_update: bool = False) -> Optional[Appointment]:
        """Get an appointment by ID, optionally row-locked for the current transaction"""
        query = db.query(Appointment).filter(Appointment.id == appointment_id)
        if for_update:
            query = query.with_for_update()
        return query.first()

    @staticmethod
    def insert(db: Session, appointment: Appointment) -> Appointment:
        """Stage a new appointment; the caller owns the commit"""
        db.add(appointment)
        db.flush()
        return appointment

    @staticmethod
    def update(db: Session, appointment: Appointment, **fields) -> Appointment:
        """Stage field updates; the caller owns the commit"""
        for key, value in fields.items():
            if hasattr(appointment, key):
                setattr(appointment, key, value)
        db.flush()
        return appointment

    @staticmethod
    def list_for_customer_email(db: Session, email: str) -> list[Appointment]:
        """A customer's appointments, most recent first"""
        return (
            db.query(Appointment)
            .join(Customer, Appointment.customer_id == Customer.id)
            .options(joinedload(Appointment.service))
            .filter(Customer.email == email.strip().lower())
            .order_by(Appointment.appointment_date.desc(), Appointment.start_time.desc())
            .all()
        )

    @staticmethod
    def list_due_no_show(db: Session, day: date, before: time) -> list[Appointment]:
        """Scheduled/confirmed appointments that started before (day, before)"""
        return (
            db.query(Appointment)
            .filter(
                Appointment.status.in_(_OPEN_STATUSES),
                or_(
                    Appointment.appointment_date < day,
                    and_(Appointment.appointment_date == day, Appointment.start_time <= before),
                ),
            )
            .order_by(Appointment.appointment_date, Appointment.start_time)
            .all()
        )

    @staticmethod
    def list_due_reminders(db: Session, day: date) -> list[Appointment]:
        """Active appointments on day that have not been reminded yet"""
        return (
            db.query(Appointment)
            .options(joinedload(Appointment.customer), joinedload(Appointment.service))
            .filter(
                Appointment.appointment_date == day,
                Appointment.status.in_([s.value for s in ACTIVE_STATUSES]),
                Appointment.status != AppointmentStatus.COMPLETED.value,
                Appointment.reminder_sent.is_(False),
            )
            .order_by(Appointment.start_time)
            .all()
        )
