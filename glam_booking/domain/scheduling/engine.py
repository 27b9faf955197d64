"""
Scheduling engine - availability listing and atomic booking commits
"""

import logging
from datetime import date, datetime, time
from typing import Callable, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ...exceptions import InternalError, NotFoundError, SchedulingError, SlotUnavailableError
from ...models import Appointment, AppointmentStatus, Service
from ...shared.validators import format_hhmm
from ..catalog.repository import ServiceRepository
from ..customers.repository import CustomerRepository
from .availability import conflicts, end_of, filter_free, intervals_overlap
from .calendar import BusinessCalendar, minutes_of_day
from .repository import AppointmentRepository
from .slots import SlotGenerator

logger = logging.getLogger(__name__)


class SchedulingEngine:
    """Lists free slots and commits bookings under the per-date lock"""

    def __init__(
        self,
        db: Session,
        calendar: BusinessCalendar,
        locks,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.db = db
        self.calendar = calendar
        self.locks = locks
        self.clock = clock or calendar.now
        self.slots = SlotGenerator(calendar)
        self.repo = AppointmentRepository()
        self.services = ServiceRepository()
        self.customers = CustomerRepository()

    def get_bookable_service(self, service_id: int) -> Service:
        """Active service or NotFoundError"""
        service = self.services.get_active(self.db, service_id)
        if not service:
            raise NotFoundError(f"Service {service_id} not found", details={"service_id": service_id})
        return service

    def list_available_slots(self, service_id: int, day: date) -> list[time]:
        """
        Free start times for a service on a date, ascending.

        Reads the day's appointments once and filters every candidate in
        memory. Takes no lock: a listed slot can still be lost to a
        concurrent booking, which commit_booking reports as unavailable.
        """
        service = self.get_bookable_service(service_id)
        candidates = self.slots.generate_candidates(day, service.duration_minutes, self.clock())
        if not candidates:
            return []

        existing = self.repo.list_by_date(self.db, day)
        free = filter_free(day, candidates, service.duration_minutes, existing)
        logger.info(
            f"📅 {len(free)}/{len(candidates)} slot(s) free for service {service_id} on {day}"
        )
        return free

    def ensure_bookable(
        self,
        day: date,
        start: time,
        duration_minutes: int,
        exclude_id: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> None:
        """
        Raise SlotUnavailableError unless [start, start + duration) can be
        booked on day. Must be called inside locks.hold(day) when the result
        is about to be written.
        """
        now = now or self.clock()
        if not self.slots.is_candidate(day, start, duration_minutes, now):
            reason = self._rejection_reason(day, start, duration_minutes, now)
            raise SlotUnavailableError(
                reason, details={"date": day.isoformat(), "start": format_hhmm(start)}
            )

        existing = self.repo.list_by_date(self.db, day)
        clashes = conflicts(day, start, duration_minutes, existing, exclude_id=exclude_id)
        if clashes:
            raise SlotUnavailableError(
                f"{format_hhmm(start)} on {day.isoformat()} is no longer available",
                details={
                    "date": day.isoformat(),
                    "start": format_hhmm(start),
                    "conflicts": [a.id for a in clashes],
                },
            )

    def _rejection_reason(self, day: date, start: time, duration_minutes: int, now: datetime) -> str:
        if not self.calendar.is_open_day(day):
            return f"The salon does not take bookings on {day.isoformat()}"
        if day < now.date() or (
            day == now.date() and minutes_of_day(start) <= minutes_of_day(now.time())
        ):
            return f"{format_hhmm(start)} on {day.isoformat()} has already passed"

        opening, closing = self.calendar.open_window(day)
        start_min = minutes_of_day(start)
        end_min = start_min + duration_minutes
        if start < opening or end_min > minutes_of_day(closing):
            return (
                f"{format_hhmm(start)} + {duration_minutes} min is outside business hours "
                f"({format_hhmm(opening)}-{format_hhmm(closing)})"
            )
        if start.second or start.microsecond or (start_min - minutes_of_day(opening)) % self.calendar.granularity():
            return f"{format_hhmm(start)} is not a bookable start time"

        break_window = self.calendar.break_window(day)
        if break_window and intervals_overlap(
            start_min, end_min, minutes_of_day(break_window[0]), minutes_of_day(break_window[1])
        ):
            return f"{format_hhmm(start)} + {duration_minutes} min runs into the break"

        return f"{format_hhmm(start)} is not a bookable start time"

    def commit_booking(
        self,
        customer_id: int,
        service_id: int,
        day: date,
        start: time,
        notes: Optional[str] = None,
    ) -> Appointment:
        """
        Book start on day for a customer, atomically.

        Either exactly one new scheduled appointment is persisted or nothing
        is. Lookups, re-validation and the insert all run inside the
        per-date lock, so two concurrent commits for overlapping intervals
        on the same date cannot both succeed.

        Raises:
            NotFoundError: unknown customer or unknown/inactive service
            SlotUnavailableError: start not bookable or taken meanwhile
            TransientError: per-date lock not acquired in time
            InternalError: unexpected persistence failure
        """
        with self.locks.hold(day):
            try:
                if not self.customers.get(self.db, customer_id):
                    raise NotFoundError(
                        f"Customer {customer_id} not found", details={"customer_id": customer_id}
                    )
                service = self.get_bookable_service(service_id)

                self.ensure_bookable(day, start, service.duration_minutes)

                appointment = Appointment(
                    customer_id=customer_id,
                    service_id=service.id,
                    appointment_date=day,
                    start_time=start,
                    end_time=end_of(day, start, service.duration_minutes),
                    status=AppointmentStatus.SCHEDULED.value,
                    total_price=service.price,
                    deposit_amount=0,
                    deposit_paid=False,
                    reminder_sent=False,
                    notes=notes,
                )
                self.repo.insert(self.db, appointment)
                self.db.commit()
            except SchedulingError:
                self.db.rollback()
                raise
            except IntegrityError as e:
                self.db.rollback()
                logger.warning(f"⚠️ Slot index rejected booking {day} {format_hhmm(start)}: {e.orig}")
                raise SlotUnavailableError(
                    f"{format_hhmm(start)} on {day.isoformat()} is no longer available",
                    details={"date": day.isoformat(), "start": format_hhmm(start)},
                ) from e
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error(f"❌ Failed to save booking for {day} {format_hhmm(start)}: {e}")
                raise InternalError("Could not save the appointment") from e

        self.db.refresh(appointment)
        logger.info(
            f"✅ Booked appointment {appointment.id}: service {service_id} on {day} "
            f"{format_hhmm(start)}-{format_hhmm(appointment.end_time)} for customer {customer_id}"
        )
        return appointment
