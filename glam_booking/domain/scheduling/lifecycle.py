"""
Appointment lifecycle

Status state machine plus administrative edits. Edits that move an
appointment (date, start time or service) are re-validated exactly like a
new booking, inside the target date's lock, ignoring the appointment's own
current interval.

    scheduled   -> confirmed | in_progress | cancelled | no_show
    confirmed   -> in_progress | cancelled | no_show
    in_progress -> completed | cancelled
    completed, cancelled, no_show are terminal
"""

import logging
from datetime import date, datetime, time
from typing import Callable, Optional, Union

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ...exceptions import (
    InternalError,
    InvalidTransitionError,
    NotFoundError,
    SchedulingError,
    SlotUnavailableError,
)
from ...models import Appointment, AppointmentStatus
from .availability import end_of
from .calendar import BusinessCalendar, minutes_of_day
from .engine import SchedulingEngine
from .repository import AppointmentRepository

logger = logging.getLogger(__name__)

S = AppointmentStatus

ALLOWED_TRANSITIONS: dict[AppointmentStatus, frozenset] = {
    S.SCHEDULED: frozenset({S.CONFIRMED, S.IN_PROGRESS, S.CANCELLED, S.NO_SHOW}),
    S.CONFIRMED: frozenset({S.IN_PROGRESS, S.CANCELLED, S.NO_SHOW}),
    S.IN_PROGRESS: frozenset({S.COMPLETED, S.CANCELLED}),
    S.COMPLETED: frozenset(),
    S.CANCELLED: frozenset(),
    S.NO_SHOW: frozenset(),
}

# Date, start time and service can only change before the visit begins
EDITABLE_STATUSES = frozenset({S.SCHEDULED, S.CONFIRMED})


def validate_transition(
    current: AppointmentStatus,
    target: AppointmentStatus,
    starts_at: datetime,
    now: datetime,
) -> None:
    """Raise InvalidTransitionError unless current -> target is legal at now"""
    if target not in ALLOWED_TRANSITIONS[current]:
        raise InvalidTransitionError(
            f"Cannot change status from {current.value} to {target.value}",
            details={"from": current.value, "to": target.value},
        )
    if target == S.NO_SHOW and now < starts_at:
        raise InvalidTransitionError(
            "Cannot mark a no-show before the appointment has started",
            details={"from": current.value, "to": target.value, "starts_at": starts_at.isoformat()},
        )


def _coerce_status(status: Union[AppointmentStatus, str, None]) -> Optional[AppointmentStatus]:
    if status is None or isinstance(status, AppointmentStatus):
        return status
    try:
        return AppointmentStatus(status)
    except ValueError:
        raise InvalidTransitionError(
            f"Unknown status '{status}'", details={"to": status}
        ) from None


class AppointmentLifecycle:
    """Applies status changes and edits to stored appointments"""

    def __init__(
        self,
        db: Session,
        calendar: BusinessCalendar,
        locks,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.db = db
        self.locks = locks
        self.clock = clock or calendar.now
        self.engine = SchedulingEngine(db, calendar, locks, clock=self.clock)
        self.repo = AppointmentRepository()

    def get(self, appointment_id: int) -> Appointment:
        appointment = self.repo.get(self.db, appointment_id)
        if not appointment:
            raise NotFoundError(
                f"Appointment {appointment_id} not found",
                details={"appointment_id": appointment_id},
            )
        return appointment

    def update(
        self,
        appointment_id: int,
        status: Union[AppointmentStatus, str, None] = None,
        day: Optional[date] = None,
        start: Optional[time] = None,
        service_id: Optional[int] = None,
        notes: Optional[str] = None,
        deposit_paid: Optional[bool] = None,
    ) -> Appointment:
        """
        Apply a status change and/or edits in one commit.

        Everything requested is validated before anything is written; a
        rejected request leaves the stored appointment unchanged.
        """
        target = _coerce_status(status)
        appointment = self.get(appointment_id)

        # Lock on any slot field, even if it matches the first read
        if day is not None or start is not None or service_id is not None:
            with self.locks.hold(day if day is not None else appointment.appointment_date):
                return self._apply(appointment, target, day, start, service_id, notes, deposit_paid)

        return self._apply(appointment, target, day, start, service_id, notes, deposit_paid)

    def transition(self, appointment_id: int, status: Union[AppointmentStatus, str]) -> Appointment:
        return self.update(appointment_id, status=status)

    def confirm(self, appointment_id: int) -> Appointment:
        return self.transition(appointment_id, S.CONFIRMED)

    def cancel(self, appointment_id: int) -> Appointment:
        return self.transition(appointment_id, S.CANCELLED)

    def mark_no_show(self, appointment_id: int) -> Appointment:
        return self.transition(appointment_id, S.NO_SHOW)

    @staticmethod
    def _moves_slot(
        appointment: Appointment,
        day: Optional[date],
        start: Optional[time],
        service_id: Optional[int],
    ) -> bool:
        return (
            (day is not None and day != appointment.appointment_date)
            or (start is not None and start != appointment.start_time)
            or (service_id is not None and service_id != appointment.service_id)
        )

    def _apply(
        self,
        appointment: Appointment,
        target: Optional[AppointmentStatus],
        day: Optional[date],
        start: Optional[time],
        service_id: Optional[int],
        notes: Optional[str],
        deposit_paid: Optional[bool],
    ) -> Appointment:
        try:
            # Pick up changes committed by other requests since the first read
            self.db.refresh(appointment, with_for_update=True)
            current = appointment.status_enum
            now = self.clock()
            updates = {}

            if target is not None and target != current:
                starts_at = datetime.combine(appointment.appointment_date, appointment.start_time)
                validate_transition(current, target, starts_at, now)
                updates["status"] = target.value

            if self._moves_slot(appointment, day, start, service_id):
                if current not in EDITABLE_STATUSES:
                    raise InvalidTransitionError(
                        f"Cannot reschedule an appointment that is {current.value}",
                        details={"from": current.value},
                    )
                updates.update(self._revalidated_slot(appointment, day, start, service_id, now))

            if notes is not None:
                updates["notes"] = notes
            if deposit_paid is not None:
                updates["deposit_paid"] = deposit_paid

            if updates:
                self.repo.update(self.db, appointment, **updates)
                self.db.commit()
        except SchedulingError:
            self.db.rollback()
            raise
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(f"⚠️ Slot index rejected edit of appointment {appointment.id}: {e.orig}")
            raise SlotUnavailableError(
                "The requested time is no longer available",
                details={"appointment_id": appointment.id},
            ) from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to update appointment {appointment.id}: {e}")
            raise InternalError("Could not update the appointment") from e

        if updates:
            self.db.refresh(appointment)
            logger.info(f"📝 Appointment {appointment.id} updated: {sorted(updates)}")
        return appointment

    def _revalidated_slot(
        self,
        appointment: Appointment,
        day: Optional[date],
        start: Optional[time],
        service_id: Optional[int],
        now: datetime,
    ) -> dict:
        new_day = day if day is not None else appointment.appointment_date
        new_start = start if start is not None else appointment.start_time

        service = None
        if service_id is not None and service_id != appointment.service_id:
            service = self.engine.get_bookable_service(service_id)
            duration = service.duration_minutes
        else:
            # Keep the duration booked originally, not the catalog's current one
            duration = minutes_of_day(appointment.end_time) - minutes_of_day(appointment.start_time)

        self.engine.ensure_bookable(new_day, new_start, duration, exclude_id=appointment.id, now=now)

        fields = {
            "appointment_date": new_day,
            "start_time": new_start,
            "end_time": end_of(new_day, new_start, duration),
        }
        if service is not None:
            fields["service_id"] = service.id
            fields["total_price"] = service.price
        return fields
