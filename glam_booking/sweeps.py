"""
Periodic sweeps run by run_sweeps.py

- mark_no_shows: scheduled/confirmed appointments whose start passed more
  than NO_SHOW_GRACE_MINUTES ago become no_show
- send_due_reminders: email tomorrow's customers once

Both go through the same lifecycle and repositories as the API.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from .config import NO_SHOW_GRACE_MINUTES
from .domain.scheduling.calendar import BusinessCalendar
from .domain.scheduling.lifecycle import AppointmentLifecycle
from .domain.scheduling.locks import get_date_locks
from .domain.scheduling.repository import AppointmentRepository
from .exceptions import SchedulingError
from .notifications import appointment_notice, send_appointment_reminder

logger = logging.getLogger(__name__)


def mark_no_shows(
    db: Session,
    calendar: BusinessCalendar,
    now: Optional[datetime] = None,
    grace_minutes: int = NO_SHOW_GRACE_MINUTES,
    locks=None,
) -> list[int]:
    """Returns the ids marked no_show"""
    now = now or calendar.now()
    cutoff = now - timedelta(minutes=grace_minutes)
    lifecycle = AppointmentLifecycle(db, calendar, locks or get_date_locks(), clock=lambda: now)

    marked = []
    for appointment in AppointmentRepository.list_due_no_show(db, cutoff.date(), cutoff.time()):
        try:
            lifecycle.mark_no_show(appointment.id)
            marked.append(appointment.id)
        except SchedulingError as e:
            # Changed by staff since the query; leave it alone
            logger.warning(f"⚠️ Could not mark appointment {appointment.id} as no-show: {e.message}")

    if marked:
        logger.info(f"🚫 Marked {len(marked)} appointment(s) as no-show: {marked}")
    return marked


async def send_due_reminders(
    db: Session, calendar: BusinessCalendar, now: Optional[datetime] = None
) -> list[int]:
    """Returns the ids a reminder was sent for"""
    now = now or calendar.now()
    tomorrow = now.date() + timedelta(days=1)

    reminded = []
    for appointment in AppointmentRepository.list_due_reminders(db, tomorrow):
        notice = appointment_notice(appointment)
        if not notice:
            logger.info(f"📭 Appointment {appointment.id} has no customer email, skipping reminder")
            continue
        if await send_appointment_reminder(notice) is None:
            continue

        AppointmentRepository.update(db, appointment, reminder_sent=True)
        db.commit()
        reminded.append(appointment.id)

    logger.info(f"🔔 Sent {len(reminded)} reminder(s) for {tomorrow}")
    return reminded


async def run_sweeps(db: Session, calendar: BusinessCalendar) -> dict:
    now = calendar.now()
    return {
        "no_shows": mark_no_shows(db, calendar, now),
        "reminders": await send_due_reminders(db, calendar, now),
    }
