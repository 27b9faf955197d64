"""
Availability checking

Decides whether a candidate interval is free against the appointments
already stored for that day. Works purely in memory: the caller reads the
day once and passes the rows in.

Intervals are half-open [start, end): an appointment ending at 10:00 does
not conflict with one starting at 10:00. No buffer is inserted between
back-to-back appointments.
"""

from datetime import date, datetime, time, timedelta
from typing import Iterable, Optional

from ...models import ACTIVE_STATUSES, Appointment, AppointmentStatus


def intervals_overlap(a_start, a_end, b_start, b_end) -> bool:
    """Half-open overlap test: [a_start, a_end) and [b_start, b_end)"""
    return a_start < b_end and b_start < a_end


def end_of(day: date, start: time, duration_minutes: int) -> time:
    """start + duration on day. The result must stay on the same day."""
    end = datetime.combine(day, start) + timedelta(minutes=duration_minutes)
    if end.date() != day:
        raise ValueError(f"Appointment starting {start:%H:%M} for {duration_minutes} min runs past midnight")
    return end.time()


def _counts_against(appointment: Appointment, day: date, exclude_id: Optional[int]) -> bool:
    if exclude_id is not None and appointment.id == exclude_id:
        return False
    if appointment.appointment_date != day:
        return False
    return AppointmentStatus(appointment.status) in ACTIVE_STATUSES


def conflicts(
    day: date,
    start: time,
    duration_minutes: int,
    existing: Iterable[Appointment],
    exclude_id: Optional[int] = None,
) -> list[Appointment]:
    """
    Active appointments on day whose interval overlaps [start, start + duration).

    Args:
        day: calendar day being checked
        start: candidate start time
        duration_minutes: candidate duration
        existing: appointments read from the store (any status, any day)
        exclude_id: appointment being edited; its own current slot never conflicts

    Returns:
        list of overlapping appointments, empty when the interval is free
    """
    end = end_of(day, start, duration_minutes)
    return [
        appt
        for appt in existing
        if _counts_against(appt, day, exclude_id)
        and intervals_overlap(start, end, appt.start_time, appt.end_time)
    ]


def is_free(
    day: date,
    start: time,
    duration_minutes: int,
    existing: Iterable[Appointment],
    exclude_id: Optional[int] = None,
) -> bool:
    return not conflicts(day, start, duration_minutes, existing, exclude_id)


def filter_free(
    day: date,
    candidates: Iterable[time],
    duration_minutes: int,
    existing: Iterable[Appointment],
    exclude_id: Optional[int] = None,
) -> list[time]:
    """Keep only the candidates that are free, preserving order"""
    busy = [appt for appt in existing if _counts_against(appt, day, exclude_id)]
    return [
        start
        for start in candidates
        if not any(
            intervals_overlap(
                start, end_of(day, start, duration_minutes), appt.start_time, appt.end_time
            )
            for appt in busy
        )
    ]
