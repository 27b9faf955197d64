"""
Slot generation

Produces the ordered candidate start times for a service on a date. A
candidate only says "this start fits the business hours"; whether it is
free is decided by the availability checker.
"""

from datetime import date, datetime, time
from typing import Optional

from .availability import intervals_overlap
from .calendar import BusinessCalendar, minutes_of_day, time_from_minutes


class SlotGenerator:
    """Enumerates candidate start times at the calendar's granularity"""

    def __init__(self, calendar: BusinessCalendar):
        self.calendar = calendar

    def generate_candidates(
        self, day: date, duration_minutes: int, now: Optional[datetime] = None
    ) -> list[time]:
        """
        Candidate start times for a service of duration_minutes on day.

        Closed days, days before today and elapsed starts today yield
        nothing. Candidates that would run into that weekday's break are skipped.
        """
        if duration_minutes <= 0:
            return []
        if not self.calendar.is_open_day(day):
            return []

        now = now or self.calendar.now()
        if day < now.date():
            return []
        # Anything starting at or before this minute has already begun
        elapsed_until = minutes_of_day(now.time()) if day == now.date() else -1

        opening, closing = self.calendar.open_window(day)
        step = self.calendar.granularity()
        open_min = minutes_of_day(opening)
        close_min = minutes_of_day(closing)

        break_window = self.calendar.break_window(day)
        if break_window:
            break_start, break_end = (minutes_of_day(t) for t in break_window)

        candidates = []
        start = open_min
        while start + duration_minutes <= close_min:
            end = start + duration_minutes
            if start > elapsed_until and not (
                break_window and intervals_overlap(start, end, break_start, break_end)
            ):
                candidates.append(time_from_minutes(start))
            start += step

        return candidates

    def is_candidate(
        self, day: date, start: time, duration_minutes: int, now: Optional[datetime] = None
    ) -> bool:
        return start in self.generate_candidates(day, duration_minutes, now)
