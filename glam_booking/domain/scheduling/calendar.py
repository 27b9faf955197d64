"""
Business calendar

Static weekly configuration of when the salon takes appointments: open
weekdays, each with its own open window and optional break, one slot
granularity and an optional bookable date range. Built once at startup and
read-only afterwards.

Weekdays without their own hours or break use the default window and break.
"""

import logging
from datetime import date, datetime, time
from typing import Iterable, Mapping, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ... import config
from ...exceptions import ConfigurationError
from ...shared.validators import parse_hhmm

logger = logging.getLogger(__name__)

WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]

TimeRange = tuple[time, time]


def minutes_of_day(value: time) -> int:
    return value.hour * 60 + value.minute


def time_from_minutes(minutes: int) -> time:
    return time(hour=minutes // 60, minute=minutes % 60)


def parse_time_range(value: str) -> TimeRange:
    """Parse "HH:MM-HH:MM" into (start, end)"""
    parts = value.split("-")
    if len(parts) != 2:
        raise ValueError(f"Invalid time range '{value}'; expected HH:MM-HH:MM")
    return parse_hhmm(parts[0]), parse_hhmm(parts[1])


def _weekday_index(name: str) -> int:
    day = name.strip().lower()
    if day not in WEEKDAYS:
        raise ConfigurationError(f"Unknown weekday '{name}'")
    return WEEKDAYS.index(day)


class BusinessCalendar:
    """Weekly open-hours configuration for a single location"""

    def __init__(
        self,
        open_days: Iterable[str],
        opening: time,
        closing: time,
        granularity_minutes: int,
        timezone: str = "UTC",
        break_start: Optional[time] = None,
        break_end: Optional[time] = None,
        available_from: Optional[date] = None,
        available_until: Optional[date] = None,
        day_hours: Optional[Mapping[str, TimeRange]] = None,
        day_breaks: Optional[Mapping[str, Optional[TimeRange]]] = None,
    ):
        days = [d.strip().lower() for d in open_days if d and d.strip()]
        unknown = [d for d in days if d not in WEEKDAYS]
        if unknown:
            raise ConfigurationError(f"Unknown weekday(s) in open days: {', '.join(unknown)}")
        self._open_weekdays = frozenset(WEEKDAYS.index(d) for d in days)

        if granularity_minutes <= 0:
            raise ConfigurationError("Slot granularity must be a positive number of minutes")
        if (break_start is None) != (break_end is None):
            raise ConfigurationError("Break start and break end must be set together")

        hours = {i: (opening, closing) for i in self._open_weekdays}
        for name, window in (day_hours or {}).items():
            index = _weekday_index(name)
            if index not in self._open_weekdays:
                raise ConfigurationError(f"Hours given for {WEEKDAYS[index]}, which is not an open day")
            hours[index] = window

        default_break = (break_start, break_end) if break_start is not None else None
        breaks = {i: default_break for i in self._open_weekdays}
        for name, window in (day_breaks or {}).items():
            index = _weekday_index(name)
            if index not in self._open_weekdays:
                raise ConfigurationError(f"Break given for {WEEKDAYS[index]}, which is not an open day")
            breaks[index] = window

        for index in sorted(self._open_weekdays):
            self._check_day(WEEKDAYS[index], hours[index], breaks[index], granularity_minutes)

        if available_from and available_until and available_from > available_until:
            raise ConfigurationError("available_from must not be after available_until")

        try:
            self._tz = ZoneInfo(timezone)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ConfigurationError(f"Unknown business timezone '{timezone}'") from e

        self._hours = hours
        self._breaks = breaks
        self._granularity = granularity_minutes
        self._available_from = available_from
        self._available_until = available_until

    @staticmethod
    def _check_day(
        name: str, window: TimeRange, break_window: Optional[TimeRange], granularity_minutes: int
    ) -> None:
        opening, closing = window
        if opening >= closing:
            raise ConfigurationError(
                f"{name}: opening time {opening:%H:%M} must be before closing time {closing:%H:%M}"
            )
        length = minutes_of_day(closing) - minutes_of_day(opening)
        if length % granularity_minutes != 0:
            raise ConfigurationError(
                f"{name}: slot granularity ({granularity_minutes} min) does not divide the "
                f"open window ({length} min)"
            )
        if break_window is not None:
            break_start, break_end = break_window
            if not (opening <= break_start < break_end <= closing):
                raise ConfigurationError(
                    f"{name}: break {break_start:%H:%M}-{break_end:%H:%M} must lie inside "
                    f"opening hours {opening:%H:%M}-{closing:%H:%M}"
                )

    @classmethod
    def from_settings(cls) -> "BusinessCalendar":
        """Build the calendar from environment configuration"""
        try:
            return cls(
                open_days=config.OPEN_DAYS.split(","),
                opening=parse_hhmm(config.OPENING_TIME),
                closing=parse_hhmm(config.CLOSING_TIME),
                granularity_minutes=config.SLOT_GRANULARITY_MINUTES,
                timezone=config.BUSINESS_TIMEZONE,
                break_start=parse_hhmm(config.BREAK_START) if config.BREAK_START else None,
                break_end=parse_hhmm(config.BREAK_END) if config.BREAK_END else None,
                available_from=(
                    date.fromisoformat(config.AVAILABLE_FROM) if config.AVAILABLE_FROM else None
                ),
                available_until=(
                    date.fromisoformat(config.AVAILABLE_UNTIL) if config.AVAILABLE_UNTIL else None
                ),
                day_hours={day: parse_time_range(v) for day, v in config.DAY_HOURS.items()},
                day_breaks={
                    day: None if v.strip().lower() == "none" else parse_time_range(v)
                    for day, v in config.DAY_BREAKS.items()
                },
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid business hours configuration: {e}") from e

    def is_open_day(self, day: date) -> bool:
        if day.weekday() not in self._open_weekdays:
            return False
        if self._available_from and day < self._available_from:
            return False
        if self._available_until and day > self._available_until:
            return False
        return True

    def open_window(self, day: date) -> Optional[TimeRange]:
        """Opening and closing time for the date's weekday, None on a closed weekday"""
        return self._hours.get(day.weekday())

    def granularity(self) -> int:
        return self._granularity

    def break_window(self, day: date) -> Optional[TimeRange]:
        return self._breaks.get(day.weekday())

    @property
    def timezone(self) -> ZoneInfo:
        return self._tz

    def now(self) -> datetime:
        """Current wall-clock time in the business timezone, as a naive datetime"""
        return datetime.now(self._tz).replace(tzinfo=None)

    def describe(self) -> dict:
        def fmt(window: Optional[TimeRange]) -> Optional[list[str]]:
            return [window[0].strftime("%H:%M"), window[1].strftime("%H:%M")] if window else None

        open_days = [WEEKDAYS[i] for i in sorted(self._open_weekdays)]
        return {
            "open_days": open_days,
            "hours": {WEEKDAYS[i]: fmt(self._hours[i]) for i in sorted(self._open_weekdays)},
            "breaks": {WEEKDAYS[i]: fmt(self._breaks[i]) for i in sorted(self._open_weekdays)},
            "granularity_minutes": self._granularity,
            "timezone": str(self._tz),
        }


_calendar: Optional[BusinessCalendar] = None


def get_business_calendar() -> BusinessCalendar:
    """Get or create the process-wide business calendar"""
    global _calendar

    if _calendar is None:
        _calendar = BusinessCalendar.from_settings()
        logger.info(f"🗓️ Business calendar loaded: {_calendar.describe()}")

    return _calendar
