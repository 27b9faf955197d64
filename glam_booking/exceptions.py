"""
Scheduling error taxonomy.

Every error the booking core raises is a SchedulingError. The API layer maps
them to HTTP responses in main.py; the core itself never retries.
"""

from typing import Optional


class SchedulingError(Exception):
    """Base class for booking core errors"""

    status_code = 500

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(SchedulingError):
    """Invalid business-hours setup. Fatal at startup."""


class NotFoundError(SchedulingError):
    """Unknown service, customer or appointment"""

    status_code = 404


class SlotUnavailableError(SchedulingError):
    """The requested interval cannot be booked; the caller should re-list slots"""

    status_code = 409


class InvalidTransitionError(SchedulingError):
    """Illegal status change or edit for the appointment's current status"""

    status_code = 422


class TransientError(SchedulingError):
    """Per-date serialization point not acquired in time. Safe to retry."""

    status_code = 503

    def __init__(self, message: str, retry_after: int = 1, details: Optional[dict] = None):
        super().__init__(message, details)
        self.retry_after = retry_after


class InternalError(SchedulingError):
    """Persistence failure outside the known taxonomy"""

    status_code = 500
