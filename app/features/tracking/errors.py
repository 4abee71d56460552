"""
Exception hierarchy for the tracking feature.

Routers translate these into HTTP status codes; jobs log them.
"""

from datetime import date


class TrackingError(Exception):
    """Base class for tracking errors."""

    def __init__(self, message: str, operation: str | None = None):
        super().__init__(message)
        self.operation = operation


class InvalidDateError(TrackingError, ValueError):
    """Raised for unparsable dates or a non-Monday where a week start is required."""


class NotFoundError(TrackingError):
    """Raised when a referenced user or circle does not exist."""


class ReminderRunError(TrackingError):
    """Raised when computing a reminder run fails; the run is marked failed."""

    def __init__(self, message: str, run_id: str | None = None, operation: str | None = None):
        super().__init__(message, operation=operation)
        self.run_id = run_id


class ReminderRunConflictError(TrackingError):
    """Raised when another live run already exists for the week."""

    def __init__(self, week_start_date: date):
        super().__init__(
            f"A reminder run for week {week_start_date.isoformat()} already exists",
            operation="create_run",
        )
        self.week_start_date = week_start_date


class ReminderDeliveryError(TrackingError):
    """Raised when a single reminder cannot be sent on explicit request."""


class NotificationError(TrackingError):
    """Raised by a notification transport when a message is not delivered."""

    def __init__(self, message: str, recoverable: bool = True):
        super().__init__(message, operation="send")
        self.recoverable = recoverable
