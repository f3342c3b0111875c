"""
Domain-specific exception hierarchy for the scheduling engine.
"""


class SchedulingError(Exception):
    """Base class for all application-level errors."""


class TimeParseError(SchedulingError, ValueError):
    """Raised when a user-supplied time string cannot be parsed."""


class MissingIdentifierError(SchedulingError, ValueError):
    """Raised when a record lacks an identifier the engine cannot work without."""


class IncompleteDataError(SchedulingError):
    """Raised by a booking store that has no snapshot loaded for a person."""


class BookingStoreError(SchedulingError):
    """Raised when booking or profile data cannot be read."""
