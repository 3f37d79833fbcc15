"""
Domain-specific exception hierarchy for the doctor slot availability library.
"""


class SlotError(Exception):
    """Base class for all application-level errors."""


class InvalidScheduleError(SlotError):
    """Raised when a work window, break window or slot granularity is unusable."""


class InvalidTimeFormatError(SlotError):
    """Raised when a time of day is not a zero-padded 24-hour HH:MM value."""


class MissingScheduleError(SlotError):
    """Raised when a doctor has no schedule and no defaults are configured."""


class RecordError(SlotError):
    """Raised when a backend document cannot be turned into a domain object."""


class BackendAPIError(SlotError):
    """Raised when hospital data cannot be fetched or decoded."""
