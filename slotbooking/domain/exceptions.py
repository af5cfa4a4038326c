"""
Domain-specific exception hierarchy for the booking application.
"""


class BookingError(Exception):
    """Base class for all application-level errors."""


class InvalidScheduleError(BookingError, ValueError):
    """Raised when working hours or overrides describe an impossible range."""


class InvalidSlotRequestError(BookingError, ValueError):
    """Raised when an availability request violates its input contract."""


class SlotUnavailableError(BookingError):
    """Raised when a requested start time is no longer bookable."""


class CalendarAPIError(BookingError):
    """Raised when calendar data cannot be fetched, parsed or written."""


class BookingStoreError(BookingError):
    """Raised when the booking store cannot be read or written."""
