"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .availability_service import (
    AvailabilityService,
    BookingStoreProtocol,
    CalendarClientProtocol,
    SchedulingPolicy,
)

__all__ = [
    "AvailabilityService",
    "BookingStoreProtocol",
    "CalendarClientProtocol",
    "SchedulingPolicy",
]
