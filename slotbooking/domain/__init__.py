"""
Domain layer - Pure business logic without external dependencies.
"""

from .busy_intervals import booking_to_busy, collect_busy_intervals, event_to_busy
from .calendar_grid import days_in_month, month_name, year_of
from .models import (
    Booking,
    BusyInterval,
    CalendarEvent,
    DateOverrides,
    DayHours,
    Override,
    SlotRequest,
    WorkingHours,
)
from .slot_calculator import SlotCalculator, generate_available_times, resolve_effective_hours

__all__ = [
    "Booking",
    "BusyInterval",
    "CalendarEvent",
    "DateOverrides",
    "DayHours",
    "Override",
    "SlotCalculator",
    "SlotRequest",
    "WorkingHours",
    "booking_to_busy",
    "collect_busy_intervals",
    "days_in_month",
    "event_to_busy",
    "generate_available_times",
    "month_name",
    "resolve_effective_hours",
    "year_of",
]
