"""
Domain models for working hours, overrides, busy time and bookings.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date as _date
from typing import Any, Dict, List, Mapping, Optional, Sequence

import pendulum
from pendulum import Date, DateTime

from .exceptions import InvalidScheduleError, InvalidSlotRequestError

MINUTES_PER_DAY = 24 * 60

DEFAULT_TIMEZONE = "Europe/Rome"


def as_date(value: _date) -> Date:
    """Coerce a ``datetime.date`` (or DateTime) into a pendulum Date."""
    return pendulum.date(value.year, value.month, value.day)


def weekday_index(value: _date) -> int:
    """Weekday index with 0=Sunday .. 6=Saturday."""
    return value.isoweekday() % 7


@dataclass(frozen=True)
class DayHours:
    """
    Opening hours of a single day, in minutes since local midnight.

    Invariant: 0 <= start < end <= 1440.
    """
    start: int
    end: int

    def __post_init__(self):
        if not 0 <= self.start < MINUTES_PER_DAY:
            raise InvalidScheduleError(f"Opening minute {self.start} is outside the day")
        if not 0 < self.end <= MINUTES_PER_DAY:
            raise InvalidScheduleError(f"Closing minute {self.end} is outside the day")
        if self.end <= self.start:
            raise InvalidScheduleError(
                f"Closing minute {self.end} must be after opening minute {self.start}"
            )

    def contains(self, start: int, end: int) -> bool:
        """Check that ``[start, end)`` fits inside the opening hours."""
        return self.start <= start and end <= self.end

    def __str__(self) -> str:
        return f"{format_minutes(self.start)} - {format_minutes(self.end)}"


@dataclass(frozen=True)
class WorkingHours:
    """
    Weekly schedule: weekday index (0=Sunday .. 6=Saturday) to opening hours.

    A weekday mapped to ``None`` or missing from the mapping is closed.
    """
    days: Mapping[int, Optional[DayHours]] = field(default_factory=dict)

    def __post_init__(self):
        invalid = [day for day in self.days if day not in range(7)]
        if invalid:
            raise InvalidScheduleError(f"Weekday indices must be between 0 and 6, got {invalid}")

    def hours_for_weekday(self, weekday: int) -> Optional[DayHours]:
        return self.days.get(weekday)

    def hours_for_date(self, value: _date) -> Optional[DayHours]:
        """Weekly opening hours for the weekday of ``value``, or None if closed."""
        return self.hours_for_weekday(weekday_index(value))


@dataclass(frozen=True)
class Override:
    """
    An explicit per-date override.

    ``hours=None`` closes the date; otherwise the date opens with ``hours``.
    The absence of an Override means the weekly schedule applies.
    """
    hours: Optional[DayHours] = None

    @property
    def is_closed(self) -> bool:
        return self.hours is None


@dataclass(frozen=True)
class DateOverrides:
    """Sparse mapping of ISO date keys (YYYY-MM-DD) to Override entries."""
    entries: Mapping[str, Override] = field(default_factory=dict)

    @classmethod
    def from_hours(cls, mapping: Mapping[str, Optional[DayHours]]) -> "DateOverrides":
        """Build from a plain mapping where a ``None`` value means closed."""
        return cls(entries={key: Override(hours=hours) for key, hours in mapping.items()})

    def lookup(self, value: _date) -> Optional[Override]:
        """Return the override for ``value``, or None when there is none."""
        return self.entries.get(as_date(value).to_date_string())

    def __contains__(self, value: _date) -> bool:
        return self.lookup(value) is not None


@dataclass(frozen=True)
class BusyInterval:
    """
    Busy time on the target date, as half-open minutes ``[start, end)``.
    """
    start: int
    end: int

    def __post_init__(self):
        if self.start >= self.end:
            raise InvalidSlotRequestError(f"Busy start {self.start} must be before busy end {self.end}")

    def overlaps(self, start: int, end: int) -> bool:
        """Touching intervals do not overlap."""
        return start < self.end and end > self.start


@dataclass(frozen=True)
class SlotRequest:
    """
    Everything the availability engine needs to compute one day's slots.

    ``now`` must be passed in explicitly; the engine never reads a clock.
    """
    date: _date
    duration: int
    slot_interval: int
    working_hours: WorkingHours
    date_overrides: DateOverrides
    busy_intervals: Sequence[BusyInterval]
    now: DateTime
    timezone: str = DEFAULT_TIMEZONE
    minimum_notice: int = 0  # minutes

    def __post_init__(self):
        if self.duration <= 0:
            raise InvalidSlotRequestError(f"Duration must be positive, got {self.duration}")
        if self.slot_interval <= 0:
            raise InvalidSlotRequestError(
                f"Slot interval must be positive, got {self.slot_interval}"
            )
        if self.minimum_notice < 0:
            raise InvalidSlotRequestError(
                f"Minimum notice cannot be negative, got {self.minimum_notice}"
            )
        if self.now.tzinfo is None:
            raise InvalidSlotRequestError("'now' must be timezone-aware")

    @property
    def earliest_start(self) -> DateTime:
        """First instant a slot may start at."""
        return pendulum.instance(self.now).add(minutes=self.minimum_notice)


@dataclass
class Booking:
    """
    An internal booking record.
    """
    service_id: str
    duration: int
    start_time: DateTime
    name: str
    email: str
    location: str = ""
    id: str = ""
    status: str = "confirmed"

    @property
    def end_time(self) -> DateTime:
        return self.start_time.add(minutes=self.duration)

    @property
    def is_cancelled(self) -> bool:
        return self.status == "cancelled"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "service_id": self.service_id,
            "duration": self.duration,
            "location": self.location,
            "start_time": self.start_time.to_iso8601_string(),
            "name": self.name,
            "email": self.email,
            "status": self.status,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Booking":
        """
        Build a booking from its JSON representation.

        Raises:
            KeyError: If a required field is missing
            ValueError: If the start time cannot be parsed
        """
        start_time = pendulum.parse(data["start_time"])
        if not isinstance(start_time, DateTime):
            raise ValueError(f"Could not parse booking start time: {data['start_time']}")

        return cls(
            id=data.get("id", ""),
            service_id=data["service_id"],
            duration=int(data["duration"]),
            location=data.get("location", ""),
            start_time=start_time,
            name=data["name"],
            email=data["email"],
            status=data.get("status", "confirmed"),
        )


@dataclass(frozen=True)
class CalendarEvent:
    """
    An event read from an external calendar.

    For all-day events ``start`` and ``end`` are dates at local midnight
    and ``end`` is exclusive.
    """
    start: DateTime
    end: DateTime
    all_day: bool = False
    status: str = "confirmed"
    transparency: str = "opaque"
    id: str = ""
    summary: str = ""

    @property
    def blocks_time(self) -> bool:
        """Cancelled and transparent ("free") events never block a slot."""
        return self.status != "cancelled" and self.transparency != "transparent"


def format_minutes(minutes: int) -> str:
    """Format minutes since midnight as zero-padded ``HH:MM``."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def parse_time_of_day(value: str) -> int:
    """
    Parse ``HH:MM`` into minutes since midnight.

    Raises:
        ValueError: If the string is not a valid 24-hour time
    """
    try:
        hours_str, minutes_str = value.strip().split(":")
        hours, minutes = int(hours_str), int(minutes_str)
    except ValueError as exc:
        raise ValueError(f"Invalid time of day '{value}', expected HH:MM") from exc

    if not (0 <= hours <= 23 and 0 <= minutes <= 59):
        raise ValueError(f"Invalid time of day '{value}', expected HH:MM")

    return hours * 60 + minutes


DEFAULT_WORKING_HOURS: List[Optional[DayHours]] = [
    None,                                   # Sunday
    DayHours(start=9 * 60, end=19 * 60),    # Monday
    DayHours(start=9 * 60, end=19 * 60),    # Tuesday
    DayHours(start=9 * 60, end=13 * 60),    # Wednesday
    DayHours(start=9 * 60, end=19 * 60),    # Thursday
    DayHours(start=10 * 60, end=18 * 60),   # Friday
    DayHours(start=9 * 60, end=13 * 60),    # Saturday
]
