"""
Core business logic for calculating bookable start times.

This is the heart of the application - pure domain logic without any
external dependencies (no API calls, no database, no clock reads).
"""

from datetime import date as _date
from typing import List, Optional, Sequence

import pendulum
from pendulum import DateTime

from .models import (
    BusyInterval,
    DateOverrides,
    DayHours,
    SlotRequest,
    WorkingHours,
    as_date,
    format_minutes,
)

HALF_HOUR_ALIGNED_INTERVAL = 60


def resolve_effective_hours(
    value: _date,
    working_hours: WorkingHours,
    date_overrides: DateOverrides,
) -> Optional[DayHours]:
    """
    Opening hours that apply to ``value``, or None if the date is closed.

    An override for the date always wins, whether it opens or closes it.
    """
    override = date_overrides.lookup(value)
    if override is not None:
        return override.hours

    return working_hours.hours_for_date(value)


def first_candidate_minute(opening: int, slot_interval: int) -> int:
    """
    First start time to try for a day opening at ``opening``.

    Hour-long steps are offered on the half hour: at the opening hour's :30
    when the opening falls within its first half hour, otherwise at the next
    hour's :30.
    """
    if slot_interval != HALF_HOUR_ALIGNED_INTERVAL:
        return opening

    hour_start = opening - opening % 60
    if opening % 60 <= 30:
        return hour_start + 30
    return hour_start + 90


class SlotCalculator:
    """
    Calculates the start times that can be booked on a single date.

    Algorithm:
    1. Resolve effective opening hours (override first, then weekly schedule)
    2. Pick the first candidate (half-hour alignment for 60 minute steps)
    3. Walk candidates by the slot interval until closing time
    4. Drop candidates that spill past closing, start before the cutoff or
       overlap any busy interval
    5. Return the survivors as ``HH:MM`` strings
    """

    def generate_available_times(self, request: SlotRequest) -> List[str]:
        """
        Compute the ordered, duplicate-free list of bookable start times.

        Args:
            request: Fully validated availability request

        Returns:
            ``HH:MM`` strings in ascending order; empty if nothing is bookable
        """
        hours = resolve_effective_hours(
            request.date,
            request.working_hours,
            request.date_overrides,
        )

        if hours is None:
            return []

        day = as_date(request.date)
        earliest_start = request.earliest_start
        times: List[str] = []

        candidate = first_candidate_minute(hours.start, request.slot_interval)

        while candidate < hours.end:
            slot_end = candidate + request.duration

            if (
                hours.contains(candidate, slot_end)
                and not self._starts_before(day, candidate, request.timezone, earliest_start)
                and not self._has_conflict(candidate, slot_end, request.busy_intervals)
            ):
                times.append(format_minutes(candidate))

            candidate += request.slot_interval

        return times

    @staticmethod
    def _starts_before(
        day: _date,
        minute: int,
        timezone: str,
        cutoff: DateTime,
    ) -> bool:
        """A slot starting exactly at the cutoff is still bookable."""
        slot_start = pendulum.datetime(
            day.year,
            day.month,
            day.day,
            minute // 60,
            minute % 60,
            tz=timezone,
        )
        return slot_start < cutoff

    @staticmethod
    def _has_conflict(
        start: int,
        end: int,
        busy_intervals: Sequence[BusyInterval],
    ) -> bool:
        return any(busy.overlaps(start, end) for busy in busy_intervals)


def generate_available_times(request: SlotRequest) -> List[str]:
    """Module-level shortcut for ``SlotCalculator().generate_available_times``."""
    return SlotCalculator().generate_available_times(request)
