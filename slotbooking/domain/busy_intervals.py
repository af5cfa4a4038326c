"""
Normalisation of bookings and calendar events into same-day busy intervals.

Each source has its own mapping function; the availability engine only ever
sees ``BusyInterval`` values and never branches on where they came from.
"""

from datetime import date as _date
from typing import Iterable, List, Optional

from pendulum import DateTime

from .models import (
    MINUTES_PER_DAY,
    Booking,
    BusyInterval,
    CalendarEvent,
    as_date,
)


def _minute_of_day(moment: DateTime, day: _date, tz: str, round_up: bool = False) -> int:
    """
    Wall-clock minute of ``moment`` relative to ``day``, clamped to [0, 1440].

    Partial minutes are dropped, or counted as a full minute with ``round_up``.
    """
    local = moment.in_timezone(tz)
    local_day = local.date()

    if local_day < day:
        return 0
    if local_day > day:
        return MINUTES_PER_DAY

    minute = local.hour * 60 + local.minute
    if round_up and (local.second or local.microsecond):
        minute += 1
    return minute


def _clip_to_day(
    start: DateTime,
    end: DateTime,
    day: _date,
    tz: str,
) -> Optional[BusyInterval]:
    # widen to whole minutes so sub-minute busy time still blocks its slot
    start_minute = _minute_of_day(start, day, tz)
    end_minute = _minute_of_day(end, day, tz, round_up=True)

    if start_minute >= end_minute:
        return None

    return BusyInterval(start=start_minute, end=end_minute)


def booking_to_busy(booking: Booking, day: _date, tz: str) -> Optional[BusyInterval]:
    """
    Busy time a booking occupies on ``day``.

    Cancelled bookings and bookings on other days yield None.
    """
    if booking.is_cancelled:
        return None

    return _clip_to_day(booking.start_time, booking.end_time, as_date(day), tz)


def event_to_busy(event: CalendarEvent, day: _date, tz: str) -> Optional[BusyInterval]:
    """
    Busy time an external calendar event occupies on ``day``.

    Cancelled and transparent events yield None. An all-day event covering
    ``day`` blocks the full ``[0, 1440)`` range.
    """
    if not event.blocks_time:
        return None

    target = as_date(day)

    if event.all_day:
        first_day = event.start.in_timezone(tz).date()
        last_day_exclusive = event.end.in_timezone(tz).date()
        # Single-day all-day events may come back with start == end
        if first_day <= target < max(last_day_exclusive, first_day.add(days=1)):
            return BusyInterval(start=0, end=MINUTES_PER_DAY)
        return None

    return _clip_to_day(event.start, event.end, target, tz)


def collect_busy_intervals(
    day: _date,
    tz: str,
    bookings: Iterable[Booking] = (),
    events: Iterable[CalendarEvent] = (),
) -> List[BusyInterval]:
    """
    Normalise both busy sources for ``day`` into one list.

    Overlapping intervals are kept as-is; conflict checks are existential.
    """
    busy: List[BusyInterval] = []

    for booking in bookings:
        interval = booking_to_busy(booking, day, tz)
        if interval is not None:
            busy.append(interval)

    for event in events:
        interval = event_to_busy(event, day, tz)
        if interval is not None:
            busy.append(interval)

    return busy
