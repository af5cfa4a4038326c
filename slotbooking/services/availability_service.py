"""
Application services for computing availability and taking bookings.

The service fetches busy time from the booking store and the external
calendar concurrently, normalises both into busy intervals and delegates the
actual slot computation to the domain-level ``SlotCalculator``. Collaborators
are described by protocols so tests can plug in simple stubs.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import date as _date
from typing import Any, Dict, List, Optional, Protocol

import pendulum
from pendulum import DateTime

from ..config import AppConfig
from ..domain.busy_intervals import collect_busy_intervals
from ..domain.exceptions import CalendarAPIError, SlotUnavailableError
from ..domain.models import (
    Booking,
    BusyInterval,
    CalendarEvent,
    DateOverrides,
    SlotRequest,
    WorkingHours,
    as_date,
    format_minutes,
    parse_time_of_day,
)
from ..domain.slot_calculator import SlotCalculator

logger = logging.getLogger(__name__)


class BookingStoreProtocol(Protocol):
    """Protocol describing the booking persistence needed by the service."""

    def list_bookings(self, start_time: DateTime, end_time: DateTime) -> List[Booking]:
        """Return bookings overlapping the window."""

    def add_booking(self, booking: Booking) -> Booking:
        """Persist a booking and return it."""


class CalendarClientProtocol(Protocol):
    """Protocol describing the calendar client behaviour needed by the service."""

    def list_events(self, start_time: DateTime, end_time: DateTime) -> List[CalendarEvent]:
        """Return external events overlapping the window."""

    def create_event(
        self,
        booking: Booking,
        calendar_id: str = "primary",
        summary: str = "",
        send_updates: str = "none",
    ) -> Dict[str, Any]:
        """Write a booking to the external calendar."""


@dataclass(frozen=True)
class SchedulingPolicy:
    """Administrator-controlled settings that shape availability."""
    working_hours: WorkingHours
    date_overrides: DateOverrides
    slot_interval: int = 30
    timezone: str = "Europe/Rome"
    minimum_notice: int = 0  # minutes

    @classmethod
    def from_config(cls, config: AppConfig) -> "SchedulingPolicy":
        return cls(
            working_hours=config.get_working_hours(),
            date_overrides=config.get_date_overrides(),
            slot_interval=config.slot_interval,
            timezone=config.timezone,
            minimum_notice=config.minimum_notice_minutes,
        )


class AvailabilityService:
    """
    Orchestrates busy-time retrieval, slot calculation and booking.
    """

    def __init__(
        self,
        booking_store: BookingStoreProtocol,
        policy: SchedulingPolicy,
        calendar_client: Optional[CalendarClientProtocol] = None,
        slot_calculator: Optional[SlotCalculator] = None,
        event_calendar_id: Optional[str] = None,
        send_updates: str = "none",
    ) -> None:
        """
        Args:
            booking_store: Source of internal bookings, also used to save new ones
            policy: Working hours, overrides, slot step, timezone and notice
            calendar_client: Optional external calendar; None means no external busy time
            slot_calculator: Engine instance, mainly for tests
            event_calendar_id: Calendar to push confirmed bookings to; None disables it
            send_updates: Google ``sendUpdates`` mode for pushed events
        """
        self._booking_store = booking_store
        self._calendar_client = calendar_client
        self._slot_calculator = slot_calculator or SlotCalculator()
        self._event_calendar_id = event_calendar_id
        self._send_updates = send_updates
        self._booking_lock = asyncio.Lock()
        self.policy = policy

    async def available_times(
        self,
        *,
        day: _date,
        duration: int,
        now: DateTime,
    ) -> List[str]:
        """
        Fetch fresh busy data for ``day`` and compute its bookable start times.
        """
        busy_intervals = await self.fetch_busy_intervals(day)

        return self.calculate_times(
            day=day,
            duration=duration,
            busy_intervals=busy_intervals,
            now=now,
        )

    async def fetch_busy_intervals(self, day: _date) -> List[BusyInterval]:
        """
        Fetch bookings and calendar events concurrently and normalise them.

        Both fetches must succeed; a failure in either propagates.
        """
        start_time, end_time = self._day_window(day)

        bookings, events = await asyncio.gather(
            asyncio.to_thread(self._booking_store.list_bookings, start_time, end_time),
            self._fetch_events(start_time, end_time),
        )

        logger.debug(
            "Busy data for %s: %d booking(s), %d event(s)",
            as_date(day).to_date_string(),
            len(bookings),
            len(events),
        )

        return collect_busy_intervals(
            day,
            self.policy.timezone,
            bookings=bookings,
            events=events,
        )

    def calculate_times(
        self,
        *,
        day: _date,
        duration: int,
        busy_intervals: List[BusyInterval],
        now: DateTime,
    ) -> List[str]:
        """Calculate bookable start times from already-fetched busy data."""
        request = SlotRequest(
            date=day,
            duration=duration,
            slot_interval=self.policy.slot_interval,
            working_hours=self.policy.working_hours,
            date_overrides=self.policy.date_overrides,
            busy_intervals=busy_intervals,
            now=now,
            timezone=self.policy.timezone,
            minimum_notice=self.policy.minimum_notice,
        )

        return self._slot_calculator.generate_available_times(request)

    async def book(
        self,
        *,
        day: _date,
        start: str,
        duration: int,
        name: str,
        email: str,
        service_id: str,
        now: DateTime,
        location: str = "",
    ) -> Booking:
        """
        Book ``start`` on ``day`` if it is still available.

        Availability is recomputed from fresh busy data right before saving.
        Concurrent calls on the same service are serialised, so the check
        and the save of one booking never interleave with another's.

        A stored booking is returned even if pushing it to the external
        calendar fails; the failure is logged.

        Raises:
            SlotUnavailableError: If the start time is not offered any more
            ValueError: If ``start`` is not a valid ``HH:MM`` time
        """
        minute = parse_time_of_day(start)
        normalized_start = format_minutes(minute)
        target = as_date(day)

        async with self._booking_lock:
            available = await self.available_times(day=day, duration=duration, now=now)

            if normalized_start not in available:
                raise SlotUnavailableError(
                    f"{normalized_start} on {target.to_date_string()} is not available "
                    f"for a {duration} minute booking."
                )

            booking = Booking(
                service_id=service_id,
                duration=duration,
                location=location,
                start_time=pendulum.datetime(
                    target.year,
                    target.month,
                    target.day,
                    minute // 60,
                    minute % 60,
                    tz=self.policy.timezone,
                ),
                name=name,
                email=email,
            )

            booking = await asyncio.to_thread(self._booking_store.add_booking, booking)

        if self._calendar_client is not None and self._event_calendar_id:
            await self._push_event(booking)

        return booking

    async def _push_event(self, booking: Booking) -> None:
        try:
            await asyncio.to_thread(
                self._calendar_client.create_event,
                booking,
                self._event_calendar_id,
                "",
                self._send_updates,
            )
        except CalendarAPIError as e:
            logger.warning(
                "Booking %s was stored but could not be added to calendar %s: %s",
                booking.id,
                self._event_calendar_id,
                e,
            )

    async def _fetch_events(self, start_time: DateTime, end_time: DateTime) -> List[CalendarEvent]:
        if self._calendar_client is None:
            return []

        return await asyncio.to_thread(self._calendar_client.list_events, start_time, end_time)

    def _day_window(self, day: _date) -> tuple[DateTime, DateTime]:
        target = as_date(day)
        start_time = pendulum.datetime(target.year, target.month, target.day, tz=self.policy.timezone)
        return start_time, start_time.add(days=1)
