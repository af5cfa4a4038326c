"""
Mock calendar client for running without Google credentials.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import pendulum
from pendulum import DateTime

from ..domain.exceptions import CalendarAPIError
from ..domain.models import Booking, CalendarEvent

logger = logging.getLogger(__name__)

DEFAULT_MOCK_EVENTS_FILE = Path(__file__).parent / "mock_calendar_events.json"


class MockCalendarClient:
    """
    Mock client that serves calendar events from a JSON file.

    Each entry looks like:
    {"calendarId": "primary", "start": "2024-11-25T10:00:00", "end": "...",
     "allDay": false, "status": "confirmed", "transparency": "opaque"}
    All-day entries use ``YYYY-MM-DD`` values with an exclusive end.
    """

    def __init__(
        self,
        calendar_ids: Sequence[str] = ("primary",),
        timezone: str = "Europe/Rome",
        events_file: Optional[Path] = None,
        raw_events: Optional[List[Dict[str, Any]]] = None,
    ):
        self.calendar_ids = list(calendar_ids)
        self.timezone = timezone
        self.created_events: List[Dict[str, Any]] = []

        if raw_events is not None:
            self.raw_events = raw_events
        else:
            self.raw_events = self._load_events(events_file or DEFAULT_MOCK_EVENTS_FILE)

    @staticmethod
    def _load_events(events_file: Path) -> List[Dict[str, Any]]:
        """Load mock events from a JSON file; a missing file means no events."""
        if not events_file.exists():
            return []

        try:
            with open(events_file, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            raise CalendarAPIError(f"Could not read mock events from {events_file}: {exc}") from exc

    def list_events(self, start_time: DateTime, end_time: DateTime) -> List[CalendarEvent]:
        """Return mock events of the configured calendars overlapping the window."""
        events: List[CalendarEvent] = []

        for raw in self.raw_events:
            if raw.get("calendarId", "primary") not in self.calendar_ids:
                continue

            try:
                event = self._to_event(raw)
            except (KeyError, ValueError) as e:
                logger.warning("Skipping invalid mock event %s: %s", raw, e)
                continue

            event_end = event.end
            if event.all_day:
                # A single-day all-day event may have end == start
                event_end = max(event.end, event.start.add(days=1))

            if event.start < end_time and event_end > start_time:
                events.append(event)

        return events

    def _to_event(self, raw: Dict[str, Any]) -> CalendarEvent:
        all_day = bool(raw.get("allDay", False))
        start = pendulum.parse(raw["start"], tz=self.timezone)
        end = pendulum.parse(raw["end"], tz=self.timezone)

        if not isinstance(start, DateTime) or not isinstance(end, DateTime):
            raise ValueError("start and end must be dates or datetimes")

        return CalendarEvent(
            id=raw.get("id", ""),
            summary=raw.get("summary", ""),
            start=start,
            end=end,
            all_day=all_day,
            status=raw.get("status", "confirmed"),
            transparency=raw.get("transparency", "opaque"),
        )

    def create_event(
        self,
        booking: Booking,
        calendar_id: str = "primary",
        summary: str = "",
        send_updates: str = "none",
    ) -> Dict[str, Any]:
        """Record the event locally instead of calling the API."""
        event = {
            "id": f"mock-{len(self.created_events) + 1}",
            "calendarId": calendar_id,
            "summary": summary or f"{booking.service_id} - {booking.name}",
            "start": booking.start_time.to_iso8601_string(),
            "end": booking.end_time.to_iso8601_string(),
        }
        self.created_events.append(event)
        return event
