"""
Google Calendar API client for reading busy events and writing bookings.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

import pendulum
import requests
from pendulum import DateTime

from ..domain.exceptions import CalendarAPIError
from ..domain.models import Booking, CalendarEvent

logger = logging.getLogger(__name__)


class GoogleCalendarClient:
    """
    Client for Google Calendar v3 event operations.

    Uses ``/calendars/{id}/events`` with ``singleEvents=true`` so recurring
    events arrive already expanded. Obtaining the access token is the
    caller's concern.
    """

    CALENDAR_API_ENDPOINT = "https://www.googleapis.com/calendar/v3"

    def __init__(
        self,
        access_token: str,
        calendar_ids: Sequence[str] = ("primary",),
        timezone: str = "Europe/Rome",
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the Google Calendar client.

        Args:
            access_token: Valid OAuth access token with calendar scopes
            calendar_ids: Calendars whose events block availability
            timezone: IANA timezone used for requests and all-day events
            session: Optional requests session (useful for tests)
        """
        if not access_token:
            raise CalendarAPIError("A Google Calendar access token is required.")

        self.calendar_ids = list(calendar_ids)
        self.timezone = timezone
        self.session = session or requests.Session()
        self.headers = {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
        }

    def list_events(self, start_time: DateTime, end_time: DateTime) -> List[CalendarEvent]:
        """
        Get events from every configured calendar within a time window.

        Args:
            start_time: Start of the time window
            end_time: End of the time window

        Returns:
            CalendarEvent objects from all calendars, in API order

        Raises:
            CalendarAPIError: If an API call fails
        """
        events: List[CalendarEvent] = []

        for calendar_id in self.calendar_ids:
            items = self._fetch_calendar_items(calendar_id, start_time, end_time)
            events.extend(self._parse_events(items))

        logger.debug(
            "Fetched %d events from %d calendar(s)", len(events), len(self.calendar_ids)
        )
        return events

    def _fetch_calendar_items(
        self,
        calendar_id: str,
        start_time: DateTime,
        end_time: DateTime,
    ) -> List[Dict[str, Any]]:
        url = f"{self.CALENDAR_API_ENDPOINT}/calendars/{calendar_id}/events"
        params: Dict[str, Any] = {
            "timeMin": start_time.to_iso8601_string(),
            "timeMax": end_time.to_iso8601_string(),
            "timeZone": self.timezone,
            "singleEvents": "true",
            "orderBy": "startTime",
            "maxResults": 2500,
        }
        items: List[Dict[str, Any]] = []

        while True:
            try:
                response = self.session.get(url, headers=self.headers, params=params, timeout=30)
                response.raise_for_status()
                data = response.json()
            except (requests.exceptions.RequestException, ValueError) as e:
                raise CalendarAPIError(
                    f"Failed to fetch events for calendar '{calendar_id}': {e}"
                ) from e

            items.extend(data.get("items", []))

            page_token = data.get("nextPageToken")
            if not page_token:
                return items
            params["pageToken"] = page_token

    def _parse_events(self, items: List[Dict[str, Any]]) -> List[CalendarEvent]:
        """
        Parse raw event resources into our domain model.

        Item format:
        {
            "id": "...",
            "status": "confirmed",
            "transparency": "opaque",
            "start": {"dateTime": "..."} | {"date": "YYYY-MM-DD"},
            "end": {"dateTime": "..."} | {"date": "YYYY-MM-DD"}
        }
        """
        events: List[CalendarEvent] = []

        for item in items:
            try:
                events.append(self._parse_event(item))
            except (KeyError, ValueError) as e:
                logger.warning("Skipping unparseable calendar event %s: %s", item.get("id", "?"), e)

        return events

    def _parse_event(self, item: Dict[str, Any]) -> CalendarEvent:
        start_info = item["start"]
        end_info = item["end"]
        all_day = "date" in start_info and "dateTime" not in start_info

        if all_day:
            start = self._parse_date(start_info["date"])
            end = self._parse_date(end_info["date"])
        else:
            start = self._parse_datetime(start_info["dateTime"])
            end = self._parse_datetime(end_info["dateTime"])

        return CalendarEvent(
            id=item.get("id", ""),
            summary=item.get("summary", ""),
            start=start,
            end=end,
            all_day=all_day,
            status=item.get("status", "confirmed"),
            transparency=item.get("transparency", "opaque"),
        )

    def _parse_date(self, date_str: str) -> DateTime:
        return pendulum.from_format(date_str, "YYYY-MM-DD", tz=self.timezone).start_of("day")

    def _parse_datetime(self, datetime_str: str) -> DateTime:
        """
        Parse an RFC 3339 timestamp into the client timezone.
        """
        dt = pendulum.parse(datetime_str)

        if isinstance(dt, DateTime):
            return dt.in_timezone(self.timezone)

        raise ValueError(f"Could not parse datetime: {datetime_str}")

    def create_event(
        self,
        booking: Booking,
        calendar_id: str = "primary",
        summary: str = "",
        send_updates: str = "none",
    ) -> Dict[str, Any]:
        """
        Insert a calendar event for a confirmed booking.

        Returns:
            The created event resource

        Raises:
            CalendarAPIError: If the API call fails
        """
        url = f"{self.CALENDAR_API_ENDPOINT}/calendars/{calendar_id}/events"
        payload = {
            "summary": summary or f"{booking.service_id} - {booking.name}",
            "location": booking.location,
            "description": f"Booked by {booking.name} <{booking.email}>",
            "start": {
                "dateTime": booking.start_time.to_iso8601_string(),
                "timeZone": self.timezone,
            },
            "end": {
                "dateTime": booking.end_time.to_iso8601_string(),
                "timeZone": self.timezone,
            },
            "attendees": [{"email": booking.email, "displayName": booking.name}],
        }

        try:
            response = self.session.post(
                url,
                headers=self.headers,
                params={"sendUpdates": send_updates},
                json=payload,
                timeout=30,
            )
            response.raise_for_status()
            created = response.json()
        except (requests.exceptions.RequestException, ValueError) as e:
            raise CalendarAPIError(f"Failed to create calendar event: {e}") from e

        logger.info("Created calendar event %s for booking %s", created.get("id"), booking.id)
        return created
