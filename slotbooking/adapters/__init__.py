"""
Adapters layer - External integrations (Google Calendar, booking file).
"""

from .booking_store import JsonBookingStore
from .google_calendar_client import GoogleCalendarClient
from .mock_calendar_client import MockCalendarClient

__all__ = ["GoogleCalendarClient", "JsonBookingStore", "MockCalendarClient"]
