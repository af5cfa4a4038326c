"""
Tests for the JSON booking store.
"""

import json

import pendulum
import pytest

from slotbooking.adapters.booking_store import JsonBookingStore
from slotbooking.domain.exceptions import BookingStoreError
from slotbooking.domain.models import Booking

TZ = "Europe/Rome"


def _booking(hour: int, status: str = "confirmed") -> Booking:
    return Booking(
        service_id="padel-coppia",
        duration=90,
        start_time=pendulum.datetime(2024, 11, 25, hour, 0, tz=TZ),
        name="Giulia Verdi",
        email="giulia@example.com",
        status=status,
    )


class TestJsonBookingStore:
    """Tests for JsonBookingStore."""

    def test_missing_file_is_empty(self, tmp_path):
        """A store without a file has no bookings."""
        store = JsonBookingStore(tmp_path / "bookings.json")
        day_start = pendulum.datetime(2024, 11, 25, tz=TZ)

        assert store.list_bookings(day_start, day_start.add(days=1)) == []

    def test_add_and_list(self, tmp_path):
        """Stored bookings are listed when they overlap the window."""
        store = JsonBookingStore(tmp_path / "nested" / "bookings.json")
        saved = store.add_booking(_booking(14))
        day_start = pendulum.datetime(2024, 11, 25, tz=TZ)

        assert saved.id
        listed = store.list_bookings(day_start, day_start.add(days=1))
        assert [b.id for b in listed] == [saved.id]
        assert store.list_bookings(day_start.add(days=1), day_start.add(days=2)) == []

    def test_cancelled_bookings_are_not_listed(self, tmp_path):
        """Cancelled bookings no longer occupy time."""
        store = JsonBookingStore(tmp_path / "bookings.json")
        store.add_booking(_booking(10, status="cancelled"))
        day_start = pendulum.datetime(2024, 11, 25, tz=TZ)

        assert store.list_bookings(day_start, day_start.add(days=1)) == []

    def test_file_format(self, tmp_path):
        """Bookings are written as a JSON list of ISO timestamps."""
        path = tmp_path / "bookings.json"
        JsonBookingStore(path).add_booking(_booking(9))

        data = json.loads(path.read_text(encoding="utf-8"))

        assert data[0]["start_time"] == "2024-11-25T09:00:00+01:00"
        assert data[0]["duration"] == 90

    def test_corrupted_file(self, tmp_path):
        """Unreadable data is reported as BookingStoreError."""
        path = tmp_path / "bookings.json"
        path.write_text("{not json", encoding="utf-8")
        day_start = pendulum.datetime(2024, 11, 25, tz=TZ)

        with pytest.raises(BookingStoreError):
            JsonBookingStore(path).list_bookings(day_start, day_start.add(days=1))

    def test_invalid_record(self, tmp_path):
        """Records missing fields are reported as BookingStoreError."""
        path = tmp_path / "bookings.json"
        path.write_text('[{"service_id": "x"}]', encoding="utf-8")
        day_start = pendulum.datetime(2024, 11, 25, tz=TZ)

        with pytest.raises(BookingStoreError, match="Invalid booking record"):
            JsonBookingStore(path).list_bookings(day_start, day_start.add(days=1))
