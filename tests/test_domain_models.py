"""
Tests for domain models.
"""

import pendulum
import pytest

from slotbooking.domain.exceptions import InvalidScheduleError, InvalidSlotRequestError
from slotbooking.domain.models import (
    Booking,
    BusyInterval,
    CalendarEvent,
    DateOverrides,
    DayHours,
    Override,
    WorkingHours,
    format_minutes,
    parse_time_of_day,
    weekday_index,
)


class TestDayHours:
    """Tests for DayHours model."""

    def test_create_valid_hours(self):
        """Test creating valid opening hours."""
        hours = DayHours(start=540, end=1140)

        assert hours.contains(540, 600)
        assert hours.contains(1080, 1140)
        assert not hours.contains(1110, 1170)
        assert str(hours) == "09:00 - 19:00"

    @pytest.mark.parametrize("start, end", [(600, 600), (700, 600), (-10, 600), (540, 1500)])
    def test_invalid_hours_raise_error(self, start, end):
        """Test that impossible ranges raise InvalidScheduleError."""
        with pytest.raises(InvalidScheduleError):
            DayHours(start=start, end=end)

    def test_invalid_hours_are_value_errors(self):
        """Schedule errors can be handled as plain ValueErrors."""
        with pytest.raises(ValueError):
            DayHours(start=600, end=540)


class TestWorkingHours:
    """Tests for WorkingHours model."""

    def test_weekday_index_starts_on_sunday(self):
        """Sunday is 0 and Saturday is 6."""
        assert weekday_index(pendulum.date(2024, 11, 24)) == 0  # Sunday
        assert weekday_index(pendulum.date(2024, 11, 25)) == 1  # Monday
        assert weekday_index(pendulum.date(2024, 11, 30)) == 6  # Saturday

    def test_hours_for_date(self):
        """Test looking up the hours of a specific date."""
        working_hours = WorkingHours(days={1: DayHours(start=540, end=1140), 0: None})

        assert working_hours.hours_for_date(pendulum.date(2024, 11, 25)) == DayHours(540, 1140)
        assert working_hours.hours_for_date(pendulum.date(2024, 11, 24)) is None
        # Tuesday is missing entirely and therefore closed
        assert working_hours.hours_for_date(pendulum.date(2024, 11, 26)) is None

    def test_invalid_weekday_raises_error(self):
        """Weekday indices outside 0-6 are rejected."""
        with pytest.raises(InvalidScheduleError):
            WorkingHours(days={7: DayHours(start=540, end=600)})


class TestDateOverrides:
    """Tests for the three override states."""

    def test_open_closed_and_absent_are_distinct(self):
        """An override can open, close, or be absent for a date."""
        overrides = DateOverrides.from_hours({
            "2024-12-24": DayHours(start=540, end=720),
            "2024-12-25": None,
        })

        open_override = overrides.lookup(pendulum.date(2024, 12, 24))
        closed_override = overrides.lookup(pendulum.date(2024, 12, 25))
        no_override = overrides.lookup(pendulum.date(2024, 12, 26))

        assert open_override == Override(hours=DayHours(start=540, end=720))
        assert not open_override.is_closed
        assert closed_override == Override(hours=None)
        assert closed_override.is_closed
        assert no_override is None

    def test_contains_uses_calendar_date(self):
        """Lookups by DateTime use the calendar date only."""
        overrides = DateOverrides.from_hours({"2024-12-25": None})

        assert pendulum.datetime(2024, 12, 25, 15, 30, tz="Europe/Rome") in overrides
        assert pendulum.date(2024, 12, 26) not in overrides


class TestBusyInterval:
    """Tests for half-open overlap checks."""

    def test_overlaps(self):
        """Test overlap detection."""
        busy = BusyInterval(start=600, end=660)

        assert busy.overlaps(570, 630)
        assert busy.overlaps(630, 690)
        assert busy.overlaps(540, 720)

    def test_touching_is_not_overlap(self):
        """Intervals sharing only an endpoint do not overlap."""
        busy = BusyInterval(start=600, end=660)

        assert not busy.overlaps(540, 600)
        assert not busy.overlaps(660, 720)

    def test_empty_interval_rejected(self):
        """An interval must have a positive length."""
        with pytest.raises(InvalidSlotRequestError):
            BusyInterval(start=600, end=600)


class TestBooking:
    """Tests for the Booking record."""

    def test_round_trip_through_dict(self):
        """A booking survives JSON serialisation."""
        booking = Booking(
            id="b1",
            service_id="tennis-individuale",
            duration=90,
            location="Tennis Club Gavardo",
            start_time=pendulum.datetime(2024, 11, 26, 10, 0, tz="Europe/Rome"),
            name="Luca Bianchi",
            email="luca@example.com",
        )

        restored = Booking.from_dict(booking.to_dict())

        assert restored == booking
        assert restored.end_time == pendulum.datetime(2024, 11, 26, 11, 30, tz="Europe/Rome")

    def test_missing_field_raises_key_error(self):
        """Incomplete records are rejected."""
        with pytest.raises(KeyError):
            Booking.from_dict({"service_id": "x", "duration": 60})


class TestCalendarEvent:
    """Tests for CalendarEvent."""

    def test_blocks_time(self):
        """Only confirmed, opaque events block time."""
        start = pendulum.datetime(2024, 11, 25, 10, tz="Europe/Rome")
        end = start.add(hours=1)

        assert CalendarEvent(start=start, end=end).blocks_time
        assert not CalendarEvent(start=start, end=end, status="cancelled").blocks_time
        assert not CalendarEvent(start=start, end=end, transparency="transparent").blocks_time


class TestTimeOfDay:
    """Tests for HH:MM helpers."""

    def test_format_minutes_zero_pads(self):
        assert format_minutes(0) == "00:00"
        assert format_minutes(570) == "09:30"
        assert format_minutes(1439) == "23:59"

    def test_parse_time_of_day(self):
        assert parse_time_of_day("09:30") == 570
        assert parse_time_of_day("9:05") == 545

    @pytest.mark.parametrize("value", ["24:00", "10:60", "ten", "10"])
    def test_parse_invalid_time(self, value):
        with pytest.raises(ValueError):
            parse_time_of_day(value)
