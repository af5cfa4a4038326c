"""
Tests for YAML configuration loading.
"""

from pathlib import Path

import pendulum
import pytest

from slotbooking.config import AppConfig
from slotbooking.domain.models import DayHours, Override

CONFIG_YAML = """
timezone: Europe/Rome
slot_interval: 60
minimum_notice_hours: 2
working_hours:
  0: null
  1: {start: 540, end: 1140}
  3: {start: 540, end: 780}
date_overrides:
  2024-12-25: null
  "2024-12-29": {start: 600, end: 720}
services:
  - id: tennis-individuale
    name: Lezione Individuale
    durations: [60, 90]
    locations: [Tennis Club Gavardo]
bookings_file: data/bookings.json
"""


def _write_config(tmp_path: Path, content: str) -> Path:
    config_path = tmp_path / "config.yaml"
    config_path.write_text(content, encoding="utf-8")
    return config_path


class TestLoadFromYaml:
    """Tests for AppConfig.load_from_yaml."""

    def test_load_full_config(self, tmp_path):
        """All sections are read and converted."""
        config = AppConfig.load_from_yaml(_write_config(tmp_path, CONFIG_YAML))

        assert config.slot_interval == 60
        assert config.minimum_notice_minutes == 120
        assert config.bookings_file == tmp_path / "data" / "bookings.json"
        assert config.find_service("TENNIS-individuale").durations == [60, 90]

    def test_missing_weekdays_are_closed(self, tmp_path):
        """Weekdays not listed in working_hours are closed."""
        config = AppConfig.load_from_yaml(_write_config(tmp_path, CONFIG_YAML))
        working_hours = config.get_working_hours()

        assert working_hours.hours_for_weekday(1) == DayHours(start=540, end=1140)
        assert working_hours.hours_for_weekday(2) is None
        assert working_hours.hours_for_weekday(0) is None

    def test_overrides_keep_closed_and_absent_apart(self, tmp_path):
        """A null override closes the date; unlisted dates have no override."""
        config = AppConfig.load_from_yaml(_write_config(tmp_path, CONFIG_YAML))
        overrides = config.get_date_overrides()

        assert overrides.lookup(pendulum.date(2024, 12, 25)) == Override(hours=None)
        assert overrides.lookup(pendulum.date(2024, 12, 29)) == Override(hours=DayHours(600, 720))
        assert overrides.lookup(pendulum.date(2024, 12, 26)) is None

    def test_defaults_without_optional_sections(self, tmp_path):
        """An empty mapping yields the default schedule."""
        config = AppConfig.load_from_yaml(_write_config(tmp_path, "{}\n"))

        assert config.slot_interval == 30
        assert config.timezone == "Europe/Rome"
        assert config.get_working_hours().hours_for_weekday(5) == DayHours(start=600, end=1080)
        assert config.get_working_hours().hours_for_weekday(0) is None

    def test_missing_file(self, tmp_path):
        """A missing config file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            AppConfig.load_from_yaml(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path):
        """Broken YAML is reported as ValueError."""
        with pytest.raises(ValueError, match="Invalid YAML"):
            AppConfig.load_from_yaml(_write_config(tmp_path, "working_hours: [unclosed\n"))

    def test_non_mapping_root(self, tmp_path):
        """The root of the file must be a mapping."""
        with pytest.raises(ValueError, match="mapping"):
            AppConfig.load_from_yaml(_write_config(tmp_path, "- a\n- b\n"))


class TestValidation:
    """Tests for field validation."""

    def test_inverted_hours_rejected(self):
        """A day must open before it closes."""
        with pytest.raises(ValueError):
            AppConfig(working_hours={1: {"start": 1140, "end": 540}})

    def test_invalid_weekday_rejected(self):
        """Weekdays are 0 to 6."""
        with pytest.raises(ValueError):
            AppConfig(working_hours={7: {"start": 540, "end": 600}})

    def test_invalid_override_key_rejected(self):
        """Override keys must be ISO dates."""
        with pytest.raises(ValueError):
            AppConfig(date_overrides={"25/12/2024": None})

    def test_non_positive_slot_interval_rejected(self):
        with pytest.raises(ValueError):
            AppConfig(slot_interval=0)

    def test_duplicate_service_ids_rejected(self):
        with pytest.raises(ValueError, match="Duplicate service id"):
            AppConfig(services=[{"id": "a", "name": "A"}, {"id": "a", "name": "B"}])


class TestResolveDuration:
    """Tests for choosing an appointment duration."""

    def test_explicit_duration_wins(self):
        config = AppConfig(services=[{"id": "padel", "name": "Padel", "durations": [90]}])

        assert config.resolve_duration(45, "padel") == 45

    def test_service_default_duration(self):
        config = AppConfig(services=[{"id": "padel", "name": "Padel", "durations": [90, 60]}])

        assert config.resolve_duration(None, "padel") == 90

    def test_unknown_service(self):
        with pytest.raises(ValueError, match="Unknown service"):
            AppConfig().resolve_duration(None, "squash")

    def test_nothing_given(self):
        with pytest.raises(ValueError):
            AppConfig().resolve_duration(None, None)
