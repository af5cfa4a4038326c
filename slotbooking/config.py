"""
Configuration management using Pydantic models loaded from YAML.
"""

import os
from pathlib import Path
from typing import Dict, List, Optional

import pendulum
import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.models import (
    DEFAULT_TIMEZONE,
    DEFAULT_WORKING_HOURS,
    MINUTES_PER_DAY,
    DateOverrides,
    DayHours,
    WorkingHours,
)


class HoursConfig(BaseModel):
    """Opening hours of one day, in minutes since midnight."""
    start: int
    end: int

    @field_validator("start", "end")
    @classmethod
    def validate_minute(cls, v: int) -> int:
        """Validate the minute lies within a day."""
        if not 0 <= v <= MINUTES_PER_DAY:
            raise ValueError(f"Minute must be between 0 and {MINUTES_PER_DAY}, got {v}")
        return v

    @model_validator(mode="after")
    def validate_order(self) -> "HoursConfig":
        """Ensure the day opens before it closes."""
        if self.end <= self.start:
            raise ValueError("end must be later than start")
        return self

    def to_domain(self) -> DayHours:
        return DayHours(start=self.start, end=self.end)


def _default_working_hours() -> Dict[int, Optional[HoursConfig]]:
    return {
        weekday: HoursConfig(start=hours.start, end=hours.end) if hours else None
        for weekday, hours in enumerate(DEFAULT_WORKING_HOURS)
    }


class ServiceOffering(BaseModel):
    """A bookable service (e.g. a lesson type) with its duration options."""
    id: str
    name: str
    description: str = ""
    durations: List[int] = Field(default_factory=lambda: [60])
    locations: List[str] = Field(default_factory=list)

    @field_validator("durations")
    @classmethod
    def validate_durations(cls, value: List[int]) -> List[int]:
        """Ensure at least one positive duration is offered."""
        if not value:
            raise ValueError("durations must not be empty")
        if any(duration <= 0 for duration in value):
            raise ValueError(f"durations must be greater than zero, got {value}")
        return value

    @property
    def default_duration(self) -> int:
        return self.durations[0]


class GoogleCalendarConfig(BaseModel):
    """External calendar integration settings."""
    calendar_ids: List[str] = Field(default_factory=list)
    access_token: str = ""
    access_token_env: str = "GOOGLE_ACCESS_TOKEN"
    create_events: bool = False
    event_calendar_id: str = "primary"
    send_updates: str = "none"

    @field_validator("send_updates")
    @classmethod
    def validate_send_updates(cls, value: str) -> str:
        if value not in ("all", "externalOnly", "none"):
            raise ValueError(f"send_updates must be all, externalOnly or none, got {value}")
        return value

    @property
    def enabled(self) -> bool:
        return bool(self.calendar_ids) or self.create_events

    def resolve_access_token(self) -> str:
        """Token from the config file, falling back to the environment."""
        return self.access_token or os.environ.get(self.access_token_env, "")


class AppConfig(BaseModel):
    """Application configuration."""
    timezone: str = DEFAULT_TIMEZONE
    locale: str = "it"
    slot_interval: int = 30
    minimum_notice_hours: int = 0
    working_hours: Dict[int, Optional[HoursConfig]] = Field(default_factory=_default_working_hours)
    date_overrides: Dict[str, Optional[HoursConfig]] = Field(default_factory=dict)
    services: List[ServiceOffering] = Field(default_factory=list)
    bookings_file: Path = Path("bookings.json")
    mock_events_file: Optional[Path] = None
    google: GoogleCalendarConfig = Field(default_factory=GoogleCalendarConfig)

    @field_validator("slot_interval")
    @classmethod
    def validate_slot_interval(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("slot_interval must be greater than zero")
        return value

    @field_validator("minimum_notice_hours")
    @classmethod
    def validate_minimum_notice(cls, value: int) -> int:
        if value < 0:
            raise ValueError("minimum_notice_hours cannot be negative")
        return value

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Ensure the timezone is a known IANA identifier."""
        try:
            pendulum.timezone(value)
        except Exception as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

    @field_validator("working_hours")
    @classmethod
    def validate_working_hours(
        cls, value: Dict[int, Optional[HoursConfig]]
    ) -> Dict[int, Optional[HoursConfig]]:
        """Ensure weekdays are 0 (Sunday) to 6 (Saturday); missing days are closed."""
        invalid_days = [day for day in value if day not in range(7)]
        if invalid_days:
            raise ValueError(f"working_hours weekdays must be between 0 and 6, got {invalid_days}")
        return {day: value.get(day) for day in range(7)}

    @field_validator("date_overrides", mode="before")
    @classmethod
    def stringify_override_keys(cls, value):
        """YAML reads unquoted ISO dates as date objects."""
        if isinstance(value, dict):
            return {str(key): hours for key, hours in value.items()}
        return value

    @field_validator("date_overrides")
    @classmethod
    def validate_date_overrides(
        cls, value: Dict[str, Optional[HoursConfig]]
    ) -> Dict[str, Optional[HoursConfig]]:
        """Ensure override keys are ISO calendar dates."""
        for key in value:
            try:
                pendulum.from_format(key, "YYYY-MM-DD")
            except ValueError as exc:
                raise ValueError(f"date_overrides key '{key}' is not a YYYY-MM-DD date") from exc
        return value

    @field_validator("services")
    @classmethod
    def validate_services(cls, value: List[ServiceOffering]) -> List[ServiceOffering]:
        """Ensure service ids are unique."""
        seen: set[str] = set()
        for service in value:
            if service.id in seen:
                raise ValueError(f"Duplicate service id detected: {service.id}")
            seen.add(service.id)
        return value

    @property
    def minimum_notice_minutes(self) -> int:
        return self.minimum_notice_hours * 60

    def get_working_hours(self) -> WorkingHours:
        """Weekly schedule as a domain object."""
        return WorkingHours(
            days={
                day: hours.to_domain() if hours else None
                for day, hours in self.working_hours.items()
            }
        )

    def get_date_overrides(self) -> DateOverrides:
        """
        Per-date overrides as a domain object.

        A key mapped to null closes the date; keys not present leave the
        weekly schedule in charge.
        """
        return DateOverrides.from_hours(
            {key: hours.to_domain() if hours else None for key, hours in self.date_overrides.items()}
        )

    def find_service(self, service_id: str) -> ServiceOffering | None:
        """Find a service offering by id (case-insensitive)."""
        for service in self.services:
            if service.id.lower() == service_id.lower():
                return service
        return None

    def resolve_duration(self, duration: Optional[int], service_id: Optional[str]) -> int:
        """
        Pick the requested duration, or the default duration of a service.

        Raises:
            ValueError: If neither is usable
        """
        if duration is not None:
            return duration

        if service_id:
            service = self.find_service(service_id)
            if service is None:
                raise ValueError(f"Unknown service id: '{service_id}'")
            return service.default_duration

        raise ValueError("Provide either a duration or a service id.")

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        config = cls(**data)

        # Relative data files live next to the config file
        if not config.bookings_file.is_absolute():
            config.bookings_file = config_path.parent / config.bookings_file
        if config.mock_events_file and not config.mock_events_file.is_absolute():
            config.mock_events_file = config_path.parent / config.mock_events_file

        return config


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path
