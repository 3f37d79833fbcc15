"""
Configuration management using Pydantic models loaded from YAML.
"""

import os
import re
from pathlib import Path
from typing import List, Optional, Sequence

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.exceptions import SlotError
from .domain.models import (
    DEFAULT_BLOCKING_LEAVE_STATUSES,
    DEFAULT_RELEASED_APPOINTMENT_STATUSES,
    WEEKDAY_NAMES,
    ClockTime,
    TimeWindow,
    WeeklySchedule,
    normalize_weekday,
)
from .domain.slot_calculator import SlotAvailabilityCalculator

TOKEN_ENV_VAR = "DOCTORSLOTS_API_TOKEN"

_OBJECT_ID_PATTERN = re.compile(r"^[0-9a-fA-F]{24}$")


class ApiConfig(BaseModel):
    """Connection settings for the hospital REST backend."""
    base_url: str = "http://localhost:5000"
    token: Optional[str] = None
    timeout_seconds: int = 30

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, value: str) -> str:
        """Require an http(s) URL and drop the trailing slash."""
        if not value.startswith(("http://", "https://")):
            raise ValueError(f"base_url must start with http:// or https://, got {value}")
        return value.rstrip("/")

    @field_validator("timeout_seconds")
    @classmethod
    def validate_timeout(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("timeout_seconds must be greater than zero")
        return value

    def get_token(self) -> Optional[str]:
        """Token from the config file, else from the environment."""
        return self.token or os.environ.get(TOKEN_ENV_VAR) or None


class ScheduleDefaultsConfig(BaseModel):
    """Schedule applied to doctors who leave a field unset."""
    working_days: List[str] = Field(default_factory=lambda: list(WEEKDAY_NAMES[:5]))
    work_start: str = "09:00"
    work_end: str = "17:00"
    break_start: Optional[str] = "12:00"
    break_end: Optional[str] = "13:00"
    slot_minutes: int = 30

    @field_validator("working_days")
    @classmethod
    def validate_working_days(cls, value: List[str]) -> List[str]:
        """Normalize weekday names and drop duplicates, keeping order."""
        normalized: List[str] = []
        for day in value:
            try:
                name = normalize_weekday(day)
            except SlotError as exc:
                raise ValueError(str(exc)) from exc
            if name not in normalized:
                normalized.append(name)
        return normalized

    @field_validator("work_start", "work_end", "break_start", "break_end")
    @classmethod
    def validate_time(cls, value: Optional[str]) -> Optional[str]:
        """Validate HH:MM format."""
        if value is None:
            return value
        try:
            return str(ClockTime.parse(value))
        except SlotError as exc:
            raise ValueError(str(exc)) from exc

    @field_validator("slot_minutes")
    @classmethod
    def validate_slot_minutes(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("slot_minutes must be greater than zero")
        return value

    @model_validator(mode="after")
    def validate_windows(self) -> "ScheduleDefaultsConfig":
        """Ensure work hours are ordered and the break sits inside them."""
        if (self.break_start is None) != (self.break_end is None):
            raise ValueError("break_start and break_end must be set together")
        try:
            self.to_weekly_schedule().validate()
        except SlotError as exc:
            raise ValueError(str(exc)) from exc
        return self

    def to_weekly_schedule(self) -> WeeklySchedule:
        """Convert to the domain schedule used by the calculator."""
        break_time = None
        if self.break_start is not None and self.break_end is not None:
            break_time = TimeWindow.parse(self.break_start, self.break_end)

        return WeeklySchedule(
            working_days=frozenset(self.working_days),
            work_hours=TimeWindow.parse(self.work_start, self.work_end),
            break_time=break_time,
            slot_minutes=self.slot_minutes,
        )


class DoctorAlias(BaseModel):
    """Short name for a doctor id."""
    name: str
    doctor_id: str

    def display_name(self) -> str:
        return self.name


class AppConfig(BaseModel):
    """Application configuration."""
    api: ApiConfig = Field(default_factory=ApiConfig)
    timezone: str = "Africa/Nairobi"
    schedule_defaults: Optional[ScheduleDefaultsConfig] = Field(default_factory=ScheduleDefaultsConfig)
    blocking_leave_statuses: List[str] = Field(
        default_factory=lambda: list(DEFAULT_BLOCKING_LEAVE_STATUSES)
    )
    released_appointment_statuses: List[str] = Field(
        default_factory=lambda: list(DEFAULT_RELEASED_APPOINTMENT_STATUSES)
    )
    doctors: List[DoctorAlias] = Field(default_factory=list)

    @field_validator("doctors")
    @classmethod
    def validate_doctors(cls, value: List[DoctorAlias]) -> List[DoctorAlias]:
        """Ensure doctor aliases and ids are unique."""
        seen_names: set[str] = set()
        seen_ids: set[str] = set()
        for doctor in value:
            name_key = doctor.name.lower()
            if name_key in seen_names:
                raise ValueError(f"Duplicate doctor name detected: {doctor.name}")
            if doctor.doctor_id in seen_ids:
                raise ValueError(f"Duplicate doctor id detected: {doctor.doctor_id}")
            seen_names.add(name_key)
            seen_ids.add(doctor.doctor_id)
        return value

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

        return cls(**data)

    def build_calculator(self) -> SlotAvailabilityCalculator:
        """Create a calculator carrying the configured defaults and status policy."""
        defaults = None
        if self.schedule_defaults is not None:
            defaults = self.schedule_defaults.to_weekly_schedule()

        return SlotAvailabilityCalculator(
            defaults=defaults,
            blocking_leave_statuses=self.blocking_leave_statuses,
            released_appointment_statuses=self.released_appointment_statuses,
        )

    def find_doctor_by_name(self, name: str) -> DoctorAlias | None:
        """Find a doctor by alias."""
        for doctor in self.doctors:
            if doctor.name.lower() == name.lower():
                return doctor
        return None

    def resolve_doctor(self, identifier: str) -> str:
        """
        Resolve an alias or a raw document id to a doctor id.

        Raises:
            ValueError: If identifier cannot be resolved
        """
        doctor = self.find_doctor_by_name(identifier)
        if doctor:
            return doctor.doctor_id

        if _OBJECT_ID_PATTERN.match(identifier):
            return identifier.lower()

        if any(doctor.doctor_id == identifier for doctor in self.doctors):
            return identifier

        raise ValueError(
            f"Unknown doctor identifier: '{identifier}'. "
            f"Use a document id or a configured name."
        )

    def resolve_doctors(self, identifiers: Sequence[str]) -> List[str]:
        """
        Resolve multiple doctor identifiers, ensuring uniqueness.

        Raises:
            ValueError: If any identifier is unknown
        """
        resolved_ids: List[str] = []
        unknown_identifiers: List[str] = []

        for identifier in identifiers:
            try:
                doctor_id = self.resolve_doctor(identifier)
            except ValueError:
                unknown_identifiers.append(identifier)
                continue

            if doctor_id not in resolved_ids:
                resolved_ids.append(doctor_id)

        if unknown_identifiers:
            missing = ", ".join(sorted(set(unknown_identifiers)))
            raise ValueError(
                f"Unknown doctor identifier(s): {missing}. "
                "Ensure they exist in the configuration or provide document ids."
            )

        return resolved_ids


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
