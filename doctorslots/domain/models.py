"""
Domain models for doctor schedules and slot availability.
"""

import re
from dataclasses import dataclass, field, replace
from datetime import date, datetime, time
from enum import Enum
from typing import Dict, FrozenSet, Iterable, List, Optional

import pendulum

from .exceptions import InvalidScheduleError, InvalidTimeFormatError, MissingScheduleError


WEEKDAY_NAMES = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)

MINUTES_PER_DAY = 24 * 60

_HHMM_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def normalize_weekday(name: str) -> str:
    """Return the title-case English weekday name, e.g. 'monday' -> 'Monday'."""
    candidate = str(name).strip().title()
    if candidate not in WEEKDAY_NAMES:
        raise InvalidScheduleError(f"Unknown weekday name: '{name}'")
    return candidate


def to_calendar_date(value: date) -> date:
    """Drop any time-of-day part so dates and datetimes compare as calendar days."""
    if isinstance(value, datetime):
        value = value.date()
    if not isinstance(value, date):
        raise TypeError(f"Expected a date, got {type(value).__name__}")
    return date(value.year, value.month, value.day)


def weekday_name(day: date) -> str:
    """Get the English weekday name of a calendar date."""
    return WEEKDAY_NAMES[day.weekday()]


@dataclass(frozen=True, order=True)
class ClockTime:
    """
    A time of day stored as minutes after midnight.

    All comparisons happen on the integer, never on the HH:MM text.
    """
    minutes: int

    def __post_init__(self):
        if not 0 <= self.minutes < MINUTES_PER_DAY:
            raise InvalidTimeFormatError(
                f"Time of day must be within 00:00-23:59, got {self.minutes} minutes"
            )

    @classmethod
    def parse(cls, value: "str | time | ClockTime") -> "ClockTime":
        """
        Convert an HH:MM string, a datetime.time or a ClockTime.

        Raises:
            InvalidTimeFormatError: If the value is not a zero-padded HH:MM time
        """
        if isinstance(value, ClockTime):
            return value
        if isinstance(value, time):
            return cls(value.hour * 60 + value.minute)
        if not isinstance(value, str):
            raise InvalidTimeFormatError(f"Expected an HH:MM string, got {value!r}")

        match = _HHMM_PATTERN.match(value.strip())
        if not match:
            raise InvalidTimeFormatError(f"Expected an HH:MM string, got '{value}'")

        return cls(int(match.group(1)) * 60 + int(match.group(2)))

    @property
    def hour(self) -> int:
        return self.minutes // 60

    @property
    def minute(self) -> int:
        return self.minutes % 60

    def to_time(self) -> time:
        return time(hour=self.hour, minute=self.minute)

    def __str__(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"


@dataclass(frozen=True)
class TimeWindow:
    """
    Half-open time-of-day window [start, end).

    Invariant: start must be before end.
    """
    start: ClockTime
    end: ClockTime

    def __post_init__(self):
        if self.start >= self.end:
            raise InvalidScheduleError(
                f"Window start {self.start} must be before window end {self.end}"
            )

    @classmethod
    def parse(cls, start: "str | time | ClockTime", end: "str | time | ClockTime") -> "TimeWindow":
        """Build a window from two HH:MM values."""
        return cls(start=ClockTime.parse(start), end=ClockTime.parse(end))

    def contains(self, moment: ClockTime) -> bool:
        """Check if a time of day falls inside the window (end excluded)."""
        return self.start <= moment < self.end

    def covers(self, other: "TimeWindow") -> bool:
        """Check if another window lies completely inside this one."""
        return self.start <= other.start and other.end <= self.end

    def duration_minutes(self) -> int:
        return self.end.minutes - self.start.minutes

    def __str__(self) -> str:
        return f"{self.start} - {self.end}"


@dataclass(frozen=True)
class WeeklySchedule:
    """
    A doctor's recurring weekly schedule.

    Every field may be None on a doctor's own schedule; ``resolve`` fills the
    gaps from a fully populated defaults schedule.
    """
    working_days: Optional[FrozenSet[str]] = None
    work_hours: Optional[TimeWindow] = None
    break_time: Optional[TimeWindow] = None
    slot_minutes: Optional[int] = None

    def __post_init__(self):
        if self.working_days is not None:
            normalized = frozenset(normalize_weekday(day) for day in self.working_days)
            object.__setattr__(self, "working_days", normalized)

    @property
    def is_complete(self) -> bool:
        """Working days, work hours and granularity are all known."""
        return (
            self.working_days is not None
            and self.work_hours is not None
            and self.slot_minutes is not None
        )

    def resolve(self, defaults: Optional["WeeklySchedule"]) -> "WeeklySchedule":
        """
        Fill absent fields from defaults and validate the result.

        Raises:
            MissingScheduleError: If fields are absent and no defaults fill them
            InvalidScheduleError: If the resolved schedule breaks an invariant
        """
        resolved = self
        if defaults is not None:
            work_hours = self.work_hours or defaults.work_hours
            break_time = self.break_time
            # A default break only applies where it fits the doctor's own hours.
            if break_time is None and defaults.break_time is not None and work_hours.covers(defaults.break_time):
                break_time = defaults.break_time

            resolved = replace(
                self,
                working_days=self.working_days if self.working_days is not None else defaults.working_days,
                work_hours=work_hours,
                break_time=break_time,
                slot_minutes=self.slot_minutes if self.slot_minutes is not None else defaults.slot_minutes,
            )

        resolved.validate()
        return resolved

    def validate(self) -> None:
        """Check the invariants of a complete schedule."""
        if not self.is_complete:
            raise MissingScheduleError("Schedule is missing working days, work hours or slot length")
        if self.slot_minutes <= 0:
            raise InvalidScheduleError(
                f"Slot granularity must be positive, got {self.slot_minutes}"
            )
        if self.break_time is not None and not self.work_hours.covers(self.break_time):
            raise InvalidScheduleError(
                f"Break {self.break_time} must lie within working hours {self.work_hours}"
            )

    def is_working_day(self, day: date) -> bool:
        return weekday_name(day) in (self.working_days or frozenset())


DEFAULT_WEEKLY_SCHEDULE = WeeklySchedule(
    working_days=frozenset(WEEKDAY_NAMES[:5]),
    work_hours=TimeWindow.parse("09:00", "17:00"),
    break_time=TimeWindow.parse("12:00", "13:00"),
    slot_minutes=30,
)

DEFAULT_BLOCKING_LEAVE_STATUSES = ("Approved",)
DEFAULT_RELEASED_APPOINTMENT_STATUSES = ("Cancelled",)


def _status_key(status: str) -> str:
    return str(status).strip().lower()


def status_set(statuses: Iterable[str]) -> FrozenSet[str]:
    """Case-insensitive set of status strings."""
    return frozenset(_status_key(status) for status in statuses)


@dataclass(frozen=True)
class LeaveRecord:
    """A whole-day absence request."""
    date: date
    status: str = "Pending"
    reason: str = "Other"
    notes: str = ""

    def __post_init__(self):
        object.__setattr__(self, "date", to_calendar_date(self.date))

    def blocks(self, day: date, blocking_statuses: FrozenSet[str]) -> bool:
        """Check if this record makes the doctor unavailable on ``day``."""
        return self.date == day and _status_key(self.status) in blocking_statuses


@dataclass(frozen=True)
class BookedAppointment:
    """An appointment occupying a doctor's slot."""
    doctor_id: str
    date: date
    time: ClockTime
    status: str = "Scheduled"

    def __post_init__(self):
        object.__setattr__(self, "date", to_calendar_date(self.date))

    def occupies(self, released_statuses: FrozenSet[str]) -> bool:
        """Cancelled appointments free their slot."""
        return _status_key(self.status) not in released_statuses


@dataclass
class DoctorProfile:
    """
    Everything the calculator needs to know about one doctor.
    """
    doctor_id: str
    name: str = ""
    department: str = ""
    schedule: Optional[WeeklySchedule] = None
    leave_days: List[LeaveRecord] = field(default_factory=list)
    is_on_leave: bool = False

    def display_name(self) -> str:
        return self.name or self.doctor_id

    def leave_on(self, day: date, blocking_statuses: FrozenSet[str]) -> Optional[LeaveRecord]:
        """Find the leave record that blocks ``day``, if any."""
        for record in self.leave_days:
            if record.blocks(day, blocking_statuses):
                return record
        return None


class SlotStatus(str, Enum):
    """Availability status of a single candidate slot."""
    AVAILABLE = "Available"
    BOOKED = "Booked"
    BREAK = "Break"
    NOT_WORKING_DAY = "NotWorkingDay"
    OUTSIDE_WORKING_HOURS = "OutsideWorkingHours"
    ON_LEAVE = "OnLeave"

    @property
    def label(self) -> str:
        return _STATUS_LABELS[self]


_STATUS_LABELS: Dict[SlotStatus, str] = {
    SlotStatus.AVAILABLE: "Available",
    SlotStatus.BOOKED: "Booked",
    SlotStatus.BREAK: "Break",
    SlotStatus.NOT_WORKING_DAY: "Not a working day",
    SlotStatus.OUTSIDE_WORKING_HOURS: "Outside working hours",
    SlotStatus.ON_LEAVE: "On leave",
}


@dataclass(frozen=True)
class SlotAvailability:
    """
    Status of one candidate slot.
    """
    time: ClockTime
    status: SlotStatus

    @property
    def is_available(self) -> bool:
        return self.status is SlotStatus.AVAILABLE

    def to_dict(self) -> Dict[str, str]:
        return {"time": str(self.time), "status": self.status.value}


@dataclass
class DayAvailability:
    """
    A doctor's slots for one calendar date.

    ``error`` is set when the schedule could not be evaluated and the caller
    chose to show no availability instead of failing.
    """
    doctor: DoctorProfile
    date: date
    slots: List[SlotAvailability] = field(default_factory=list)
    error: Optional[str] = None

    def open_times(self) -> List[str]:
        return [str(slot.time) for slot in self.slots if slot.is_available]

    def status_counts(self) -> Dict[SlotStatus, int]:
        counts: Dict[SlotStatus, int] = {}
        for slot in self.slots:
            counts[slot.status] = counts.get(slot.status, 0) + 1
        return counts

    def status_at(self, moment: "str | ClockTime") -> Optional[SlotStatus]:
        """Look up the status of the slot starting at ``moment``."""
        target = ClockTime.parse(moment)
        for slot in self.slots:
            if slot.time == target:
                return slot.status
        return None

    def format_display(self) -> str:
        """
        Format the heading for display.
        Format: Doctor name, Weekday DD.MM.YYYY
        """
        day = pendulum.date(self.date.year, self.date.month, self.date.day)
        return f"{self.doctor.display_name()}, {day.format('dddd DD.MM.YYYY')}"

    def to_dict(self) -> Dict[str, object]:
        return {
            "doctorId": self.doctor.doctor_id,
            "doctorName": self.doctor.display_name(),
            "date": self.date.isoformat(),
            "slots": [slot.to_dict() for slot in self.slots],
            "error": self.error,
        }
