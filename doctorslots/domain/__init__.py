"""
Domain layer - Pure business logic without external dependencies.
"""

from .exceptions import (
    BackendAPIError,
    InvalidScheduleError,
    InvalidTimeFormatError,
    MissingScheduleError,
    RecordError,
    SlotError,
)
from .models import (
    DEFAULT_WEEKLY_SCHEDULE,
    BookedAppointment,
    ClockTime,
    DayAvailability,
    DoctorProfile,
    LeaveRecord,
    SlotAvailability,
    SlotStatus,
    TimeWindow,
    WeeklySchedule,
)
from .slot_calculator import CandidateSlots, SlotAvailabilityCalculator

__all__ = [
    "BackendAPIError",
    "InvalidScheduleError",
    "InvalidTimeFormatError",
    "MissingScheduleError",
    "RecordError",
    "SlotError",
    "DEFAULT_WEEKLY_SCHEDULE",
    "BookedAppointment",
    "ClockTime",
    "DayAvailability",
    "DoctorProfile",
    "LeaveRecord",
    "SlotAvailability",
    "SlotStatus",
    "TimeWindow",
    "WeeklySchedule",
    "CandidateSlots",
    "SlotAvailabilityCalculator",
]
