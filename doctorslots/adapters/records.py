"""
Conversion of hospital backend documents into domain objects.

The backend stores doctors as user documents and serves them in a few shapes:

User document / ``GET /api/doctors/:id``::

    {
        "_id": "...", "firstName": "...", "lastName": "...",
        "schedule": {
            "workingDays": ["Monday", ...],
            "workingHours": {"start": "09:00", "end": "17:00"},
            "breakTime": {"start": "12:00", "end": "13:00"},
            "appointmentDuration": 30
        },
        "leaveDays": [{"date": "2024-11-25T00:00:00.000Z", "status": "Approved", ...}],
        "isOnLeave": false
    }

``GET /api/doctors/:id/schedule`` wraps the same data as
``{"doctor": {...}, "schedule": {...}, "leaveDays": [...], "isOnLeave": ...}``.

The doctor self-service page uses
``{"workingDays": {"monday": true, ...}, "workHours": {"startTime", "endTime"},
"breakHours": {...}, "appointmentDuration": 30, "currentlyOnLeave": false}``.
"""

from datetime import date, datetime
from typing import Any, List, Mapping, Optional

import pendulum

from ..domain.exceptions import RecordError, SlotError
from ..domain.models import (
    BookedAppointment,
    ClockTime,
    DoctorProfile,
    LeaveRecord,
    TimeWindow,
    WeeklySchedule,
    to_calendar_date,
)


def parse_calendar_date(value: Any) -> date:
    """
    Parse a date, datetime or ISO 8601 string into a calendar date.

    The day is taken as written; no timezone conversion happens.

    Raises:
        RecordError: If the value cannot be parsed
    """
    if isinstance(value, (date, datetime)):
        return to_calendar_date(value)

    if not isinstance(value, str) or not value.strip():
        raise RecordError(f"Expected an ISO date string, got {value!r}")

    try:
        parsed = pendulum.parse(value.strip())
    except (ValueError, TypeError) as exc:
        raise RecordError(f"Could not parse date: {value}") from exc

    if isinstance(parsed, (date, datetime)):
        return to_calendar_date(parsed)

    raise RecordError(f"Could not parse date: {value}")


def reference_id(value: Any) -> str:
    """Document ids arrive as plain strings or as populated sub-documents."""
    if isinstance(value, Mapping):
        value = value.get("_id") or value.get("id")
    if value is None:
        return ""
    return str(value)


def _full_name(data: Mapping[str, Any]) -> str:
    parts = [data.get("firstName") or "", data.get("lastName") or ""]
    name = " ".join(part.strip() for part in parts if part and part.strip())
    return name or str(data.get("name") or "")


def _window(data: Any, start_key: str, end_key: str) -> Optional[TimeWindow]:
    if not isinstance(data, Mapping):
        return None
    start = data.get(start_key)
    end = data.get(end_key)
    if not start or not end:
        return None
    return TimeWindow.parse(start, end)


def _working_days(value: Any) -> Optional[frozenset]:
    if value is None:
        return None
    if isinstance(value, Mapping):
        return frozenset(day for day, is_working in value.items() if is_working)
    if isinstance(value, (list, tuple)):
        return frozenset(value)
    raise RecordError(f"Unsupported workingDays value: {value!r}")


def schedule_from_record(data: Optional[Mapping[str, Any]]) -> Optional[WeeklySchedule]:
    """
    Build a (possibly partial) WeeklySchedule from a schedule mapping.

    Returns None if the mapping carries no schedule field at all.
    """
    if not data:
        return None

    try:
        schedule = WeeklySchedule(
            working_days=_working_days(data.get("workingDays")),
            work_hours=(
                _window(data.get("workingHours"), "start", "end")
                or _window(data.get("workHours"), "startTime", "endTime")
            ),
            break_time=(
                _window(data.get("breakTime"), "start", "end")
                or _window(data.get("breakHours"), "startTime", "endTime")
            ),
            slot_minutes=_slot_minutes(data.get("appointmentDuration")),
        )
    except SlotError as exc:
        if isinstance(exc, RecordError):
            raise
        raise RecordError(f"Invalid schedule: {exc}") from exc

    if schedule == WeeklySchedule():
        return None
    return schedule


def _slot_minutes(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise RecordError(f"appointmentDuration must be a number, got {value!r}") from exc


def leave_from_record(data: Mapping[str, Any]) -> LeaveRecord:
    """Build a LeaveRecord from a ``leaveDays`` entry."""
    if "date" not in data:
        raise RecordError("Leave record without a date")

    return LeaveRecord(
        date=parse_calendar_date(data["date"]),
        status=str(data.get("status") or "Pending"),
        reason=str(data.get("reason") or data.get("type") or "Other"),
        notes=str(data.get("notes") or ""),
    )


def doctor_from_record(data: Mapping[str, Any]) -> DoctorProfile:
    """
    Build a DoctorProfile from any of the backend's doctor shapes.

    Raises:
        RecordError: If the document is not a mapping or holds invalid values
    """
    if not isinstance(data, Mapping):
        raise RecordError(f"Doctor record must be an object, got {type(data).__name__}")

    identity = data.get("doctor") if isinstance(data.get("doctor"), Mapping) else data

    # Self-service payloads put the schedule fields at the top level.
    schedule_data = data.get("schedule")
    if schedule_data is None and any(
        key in data for key in ("workingDays", "workHours", "workingHours", "breakHours", "breakTime")
    ):
        schedule_data = data
    if schedule_data is not None and not isinstance(schedule_data, Mapping):
        raise RecordError("schedule must be an object")

    leave_days: List[LeaveRecord] = []
    for entry in data.get("leaveDays") or []:
        if not isinstance(entry, Mapping):
            raise RecordError(f"Leave record must be an object, got {entry!r}")
        leave_days.append(leave_from_record(entry))

    is_on_leave = data.get("isOnLeave")
    if is_on_leave is None:
        is_on_leave = data.get("currentlyOnLeave", False)

    return DoctorProfile(
        doctor_id=reference_id(identity),
        name=_full_name(identity),
        department=str(identity.get("department") or ""),
        schedule=schedule_from_record(schedule_data),
        leave_days=leave_days,
        is_on_leave=bool(is_on_leave),
    )


def appointment_from_record(data: Mapping[str, Any]) -> BookedAppointment:
    """
    Build a BookedAppointment from an appointment document.

    Raises:
        RecordError: If date or time are missing or malformed
    """
    if not isinstance(data, Mapping):
        raise RecordError(f"Appointment record must be an object, got {type(data).__name__}")

    try:
        moment = ClockTime.parse(data.get("appointmentTime"))
    except SlotError as exc:
        raise RecordError(f"Invalid appointmentTime: {exc}") from exc

    return BookedAppointment(
        doctor_id=reference_id(data.get("doctor")),
        date=parse_calendar_date(data.get("appointmentDate")),
        time=moment,
        status=str(data.get("status") or "Scheduled"),
    )

