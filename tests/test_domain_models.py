"""
Tests for domain models.
"""

from datetime import time

import pendulum
import pytest

from doctorslots.domain.exceptions import (
    InvalidScheduleError,
    InvalidTimeFormatError,
    MissingScheduleError,
)
from doctorslots.domain.models import (
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
    normalize_weekday,
    status_set,
    to_calendar_date,
    weekday_name,
)


class TestClockTime:
    """Tests for ClockTime parsing and formatting."""

    def test_parse_string(self):
        """Test parsing a zero-padded HH:MM string."""
        moment = ClockTime.parse("09:30")

        assert moment.minutes == 570
        assert moment.hour == 9
        assert moment.minute == 30
        assert str(moment) == "09:30"

    def test_parse_time_object(self):
        """Test converting a datetime.time."""
        assert ClockTime.parse(time(14, 5)) == ClockTime(845)

    def test_round_trip_to_time(self):
        """Test conversion back to datetime.time."""
        assert ClockTime.parse("23:59").to_time() == time(23, 59)

    def test_ordering_uses_minutes(self):
        """Test that comparison is numeric."""
        assert ClockTime.parse("09:00") < ClockTime.parse("10:00")
        assert sorted([ClockTime.parse("13:00"), ClockTime.parse("08:45")])[0] == ClockTime.parse("08:45")

    @pytest.mark.parametrize("value", ["9:00", "24:00", "12:60", "noon", "", "12:00:00", None, 900])
    def test_invalid_values_raise_error(self, value):
        """Test that malformed values are rejected."""
        with pytest.raises(InvalidTimeFormatError):
            ClockTime.parse(value)

    def test_out_of_range_minutes_raise_error(self):
        """Test that minutes must lie within one day."""
        with pytest.raises(InvalidTimeFormatError):
            ClockTime(24 * 60)


class TestTimeWindow:
    """Tests for TimeWindow."""

    def test_contains_is_half_open(self):
        """Test that start is inside and end is outside."""
        window = TimeWindow.parse("12:00", "13:00")

        assert window.contains(ClockTime.parse("12:00"))
        assert window.contains(ClockTime.parse("12:59"))
        assert not window.contains(ClockTime.parse("13:00"))
        assert not window.contains(ClockTime.parse("11:59"))

    def test_covers(self):
        """Test window containment."""
        work = TimeWindow.parse("09:00", "17:00")

        assert work.covers(TimeWindow.parse("12:00", "13:00"))
        assert work.covers(TimeWindow.parse("09:00", "17:00"))
        assert not work.covers(TimeWindow.parse("16:30", "17:30"))

    def test_duration_and_display(self):
        """Test duration in minutes and string form."""
        window = TimeWindow.parse("08:00", "14:00")

        assert window.duration_minutes() == 360
        assert str(window) == "08:00 - 14:00"

    @pytest.mark.parametrize("start,end", [("17:00", "09:00"), ("09:00", "09:00")])
    def test_invalid_order_raises_error(self, start, end):
        """Test that start must be before end."""
        with pytest.raises(InvalidScheduleError):
            TimeWindow.parse(start, end)


class TestWeekdays:
    """Tests for weekday helpers."""

    def test_normalize_weekday(self):
        """Test case normalization."""
        assert normalize_weekday("monday") == "Monday"
        assert normalize_weekday(" SATURDAY ") == "Saturday"

    def test_unknown_weekday_raises_error(self):
        """Test that unknown names are rejected."""
        with pytest.raises(InvalidScheduleError):
            normalize_weekday("Funday")

    def test_weekday_name(self):
        """Test weekday lookup for known dates."""
        assert weekday_name(pendulum.date(2024, 11, 25)) == "Monday"
        assert weekday_name(pendulum.date(2024, 11, 23)) == "Saturday"

    def test_to_calendar_date_drops_time(self):
        """Test that datetimes become plain dates."""
        moment = pendulum.parse("2024-11-25 18:30", tz="Africa/Nairobi")

        assert to_calendar_date(moment) == pendulum.date(2024, 11, 25)

    def test_to_calendar_date_rejects_strings(self):
        """Test that non-date values raise a TypeError."""
        with pytest.raises(TypeError):
            to_calendar_date("2024-11-25")


class TestWeeklySchedule:
    """Tests for schedule resolution and validation."""

    def test_working_days_are_normalized(self):
        """Test that weekday names are title-cased on construction."""
        schedule = WeeklySchedule(working_days=frozenset({"monday", "FRIDAY"}))

        assert schedule.working_days == frozenset({"Monday", "Friday"})
        assert schedule.is_working_day(pendulum.date(2024, 11, 25))
        assert not schedule.is_working_day(pendulum.date(2024, 11, 26))

    def test_empty_schedule_resolves_to_defaults(self):
        """Test that an empty schedule takes every default."""
        assert WeeklySchedule().resolve(DEFAULT_WEEKLY_SCHEDULE) == DEFAULT_WEEKLY_SCHEDULE

    def test_own_fields_win_over_defaults(self):
        """Test that a doctor's own values are kept."""
        own = WeeklySchedule(
            working_days=frozenset({"Saturday"}),
            slot_minutes=15,
        )

        resolved = own.resolve(DEFAULT_WEEKLY_SCHEDULE)

        assert resolved.working_days == frozenset({"Saturday"})
        assert resolved.slot_minutes == 15
        assert resolved.work_hours == DEFAULT_WEEKLY_SCHEDULE.work_hours
        assert resolved.break_time == DEFAULT_WEEKLY_SCHEDULE.break_time

    def test_default_break_dropped_when_outside_own_hours(self):
        """Test that an inherited break must fit the doctor's hours."""
        own = WeeklySchedule(work_hours=TimeWindow.parse("14:00", "20:00"))

        resolved = own.resolve(DEFAULT_WEEKLY_SCHEDULE)

        assert resolved.break_time is None

    def test_incomplete_without_defaults_raises_error(self):
        """Test that missing fields without defaults are an error."""
        with pytest.raises(MissingScheduleError):
            WeeklySchedule(slot_minutes=30).resolve(None)

    def test_break_outside_hours_raises_error(self):
        """Test the break containment invariant."""
        schedule = WeeklySchedule(
            working_days=frozenset({"Monday"}),
            work_hours=TimeWindow.parse("08:00", "12:00"),
            break_time=TimeWindow.parse("11:30", "12:30"),
            slot_minutes=30,
        )

        with pytest.raises(InvalidScheduleError):
            schedule.validate()

    def test_default_schedule_is_valid(self):
        """Test that the built-in defaults pass validation."""
        DEFAULT_WEEKLY_SCHEDULE.validate()

        assert DEFAULT_WEEKLY_SCHEDULE.is_complete


class TestLeaveAndAppointments:
    """Tests for leave records and booked appointments."""

    def test_leave_blocks_on_matching_date_and_status(self):
        """Test leave blocking rules."""
        record = LeaveRecord(date=pendulum.date(2024, 11, 27), status="Approved")
        blocking = status_set(["approved"])

        assert record.blocks(pendulum.date(2024, 11, 27), blocking)
        assert not record.blocks(pendulum.date(2024, 11, 28), blocking)
        assert not LeaveRecord(date=pendulum.date(2024, 11, 27)).blocks(pendulum.date(2024, 11, 27), blocking)

    def test_doctor_leave_on(self):
        """Test finding the blocking leave record of a doctor."""
        approved = LeaveRecord(date=pendulum.date(2024, 11, 27), status="Approved", reason="Conference")
        doctor = DoctorProfile(
            doctor_id="d1",
            leave_days=[LeaveRecord(date=pendulum.date(2024, 11, 27), status="Pending"), approved],
        )

        assert doctor.leave_on(pendulum.date(2024, 11, 27), status_set(["Approved"])) == approved
        assert doctor.leave_on(pendulum.date(2024, 11, 26), status_set(["Approved"])) is None

    def test_cancelled_appointment_does_not_occupy(self):
        """Test released statuses."""
        released = status_set(["Cancelled"])
        day = pendulum.date(2024, 11, 25)

        assert BookedAppointment("d1", day, ClockTime.parse("10:00")).occupies(released)
        assert not BookedAppointment("d1", day, ClockTime.parse("10:00"), status="cancelled").occupies(released)

    def test_display_name_falls_back_to_id(self):
        """Test that unnamed doctors are shown by id."""
        assert DoctorProfile(doctor_id="d1").display_name() == "d1"
        assert DoctorProfile(doctor_id="d1", name="Amina Otieno").display_name() == "Amina Otieno"


class TestDayAvailability:
    """Tests for the per-day result."""

    def _day(self):
        return DayAvailability(
            doctor=DoctorProfile(doctor_id="d1", name="Amina Otieno"),
            date=pendulum.date(2024, 11, 25),
            slots=[
                SlotAvailability(ClockTime.parse("09:00"), SlotStatus.AVAILABLE),
                SlotAvailability(ClockTime.parse("09:30"), SlotStatus.BOOKED),
                SlotAvailability(ClockTime.parse("12:00"), SlotStatus.BREAK),
                SlotAvailability(ClockTime.parse("13:00"), SlotStatus.AVAILABLE),
            ],
        )

    def test_open_times(self):
        """Test that only available slots are listed."""
        assert self._day().open_times() == ["09:00", "13:00"]

    def test_status_counts(self):
        """Test counting slots per status."""
        counts = self._day().status_counts()

        assert counts[SlotStatus.AVAILABLE] == 2
        assert counts[SlotStatus.BOOKED] == 1
        assert SlotStatus.ON_LEAVE not in counts

    def test_status_at(self):
        """Test slot lookup by start time."""
        day = self._day()

        assert day.status_at("09:30") is SlotStatus.BOOKED
        assert day.status_at("10:00") is None

    def test_format_display(self):
        """Test heading formatting."""
        assert self._day().format_display() == "Amina Otieno, Monday 25.11.2024"

    def test_to_dict(self):
        """Test the JSON-ready representation."""
        data = self._day().to_dict()

        assert data["doctorId"] == "d1"
        assert data["date"] == "2024-11-25"
        assert data["slots"][1] == {"time": "09:30", "status": "Booked"}
        assert data["error"] is None

    def test_status_labels(self):
        """Test human-readable status labels."""
        assert SlotStatus.NOT_WORKING_DAY.label == "Not a working day"
        assert SlotStatus.ON_LEAVE.value == "OnLeave"
