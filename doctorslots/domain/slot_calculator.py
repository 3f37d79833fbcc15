"""
Core business logic for classifying a doctor's time slots.

This is the heart of the application - pure domain logic without any
external dependencies (no API calls, no database, no I/O, no wall clock).
"""

from dataclasses import dataclass
from datetime import date, time
from typing import FrozenSet, Iterable, Iterator, List, Optional, Union

from .exceptions import InvalidScheduleError
from .models import (
    DEFAULT_BLOCKING_LEAVE_STATUSES,
    DEFAULT_RELEASED_APPOINTMENT_STATUSES,
    DEFAULT_WEEKLY_SCHEDULE,
    BookedAppointment,
    ClockTime,
    DoctorProfile,
    SlotAvailability,
    SlotStatus,
    TimeWindow,
    WeeklySchedule,
    status_set,
    to_calendar_date,
)

BookedTime = Union[str, time, ClockTime, BookedAppointment]


@dataclass(frozen=True)
class CandidateSlots:
    """
    Lazy, restartable sequence of slot start times inside a work window.

    Iterating twice yields the same values; nothing is materialized up front.
    """
    window: TimeWindow
    step_minutes: int

    def _minutes(self) -> range:
        return range(self.window.start.minutes, self.window.end.minutes, self.step_minutes)

    def __iter__(self) -> Iterator[ClockTime]:
        for minutes in self._minutes():
            yield ClockTime(minutes)

    def __len__(self) -> int:
        return len(self._minutes())


class SlotAvailabilityCalculator:
    """
    Computes the availability status of each candidate slot of a doctor's day.

    Decision chain for a single slot (first match wins):
    1. Doctor on leave (global flag or blocking leave record for the date)
    2. Date is not one of the doctor's working days
    3. Time is outside working hours
    4. Time is inside the break window
    5. Time is already booked
    6. Otherwise available
    """

    def __init__(
        self,
        defaults: Optional[WeeklySchedule] = DEFAULT_WEEKLY_SCHEDULE,
        blocking_leave_statuses: Iterable[str] = DEFAULT_BLOCKING_LEAVE_STATUSES,
        released_appointment_statuses: Iterable[str] = DEFAULT_RELEASED_APPOINTMENT_STATUSES,
    ):
        if defaults is not None:
            defaults.validate()
        self.defaults = defaults
        self.blocking_leave_statuses = status_set(blocking_leave_statuses)
        self.released_appointment_statuses = status_set(released_appointment_statuses)

    @staticmethod
    def generate_candidate_slots(
        work_start: "str | time | ClockTime",
        work_end: "str | time | ClockTime",
        granularity_minutes: int = 30,
    ) -> CandidateSlots:
        """
        Walk from work_start towards work_end in granularity steps.

        The end boundary itself is never a candidate.

        Raises:
            InvalidTimeFormatError: If either bound is not HH:MM
            InvalidScheduleError: If work_start >= work_end or granularity <= 0
        """
        if isinstance(granularity_minutes, bool) or not isinstance(granularity_minutes, int):
            raise InvalidScheduleError(
                f"Slot granularity must be a whole number of minutes, got {granularity_minutes!r}"
            )
        if granularity_minutes <= 0:
            raise InvalidScheduleError(
                f"Slot granularity must be positive, got {granularity_minutes}"
            )
        window = TimeWindow.parse(work_start, work_end)
        return CandidateSlots(window=window, step_minutes=granularity_minutes)

    def resolve_schedule(self, doctor: DoctorProfile) -> WeeklySchedule:
        """
        Get the doctor's schedule with absent fields taken from the defaults.

        Raises:
            MissingScheduleError: If the doctor has no schedule and no defaults exist
            InvalidScheduleError: If the resolved schedule is inconsistent
        """
        schedule = doctor.schedule or WeeklySchedule()
        return schedule.resolve(self.defaults)

    def classify_slot(
        self,
        doctor: DoctorProfile,
        day: date,
        time_of_day: "str | time | ClockTime",
        booked_times: Iterable[BookedTime] = (),
        today: Optional[date] = None,
    ) -> SlotStatus:
        """
        Classify a single time of day on ``day``.

        Args:
            doctor: Doctor whose schedule and leave calendar apply
            day: Target calendar date
            time_of_day: Slot start as HH:MM
            booked_times: Booked HH:MM values or appointments for the day
            today: Current date; restricts the global leave flag to that day

        Returns:
            The SlotStatus of the slot
        """
        schedule = self.resolve_schedule(doctor)
        day = to_calendar_date(day)
        return self._classify(
            schedule=schedule,
            day=day,
            moment=ClockTime.parse(time_of_day),
            booked=self._booked_set(doctor, day, booked_times),
            on_leave=self.is_on_leave(doctor, day, today),
        )

    def compute_availability(
        self,
        doctor: DoctorProfile,
        day: date,
        booked_times: Iterable[BookedTime] = (),
        today: Optional[date] = None,
    ) -> List[SlotAvailability]:
        """
        Classify every candidate slot of the doctor's working window on ``day``.

        Returns:
            SlotAvailability objects in generation order
        """
        schedule = self.resolve_schedule(doctor)
        day = to_calendar_date(day)
        booked = self._booked_set(doctor, day, booked_times)
        on_leave = self.is_on_leave(doctor, day, today)

        candidates = self.generate_candidate_slots(
            schedule.work_hours.start,
            schedule.work_hours.end,
            schedule.slot_minutes,
        )

        return [
            SlotAvailability(
                time=moment,
                status=self._classify(
                    schedule=schedule,
                    day=day,
                    moment=moment,
                    booked=booked,
                    on_leave=on_leave,
                ),
            )
            for moment in candidates
        ]

    def open_slots(
        self,
        doctor: DoctorProfile,
        day: date,
        booked_times: Iterable[BookedTime] = (),
        today: Optional[date] = None,
    ) -> List[str]:
        """Get the HH:MM start times that can still be booked."""
        return [
            str(slot.time)
            for slot in self.compute_availability(doctor, day, booked_times, today)
            if slot.is_available
        ]

    def is_on_leave(self, doctor: DoctorProfile, day: date, today: Optional[date] = None) -> bool:
        """
        Check whether the doctor is absent for the whole of ``day``.

        The global flag applies to every date unless ``today`` is given, in
        which case it only applies to that date.
        """
        day = to_calendar_date(day)
        if doctor.is_on_leave and (today is None or to_calendar_date(today) == day):
            return True
        return doctor.leave_on(day, self.blocking_leave_statuses) is not None

    def _classify(
        self,
        *,
        schedule: WeeklySchedule,
        day: date,
        moment: ClockTime,
        booked: FrozenSet[ClockTime],
        on_leave: bool,
    ) -> SlotStatus:
        if on_leave:
            return SlotStatus.ON_LEAVE

        if not schedule.is_working_day(day):
            return SlotStatus.NOT_WORKING_DAY

        if not schedule.work_hours.contains(moment):
            return SlotStatus.OUTSIDE_WORKING_HOURS

        if schedule.break_time is not None and schedule.break_time.contains(moment):
            return SlotStatus.BREAK

        if moment in booked:
            return SlotStatus.BOOKED

        return SlotStatus.AVAILABLE

    def _booked_set(
        self,
        doctor: DoctorProfile,
        day: date,
        booked_times: Iterable[BookedTime],
    ) -> FrozenSet[ClockTime]:
        """
        Normalize booked values to ClockTime.

        Appointments only count when they are still active, fall on ``day``
        and belong to the doctor.
        """
        booked = set()

        for entry in booked_times:
            if isinstance(entry, BookedAppointment):
                if not entry.occupies(self.released_appointment_statuses):
                    continue
                if to_calendar_date(entry.date) != day:
                    continue
                if doctor.doctor_id and entry.doctor_id and entry.doctor_id != doctor.doctor_id:
                    continue
                booked.add(entry.time)
            else:
                booked.add(ClockTime.parse(entry))

        return frozenset(booked)
