"""
Application services for doctor slot availability.

The service coordinates fetching a doctor's schedule snapshot and the day's
appointments via a hospital client adapter and delegates the actual
classification to the domain-level ``SlotAvailabilityCalculator``. This keeps
the CLI thin and lets tests swap the backend for a stub via a simple protocol.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import List, Optional, Protocol, Sequence

from ..domain.exceptions import SlotError
from ..domain.models import BookedAppointment, DayAvailability, DoctorProfile, to_calendar_date
from ..domain.slot_calculator import SlotAvailabilityCalculator

logger = logging.getLogger(__name__)


class HospitalClientProtocol(Protocol):
    """Protocol describing the backend behaviour needed by the service."""

    def get_doctor(self, doctor_id: str) -> DoctorProfile:
        """Return the doctor's schedule, leave days and leave flag."""

    def list_doctors(self) -> List[DoctorProfile]:
        """Return every doctor."""

    def get_appointments(self, doctor_id: str, day: date) -> List[BookedAppointment]:
        """Return the doctor's appointments on a calendar date."""


class AvailabilityService:
    """
    Orchestrates snapshot retrieval and slot classification.
    """

    def __init__(
        self,
        hospital_client: HospitalClientProtocol,
        calculator: SlotAvailabilityCalculator,
    ) -> None:
        self._hospital_client = hospital_client
        self._calculator = calculator

    def day_availability(
        self,
        doctor_id: str,
        day: date,
        today: Optional[date] = None,
    ) -> DayAvailability:
        """
        Classify every slot of one doctor's day.

        Raises:
            SlotError: If the backend fails or the schedule cannot be evaluated
        """
        doctor = self._hospital_client.get_doctor(doctor_id)
        return self._evaluate(doctor, to_calendar_date(day), today)

    def open_slots(
        self,
        doctor_id: str,
        day: date,
        today: Optional[date] = None,
    ) -> List[str]:
        """Get the HH:MM times a patient can still book."""
        return self.day_availability(doctor_id, day, today).open_times()

    def availability_grid(
        self,
        day: date,
        doctor_ids: Optional[Sequence[str]] = None,
        today: Optional[date] = None,
    ) -> List[DayAvailability]:
        """
        Build one availability row per doctor for a dashboard grid.

        A doctor whose data cannot be fetched or evaluated gets an empty row
        carrying the error message instead of failing the whole grid.
        """
        day = to_calendar_date(day)

        if doctor_ids is None:
            return [self._grid_row(doctor, day, today) for doctor in self._hospital_client.list_doctors()]

        rows: List[DayAvailability] = []
        for doctor_id in doctor_ids:
            try:
                doctor = self._hospital_client.get_doctor(doctor_id)
            except SlotError as exc:
                logger.warning("No availability for doctor %s: %s", doctor_id, exc)
                rows.append(DayAvailability(doctor=DoctorProfile(doctor_id=doctor_id), date=day, error=str(exc)))
                continue
            rows.append(self._grid_row(doctor, day, today))

        return rows

    def _grid_row(self, doctor: DoctorProfile, day: date, today: Optional[date]) -> DayAvailability:
        try:
            return self._evaluate(doctor, day, today)
        except SlotError as exc:
            logger.warning("No availability for doctor %s: %s", doctor.doctor_id, exc)
            return DayAvailability(doctor=doctor, date=day, error=str(exc))

    def _evaluate(
        self,
        doctor: DoctorProfile,
        day: date,
        today: Optional[date],
    ) -> DayAvailability:
        appointments = self._hospital_client.get_appointments(doctor.doctor_id, day)
        slots = self._calculator.compute_availability(
            doctor,
            day,
            booked_times=appointments,
            today=today,
        )
        return DayAvailability(doctor=doctor, date=day, slots=slots)
