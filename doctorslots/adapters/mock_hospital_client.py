"""
Mock hospital backend client for running without a live API.
"""

import json
import logging
from datetime import date
from pathlib import Path
from typing import Any, Dict, List

from ..domain.exceptions import BackendAPIError, RecordError
from ..domain.models import BookedAppointment, DoctorProfile, to_calendar_date
from .records import appointment_from_record, doctor_from_record, parse_calendar_date, reference_id

logger = logging.getLogger(__name__)

DEFAULT_DATA_FILE = Path(__file__).parent / "mock_hospital_data.json"


class MockHospitalClient:
    """
    Mock client that serves doctors and appointments from a JSON file.

    The file mirrors what the backend stores: a ``doctors`` list of user
    documents and an ``appointments`` list of appointment documents.
    """

    def __init__(self, data_file: Path | None = None):
        """
        Initialize the mock client.

        Args:
            data_file: Optional JSON file; defaults to mock_hospital_data.json
        """
        self.data_file = data_file or DEFAULT_DATA_FILE
        self._load_data()

    def _load_data(self):
        """Load mock hospital data from the JSON file."""
        if not self.data_file.exists():
            logger.warning("Mock data file %s not found, starting empty", self.data_file)
            self.doctor_records: List[Dict[str, Any]] = []
            self.appointment_records: List[Dict[str, Any]] = []
            return

        try:
            with open(self.data_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as exc:
            raise BackendAPIError(f"Invalid JSON in {self.data_file}: {exc}") from exc

        self.doctor_records = data.get("doctors", [])
        self.appointment_records = data.get("appointments", [])

    def get_doctor(self, doctor_id: str) -> DoctorProfile:
        """
        Find a doctor document by id.

        Raises:
            BackendAPIError: If the doctor is unknown or the document is unusable
        """
        for record in self.doctor_records:
            if str(record.get("_id")) == doctor_id:
                try:
                    return doctor_from_record(record)
                except RecordError as exc:
                    raise BackendAPIError(f"Invalid schedule document for doctor {doctor_id}: {exc}") from exc

        raise BackendAPIError(f"Doctor not found: {doctor_id}")

    def list_doctors(self) -> List[DoctorProfile]:
        doctors: List[DoctorProfile] = []
        for record in self.doctor_records:
            try:
                doctors.append(doctor_from_record(record))
            except RecordError as exc:
                logger.warning("Skipping doctor record: %s", exc)
        return doctors

    def get_appointments(self, doctor_id: str, day: date) -> List[BookedAppointment]:
        """Filter appointment documents by doctor and calendar date."""
        day = to_calendar_date(day)
        appointments: List[BookedAppointment] = []

        for record in self.appointment_records:
            if reference_id(record.get("doctor")) != doctor_id:
                continue

            try:
                if parse_calendar_date(record.get("appointmentDate")) != day:
                    continue
                appointments.append(appointment_from_record(record))
            except RecordError as exc:
                # Skip invalid appointments
                logger.warning("Skipping appointment record: %s", exc)
                continue

        return appointments

    def test_connection(self) -> Dict[str, Any]:
        """
        Mock connection test.

        Returns:
            Mock health payload
        """
        return {
            "status": "OK",
            "message": "Mock hospital data",
            "database": "Mock",
        }
