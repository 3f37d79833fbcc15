"""
Hospital REST backend client for fetching doctor schedules and appointments.
"""

import logging
from datetime import date
from typing import Any, Dict, List, Optional

import requests

from ..domain.exceptions import BackendAPIError, RecordError
from ..domain.models import BookedAppointment, DoctorProfile
from .records import appointment_from_record, doctor_from_record

logger = logging.getLogger(__name__)


class HospitalAPIClient:
    """
    Read-only client for the hospital management REST API.

    Uses the doctor schedule and appointment list endpoints; the bearer token
    is obtained elsewhere (the backend's login flow is not handled here).
    """

    PAGE_SIZE = 100

    def __init__(self, base_url: str, access_token: Optional[str] = None, timeout: int = 30):
        """
        Initialize the API client.

        Args:
            base_url: Backend root, e.g. http://localhost:5000
            access_token: Optional JWT sent as a bearer token
            timeout: Request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.headers = {"Accept": "application/json"}
        if access_token:
            self.headers["Authorization"] = f"Bearer {access_token}"

    def get_doctor(self, doctor_id: str) -> DoctorProfile:
        """
        Get a doctor's schedule, leave days and leave flag.

        Raises:
            BackendAPIError: If the request fails or the document is unusable
        """
        data = self._get(f"/api/doctors/{doctor_id}/schedule")

        try:
            doctor = doctor_from_record(data)
        except RecordError as exc:
            raise BackendAPIError(f"Invalid schedule document for doctor {doctor_id}: {exc}") from exc

        if not doctor.doctor_id:
            doctor.doctor_id = doctor_id
        return doctor

    def list_doctors(self) -> List[DoctorProfile]:
        """
        Get every doctor known to the backend.

        Documents that cannot be parsed are skipped with a warning.
        """
        data = self._get("/api/doctors")
        if not isinstance(data, list):
            raise BackendAPIError("Expected a list of doctors from /api/doctors")

        doctors: List[DoctorProfile] = []
        for record in data:
            try:
                doctors.append(doctor_from_record(record))
            except RecordError as exc:
                logger.warning("Skipping doctor record: %s", exc)
        return doctors

    def get_appointments(self, doctor_id: str, day: date) -> List[BookedAppointment]:
        """
        Get all appointments of a doctor on a calendar date.

        Follows the backend's pagination until ``hasNext`` is false. Documents
        that cannot be parsed are skipped with a warning.
        """
        appointments: List[BookedAppointment] = []
        page = 1

        while True:
            data = self._get(
                "/api/appointments",
                params={
                    "doctor": doctor_id,
                    "date": day.isoformat(),
                    "page": page,
                    "limit": self.PAGE_SIZE,
                },
            )
            if not isinstance(data, dict):
                raise BackendAPIError("Expected an object from /api/appointments")

            for record in data.get("appointments", []):
                try:
                    appointments.append(appointment_from_record(record))
                except RecordError as exc:
                    logger.warning("Skipping appointment record: %s", exc)

            pagination = data.get("pagination") or {}
            if not pagination.get("hasNext"):
                break
            page += 1

        logger.debug("Fetched %d appointments for doctor %s on %s", len(appointments), doctor_id, day)
        return appointments

    def test_connection(self) -> Dict[str, Any]:
        """
        Test the connection by calling the health endpoint.

        Raises:
            BackendAPIError: If the backend is unreachable
        """
        return self._get("/api/health")

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self.base_url}{path}"

        try:
            response = requests.get(url, headers=self.headers, params=params, timeout=self.timeout)
            response.raise_for_status()
            return response.json()

        except requests.exceptions.RequestException as e:
            raise BackendAPIError(f"Request to {url} failed: {e}") from e

        except ValueError as e:
            raise BackendAPIError(f"Response from {url} is not valid JSON: {e}") from e
