"""
Adapters layer - External integrations (hospital REST backend).
"""

from .hospital_client import HospitalAPIClient
from .mock_hospital_client import MockHospitalClient

__all__ = ["HospitalAPIClient", "MockHospitalClient"]
