"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .availability import AvailabilityService, HospitalClientProtocol

__all__ = ["AvailabilityService", "HospitalClientProtocol"]
