"""
Service layer for business logic and cross-store orchestration.
"""
from patient_svc.services.patient_service import PatientService

__all__ = [
    "PatientService",
]
