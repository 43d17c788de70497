"""
Pydantic schemas for API request/response validation.
"""
from patient_svc.schemas.patient import (
    MessageResponse,
    PatientCreatedResponse,
    PatientResponse,
)

__all__ = [
    "MessageResponse",
    "PatientCreatedResponse",
    "PatientResponse",
]
