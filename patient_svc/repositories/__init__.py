"""
Repository layer for record store access.
"""
from patient_svc.repositories.base import Database
from patient_svc.repositories.patient_repository import PatientRepository

__all__ = [
    "Database",
    "PatientRepository",
]
