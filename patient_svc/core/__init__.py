"""
Core module: configuration, logging, exceptions, dependency injection
and shared helpers.
"""
from patient_svc.core.config import settings, Settings
from patient_svc.core.exceptions import (
    PatientServiceError,
    ValidationError,
    InvalidFileTypeError,
    FileTooLargeError,
    PatientNotFoundError,
    StoreUnavailableError,
    BlobStoreError,
    setup_exception_handlers,
)
from patient_svc.core.identifiers import generate_identifier, build_image_url

__all__ = [
    "settings",
    "Settings",
    "PatientServiceError",
    "ValidationError",
    "InvalidFileTypeError",
    "FileTooLargeError",
    "PatientNotFoundError",
    "StoreUnavailableError",
    "BlobStoreError",
    "setup_exception_handlers",
    "generate_identifier",
    "build_image_url",
]
