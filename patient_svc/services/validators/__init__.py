"""
Validators for patient form data and image uploads.
"""
from patient_svc.services.validators.patient_validator import validate_patient_fields
from patient_svc.services.validators.upload_validator import (
    ALLOWED_IMAGE_TYPES,
    validate_content_type,
    validate_file_size,
    validate_image,
    validate_image_content,
)

__all__ = [
    "ALLOWED_IMAGE_TYPES",
    "validate_content_type",
    "validate_file_size",
    "validate_image",
    "validate_image_content",
    "validate_patient_fields",
]
