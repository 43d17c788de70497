"""
Patients router - patient CRUD endpoints.

Architecture:
    HTTP Request → Router (this file) → PatientService → {PatientRepository, BlobStore}

Handlers are plain ``def`` functions: FastAPI runs them in its threadpool,
so the blocking record store and object store calls never stall the
event loop. Create and update accept multipart/form-data with an optional
``image`` file, matching the browser client's FormData.

Domain exceptions raised by the service are turned into JSON error
responses by the handlers registered in setup_exception_handlers().
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status

from patient_svc.core.dependencies import get_patient_service
from patient_svc.models import ImageUpload
from patient_svc.schemas import MessageResponse, PatientCreatedResponse, PatientResponse
from patient_svc.services import PatientService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/patients",
    tags=["Patients"],
)


def _read_image(image: Optional[UploadFile], max_size: int) -> Optional[ImageUpload]:
    """
    Read an optional multipart file; a part without a filename counts as no image.

    At most ``max_size + 1`` bytes are read, enough for the size check to
    reject an oversized upload without buffering all of it.
    """
    if image is None or not image.filename:
        return None
    try:
        content = image.file.read(max_size + 1)
    finally:
        image.file.close()
    return ImageUpload(
        content=content,
        content_type=image.content_type,
        filename=image.filename,
    )


@router.get(
    "",
    response_model=List[PatientResponse],
    summary="List all patients",
    description="Retrieve every patient record with its public image URL."
)
def list_patients(
    patient_service: PatientService = Depends(get_patient_service)
):
    return patient_service.list_patients()


@router.get(
    "/{patient_id}",
    response_model=PatientResponse,
    summary="Get a patient",
    responses={404: {"description": "Patient not found"}},
)
def get_patient(
    patient_id: int,
    patient_service: PatientService = Depends(get_patient_service)
):
    return patient_service.get_patient(patient_id)


@router.post(
    "",
    response_model=PatientCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a patient",
    description="Create a patient from multipart form data. The optional image is uploaded "
                "to the object store before the record is inserted."
)
def create_patient(
    first_name: str = Form(..., alias="firstName"),
    last_name: str = Form(..., alias="lastName"),
    birthday: str = Form(..., description="Birth date as an ISO 8601 string"),
    description: str = Form(...),
    primary_doctor: str = Form(..., alias="primaryDoctor"),
    image: Optional[UploadFile] = File(None, description="Optional patient image"),
    patient_service: PatientService = Depends(get_patient_service)
):
    """
    Create a new patient.

    - **firstName**, **lastName**, **description**, **primaryDoctor**: required, non-empty
    - **birthday**: required, must parse as a date
    - **image**: optional image file (JPEG, PNG, GIF, BMP or WebP)

    Raises:
    - 400 Bad Request: Missing field or invalid birthday
    - 413 / 415: Image too large or not an image
    - 500 Internal Server Error: Record store or object store failure
    """
    patient_id = patient_service.create_patient(
        first_name=first_name,
        last_name=last_name,
        birthday=birthday,
        description=description,
        primary_doctor=primary_doctor,
        image=_read_image(image, patient_service.max_image_size),
    )
    return PatientCreatedResponse(message="Patient added successfully", patient_id=patient_id)


@router.put(
    "/{patient_id}",
    response_model=MessageResponse,
    summary="Update a patient",
    description="Update every field of a patient. When a new image is supplied it replaces the "
                "old one; the old object is removed only after the record update succeeds.",
    responses={404: {"description": "Patient not found"}},
)
def update_patient(
    patient_id: int,
    first_name: str = Form(..., alias="firstName"),
    last_name: str = Form(..., alias="lastName"),
    birthday: str = Form(...),
    description: str = Form(...),
    primary_doctor: str = Form(..., alias="primaryDoctor"),
    image: Optional[UploadFile] = File(None),
    patient_service: PatientService = Depends(get_patient_service)
):
    patient_service.update_patient(
        patient_id=patient_id,
        first_name=first_name,
        last_name=last_name,
        birthday=birthday,
        description=description,
        primary_doctor=primary_doctor,
        image=_read_image(image, patient_service.max_image_size),
    )
    return MessageResponse(message="Patient updated successfully")


@router.delete(
    "/{patient_id}",
    response_model=MessageResponse,
    summary="Delete a patient",
    description="Delete a patient record. Its image is removed best-effort; image cleanup "
                "failures are logged and do not affect the response.",
    responses={404: {"description": "Patient not found"}},
)
def delete_patient(
    patient_id: int,
    patient_service: PatientService = Depends(get_patient_service)
):
    patient_service.delete_patient(patient_id)
    return MessageResponse(message="Patient deleted successfully")
