"""
Service layer for patient operations.

PatientService is the only component that touches both the record store
and the blob store. Ordering rules:

- create: upload the image first; a failed upload aborts before any row
  is inserted. If the insert then fails, the fresh blob is removed
  best-effort.
- update: upload the new image, write the row, and only then delete the
  old blob. A failed row write never loses the old image (the new blob
  may be left orphaned).
- delete: remove the blob best-effort, then the row. Blob failures are
  logged and never reported to the caller.

Architecture:
    API Layer (routers) → PatientService → {PatientRepository, BlobStore}
"""
import logging
from typing import List, Optional

from patient_svc.core.exceptions import PatientNotFoundError
from patient_svc.core.identifiers import build_image_url, generate_identifier
from patient_svc.models import ImageUpload, Patient
from patient_svc.repositories import PatientRepository
from patient_svc.schemas import PatientResponse
from patient_svc.services.validators import validate_image, validate_patient_fields
from patient_svc.storage.blob_store import BlobStore

logger = logging.getLogger(__name__)


class PatientService:
    """
    Service layer for patient records and their images.
    """

    def __init__(
        self,
        patient_repository: PatientRepository,
        blob_store: BlobStore,
        image_base_url: str,
        max_image_size: int,
    ):
        """
        Initialize the patient service.

        Args:
            patient_repository: Record store access.
            blob_store: Object store holding patient images.
            image_base_url: Public URL prefix the identifier is appended to.
            max_image_size: Maximum accepted image size in bytes.
        """
        self._repo = patient_repository
        self._blobs = blob_store
        self._image_base_url = image_base_url
        self._max_image_size = max_image_size

    @property
    def max_image_size(self) -> int:
        return self._max_image_size

    # =========================================================================
    # READ
    # =========================================================================

    def _to_response(self, patient: Patient) -> PatientResponse:
        return PatientResponse(
            id=patient.id,
            first_name=patient.first_name,
            last_name=patient.last_name,
            birthday=patient.birthday.isoformat(),
            description=patient.description,
            primary_doctor=patient.primary_doctor,
            image_url=build_image_url(self._image_base_url, patient.identifier),
        )

    def list_patients(self) -> List[PatientResponse]:
        """
        Get all patients with derived image URLs.

        Raises:
            StoreUnavailableError: If the record store cannot be read.
        """
        return [self._to_response(p) for p in self._repo.get_all()]

    def get_patient(self, patient_id: int) -> PatientResponse:
        """
        Get a single patient with its derived image URL.

        Raises:
            PatientNotFoundError: If no patient has this id.
        """
        patient = self._repo.get_by_id(patient_id)
        if patient is None:
            raise PatientNotFoundError(patient_id=patient_id)
        return self._to_response(patient)

    # =========================================================================
    # WRITE
    # =========================================================================

    def create_patient(
        self,
        first_name: Optional[str],
        last_name: Optional[str],
        birthday: Optional[str],
        description: Optional[str],
        primary_doctor: Optional[str],
        image: Optional[ImageUpload] = None,
    ) -> int:
        """
        Create a patient, uploading its image first when one is given.

        Returns:
            int: The id assigned to the new patient.

        Raises:
            ValidationError: Invalid fields or image; nothing is written.
            BlobStoreError: Image upload failed; no row is inserted.
            StoreUnavailableError: Row insert failed.
        """
        fields = validate_patient_fields(first_name, last_name, birthday, description, primary_doctor)
        content_type = validate_image(image, self._max_image_size) if image is not None else None

        identifier = None
        if image is not None:
            identifier = self._upload_image(image, content_type)

        try:
            patient_id = self._repo.add(fields, identifier)
        except Exception:
            if identifier:
                self._delete_blob_quietly(identifier, reason="create_rollback")
            raise

        logger.info(
            "Patient created",
            extra={"patient_id": patient_id, "has_image": identifier is not None}
        )
        return patient_id

    def update_patient(
        self,
        patient_id: int,
        first_name: Optional[str],
        last_name: Optional[str],
        birthday: Optional[str],
        description: Optional[str],
        primary_doctor: Optional[str],
        image: Optional[ImageUpload] = None,
    ) -> None:
        """
        Update a patient's fields, replacing its image when a new one is given.

        The old blob is deleted only after the row write has succeeded.

        Raises:
            ValidationError: Invalid fields or image; nothing is written.
            PatientNotFoundError: No patient has this id.
            BlobStoreError: New image upload failed; the row is untouched.
            StoreUnavailableError: Row read or write failed.
        """
        fields = validate_patient_fields(first_name, last_name, birthday, description, primary_doctor)
        content_type = validate_image(image, self._max_image_size) if image is not None else None

        current = self._repo.get_by_id(patient_id)
        if current is None:
            raise PatientNotFoundError(patient_id=patient_id)
        old_identifier = current.identifier

        new_identifier = None
        if image is not None:
            new_identifier = self._upload_image(image, content_type)

        updated = self._repo.update(patient_id, fields, new_identifier or old_identifier)
        if not updated:
            # Row vanished between the read and the write (concurrent delete)
            if new_identifier:
                self._delete_blob_quietly(new_identifier, reason="update_missing_row")
            raise PatientNotFoundError(patient_id=patient_id)

        if new_identifier and old_identifier:
            self._delete_blob_quietly(old_identifier, reason="image_replaced")

        logger.info(
            "Patient updated",
            extra={"patient_id": patient_id, "image_replaced": new_identifier is not None}
        )

    def delete_patient(self, patient_id: int) -> None:
        """
        Delete a patient and, best-effort, its image.

        Raises:
            PatientNotFoundError: No patient has this id.
            StoreUnavailableError: Row read or delete failed.
        """
        current = self._repo.get_by_id(patient_id)
        if current is None:
            raise PatientNotFoundError(patient_id=patient_id)

        if current.has_image:
            self._delete_blob_quietly(current.identifier, reason="patient_deleted")

        if not self._repo.delete(patient_id):
            raise PatientNotFoundError(patient_id=patient_id)

        logger.info("Patient deleted", extra={"patient_id": patient_id})

    # =========================================================================
    # BLOB HELPERS
    # =========================================================================

    def _upload_image(self, image: ImageUpload, content_type: str) -> str:
        """Upload under a fresh identifier; BlobStoreError propagates to the caller."""
        identifier = generate_identifier()
        logger.info(
            "Uploading patient image",
            extra={"identifier": identifier, "content_type": content_type, "size": image.size}
        )
        self._blobs.put(identifier, image.content, content_type)
        return identifier

    def _delete_blob_quietly(self, identifier: str, reason: str) -> None:
        """Delete a blob, logging instead of raising on failure."""
        try:
            self._blobs.delete(identifier)
            logger.info("Deleted image blob", extra={"identifier": identifier, "reason": reason})
        except Exception:
            logger.warning(
                "Failed to delete image blob; leaving it orphaned",
                extra={"identifier": identifier, "reason": reason},
                exc_info=True,
            )
