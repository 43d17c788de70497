"""
FastAPI Dependency Injection configuration.

The record store handle and the blob store are created once in the
application lifespan (main.py), kept on ``app.state`` and closed at
shutdown. Everything else is built per request from them:

    Router ─Depends→ get_patient_service
                       ├─ get_patient_repository ─→ get_database (app.state.database)
                       └─ get_blob_store (app.state.blob_store)

Testing:
    app.dependency_overrides[get_patient_service] = lambda: test_service
"""
import logging

from fastapi import Depends, Request

from patient_svc.core.config import settings
from patient_svc.repositories import Database, PatientRepository
from patient_svc.services import PatientService
from patient_svc.storage.blob_store import BlobStore

logger = logging.getLogger(__name__)


def get_database(request: Request) -> Database:
    """Get the record store handle opened at startup."""
    return request.app.state.database


def get_blob_store(request: Request) -> BlobStore:
    """Get the blob store opened at startup."""
    return request.app.state.blob_store


def get_patient_repository(db: Database = Depends(get_database)) -> PatientRepository:
    """Get a PatientRepository bound to the shared database handle."""
    return PatientRepository(db=db)


def get_patient_service(
    patient_repository: PatientRepository = Depends(get_patient_repository),
    blob_store: BlobStore = Depends(get_blob_store),
) -> PatientService:
    """Get a PatientService with its repository and blob store injected."""
    return PatientService(
        patient_repository=patient_repository,
        blob_store=blob_store,
        image_base_url=settings.image_base_url,
        max_image_size=settings.patient_svc_upload_max_size,
    )
