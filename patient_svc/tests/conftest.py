"""
Shared pytest fixtures for API and service tests.

Key patterns:

1. Database Isolation: Each test gets a fresh temporary database
2. Blob Store Fake: An in-memory blob store that records every call and
   can be told to fail
3. DI Override: Use app.dependency_overrides to inject test dependencies

Fixture Hierarchy:
    temp_db → patient_repo ─┐
    blob_store ─────────────┴→ patient_service → test_app → client
"""
import os
import tempfile
from typing import Dict, List, Optional, Tuple

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from patient_svc.core import dependencies as deps
from patient_svc.core.exceptions import BlobStoreError, setup_exception_handlers
from patient_svc.repositories import Database, PatientRepository
from patient_svc.services import PatientService
from patient_svc.storage import StoredBlob

TEST_IMAGE_BASE_URL = "https://images.test/"
TEST_MAX_IMAGE_SIZE = 1024


class FakeBlobStore:
    """In-memory BlobStore that records calls in order."""

    def __init__(self):
        self.blobs: Dict[str, StoredBlob] = {}
        self.calls: List[Tuple[str, str]] = []
        self.fail_put = False
        self.fail_delete = False
        self.fail_ping = False

    def put(self, identifier: str, data: bytes, content_type: Optional[str]) -> None:
        self.calls.append(("put", identifier))
        if self.fail_put:
            raise BlobStoreError(operation="put", identifier=identifier)
        self.blobs[identifier] = StoredBlob(content=data, content_type=content_type)

    def get(self, identifier: str) -> Optional[StoredBlob]:
        self.calls.append(("get", identifier))
        return self.blobs.get(identifier)

    def delete(self, identifier: str) -> None:
        self.calls.append(("delete", identifier))
        if self.fail_delete:
            raise BlobStoreError(operation="delete", identifier=identifier)
        self.blobs.pop(identifier, None)

    def ping(self) -> None:
        if self.fail_ping:
            raise BlobStoreError(operation="ping")

    def close(self) -> None:
        pass


@pytest.fixture
def temp_db():
    """
    Create a temporary database for testing.

    This fixture creates a fresh SQLite database in a temp directory,
    ensuring complete isolation between tests.
    """
    with tempfile.TemporaryDirectory() as tmp_dir:
        db = Database(db_path=os.path.join(tmp_dir, "patients.db"))
        yield db
        db.close()


@pytest.fixture
def patient_repo(temp_db):
    """Create a PatientRepository with the test database."""
    return PatientRepository(db=temp_db)


@pytest.fixture
def blob_store():
    return FakeBlobStore()


@pytest.fixture
def patient_service(patient_repo, blob_store):
    """Create a PatientService with the test repository and fake blob store."""
    return PatientService(
        patient_repository=patient_repo,
        blob_store=blob_store,
        image_base_url=TEST_IMAGE_BASE_URL,
        max_image_size=TEST_MAX_IMAGE_SIZE,
    )


@pytest.fixture
def test_app(temp_db, patient_repo, blob_store, patient_service):
    """
    Create a FastAPI test app with dependency overrides.

    Uses the real routers and exception handlers; the database, blob
    store and service are the test instances above.
    """
    from patient_svc.api.routers import health_router, images_router, patients_router

    app = FastAPI(title="Patient Records API Test")

    # Register exception handlers (same as production)
    setup_exception_handlers(app)

    app.dependency_overrides[deps.get_database] = lambda: temp_db
    app.dependency_overrides[deps.get_blob_store] = lambda: blob_store
    app.dependency_overrides[deps.get_patient_repository] = lambda: patient_repo
    app.dependency_overrides[deps.get_patient_service] = lambda: patient_service

    app.include_router(health_router)
    app.include_router(patients_router)
    app.include_router(images_router)

    yield app

    app.dependency_overrides.clear()


@pytest.fixture
def client(test_app):
    """Create a test client for the API."""
    return TestClient(test_app)


@pytest.fixture
def patient_form():
    """Form fields as the browser client sends them."""
    return {
        "firstName": "Jane",
        "lastName": "Doe",
        "birthday": "1990-05-17T00:00:00.000Z",
        "description": "Seasonal allergies",
        "primaryDoctor": "Dr. House",
    }
