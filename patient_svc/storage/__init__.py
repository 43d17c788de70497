"""
Blob storage for patient images.
"""
from patient_svc.storage.blob_store import (
    BlobStore,
    LocalBlobStore,
    S3BlobStore,
    StoredBlob,
    create_blob_store,
)

__all__ = [
    "BlobStore",
    "LocalBlobStore",
    "S3BlobStore",
    "StoredBlob",
    "create_blob_store",
]
