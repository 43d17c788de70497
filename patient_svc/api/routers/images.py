"""
Images router - serves blobs from the local blob store.

Only mounted when PATIENT_SVC_BLOB_BACKEND=local, so that derived image
URLs (``/images/<identifier>``) resolve during development. With the S3
backend, image URLs point straight at the bucket.
"""
from fastapi import APIRouter, Depends, HTTPException, Response, status

from patient_svc.core.dependencies import get_blob_store
from patient_svc.storage.blob_store import BlobStore

router = APIRouter(prefix="/images", tags=["Images"])


@router.get("/{identifier}", summary="Get a stored image")
def get_image(
    identifier: str,
    blob_store: BlobStore = Depends(get_blob_store),
) -> Response:
    if not identifier.isalnum():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Image not found")
    blob = blob_store.get(identifier)
    if blob is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Image not found")
    return Response(
        content=blob.content,
        media_type=blob.content_type,
        headers={"Cache-Control": "public, max-age=31536000, immutable"},
    )
