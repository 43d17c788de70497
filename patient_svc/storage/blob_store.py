"""
Blob store implementations for patient images.

Two backends share the BlobStore protocol:
- S3BlobStore: S3-compatible REST API over httpx, signed with AWS
  Signature Version 4 (works with AWS S3, MinIO and other S3 services)
- LocalBlobStore: a directory on disk, for development and tests

Every failure is raised as BlobStoreError; callers decide whether it
aborts the operation (uploads) or is only logged (cleanup deletes).
"""
import hashlib
import hmac
import json
import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional, Protocol, Tuple
from urllib.parse import quote, urlparse

import httpx

from patient_svc.core.config import Settings
from patient_svc.core.exceptions import BlobStoreError

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass
class StoredBlob:
    """An object read back from a blob store."""
    content: bytes
    content_type: str


class BlobStore(Protocol):
    def put(self, identifier: str, data: bytes, content_type: Optional[str]) -> None:
        ...

    def get(self, identifier: str) -> Optional[StoredBlob]:
        ...

    def delete(self, identifier: str) -> None:
        ...

    def ping(self) -> None:
        ...

    def close(self) -> None:
        ...


# =============================================================================
# LOCAL FILESYSTEM
# =============================================================================

class LocalBlobStore:
    """
    Stores each blob as a file named by its identifier, with the content
    type in a ``<identifier>.meta`` sidecar.
    """

    def __init__(self, base_path: str):
        self.base_path = Path(base_path)
        self.base_path.mkdir(parents=True, exist_ok=True)

    def _path(self, identifier: str) -> Path:
        # Identifiers are generated hex strings; anything else could escape base_path
        if not identifier or not identifier.isalnum():
            raise BlobStoreError(operation="resolve", identifier=identifier)
        return self.base_path / identifier

    def put(self, identifier: str, data: bytes, content_type: Optional[str]) -> None:
        path = self._path(identifier)
        try:
            path.write_bytes(data)
            path.with_suffix(".meta").write_text(
                json.dumps({"content_type": content_type or DEFAULT_CONTENT_TYPE})
            )
        except OSError as e:
            logger.error(f"Failed to write blob {identifier}: {e}")
            raise BlobStoreError(operation="put", identifier=identifier) from e

    def get(self, identifier: str) -> Optional[StoredBlob]:
        path = self._path(identifier)
        if not path.is_file():
            return None
        try:
            content = path.read_bytes()
            meta_path = path.with_suffix(".meta")
            content_type = DEFAULT_CONTENT_TYPE
            if meta_path.is_file():
                content_type = json.loads(meta_path.read_text()).get("content_type", DEFAULT_CONTENT_TYPE)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to read blob {identifier}: {e}")
            raise BlobStoreError(operation="get", identifier=identifier) from e
        return StoredBlob(content=content, content_type=content_type)

    def delete(self, identifier: str) -> None:
        path = self._path(identifier)
        try:
            path.unlink(missing_ok=True)
            path.with_suffix(".meta").unlink(missing_ok=True)
        except OSError as e:
            logger.error(f"Failed to delete blob {identifier}: {e}")
            raise BlobStoreError(operation="delete", identifier=identifier) from e

    def ping(self) -> None:
        if not (self.base_path.is_dir() and os.access(self.base_path, os.W_OK)):
            raise BlobStoreError(operation="ping")

    def close(self) -> None:
        pass


# =============================================================================
# S3-COMPATIBLE OBJECT STORE
# =============================================================================

class S3BlobStore:
    """
    S3-compatible object store client over httpx.

    Supports both addressing styles:
        - path-style:   https://endpoint/bucket/key
        - virtual-host: https://bucket.endpoint/key

    Requests are unsigned when no credentials are configured (e.g. a
    local MinIO with anonymous access).
    """

    service = "s3"

    def __init__(
        self,
        endpoint: str,
        bucket: str,
        access_key: str = "",
        secret_key: str = "",
        region: str = "us-east-1",
        timeout: float = 10.0,
        virtual_host: bool = False,
        client: Optional[httpx.Client] = None,
    ):
        if not bucket:
            raise ValueError("S3 bucket name is required for the s3 blob backend")

        self.endpoint = endpoint.rstrip("/")
        self.bucket = bucket
        self.access_key = access_key
        self.secret_key = secret_key
        self.region = region
        self.virtual_host = virtual_host
        self._client = client or httpx.Client(timeout=timeout)

        parsed = urlparse(self.endpoint)
        self.scheme = parsed.scheme or "https"
        self.host = f"{bucket}.{parsed.netloc}" if virtual_host else parsed.netloc

    def _make_url_and_path(self, key: str = "") -> Tuple[str, str]:
        quoted = quote(key, safe="-_.~")
        if self.virtual_host:
            path = f"/{quoted}"
        else:
            path = f"/{self.bucket}/{quoted}" if key else f"/{self.bucket}"
        return f"{self.scheme}://{self.host}{path}", path

    def _sign(self, key: bytes, msg: str) -> bytes:
        return hmac.new(key, msg.encode("utf-8"), hashlib.sha256).digest()

    def _signing_key(self, date_stamp: str) -> bytes:
        k_date = self._sign(f"AWS4{self.secret_key}".encode("utf-8"), date_stamp)
        k_region = self._sign(k_date, self.region)
        k_service = self._sign(k_region, self.service)
        return self._sign(k_service, "aws4_request")

    def _auth_headers(
        self,
        method: str,
        path: str,
        payload: bytes = b"",
        now: Optional[datetime] = None,
    ) -> Dict[str, str]:
        """Build AWS Signature V4 headers for a request without a query string."""
        if not self.access_key or not self.secret_key:
            return {}

        now = now or datetime.now(timezone.utc)
        amz_date = now.strftime("%Y%m%dT%H%M%SZ")
        date_stamp = now.strftime("%Y%m%d")
        payload_hash = hashlib.sha256(payload).hexdigest()

        canonical_headers = (
            f"host:{self.host}\n"
            f"x-amz-content-sha256:{payload_hash}\n"
            f"x-amz-date:{amz_date}\n"
        )
        signed_headers = "host;x-amz-content-sha256;x-amz-date"
        canonical_request = "\n".join([
            method,
            path,
            "",  # query string
            canonical_headers,
            signed_headers,
            payload_hash,
        ])

        scope = f"{date_stamp}/{self.region}/{self.service}/aws4_request"
        string_to_sign = "\n".join([
            "AWS4-HMAC-SHA256",
            amz_date,
            scope,
            hashlib.sha256(canonical_request.encode("utf-8")).hexdigest(),
        ])
        signature = hmac.new(
            self._signing_key(date_stamp),
            string_to_sign.encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()

        return {
            "Authorization": (
                f"AWS4-HMAC-SHA256 Credential={self.access_key}/{scope}, "
                f"SignedHeaders={signed_headers}, Signature={signature}"
            ),
            "x-amz-date": amz_date,
            "x-amz-content-sha256": payload_hash,
        }

    def _send(
        self,
        operation: str,
        method: str,
        key: str,
        content: bytes = b"",
        headers: Optional[Dict[str, str]] = None,
    ) -> httpx.Response:
        url, path = self._make_url_and_path(key)
        request_headers = self._auth_headers(method, path, content)
        request_headers.update(headers or {})
        try:
            return self._client.request(
                method, url, content=content or None, headers=request_headers
            )
        except httpx.HTTPError as e:
            # Covers timeouts and connection failures
            logger.error(
                f"Object store {operation} request failed: {type(e).__name__}: {e}",
                extra={"bucket": self.bucket, "key": key}
            )
            raise BlobStoreError(operation=operation, identifier=key or None) from e

    def _fail(self, operation: str, key: str, response: httpx.Response) -> BlobStoreError:
        logger.error(
            f"Object store {operation} failed: {response.status_code} {response.text[:500]}",
            extra={"bucket": self.bucket, "key": key, "status_code": response.status_code}
        )
        return BlobStoreError(operation=operation, identifier=key or None)

    def put(self, identifier: str, data: bytes, content_type: Optional[str]) -> None:
        response = self._send(
            "put", "PUT", identifier, data,
            headers={"Content-Type": content_type or DEFAULT_CONTENT_TYPE},
        )
        if response.status_code not in (200, 201):
            raise self._fail("put", identifier, response)

    def get(self, identifier: str) -> Optional[StoredBlob]:
        response = self._send("get", "GET", identifier)
        if response.status_code == 404:
            return None
        if response.status_code != 200:
            raise self._fail("get", identifier, response)
        return StoredBlob(
            content=response.content,
            content_type=response.headers.get("Content-Type", DEFAULT_CONTENT_TYPE),
        )

    def delete(self, identifier: str) -> None:
        response = self._send("delete", "DELETE", identifier)
        # S3 answers 204 for deletes, including keys that do not exist
        if response.status_code not in (200, 204, 404):
            raise self._fail("delete", identifier, response)

    def ping(self) -> None:
        response = self._send("ping", "HEAD", "")
        if response.status_code != 200:
            raise self._fail("ping", "", response)

    def close(self) -> None:
        self._client.close()


# =============================================================================
# FACTORY
# =============================================================================

def create_blob_store(settings: Settings) -> BlobStore:
    """Build the blob store selected by PATIENT_SVC_BLOB_BACKEND."""
    if settings.patient_svc_blob_backend == "local":
        logger.info(f"Using local blob store: {settings.patient_svc_local_blob_dir}")
        return LocalBlobStore(settings.patient_svc_local_blob_dir)

    logger.info(
        f"Using S3 blob store: bucket={settings.s3_bucket} endpoint={settings.s3_endpoint}"
    )
    return S3BlobStore(
        endpoint=settings.s3_endpoint,
        bucket=settings.s3_bucket,
        access_key=settings.s3_access_key,
        secret_key=settings.s3_secret_key,
        region=settings.s3_region,
        timeout=settings.s3_timeout,
        virtual_host=settings.s3_virtual_host,
    )
