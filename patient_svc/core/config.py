"""
Configuration module for the Patient Records API.
Uses Pydantic BaseSettings for validation - values come from the environment or a .env file.
"""
import sys
import logging
from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

BLOB_BACKENDS = ("s3", "local")


class Settings(BaseSettings):
    """
    Application settings with validation.

    The record store is a SQLite file; the blob store is either an
    S3-compatible bucket or a local directory (development and tests).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Record store
    patient_svc_db_dir: str = Field(default="data", description="Database directory")
    patient_svc_db_file: str = Field(default="patients.db", description="Database filename")
    patient_svc_db_timeout: int = Field(default=5000, description="SQLite busy timeout in milliseconds")

    # API
    patient_svc_host: str = Field(default="0.0.0.0", description="API host")
    patient_svc_port: int = Field(default=5173, description="API port")
    patient_svc_reload: bool = Field(default=False, description="Enable hot reload")

    # Uploads
    patient_svc_upload_max_size: int = Field(default=10485760, description="Max image size in bytes (10MB)")

    # Blob store
    patient_svc_blob_backend: str = Field(default="s3", description="Blob store backend: 's3' or 'local'")
    patient_svc_local_blob_dir: str = Field(default="uploads", description="Directory used by the local blob backend")

    s3_endpoint: str = Field(default="https://s3.amazonaws.com", description="S3-compatible endpoint URL")
    s3_bucket: str = Field(default="", description="Bucket holding patient images")
    s3_region: str = Field(default="us-east-1", description="Signing region")
    s3_access_key: str = Field(default="", description="Object store access key")
    s3_secret_key: str = Field(default="", description="Object store secret key")
    s3_timeout: float = Field(default=10.0, description="Timeout in seconds for a single object store call")
    s3_virtual_host: bool = Field(default=False, description="Use virtual-host style bucket addressing")

    image_public_base_url: str = Field(
        default="",
        description="Public URL prefix for images; the identifier is appended to it",
    )

    # Logging
    log_level: str = Field(default="INFO", description="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)")
    log_format: str = Field(default="json", description="Log format: 'json' or 'text'")

    @model_validator(mode="after")
    def validate_blob_backend(self) -> "Settings":
        """Reject unknown blob backends at startup."""
        backend = self.patient_svc_blob_backend.lower()
        if backend not in BLOB_BACKENDS:
            logger.critical(
                f"Invalid PATIENT_SVC_BLOB_BACKEND '{self.patient_svc_blob_backend}', "
                f"expected one of: {', '.join(BLOB_BACKENDS)}"
            )
            sys.exit(1)
        self.patient_svc_blob_backend = backend
        return self

    @property
    def database_path(self) -> str:
        """Get the full database path."""
        return str(Path(self.patient_svc_db_dir) / self.patient_svc_db_file)

    @property
    def image_base_url(self) -> str:
        """
        Public base URL that image identifiers are appended to.

        Falls back to the bucket's public S3 URL, or to the local image
        route when the local backend is selected.
        """
        if self.image_public_base_url:
            base = self.image_public_base_url
        elif self.patient_svc_blob_backend == "local":
            base = "/images/"
        else:
            base = f"https://{self.s3_bucket}.s3.amazonaws.com/"
        return base if base.endswith("/") else base + "/"


settings = Settings()

API_HOST = settings.patient_svc_host
API_PORT = settings.patient_svc_port
API_RELOAD = settings.patient_svc_reload
