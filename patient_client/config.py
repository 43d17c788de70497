"""
Configuration for the Patient Records API client.
Uses Pydantic BaseSettings - values come from the environment or a .env file.
"""
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ClientSettings(BaseSettings):
    """Client settings with validation."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    patient_svc_api_url: str = Field(
        default="http://localhost:5173",
        description="URL of the Patient Records API"
    )
    patient_svc_api_timeout: float = Field(
        default=10.0,
        description="Timeout in seconds for a single API call"
    )


settings = ClientSettings()

PATIENT_SVC_API_URL = settings.patient_svc_api_url
PATIENT_SVC_API_TIMEOUT = settings.patient_svc_api_timeout
