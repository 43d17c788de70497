"""
Pydantic schemas for patient-related API responses.

Field names are snake_case in Python and camelCase on the wire, matching
the browser client's expectations.
"""
from pydantic import BaseModel, ConfigDict, Field


class PatientResponse(BaseModel):
    """Schema for a patient record returned by the API.

    The stored blob identifier is never exposed; only the derived public
    image URL (empty string when the patient has no image).
    """
    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "id": 1,
                "firstName": "Jane",
                "lastName": "Doe",
                "birthday": "1990-05-17",
                "description": "Seasonal allergies",
                "primaryDoctor": "Dr. House",
                "imageUrl": "https://patient-images.s3.amazonaws.com/3f9c0a6e1b2d4c5e8f7a6b5c4d3e2f1a",
            }
        },
    )

    id: int = Field(..., description="Unique patient identifier")
    first_name: str = Field(..., alias="firstName")
    last_name: str = Field(..., alias="lastName")
    birthday: str = Field(..., description="Birth date (YYYY-MM-DD)")
    description: str
    primary_doctor: str = Field(..., alias="primaryDoctor")
    image_url: str = Field("", alias="imageUrl", description="Public image URL, empty when no image")


class PatientCreatedResponse(BaseModel):
    """Schema returned after a patient is created."""
    model_config = ConfigDict(populate_by_name=True)

    message: str = Field(..., examples=["Patient added successfully"])
    patient_id: int = Field(..., alias="patientId")


class MessageResponse(BaseModel):
    """Schema for update and delete acknowledgements."""
    message: str = Field(..., examples=["Patient updated successfully"])
