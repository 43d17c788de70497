"""
Tests for patient field and image upload validation.
"""
import io

import pytest
from PIL import Image

from patient_svc.core.exceptions import FileTooLargeError, InvalidFileTypeError, ValidationError
from patient_svc.models import ImageUpload
from patient_svc.services.validators import (
    validate_content_type,
    validate_file_size,
    validate_image,
    validate_image_content,
    validate_patient_fields,
)


def _fields(**overrides):
    values = dict(
        first_name="Jane",
        last_name="Doe",
        birthday="1990-05-17",
        description="Seasonal allergies",
        primary_doctor="Dr. House",
    )
    values.update(overrides)
    return validate_patient_fields(**values)


# =============================================================================
# PATIENT FIELDS
# =============================================================================

def test_valid_fields_are_trimmed():
    fields = _fields(first_name="  Jane  ")
    assert fields.first_name == "Jane"
    assert fields.birthday.isoformat() == "1990-05-17"


@pytest.mark.parametrize("name,wire_name", [
    ("first_name", "firstName"),
    ("last_name", "lastName"),
    ("description", "description"),
    ("primary_doctor", "primaryDoctor"),
])
def test_missing_text_field(name, wire_name):
    with pytest.raises(ValidationError) as exc_info:
        _fields(**{name: ""})
    assert exc_info.value.detail == f"{wire_name} is required"
    assert exc_info.value.status_code == 400


def test_missing_birthday():
    with pytest.raises(ValidationError) as exc_info:
        _fields(birthday=None)
    assert exc_info.value.detail == "birthday is required"


def test_invalid_birthday():
    with pytest.raises(ValidationError) as exc_info:
        _fields(birthday="17th of May")
    assert exc_info.value.detail == "Invalid birthday format"


# =============================================================================
# IMAGES
# =============================================================================

@pytest.mark.parametrize("content_type", ["image/png", "IMAGE/JPEG", "image/webp; charset=binary"])
def test_content_type_accepted(content_type):
    assert validate_content_type(content_type).startswith("image/")


def test_content_type_normalised():
    assert validate_content_type("Image/PNG; q=1") == "image/png"


def test_content_type_missing():
    with pytest.raises(ValidationError):
        validate_content_type(None)


def test_content_type_rejected():
    with pytest.raises(InvalidFileTypeError) as exc_info:
        validate_content_type("application/pdf")
    assert exc_info.value.status_code == 415


def test_empty_file_rejected():
    with pytest.raises(ValidationError):
        validate_file_size(0, 100)


def test_large_file_rejected():
    with pytest.raises(FileTooLargeError) as exc_info:
        validate_file_size(101, 100)
    assert exc_info.value.status_code == 413


def _gif_bytes():
    buffer = io.BytesIO()
    Image.new("RGB", (2, 2)).save(buffer, "GIF")
    return buffer.getvalue()


def test_validate_image_returns_content_type():
    image = ImageUpload(content=_gif_bytes(), content_type="image/GIF")
    assert validate_image(image, max_size=10_000) == "image/gif"


def test_image_content_must_decode():
    with pytest.raises(InvalidFileTypeError) as exc_info:
        validate_image_content(b"plain text, not an image")
    assert exc_info.value.detail == "File is not a valid image"


def test_image_over_pixel_limit_rejected_as_too_large(monkeypatch):
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1000)
    buffer = io.BytesIO()
    Image.new("1", (100, 100)).save(buffer, "PNG")

    with pytest.raises(FileTooLargeError) as exc_info:
        validate_image_content(buffer.getvalue())
    assert exc_info.value.status_code == 413
