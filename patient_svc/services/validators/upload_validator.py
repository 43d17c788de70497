"""
Validation utilities for patient image uploads.
"""
import io
import logging
from typing import Optional

from PIL import Image, UnidentifiedImageError

from patient_svc.core.exceptions import FileTooLargeError, InvalidFileTypeError, ValidationError
from patient_svc.models import ImageUpload

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = {
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/bmp",
    "image/webp",
}


def validate_content_type(content_type: Optional[str]) -> str:
    """
    Validate that the image declares a supported content type.

    Returns:
        str: The normalised content type (lowercase, parameters stripped).

    Raises:
        ValidationError: 400 if the content type is missing.
        InvalidFileTypeError: 415 if it is not a supported image type.
    """
    if not content_type:
        logger.warning("Image has no content type")
        raise ValidationError("Image content type is missing")

    normalised = content_type.split(";", 1)[0].strip().lower()
    if normalised not in ALLOWED_IMAGE_TYPES:
        logger.warning(f"Invalid image content type: {content_type}")
        raise InvalidFileTypeError(
            f"Invalid image type. Allowed types: {', '.join(sorted(ALLOWED_IMAGE_TYPES))}"
        )
    return normalised


def validate_file_size(file_size: int, max_size: int) -> None:
    """
    Validate that the image size is within allowed limits.

    Raises:
        ValidationError: 400 if the image is empty.
        FileTooLargeError: 413 if it exceeds ``max_size``.
    """
    if file_size == 0:
        logger.warning("Empty image uploaded")
        raise ValidationError("Image file is empty")

    if file_size > max_size:
        logger.warning(f"Image size {file_size} exceeds maximum {max_size}")
        raise FileTooLargeError(
            f"Image size exceeds maximum allowed size of {max_size / (1024 * 1024):.1f}MB"
        )


def validate_image_content(content: bytes) -> None:
    """
    Check that the bytes decode as an image.

    Raises:
        InvalidFileTypeError: 415 if Pillow cannot identify or verify the image.
        FileTooLargeError: 413 if the pixel count exceeds Pillow's decompression bomb limit.
    """
    try:
        with Image.open(io.BytesIO(content)) as img:
            img.verify()
    except Image.DecompressionBombError as e:
        logger.warning(f"Uploaded image dimensions rejected: {e}")
        raise FileTooLargeError("Image dimensions exceed maximum allowed")
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        logger.warning(f"Uploaded file is not a valid image: {e}")
        raise InvalidFileTypeError("File is not a valid image")


def validate_image(image: ImageUpload, max_size: int) -> str:
    """
    Run all image checks.

    Returns:
        str: The normalised content type to store the blob with.
    """
    content_type = validate_content_type(image.content_type)
    validate_file_size(image.size, max_size)
    validate_image_content(image.content)
    return content_type
