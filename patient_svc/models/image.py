"""
Domain model for an uploaded image payload.
"""
from dataclasses import dataclass
from typing import Optional


@dataclass
class ImageUpload:
    """Binary image received with a create or update request."""

    content: bytes
    content_type: Optional[str]
    filename: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.content)
