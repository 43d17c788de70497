"""
Blob identifier generation and public image URL derivation.

Identifiers are random hex strings from the ``secrets`` CSPRNG. Objects in
the bucket are publicly readable by URL, so the identifier is also the
unguessable part of that URL and must never be sequential.
"""
import secrets
from typing import Optional

IDENTIFIER_LENGTH = 32  # 128 bits
MIN_IDENTIFIER_LENGTH = 16  # 64 bits
IDENTIFIER_ALPHABET = "0123456789abcdef"


def generate_identifier(length: int = IDENTIFIER_LENGTH) -> str:
    """
    Generate a fresh blob identifier.

    Args:
        length: Number of hex characters (4 bits each).

    Returns:
        str: Lowercase hex string of exactly ``length`` characters.

    Raises:
        ValueError: If ``length`` would give less than 64 bits of entropy.
    """
    if length < MIN_IDENTIFIER_LENGTH:
        raise ValueError(
            f"Identifier length must be at least {MIN_IDENTIFIER_LENGTH}, got {length}"
        )
    return secrets.token_hex((length + 1) // 2)[:length]


def build_image_url(base_url: str, identifier: Optional[str]) -> str:
    """Return ``base_url + identifier``, or an empty string when there is no image."""
    if not identifier:
        return ""
    return f"{base_url}{identifier}"
