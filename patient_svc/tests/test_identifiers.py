"""
Tests for blob identifier generation and image URL derivation.
"""
import pytest

from patient_svc.core.identifiers import (
    IDENTIFIER_ALPHABET,
    IDENTIFIER_LENGTH,
    build_image_url,
    generate_identifier,
)


def test_default_identifier_length_and_charset():
    identifier = generate_identifier()
    assert len(identifier) == IDENTIFIER_LENGTH
    assert set(identifier) <= set(IDENTIFIER_ALPHABET)


@pytest.mark.parametrize("length", [16, 17, 32, 64])
def test_identifier_custom_length(length):
    assert len(generate_identifier(length)) == length


def test_identifier_too_short_rejected():
    with pytest.raises(ValueError):
        generate_identifier(8)


def test_identifiers_are_unique():
    identifiers = {generate_identifier() for _ in range(10_000)}
    assert len(identifiers) == 10_000


def test_build_image_url():
    assert build_image_url("https://bucket.s3.amazonaws.com/", "abc123") == (
        "https://bucket.s3.amazonaws.com/abc123"
    )


@pytest.mark.parametrize("identifier", [None, ""])
def test_build_image_url_without_identifier(identifier):
    assert build_image_url("https://bucket.s3.amazonaws.com/", identifier) == ""
