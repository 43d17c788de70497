"""
UTC-first datetime utilities.

- Timestamps are stored and processed in UTC
- ISO 8601 is used for string serialization
- Birthdays are calendar dates, taken from the UTC-normalised input

Usage:
    from patient_svc.core.datetime_utils import parse_date, utc_now, format_iso

    parse_date("1990-05-17T00:00:00.000Z")  # date(1990, 5, 17)
"""
from datetime import date, datetime, timezone
from typing import Union


def utc_now() -> datetime:
    """Get current datetime in UTC with timezone info."""
    return datetime.now(timezone.utc)


def to_utc(dt: datetime) -> datetime:
    """
    Convert a datetime to UTC.

    Naive datetimes are assumed to already be UTC.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


# =============================================================================
# PARSING
# =============================================================================

_FALLBACK_FORMATS = [
    "%Y-%m-%d %H:%M:%S",      # 2024-01-15 10:30:00
    "%Y-%m-%d %H:%M",         # 2024-01-15 10:30
    "%Y-%m-%d",               # 2024-01-15
    "%d-%m-%Y",               # 15-01-2024
    "%d/%m/%Y",               # 15/01/2024
]


def parse_datetime(value: Union[str, datetime]) -> datetime:
    """
    Parse a datetime value to a timezone-aware UTC datetime.

    Accepts datetime objects, ISO 8601 strings (with or without offset,
    including the 'Z' suffix produced by JavaScript's toISOString) and a
    few common date formats.

    Raises:
        ValueError: If the value cannot be parsed.

    Examples:
        >>> parse_datetime("2024-01-15T10:30:00Z")
        datetime.datetime(2024, 1, 15, 10, 30, tzinfo=datetime.timezone.utc)

        >>> parse_datetime("2024-01-15T10:30:00+05:30")
        datetime.datetime(2024, 1, 15, 5, 0, tzinfo=datetime.timezone.utc)
    """
    if isinstance(value, datetime):
        return to_utc(value)

    if not isinstance(value, str):
        raise ValueError(f"Expected datetime or string, got {type(value).__name__}")

    value = value.strip()
    if not value:
        raise ValueError("Cannot parse empty datetime")

    try:
        iso_value = value[:-1] + "+00:00" if value.endswith("Z") else value
        return to_utc(datetime.fromisoformat(iso_value))
    except (ValueError, OverflowError):
        # Offsets near date.min/date.max overflow during UTC conversion
        pass

    for fmt in _FALLBACK_FORMATS:
        try:
            return datetime.strptime(value, fmt).replace(tzinfo=timezone.utc)
        except ValueError:
            continue

    raise ValueError(f"Cannot parse datetime: '{value}'")


def parse_date(value: Union[str, date, datetime]) -> date:
    """
    Parse a value to a calendar date (date granularity, UTC).

    Raises:
        ValueError: If the value cannot be parsed.
    """
    if isinstance(value, datetime):
        return to_utc(value).date()
    if isinstance(value, date):
        return value
    return parse_datetime(value).date()


# =============================================================================
# FORMATTING
# =============================================================================

def format_iso(dt: datetime) -> str:
    """
    Format datetime to ISO 8601 string with a 'Z' suffix.

    Example:
        >>> format_iso(datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc))
        '2024-01-15T10:30:00Z'
    """
    return to_utc(dt).strftime("%Y-%m-%dT%H:%M:%SZ")
