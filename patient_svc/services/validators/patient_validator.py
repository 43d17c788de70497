"""
Validation of patient form fields.
"""
import logging
from typing import Optional

from patient_svc.core.datetime_utils import parse_date
from patient_svc.core.exceptions import ValidationError
from patient_svc.models import PatientFields

logger = logging.getLogger(__name__)


def _required_text(name: str, value: Optional[str]) -> str:
    if value is None or not value.strip():
        raise ValidationError(f"{name} is required")
    return value.strip()


def validate_patient_fields(
    first_name: Optional[str],
    last_name: Optional[str],
    birthday: Optional[str],
    description: Optional[str],
    primary_doctor: Optional[str],
) -> PatientFields:
    """
    Validate raw form values and build PatientFields.

    Text fields must be non-empty after trimming; birthday must parse to
    a date (ISO 8601 strings such as JavaScript's toISOString() output are
    accepted).

    Raises:
        ValidationError: On the first missing field or an unparseable birthday.
    """
    fields = dict(
        first_name=_required_text("firstName", first_name),
        last_name=_required_text("lastName", last_name),
        description=_required_text("description", description),
        primary_doctor=_required_text("primaryDoctor", primary_doctor),
    )

    if birthday is None or not str(birthday).strip():
        raise ValidationError("birthday is required")
    try:
        parsed_birthday = parse_date(birthday)
    except ValueError:
        logger.warning(f"Invalid birthday format: {birthday!r}")
        raise ValidationError("Invalid birthday format")

    return PatientFields(birthday=parsed_birthday, **fields)
