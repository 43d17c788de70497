"""
Domain models for patients.
"""
from dataclasses import dataclass
from datetime import date
from typing import Optional


@dataclass
class PatientFields:
    """Validated, user-editable fields of a patient record."""

    first_name: str
    last_name: str
    birthday: date
    description: str
    primary_doctor: str


@dataclass
class Patient:
    """Model representing a stored patient row."""

    id: int
    first_name: str
    last_name: str
    birthday: date
    description: str
    primary_doctor: str
    identifier: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def has_image(self) -> bool:
        return bool(self.identifier)

    @classmethod
    def from_row(cls, row: tuple) -> 'Patient':
        """
        Create a Patient from a database row tuple.

        Args:
            row: Tuple of (id, first_name, last_name, birthday, description,
                primary_doctor, identifier, created_at, updated_at).

        Returns:
            Patient instance.
        """
        birthday = row[3]
        if isinstance(birthday, str):
            # Stored as YYYY-MM-DD; tolerate a trailing time component
            birthday = date.fromisoformat(birthday[:10])

        return cls(
            id=row[0],
            first_name=row[1],
            last_name=row[2],
            birthday=birthday,
            description=row[4],
            primary_doctor=row[5],
            identifier=row[6] or None,
            created_at=row[7],
            updated_at=row[8],
        )
