"""
Repository for patient database operations.

All SQL for the patients table is encapsulated here - no SQL in service or
API layers. sqlite3 failures surface as StoreUnavailableError through
Database.connection().
"""
import logging
from typing import List, Optional

from patient_svc.core.datetime_utils import format_iso, utc_now
from patient_svc.models import Patient, PatientFields
from patient_svc.repositories.base import Database

logger = logging.getLogger(__name__)

_COLUMNS = (
    "id, first_name, last_name, birthday, description, primary_doctor, "
    "identifier, created_at, updated_at"
)

# SQLite INTEGER PRIMARY KEY range; larger ids cannot be bound as parameters
MAX_PATIENT_ID = 2**63 - 1


def _is_storable_id(patient_id: int) -> bool:
    return 0 < patient_id <= MAX_PATIENT_ID


class PatientRepository:
    """
    Repository for patient CRUD operations.

    It should be instantiated via core.dependencies.get_patient_repository().
    """

    def __init__(self, db: Database):
        """
        Initialize the patient repository.

        Args:
            db: Database instance for data access.
        """
        self._db = db

    def add(self, fields: PatientFields, identifier: Optional[str]) -> int:
        """
        Insert a new patient row.

        Args:
            fields: Validated patient fields.
            identifier: Blob identifier of the patient's image, or None.

        Returns:
            int: The newly assigned patient id.
        """
        now = format_iso(utc_now())
        with self._db.connection("insert_patient") as conn:
            cursor = conn.execute("""
                INSERT INTO patients
                (first_name, last_name, birthday, description, primary_doctor,
                 identifier, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                fields.first_name,
                fields.last_name,
                fields.birthday.isoformat(),
                fields.description,
                fields.primary_doctor,
                identifier,
                now,
                now,
            ))
            return cursor.lastrowid

    def get_all(self) -> List[Patient]:
        """
        Get all patients in natural store order (by id).

        Returns:
            List[Patient]: Every stored patient.
        """
        with self._db.connection("list_patients") as conn:
            rows = conn.execute(
                f"SELECT {_COLUMNS} FROM patients ORDER BY id ASC"
            ).fetchall()
        return [Patient.from_row(row) for row in rows]

    def get_by_id(self, patient_id: int) -> Optional[Patient]:
        """
        Get a patient by id.

        Returns:
            Optional[Patient]: The patient or None if no row matches.
        """
        if not _is_storable_id(patient_id):
            return None
        with self._db.connection("get_patient") as conn:
            row = conn.execute(
                f"SELECT {_COLUMNS} FROM patients WHERE id = ?",
                (patient_id,)
            ).fetchone()
        return Patient.from_row(row) if row else None

    def update(self, patient_id: int, fields: PatientFields, identifier: Optional[str]) -> bool:
        """
        Update a patient's scalar fields and image identifier in one write.

        Returns:
            bool: True if a row was updated, False if no row matches.
        """
        if not _is_storable_id(patient_id):
            return False
        with self._db.connection("update_patient") as conn:
            cursor = conn.execute("""
                UPDATE patients
                SET first_name = ?, last_name = ?, birthday = ?, description = ?,
                    primary_doctor = ?, identifier = ?, updated_at = ?
                WHERE id = ?
            """, (
                fields.first_name,
                fields.last_name,
                fields.birthday.isoformat(),
                fields.description,
                fields.primary_doctor,
                identifier,
                format_iso(utc_now()),
                patient_id,
            ))
            return cursor.rowcount > 0

    def delete(self, patient_id: int) -> bool:
        """
        Delete a patient row.

        Returns:
            bool: True if a row was deleted, False if no row matches.
        """
        if not _is_storable_id(patient_id):
            return False
        with self._db.connection("delete_patient") as conn:
            cursor = conn.execute("DELETE FROM patients WHERE id = ?", (patient_id,))
            return cursor.rowcount > 0

    def ping(self) -> None:
        """Run a trivial query; raises StoreUnavailableError if the store is unreachable."""
        with self._db.connection("ping") as conn:
            conn.execute("SELECT 1").fetchone()
