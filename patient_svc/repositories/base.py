"""
Base database connection and initialization.

This module handles record store connection management and schema
initialization. The Database handle is created once at application
startup (see main.lifespan), injected into repositories, and closed at
shutdown. Each repository call opens its own short-lived connection, so
concurrent requests running in the threadpool never share one.
"""
import sqlite3
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from patient_svc.core.exceptions import StoreUnavailableError

logger = logging.getLogger(__name__)


class Database:
    """
    SQLite database connection manager.

    Features:
    - WAL mode for concurrent readers alongside a writer
    - Busy timeout to wait on lock contention instead of failing immediately
    - Explicit lifecycle: ``close()`` stops handing out connections

    Usage:
        db = Database(db_path="data/patients.db", busy_timeout=5000)
        with db.connection("get_patient") as conn:
            conn.execute("SELECT 1")
        db.close()
    """

    def __init__(self, db_path: str, busy_timeout: int = 5000):
        """
        Initialize the database and its schema.

        Args:
            db_path: Path to SQLite database file.
            busy_timeout: SQLite busy timeout in milliseconds.
        """
        self.db_path = db_path
        self.busy_timeout = busy_timeout
        self._closed = False

        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    @property
    def closed(self) -> bool:
        return self._closed

    def _configure_connection(self, conn: sqlite3.Connection) -> None:
        conn.execute(f"PRAGMA busy_timeout = {int(self.busy_timeout)}")

    def _init_db(self) -> None:
        """Create the patients table and enable WAL mode if not already enabled."""
        conn = sqlite3.connect(self.db_path)
        try:
            self._configure_connection(conn)
            cursor = conn.cursor()

            cursor.execute("PRAGMA journal_mode = WAL")
            result = cursor.fetchone()
            if not (result and str(result[0]).lower() == "wal"):
                logger.warning(f"Failed to enable WAL mode, current mode: {result}")

            # AUTOINCREMENT keeps ids from ever being reused after deletes
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS patients (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    first_name TEXT NOT NULL,
                    last_name TEXT NOT NULL,
                    birthday TEXT NOT NULL,
                    description TEXT NOT NULL,
                    primary_doctor TEXT NOT NULL,
                    identifier TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            conn.commit()
        finally:
            conn.close()

        logger.info(
            f"Database initialized: {self.db_path} "
            f"(busy_timeout={self.busy_timeout}ms)"
        )

    def get_connection(self) -> sqlite3.Connection:
        """
        Get a new database connection with the busy timeout applied.

        Raises:
            sqlite3.ProgrammingError: If the database handle has been closed.
        """
        if self._closed:
            raise sqlite3.ProgrammingError("Database handle is closed")
        conn = sqlite3.connect(self.db_path, timeout=self.busy_timeout / 1000)
        self._configure_connection(conn)
        return conn

    @contextmanager
    def connection(self, operation: str) -> Iterator[sqlite3.Connection]:
        """
        Yield a connection, committing on success and always closing it.

        Any sqlite3 error (including a closed handle) is logged with the
        driver message and re-raised as StoreUnavailableError, which carries
        no driver text to the caller.
        """
        conn = None
        try:
            conn = self.get_connection()
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            logger.error(
                f"Record store error during {operation}: {e}",
                extra={"operation": operation, "db_path": self.db_path}
            )
            if conn is not None:
                conn.rollback()
            raise StoreUnavailableError(operation=operation) from e
        finally:
            if conn is not None:
                conn.close()

    def close(self) -> None:
        """Stop handing out connections. Called at application shutdown."""
        if not self._closed:
            self._closed = True
            logger.info(f"Database closed: {self.db_path}")
