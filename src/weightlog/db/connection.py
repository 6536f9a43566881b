"""Database connection management using raw sqlite3."""

from __future__ import annotations

import logging
import shutil
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Generator, Optional

from weightlog.db.schema import get_schema_sql
from weightlog.tracking.errors import StorageError

logger = logging.getLogger(__name__)


class DatabaseConnection:
    """Manages SQLite database connections."""

    def __init__(self, db_path: Path):
        """Initialize database connection manager.

        Args:
            db_path: Path to the SQLite database file
        """
        self.db_path = db_path
        self._ensure_directory()

    def _ensure_directory(self) -> None:
        """Create parent directories if they don't exist."""
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create {self.db_path.parent}: {e}") from e

    @contextmanager
    def get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Context manager for database connections.

        The connection runs in autocommit mode; multi-statement work opens
        its own transaction through ``TrackerStore.transaction()``.

        Yields:
            sqlite3.Connection with Row factory enabled

        Example:
            with db.get_connection() as conn:
                store = TrackerStore(conn)
                entries = store.list_entries_ascending()
        """
        try:
            conn = sqlite3.connect(self.db_path, isolation_level=None)
        except sqlite3.Error as e:
            logger.error("Cannot open database %s: %s", self.db_path, e)
            raise StorageError(f"Cannot open database {self.db_path}: {e}") from e
        conn.row_factory = sqlite3.Row  # Enable dict-like access
        try:
            yield conn
        except Exception:
            if conn.in_transaction:
                conn.rollback()
            raise
        finally:
            conn.close()

    def initialize_schema(self) -> None:
        """Create all tables if they don't exist."""
        with self.get_connection() as conn:
            try:
                conn.executescript(get_schema_sql())
            except sqlite3.Error as e:
                logger.error("Schema setup failed for %s: %s", self.db_path, e)
                raise StorageError(f"Schema setup failed for {self.db_path}: {e}") from e

    def backup(self, backup_dir: Path, now: Optional[datetime] = None) -> Path:
        """Copy the database file into ``backup_dir`` with a timestamped name.

        Returns:
            Path of the copy
        """
        if not self.db_path.exists():
            raise FileNotFoundError(f"Database not found: {self.db_path}")

        stamp = (now or datetime.now()).strftime("%Y%m%d-%H%M%S")
        backup_dir.mkdir(parents=True, exist_ok=True)
        target = backup_dir / f"{self.db_path.stem}-{stamp}{self.db_path.suffix}"
        shutil.copy2(self.db_path, target)
        logger.info("Backed up %s to %s", self.db_path, target)
        return target


# Global database instance (lazy loaded)
_db: Optional[DatabaseConnection] = None


def get_db() -> DatabaseConnection:
    """Get the global database instance.

    Lazily initializes the database connection using settings.

    Returns:
        DatabaseConnection instance
    """
    global _db
    if _db is None:
        from weightlog.config import get_settings

        settings = get_settings()
        _db = DatabaseConnection(settings.database.path)
    return _db


def set_db(db: Optional[DatabaseConnection]) -> None:
    """Set the global database instance.

    Useful for testing with a custom database.

    Args:
        db: DatabaseConnection instance to use (None resets to settings)
    """
    global _db
    _db = db
