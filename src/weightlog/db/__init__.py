"""SQLite persistence layer."""

from weightlog.db.connection import DatabaseConnection, get_db, set_db
from weightlog.db.schema import get_schema_sql

__all__ = ["DatabaseConnection", "get_db", "set_db", "get_schema_sql"]
