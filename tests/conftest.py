"""Pytest fixtures for weightlog tests."""

from __future__ import annotations

import tempfile
from pathlib import Path

import pytest

from weightlog.db.connection import DatabaseConnection
from weightlog.tracking.milestones import seed_milestones
from weightlog.tracking.store import TrackerStore


@pytest.fixture
def temp_db():
    """Create a temporary database with schema."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    db = DatabaseConnection(db_path)
    db.initialize_schema()

    yield db

    # Cleanup
    db_path.unlink(missing_ok=True)


@pytest.fixture
def store(temp_db):
    """Open a TrackerStore on the temporary database."""
    with temp_db.get_connection() as conn:
        yield TrackerStore(conn)


@pytest.fixture
def milestone_store(store):
    """Store seeded with three milestones at 80, 75 and 70 kg."""
    seed_milestones(
        store,
        [
            (80.0, "Eighty down."),
            (75.0, "Seventy-five reached."),
            (70.0, "Seventy at last."),
        ],
    )
    return store
