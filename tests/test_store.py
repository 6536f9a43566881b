"""Tests for the SQLite tracking store and goal creation."""

from __future__ import annotations

import sqlite3
from datetime import date, datetime, timezone

import pytest

from weightlog.db.connection import DatabaseConnection
from weightlog.tracking.errors import NotFoundError, StorageError, ValidationError
from weightlog.tracking.models import Entry, EntryKind, GoalTrajectory
from weightlog.tracking.service import (
    get_reminder_time,
    save_entry,
    set_goal,
    set_reminder_time,
)
from weightlog.tracking.store import TrackerStore

NOW = datetime(2024, 3, 4, 8, 30, tzinfo=timezone.utc)


class TestEntries:
    """Tests for entry persistence."""

    def test_round_trip(self, store) -> None:
        store.insert_entry(Entry(None, date(2024, 3, 1), 90.0, 30, EntryKind.MANUAL, NOW, NOW))
        entry = store.get_entry_by_date(date(2024, 3, 1))

        assert entry.entry_id is not None
        assert entry.weight == 90.0
        assert entry.kind == EntryKind.MANUAL
        assert entry.created_at == NOW

    def test_missing_date(self, store) -> None:
        assert store.get_entry_by_date(date(2024, 3, 1)) is None
        assert store.get_latest_entry() is None

    def test_ordering(self, store) -> None:
        for day in (3, 1, 2):
            store.insert_entry(Entry(None, date(2024, 3, day), 90.0, 0, EntryKind.MANUAL, NOW, NOW))

        assert [e.date.day for e in store.list_entries_ascending()] == [1, 2, 3]
        assert [e.date.day for e in store.list_entries_descending()] == [3, 2, 1]
        assert [e.date.day for e in store.list_entries_descending(limit=2)] == [3, 2]
        assert store.list_entries_descending(limit=0) == []
        assert store.get_latest_entry().date == date(2024, 3, 3)

    def test_duplicate_date_is_storage_error(self, store) -> None:
        entry = Entry(None, date(2024, 3, 1), 90.0, 0, EntryKind.MANUAL, NOW, NOW)
        store.insert_entry(entry)
        with pytest.raises(StorageError):
            store.insert_entry(Entry(None, date(2024, 3, 1), 89.0, 0, EntryKind.MANUAL, NOW, NOW))

    def test_transaction_rolls_back(self, store) -> None:
        with pytest.raises(RuntimeError):
            with store.transaction():
                store.insert_entry(
                    Entry(None, date(2024, 3, 1), 90.0, 0, EntryKind.MANUAL, NOW, NOW)
                )
                raise RuntimeError("boom")
        assert store.list_entries_ascending() == []

    def test_closed_connection_is_storage_error(self, temp_db) -> None:
        conn = sqlite3.connect(temp_db.db_path)
        store = TrackerStore(conn)
        conn.close()
        with pytest.raises(StorageError):
            store.get_latest_entry()


class TestSetGoal:
    """Tests for goal creation policy."""

    def test_defaults_to_latest_entry(self, store) -> None:
        save_entry(store, date(2024, 3, 1), 90.0, 0, NOW)
        save_entry(store, date(2024, 3, 2), 89.5, 0, NOW)

        goal = set_goal(store, date(2024, 6, 1), 80.0, now=NOW)

        assert goal.start_date == date(2024, 3, 2)
        assert goal.start_weight == 89.5
        assert store.get_active_goal() == goal

    def test_explicit_start_date(self, store) -> None:
        save_entry(store, date(2024, 3, 1), 90.0, 0, NOW)
        save_entry(store, date(2024, 3, 2), 89.5, 0, NOW)

        goal = set_goal(store, date(2024, 6, 1), 80.0, start_date=date(2024, 3, 1), now=NOW)
        assert goal.start_weight == 90.0

    def test_start_date_without_entry(self, store) -> None:
        save_entry(store, date(2024, 3, 1), 90.0, 0, NOW)
        with pytest.raises(NotFoundError):
            set_goal(store, date(2024, 6, 1), 80.0, start_date=date(2024, 2, 1), now=NOW)

    def test_no_entries(self, store) -> None:
        with pytest.raises(NotFoundError):
            set_goal(store, date(2024, 6, 1), 80.0, now=NOW)

    @pytest.mark.parametrize("target", [date(2024, 3, 1), date(2024, 2, 1)])
    def test_target_must_follow_start(self, store, target) -> None:
        save_entry(store, date(2024, 3, 1), 90.0, 0, NOW)
        with pytest.raises(ValidationError):
            set_goal(store, target, 80.0, now=NOW)
        assert store.get_active_goal() is None

    def test_invalid_target_weight(self, store) -> None:
        save_entry(store, date(2024, 3, 1), 90.0, 0, NOW)
        with pytest.raises(ValidationError):
            set_goal(store, date(2024, 6, 1), -1, now=NOW)

    def test_replaces_wholesale(self, store) -> None:
        save_entry(store, date(2024, 3, 1), 90.0, 0, NOW)
        set_goal(store, date(2024, 6, 1), 80.0, now=NOW)
        second = set_goal(store, date(2024, 9, 1), 75.0, now=NOW)

        count = store.conn.execute("SELECT COUNT(*) FROM weight_goals").fetchone()[0]
        assert count == 1
        assert store.get_active_goal().target_weight == second.target_weight

    def test_replace_active_goal_directly(self, store) -> None:
        goal = GoalTrajectory(None, date(2024, 1, 1), 80.0, date(2024, 1, 11), 70.0, NOW, NOW)
        stored = store.replace_active_goal(goal)
        assert stored.goal_id is not None
        assert store.get_active_goal().start_date == date(2024, 1, 1)


class TestReminder:
    """Tests for the reminder time setting."""

    def test_default_seeded(self, store) -> None:
        assert get_reminder_time(store) == "20:30"

    def test_set(self, store) -> None:
        set_reminder_time(store, "07:15")
        assert get_reminder_time(store) == "07:15"

    @pytest.mark.parametrize("value", ["7:15", "24:00", "12:60", "noon"])
    def test_invalid(self, store, value) -> None:
        with pytest.raises(ValidationError):
            set_reminder_time(store, value)


class TestDatabaseConnection:
    """Tests for opening the database file."""

    def test_unopenable_path_is_storage_error(self, tmp_path) -> None:
        db = DatabaseConnection(tmp_path)
        with pytest.raises(StorageError):
            db.initialize_schema()

    def test_schema_is_idempotent(self, temp_db) -> None:
        temp_db.initialize_schema()
        with temp_db.get_connection() as conn:
            assert TrackerStore(conn).get_setting("reminder_time") == "20:30"

    def test_backup_copies_file(self, temp_db, tmp_path) -> None:
        target = temp_db.backup(tmp_path / "backups", now=datetime(2024, 3, 4, 8, 30))
        assert target.name.endswith("-20240304-083000.db")
        assert target.read_bytes() == temp_db.db_path.read_bytes()
