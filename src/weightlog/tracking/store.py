"""SQLite-backed persistence for entries, milestones, goals and settings."""

from __future__ import annotations

import functools
import logging
import sqlite3
import threading
from contextlib import contextmanager
from datetime import date, datetime
from typing import Any, Callable, Generator, Optional, TypeVar

from weightlog.tracking.errors import StorageError
from weightlog.tracking.models import Entry, EntryKind, GoalTrajectory, Milestone

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Serializes write transactions within this process; BEGIN IMMEDIATE covers
# other processes sharing the file.
_WRITE_LOCK = threading.RLock()

_ENTRY_COLUMNS = """
    entry_id, entry_date, weight_kg, workout_minutes, entry_type,
    created_at_utc, updated_at_utc
"""

_MILESTONE_COLUMNS = """
    milestone_id, order_idx, threshold_kg, title, message, unlocked_at_utc
"""

_GOAL_COLUMNS = """
    goal_id, start_date, start_weight_kg, target_date, target_weight_kg,
    created_at_utc, updated_at_utc
"""


def _storage_errors(func: Callable[..., T]) -> Callable[..., T]:
    """Re-raise sqlite3 failures as StorageError."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> T:
        try:
            return func(*args, **kwargs)
        except sqlite3.Error as e:
            logger.error("Storage failure in %s: %s", func.__name__, e)
            raise StorageError(f"{func.__name__} failed: {e}") from e

    return wrapper


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


def _row_to_entry(row: Any) -> Entry:
    return Entry(
        entry_id=row[0],
        date=date.fromisoformat(row[1]),
        weight=row[2],
        workout_minutes=row[3],
        kind=EntryKind(row[4]),
        created_at=_parse_timestamp(row[5]),
        updated_at=_parse_timestamp(row[6]),
    )


def _row_to_milestone(row: Any) -> Milestone:
    return Milestone(
        milestone_id=row[0],
        order=row[1],
        threshold_weight=row[2],
        title=row[3],
        message=row[4],
        unlocked_at=_parse_timestamp(row[5]),
    )


def _row_to_goal(row: Any) -> GoalTrajectory:
    return GoalTrajectory(
        goal_id=row[0],
        start_date=date.fromisoformat(row[1]),
        start_weight=row[2],
        target_date=date.fromisoformat(row[3]),
        target_weight=row[4],
        created_at=_parse_timestamp(row[5]),
        updated_at=_parse_timestamp(row[6]),
    )


class TrackerStore:
    """Persistence collaborator consumed by the tracking core.

    Wraps a single ``sqlite3.Connection``. Each method is one statement in
    autocommit mode unless called inside :meth:`transaction`, in which case
    everything commits or rolls back together.
    """

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    @contextmanager
    def transaction(self) -> Generator["TrackerStore", None, None]:
        """Run a block of store calls as one atomic unit.

        Uses ``BEGIN IMMEDIATE`` so the write lock is taken up front and a
        second process cannot read the same "latest entry" mid-save. Nested
        calls join the outer transaction.
        """
        if self.conn.in_transaction:
            yield self
            return

        with _WRITE_LOCK:
            try:
                self.conn.execute("BEGIN IMMEDIATE")
            except sqlite3.Error as e:
                raise StorageError(f"Could not start transaction: {e}") from e

            try:
                yield self
            except BaseException:
                self.conn.rollback()
                raise

            try:
                self.conn.commit()
            except sqlite3.Error as e:
                self.conn.rollback()
                logger.error("Commit failed: %s", e)
                raise StorageError(f"Commit failed: {e}") from e

    # ------------------------------------------------------------------
    # Entries
    # ------------------------------------------------------------------

    @_storage_errors
    def get_entry_by_date(self, entry_date: date) -> Optional[Entry]:
        """Get the entry for a calendar date."""
        row = self.conn.execute(
            f"SELECT {_ENTRY_COLUMNS} FROM entries WHERE entry_date = ?",
            (entry_date.isoformat(),),
        ).fetchone()
        return _row_to_entry(row) if row else None

    @_storage_errors
    def get_latest_entry(self) -> Optional[Entry]:
        """Get the entry with the most recent date."""
        row = self.conn.execute(
            f"SELECT {_ENTRY_COLUMNS} FROM entries ORDER BY entry_date DESC LIMIT 1"
        ).fetchone()
        return _row_to_entry(row) if row else None

    @_storage_errors
    def insert_entry(self, entry: Entry) -> Entry:
        """Insert a new entry and return it with its assigned id."""
        cursor = self.conn.execute(
            """
            INSERT INTO entries (entry_date, weight_kg, workout_minutes, entry_type,
                                 created_at_utc, updated_at_utc)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                entry.date.isoformat(),
                entry.weight,
                entry.workout_minutes,
                entry.kind.value,
                entry.created_at.isoformat() if entry.created_at else None,
                entry.updated_at.isoformat() if entry.updated_at else None,
            ),
        )
        entry.entry_id = cursor.lastrowid
        return entry

    @_storage_errors
    def update_entry(
        self,
        entry_date: date,
        weight: float,
        workout_minutes: int,
        updated_at: datetime,
    ) -> None:
        """Overwrite weight, workout and update time of an existing entry."""
        self.conn.execute(
            """
            UPDATE entries
            SET weight_kg = ?, workout_minutes = ?, updated_at_utc = ?
            WHERE entry_date = ?
            """,
            (weight, workout_minutes, updated_at.isoformat(), entry_date.isoformat()),
        )

    @_storage_errors
    def list_entries_ascending(self) -> list[Entry]:
        """All entries oldest first (chart order)."""
        rows = self.conn.execute(
            f"SELECT {_ENTRY_COLUMNS} FROM entries ORDER BY entry_date ASC"
        ).fetchall()
        return [_row_to_entry(row) for row in rows]

    @_storage_errors
    def list_entries_descending(self, limit: Optional[int] = None) -> list[Entry]:
        """Entries newest first (listing order)."""
        query = f"SELECT {_ENTRY_COLUMNS} FROM entries ORDER BY entry_date DESC"
        params: list = []
        if limit is not None:
            query += " LIMIT ?"
            params.append(limit)
        rows = self.conn.execute(query, params).fetchall()
        return [_row_to_entry(row) for row in rows]

    # ------------------------------------------------------------------
    # Milestones
    # ------------------------------------------------------------------

    @_storage_errors
    def list_milestones(self) -> list[Milestone]:
        """All milestones in display order."""
        rows = self.conn.execute(
            f"SELECT {_MILESTONE_COLUMNS} FROM milestones ORDER BY order_idx"
        ).fetchall()
        return [_row_to_milestone(row) for row in rows]

    @_storage_errors
    def get_pending_milestones(self) -> list[Milestone]:
        """Milestones not yet unlocked, in display order."""
        rows = self.conn.execute(
            f"""
            SELECT {_MILESTONE_COLUMNS} FROM milestones
            WHERE unlocked_at_utc IS NULL
            ORDER BY order_idx
            """
        ).fetchall()
        return [_row_to_milestone(row) for row in rows]

    @_storage_errors
    def mark_milestone_unlocked(self, milestone_id: int, when: datetime) -> bool:
        """Set the unlock time if still pending.

        Returns:
            False if the milestone was already unlocked (or doesn't exist)
        """
        cursor = self.conn.execute(
            """
            UPDATE milestones SET unlocked_at_utc = ?
            WHERE milestone_id = ? AND unlocked_at_utc IS NULL
            """,
            (when.isoformat(), milestone_id),
        )
        return cursor.rowcount == 1

    @_storage_errors
    def insert_milestones(self, milestones: list[Milestone]) -> int:
        """Insert milestone rows as given; returns number inserted."""
        self.conn.executemany(
            """
            INSERT INTO milestones (order_idx, threshold_kg, title, message, unlocked_at_utc)
            VALUES (?, ?, ?, ?, ?)
            """,
            [
                (
                    m.order,
                    m.threshold_weight,
                    m.title,
                    m.message,
                    m.unlocked_at.isoformat() if m.unlocked_at else None,
                )
                for m in milestones
            ],
        )
        return len(milestones)

    # ------------------------------------------------------------------
    # Goal trajectory
    # ------------------------------------------------------------------

    @_storage_errors
    def get_active_goal(self) -> Optional[GoalTrajectory]:
        """Get the single active goal, if any."""
        row = self.conn.execute(
            f"SELECT {_GOAL_COLUMNS} FROM weight_goals ORDER BY goal_id DESC LIMIT 1"
        ).fetchone()
        return _row_to_goal(row) if row else None

    def replace_active_goal(self, goal: GoalTrajectory) -> GoalTrajectory:
        """Drop any existing goal and store ``goal`` as the active one."""
        with self.transaction():
            self._delete_goals()
            return self._insert_goal(goal)

    @_storage_errors
    def _delete_goals(self) -> None:
        self.conn.execute("DELETE FROM weight_goals")

    @_storage_errors
    def _insert_goal(self, goal: GoalTrajectory) -> GoalTrajectory:
        cursor = self.conn.execute(
            """
            INSERT INTO weight_goals (start_date, start_weight_kg, target_date,
                                      target_weight_kg, created_at_utc, updated_at_utc)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                goal.start_date.isoformat(),
                goal.start_weight,
                goal.target_date.isoformat(),
                goal.target_weight,
                goal.created_at.isoformat() if goal.created_at else None,
                goal.updated_at.isoformat() if goal.updated_at else None,
            ),
        )
        goal.goal_id = cursor.lastrowid
        return goal

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    @_storage_errors
    def get_setting(self, key: str) -> Optional[str]:
        row = self.conn.execute(
            "SELECT value FROM settings WHERE key = ?", (key,)
        ).fetchone()
        return row[0] if row else None

    @_storage_errors
    def set_setting(self, key: str, value: str) -> None:
        self.conn.execute(
            "INSERT OR REPLACE INTO settings (key, value) VALUES (?, ?)",
            (key, value),
        )
