"""Save and goal-setting flows built on the tracking store.

These are the entry points the presentation layer calls. Each one validates
its input before touching storage, then runs its mutations inside a single
store transaction so a failure leaves nothing half-written.
"""

from __future__ import annotations

import logging
import math
import re
from datetime import date, datetime, timezone
from typing import Any, Optional

from weightlog.tracking.carry import carry_forward
from weightlog.tracking.errors import NotFoundError, ValidationError
from weightlog.tracking.milestones import evaluate
from weightlog.tracking.models import (
    Entry,
    EntryKind,
    GoalTrajectory,
    SaveResult,
    SaveStatus,
)
from weightlog.tracking.store import TrackerStore

logger = logging.getLogger(__name__)

REMINDER_KEY = "reminder_time"
_REMINDER_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def validate_weight(weight: Any, field_name: str = "weight") -> float:
    """Check a weight is a positive finite number; return it rounded to 0.1 kg."""
    if weight is None:
        raise ValidationError(f"{field_name} is required")
    if isinstance(weight, bool):
        raise ValidationError(f"{field_name} must be a number, got {weight!r}")
    try:
        value = float(weight)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{field_name} must be a number, got {weight!r}") from e

    if not math.isfinite(value):
        raise ValidationError(f"{field_name} must be finite, got {weight!r}")
    value = round(value, 1)
    if value <= 0:
        raise ValidationError(f"{field_name} must be greater than 0, got {weight!r}")
    return value


def validate_workout_minutes(minutes: Any) -> int:
    """Check workout minutes is a non-negative whole number."""
    if minutes is None:
        raise ValidationError("workout minutes is required")
    if isinstance(minutes, bool):
        raise ValidationError(f"workout minutes must be a whole number, got {minutes!r}")
    if isinstance(minutes, float):
        if not minutes.is_integer():
            raise ValidationError(f"workout minutes must be a whole number, got {minutes!r}")
        minutes = int(minutes)
    try:
        value = int(minutes)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"workout minutes must be a whole number, got {minutes!r}") from e
    if value < 0:
        raise ValidationError(f"workout minutes cannot be negative, got {value}")
    return value


def upsert_entry(
    store: TrackerStore,
    entry_date: date,
    weight: float,
    workout_minutes: int,
    now: Optional[datetime] = None,
) -> tuple[SaveStatus, Entry]:
    """
    Insert a manual entry, or overwrite the existing entry for that date.

    An update keeps the entry's kind and creation time; only weight, workout
    minutes and the update time change.
    """
    stamp = now or datetime.now(timezone.utc)
    existing = store.get_entry_by_date(entry_date)

    if existing is not None:
        store.update_entry(entry_date, weight, workout_minutes, stamp)
        existing.weight = weight
        existing.workout_minutes = workout_minutes
        existing.updated_at = stamp
        return SaveStatus.UPDATED, existing

    entry = store.insert_entry(
        Entry(
            entry_id=None,
            date=entry_date,
            weight=weight,
            workout_minutes=workout_minutes,
            kind=EntryKind.MANUAL,
            created_at=stamp,
            updated_at=stamp,
        )
    )
    return SaveStatus.INSERTED, entry


def save_entry(
    store: TrackerStore,
    entry_date: date,
    weight: Any,
    workout_minutes: Any,
    now: Optional[datetime] = None,
) -> SaveResult:
    """
    Record the day's measurement.

    Steps, all in one transaction:
        1. Carry the last known weight over any skipped days (new dates only)
        2. Insert or update the manual entry for ``entry_date``
        3. Evaluate milestones against the saved weight

    Args:
        store: Persistence collaborator
        entry_date: Local calendar date of the measurement
        weight: Weight in kg (rounded to one decimal)
        workout_minutes: Whole minutes of exercise
        now: Timestamp for all writes (defaults to UTC now)

    Returns:
        SaveResult with the status, saved entry, carried entries and any
        milestone unlocked by this save

    Raises:
        ValidationError: bad weight or minutes (nothing written)
        StorageError: persistence failure (nothing written)
    """
    weight_kg = validate_weight(weight)
    minutes = validate_workout_minutes(workout_minutes)
    stamp = now or datetime.now(timezone.utc)

    with store.transaction():
        carried: list[Entry] = []
        if store.get_entry_by_date(entry_date) is None:
            carried = carry_forward(store, entry_date, stamp)
        status, entry = upsert_entry(store, entry_date, weight_kg, minutes, stamp)
        unlocked = evaluate(store, weight_kg, stamp)

    logger.info(
        "Entry %s for %s: %.1f kg, %d min (%d carried)",
        status.value,
        entry_date,
        weight_kg,
        minutes,
        len(carried),
    )
    return SaveResult(status=status, entry=entry, carried=carried, unlocked=unlocked)


def set_goal(
    store: TrackerStore,
    target_date: date,
    target_weight: Any,
    start_date: Optional[date] = None,
    now: Optional[datetime] = None,
) -> GoalTrajectory:
    """
    Replace the active goal trajectory.

    The start point is taken from an existing entry: the one at
    ``start_date`` if given, otherwise the latest entry.

    Raises:
        ValidationError: non-positive target weight or target_date not after start
        NotFoundError: no entry at ``start_date`` (or no entries at all)
    """
    target_kg = validate_weight(target_weight, field_name="target weight")
    stamp = now or datetime.now(timezone.utc)

    with store.transaction():
        if start_date is not None:
            start_entry = store.get_entry_by_date(start_date)
            if start_entry is None:
                raise NotFoundError(f"No entry found for start date {start_date}")
        else:
            start_entry = store.get_latest_entry()
            if start_entry is None:
                raise NotFoundError("No entries yet; log a weight before setting a goal")

        if target_date <= start_entry.date:
            raise ValidationError(
                f"Target date {target_date} must be after start date {start_entry.date}"
            )

        goal = store.replace_active_goal(
            GoalTrajectory(
                goal_id=None,
                start_date=start_entry.date,
                start_weight=start_entry.weight,
                target_date=target_date,
                target_weight=target_kg,
                created_at=stamp,
                updated_at=stamp,
            )
        )

    logger.info(
        "Goal set: %.1f kg on %s -> %.1f kg on %s",
        goal.start_weight,
        goal.start_date,
        goal.target_weight,
        goal.target_date,
    )
    return goal


def get_reminder_time(store: TrackerStore) -> str:
    """Daily reminder time as HH:MM."""
    return store.get_setting(REMINDER_KEY) or "20:30"


def set_reminder_time(store: TrackerStore, value: str) -> str:
    """Validate and store the daily reminder time (24-hour HH:MM)."""
    value = value.strip()
    if not _REMINDER_RE.match(value):
        raise ValidationError(f"Reminder time must be HH:MM (24-hour), got '{value}'")
    store.set_setting(REMINDER_KEY, value)
    return value
