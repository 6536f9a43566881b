"""Data models for daily entries, milestones and goal trajectories."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Optional


class EntryKind(str, Enum):
    """How an entry came to exist."""

    MANUAL = "manual"  # typed in by the user
    CARRY = "carry"  # synthesized for a skipped day


class SaveStatus(str, Enum):
    """Outcome of an entry upsert."""

    INSERTED = "inserted"
    UPDATED = "updated"


@dataclass
class Entry:
    """One measurement per local calendar date."""

    entry_id: Optional[int]
    date: date
    weight: float  # kg, one decimal place
    workout_minutes: int
    kind: EntryKind = EntryKind.MANUAL
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_carried(self) -> bool:
        return self.kind == EntryKind.CARRY


@dataclass
class Milestone:
    """A weight threshold with a one-time unlockable reward message."""

    milestone_id: Optional[int]
    order: int
    threshold_weight: float
    title: str
    message: str
    unlocked_at: Optional[datetime] = None

    @property
    def is_unlocked(self) -> bool:
        return self.unlocked_at is not None


@dataclass
class GoalTrajectory:
    """Straight-line plan from a start weight/date to a target weight/date."""

    goal_id: Optional[int]
    start_date: date
    start_weight: float
    target_date: date
    target_weight: float
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class SaveResult:
    """Everything a single save produced."""

    status: SaveStatus
    entry: Entry
    carried: list[Entry]
    unlocked: Optional[Milestone] = None

    @property
    def carried_dates(self) -> list[date]:
        return [e.date for e in self.carried]
