"""Daily entry reconciliation and progress tracking.

Key components:
- Carry-forward gap filling (one entry per calendar day, always)
- Simple moving-average trend lines
- Milestone unlocks (at most one per save)
- Time-revealed goal trajectory (plan line up to today)
"""

from __future__ import annotations

from weightlog.tracking.carry import carry_forward
from weightlog.tracking.errors import (
    NotFoundError,
    StorageError,
    TrackerError,
    ValidationError,
)
from weightlog.tracking.milestones import evaluate, seed_milestones
from weightlog.tracking.models import (
    Entry,
    EntryKind,
    GoalTrajectory,
    Milestone,
    SaveResult,
    SaveStatus,
)
from weightlog.tracking.service import save_entry, set_goal, upsert_entry
from weightlog.tracking.smoothing import sma
from weightlog.tracking.store import TrackerStore
from weightlog.tracking.trajectory import project

__all__ = [
    "Entry",
    "EntryKind",
    "GoalTrajectory",
    "Milestone",
    "NotFoundError",
    "SaveResult",
    "SaveStatus",
    "StorageError",
    "TrackerError",
    "TrackerStore",
    "ValidationError",
    "carry_forward",
    "evaluate",
    "project",
    "save_entry",
    "seed_milestones",
    "set_goal",
    "sma",
    "upsert_entry",
]
