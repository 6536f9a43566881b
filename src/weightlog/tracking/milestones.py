"""Milestone unlock evaluation and default reward seeding."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from weightlog.tracking.errors import ValidationError
from weightlog.tracking.models import Milestone
from weightlog.tracking.store import TrackerStore

logger = logging.getLogger(__name__)

# (threshold kg, reward message) in display order, heaviest first
DEFAULT_MILESTONES: list[tuple[float, str]] = [
    (83.0, "The Watch has stood firm; a stone of discipline has fallen. Tonight you claim your reward: a Movie Night with Vodka."),
    (80.0, "The realm whispers of your steadiness. Once more you hold the line, and your reward is another Movie Night with Vodka."),
    (76.7, "A lord of true resolve deserves treasures rare. Your banner now flies higher, and your reward is a Luxury Perfume Bottle."),
    (75.0, "The march continues, the enemy retreats. Raise your glass, for your reward is a Movie Night with Vodka."),
    (73.5, "Even when the night is long, the fire still burns. You endure, and your reward is a Movie Night with Vodka."),
    (71.7, "The North remembers, and so does your body. Victory grows near, and your reward is a Movie Night with Vodka."),
    (69.0, "Songs will be sung of this triumph; Winterfell itself would echo your name. Your reward is a New Audio System."),
    (65.0, "Allies gather at your side, for you are no longer walking alone. Your reward is to Meet Friends in Town."),
    (63.7, "Every king requires his war table. Yours shall be worthy: your reward is a New Customized Computer Table."),
    (61.2, "You strike as the warrior you are, unyielding in the fight. Your reward is a Punching Bag."),
    (59.9, "You have thinned the enemy ranks. Tonight you feast and drink, for your reward is a Movie Night with Beer."),
    (58.5, "Even kings seek peace in gardens scented sweet. Your reward is a Spa Ceylon Treat."),
    (57.0, "The fortress rises stone by stone. Your hand strengthens your House, and your reward is the Wall Plaster of the House."),
    (56.0, "The banners are raised, the hall echoes with laughter. Your reward is a Party for Friends."),
    (55.0, "The realm bends the knee, the throne is yours, and history will speak of your triumph. Your reward is the Victory Lap with Vodka."),
]


def build_milestones(thresholds: list[tuple[float, str]]) -> list[Milestone]:
    """Turn (threshold, message) pairs into ordered Milestone rows."""
    milestones = []
    for idx, (threshold, message) in enumerate(thresholds, start=1):
        if threshold <= 0:
            raise ValidationError(f"Milestone threshold must be positive, got {threshold}")
        milestones.append(
            Milestone(
                milestone_id=None,
                order=idx,
                threshold_weight=threshold,
                title=f"Goal {idx}",
                message=message,
            )
        )
    return milestones


def seed_milestones(
    store: TrackerStore,
    thresholds: Optional[list[tuple[float, str]]] = None,
) -> int:
    """
    Insert the milestone list once.

    Milestones are immutable after seeding, so this is a no-op whenever any
    milestone row already exists.

    Returns:
        Number of milestones inserted (0 if already seeded)
    """
    milestones = build_milestones(thresholds if thresholds is not None else DEFAULT_MILESTONES)
    with store.transaction():
        if store.list_milestones():
            return 0
        inserted = store.insert_milestones(milestones)
    logger.info("Seeded %d milestones", inserted)
    return inserted


def evaluate(
    store: TrackerStore,
    current_weight: float,
    now: Optional[datetime] = None,
) -> Optional[Milestone]:
    """
    Unlock at most one pending milestone for the current weight.

    A pending milestone is satisfied when ``current_weight <= threshold``.
    Of the satisfied ones, the milestone whose threshold sits closest to the
    current weight (the lowest satisfied threshold) is unlocked. Any other
    satisfied milestones stay pending and unlock on later calls, one per
    call, nearest first.

    Args:
        store: Persistence collaborator
        current_weight: Latest weight in kg
        now: Unlock timestamp (defaults to current UTC time)

    Returns:
        The newly unlocked milestone, or None if nothing changed

    Example:
        With thresholds [80, 75, 70] all pending, evaluate(store, 72) unlocks
        75 only; a second call with 72 unlocks 80; a third returns None.
    """
    when = now or datetime.now(timezone.utc)

    with store.transaction():
        satisfied = sorted(
            (m for m in store.get_pending_milestones() if current_weight <= m.threshold_weight),
            key=lambda m: (m.threshold_weight, m.order),
        )
        for milestone in satisfied:
            if not store.mark_milestone_unlocked(milestone.milestone_id, when):  # type: ignore
                continue
            milestone.unlocked_at = when
            logger.info(
                "Unlocked milestone %s (%.1f kg) at weight %.1f",
                milestone.title,
                milestone.threshold_weight,
                current_weight,
            )
            return milestone

    return None
