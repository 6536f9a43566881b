"""Carry-forward gap filling for skipped days.

When the user skips days, each missing date gets a placeholder ``carry`` entry
holding the last known weight and zero workout minutes. That keeps exactly one
entry per calendar day across the stored range, so trend lines never need to
special-case gaps.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Optional

from weightlog.tracking.dates import dates_strictly_between, days_between
from weightlog.tracking.models import Entry, EntryKind
from weightlog.tracking.store import TrackerStore

logger = logging.getLogger(__name__)


def carry_forward(
    store: TrackerStore,
    new_date: date,
    now: Optional[datetime] = None,
) -> list[Entry]:
    """
    Backfill carried entries between the latest entry and ``new_date``.

    Every date strictly between the latest entry's date L and ``new_date`` D
    receives a carried entry with L's weight, inserted in ascending order.
    Dates that already have an entry are skipped, never overwritten, so
    running this twice for the same gap changes nothing. No entry is ever
    created for D itself.

    Nothing is carried when there is no prior entry, when L >= D - 1 (no
    gap, same date, or a back-dated save).

    Should run inside the same transaction as the save for ``new_date``.

    Args:
        store: Persistence collaborator
        new_date: Date of the manual entry being saved
        now: Timestamp for created/updated fields (defaults to UTC now)

    Returns:
        The carried entries that were inserted, ascending by date
    """
    latest = store.get_latest_entry()
    if latest is None or days_between(latest.date, new_date) <= 1:
        return []

    stamp = now or datetime.now(timezone.utc)
    carried: list[Entry] = []
    for gap_date in dates_strictly_between(latest.date, new_date):
        if store.get_entry_by_date(gap_date) is not None:
            continue
        carried.append(
            store.insert_entry(
                Entry(
                    entry_id=None,
                    date=gap_date,
                    weight=latest.weight,
                    workout_minutes=0,
                    kind=EntryKind.CARRY,
                    created_at=stamp,
                    updated_at=stamp,
                )
            )
        )

    if carried:
        logger.info(
            "Carried %.1f kg forward over %d day(s): %s to %s",
            latest.weight,
            len(carried),
            carried[0].date,
            carried[-1].date,
        )
    return carried
