"""Tests for milestone seeding and unlock evaluation."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from weightlog.tracking.errors import ValidationError
from weightlog.tracking.milestones import (
    DEFAULT_MILESTONES,
    build_milestones,
    evaluate,
    seed_milestones,
)
from weightlog.tracking.service import save_entry

NOW = datetime(2024, 3, 4, 8, 30, tzinfo=timezone.utc)


def _unlocked_thresholds(store) -> list[float]:
    return sorted(m.threshold_weight for m in store.list_milestones() if m.is_unlocked)


class TestSeedMilestones:
    """Tests for seed_milestones function."""

    def test_seeds_defaults(self, store) -> None:
        assert seed_milestones(store) == len(DEFAULT_MILESTONES)
        milestones = store.list_milestones()
        assert [m.order for m in milestones] == list(range(1, 16))
        assert milestones[0].threshold_weight == 83.0
        assert milestones[-1].threshold_weight == 55.0
        assert milestones[0].title == "Goal 1"
        assert all(m.unlocked_at is None for m in milestones)

    def test_seed_is_one_time(self, store) -> None:
        seed_milestones(store)
        assert seed_milestones(store) == 0
        assert len(store.list_milestones()) == 15

    def test_thresholds_descend_in_display_order(self) -> None:
        thresholds = [t for t, _ in DEFAULT_MILESTONES]
        assert thresholds == sorted(thresholds, reverse=True)

    def test_rejects_non_positive_threshold(self) -> None:
        with pytest.raises(ValidationError):
            build_milestones([(80.0, "ok"), (0.0, "bad")])


class TestEvaluate:
    """Tests for evaluate function."""

    def test_single_unlock_nearest_threshold(self, milestone_store) -> None:
        """Weight 72 with [80, 75, 70] pending unlocks only 75."""
        unlocked = evaluate(milestone_store, 72.0, NOW)

        assert unlocked is not None
        assert unlocked.threshold_weight == 75.0
        assert unlocked.message == "Seventy-five reached."
        assert unlocked.unlocked_at == NOW
        assert _unlocked_thresholds(milestone_store) == [75.0]

    def test_repeat_calls_unlock_one_at_a_time(self, milestone_store) -> None:
        first = evaluate(milestone_store, 72.0, NOW)
        second = evaluate(milestone_store, 72.0, NOW)
        third = evaluate(milestone_store, 72.0, NOW)

        assert first.threshold_weight == 75.0
        assert second.threshold_weight == 80.0
        assert third is None
        assert _unlocked_thresholds(milestone_store) == [75.0, 80.0]

    def test_no_change_above_all_thresholds(self, milestone_store) -> None:
        assert evaluate(milestone_store, 85.0, NOW) is None
        assert _unlocked_thresholds(milestone_store) == []

    def test_threshold_is_inclusive(self, milestone_store) -> None:
        unlocked = evaluate(milestone_store, 80.0, NOW)
        assert unlocked.threshold_weight == 80.0

    def test_never_reunlocks(self, milestone_store) -> None:
        evaluate(milestone_store, 79.0, NOW)
        later = NOW + timedelta(days=3)

        assert evaluate(milestone_store, 79.0, later) is None
        eighty = [m for m in milestone_store.list_milestones() if m.threshold_weight == 80.0][0]
        assert eighty.unlocked_at == NOW

    def test_unlock_survives_weight_regain(self, milestone_store) -> None:
        evaluate(milestone_store, 74.0, NOW)
        assert evaluate(milestone_store, 90.0, NOW) is None
        assert _unlocked_thresholds(milestone_store) == [75.0]

    def test_no_milestones(self, store) -> None:
        assert evaluate(store, 50.0, NOW) is None


class TestSaveUnlocks:
    """Milestone evaluation as part of the save flow."""

    def test_save_reports_unlock(self, milestone_store) -> None:
        save_entry(milestone_store, date(2024, 3, 1), 81.0, 0, NOW)
        result = save_entry(milestone_store, date(2024, 3, 2), 79.8, 30, NOW)

        assert result.unlocked is not None
        assert result.unlocked.threshold_weight == 80.0

    def test_at_most_one_unlock_per_save(self, milestone_store) -> None:
        result = save_entry(milestone_store, date(2024, 3, 1), 69.0, 0, NOW)
        assert result.unlocked.threshold_weight == 70.0
        assert _unlocked_thresholds(milestone_store) == [70.0]

    def test_carried_days_do_not_trigger_extra_unlocks(self, milestone_store) -> None:
        save_entry(milestone_store, date(2024, 3, 1), 79.0, 0, NOW)
        result = save_entry(milestone_store, date(2024, 3, 10), 78.5, 0, NOW)

        assert len(result.carried) == 8
        # 80 went on the first save; nothing new is reachable at 78.5
        assert result.unlocked is None
        assert _unlocked_thresholds(milestone_store) == [80.0]
