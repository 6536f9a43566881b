"""Goal trajectory projection (plan line).

The plan line is the straight line from (start_date, start_weight) to
(target_date, target_weight):

    W(d) = start + days(start, d) / days(start, target) × (target - start)

Day counts are whole calendar days. The line is only revealed up to today: it
is a record of plan-vs-actual, not a forecast, so later cells stay empty.
"""

from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from weightlog.tracking.dates import days_between
from weightlog.tracking.models import GoalTrajectory

# Decimal places kept on plan values
PLAN_PRECISION = 2


def planned_weight(goal: GoalTrajectory, at: date) -> float:
    """Linear interpolation of the plan at a single date (unrounded)."""
    span = days_between(goal.start_date, goal.target_date)
    elapsed = days_between(goal.start_date, at)
    return goal.start_weight + (elapsed / span) * (goal.target_weight - goal.start_weight)


def interpolate(
    date_labels: Sequence[date], goal: Optional[GoalTrajectory]
) -> list[Optional[float]]:
    """
    Compute the plan value at every label from the start label onward.

    Returns all None when there is no goal, when the start date is not one
    of the labels, or when ``target_date <= start_date``.
    """
    empty: list[Optional[float]] = [None] * len(date_labels)
    if goal is None or goal.target_date <= goal.start_date:
        return empty

    try:
        start_idx = list(date_labels).index(goal.start_date)
    except ValueError:
        return empty

    values = empty
    for i in range(start_idx, len(date_labels)):
        values[i] = round(planned_weight(goal, date_labels[i]), PLAN_PRECISION)
    return values


def reveal_until(
    date_labels: Sequence[date],
    values: Sequence[Optional[float]],
    today: date,
) -> list[Optional[float]]:
    """Blank out every value whose label is strictly after ``today``."""
    return [v if d <= today else None for d, v in zip(date_labels, values)]


def project(
    date_labels: Sequence[date],
    goal: Optional[GoalTrajectory],
    today: Optional[date] = None,
) -> list[Optional[float]]:
    """
    Time-revealed plan line aligned to ``date_labels``.

    Args:
        date_labels: Chart dates in ascending order
        goal: Active goal, or None
        today: Reveal cutoff (defaults to the local date)

    Returns:
        One value per label; None before the start label, after today, or
        everywhere if the goal is absent or degenerate

    Example:
        >>> goal = GoalTrajectory(None, date(2024, 1, 1), 80.0, date(2024, 1, 11), 70.0)
        >>> labels = [date(2024, 1, d) for d in (1, 6, 11)]
        >>> project(labels, goal, today=date(2024, 1, 6))
        [80.0, 75.0, None]
    """
    cutoff = today or date.today()
    return reveal_until(date_labels, interpolate(date_labels, goal), cutoff)
