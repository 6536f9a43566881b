"""Chart series and progress summaries for the presentation layer."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Optional, Sequence

from weightlog.tracking.models import EntryKind, GoalTrajectory, Milestone
from weightlog.tracking.smoothing import DEFAULT_WINDOWS, sma
from weightlog.tracking.store import TrackerStore
from weightlog.tracking.trajectory import planned_weight, project


@dataclass
class ChartSeries:
    """Everything a chart needs, aligned to ``labels``."""

    labels: list[date]
    weights: list[float]
    workout_minutes: list[int]
    kinds: list[EntryKind]
    averages: dict[int, list[Optional[float]]] = field(default_factory=dict)
    plan: list[Optional[float]] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "labels": [d.isoformat() for d in self.labels],
            "weights": self.weights,
            "workout_minutes": self.workout_minutes,
            "kinds": [k.value for k in self.kinds],
            "averages": {str(w): values for w, values in self.averages.items()},
            "plan": self.plan,
        }


@dataclass
class ProgressSummary:
    """Snapshot of where things stand."""

    entry_count: int
    manual_count: int
    first_date: Optional[date]
    latest_date: Optional[date]
    latest_weight: Optional[float]
    change_since_start: Optional[float]  # kg, negative = lost
    goal: Optional[GoalTrajectory]
    planned_today: Optional[float]
    delta_vs_plan: Optional[float]  # kg, negative = ahead of plan
    unlocked: list[Milestone]
    next_milestone: Optional[Milestone]
    pending_count: int


def build_chart(
    store: TrackerStore,
    windows: Sequence[int] = DEFAULT_WINDOWS,
    today: Optional[date] = None,
) -> ChartSeries:
    """Pull the ascending series and derive SMA lines and the plan line."""
    entries = store.list_entries_ascending()
    labels = [e.date for e in entries]
    weights = [e.weight for e in entries]

    return ChartSeries(
        labels=labels,
        weights=weights,
        workout_minutes=[e.workout_minutes for e in entries],
        kinds=[e.kind for e in entries],
        averages={w: sma(weights, w) for w in windows},
        plan=project(labels, store.get_active_goal(), today),
    )


def summarize_progress(store: TrackerStore, today: Optional[date] = None) -> ProgressSummary:
    """Build a progress snapshot from the store."""
    cutoff = today or date.today()
    entries = store.list_entries_ascending()
    goal = store.get_active_goal()
    milestones = store.list_milestones()

    first = entries[0] if entries else None
    latest = entries[-1] if entries else None

    planned_today = None
    delta_vs_plan = None
    if goal is not None and latest is not None and goal.target_date > goal.start_date:
        at = min(latest.date, cutoff)
        if at >= goal.start_date:
            planned_today = round(planned_weight(goal, at), 2)
            delta_vs_plan = round(latest.weight - planned_today, 2)

    unlocked = [m for m in milestones if m.is_unlocked]
    pending = sorted(
        (m for m in milestones if not m.is_unlocked),
        key=lambda m: m.threshold_weight,
        reverse=True,
    )
    ahead = [m for m in pending if latest is None or m.threshold_weight < latest.weight]
    next_milestone = ahead[0] if ahead else (pending[0] if pending else None)

    return ProgressSummary(
        entry_count=len(entries),
        manual_count=sum(1 for e in entries if e.kind == EntryKind.MANUAL),
        first_date=first.date if first else None,
        latest_date=latest.date if latest else None,
        latest_weight=latest.weight if latest else None,
        change_since_start=round(latest.weight - first.weight, 1) if first and latest else None,
        goal=goal,
        planned_today=planned_today,
        delta_vs_plan=delta_vs_plan,
        unlocked=unlocked,
        next_milestone=next_milestone,
        pending_count=len(pending),
    )


def format_progress(summary: ProgressSummary) -> str:
    """Format a progress summary as Rich markup."""
    if summary.latest_weight is None:
        return "[yellow]No entries yet.[/yellow]"

    lines = [
        f"[bold]Latest:[/bold] {summary.latest_weight:.1f} kg on {summary.latest_date}",
        f"[bold]Entries:[/bold] {summary.entry_count} "
        f"({summary.manual_count} manual, {summary.entry_count - summary.manual_count} carried)",
        f"[bold]Change since {summary.first_date}:[/bold] {summary.change_since_start:+.1f} kg",
    ]

    if summary.goal is not None:
        g = summary.goal
        lines.append(
            f"[bold]Goal:[/bold] {g.start_weight:.1f} kg ({g.start_date}) -> "
            f"{g.target_weight:.1f} kg ({g.target_date})"
        )
        if summary.planned_today is not None and summary.delta_vs_plan is not None:
            status = "ahead of" if summary.delta_vs_plan <= 0 else "behind"
            lines.append(
                f"[bold]Plan:[/bold] {summary.planned_today:.2f} kg, "
                f"{abs(summary.delta_vs_plan):.2f} kg {status} plan"
            )

    lines.append(
        f"[bold]Milestones:[/bold] {len(summary.unlocked)} unlocked, {summary.pending_count} pending"
    )
    if summary.next_milestone is not None:
        remaining = max(summary.latest_weight - summary.next_milestone.threshold_weight, 0.0)
        lines.append(
            f"[bold]Next:[/bold] {summary.next_milestone.title} at "
            f"{summary.next_milestone.threshold_weight:.1f} kg ({remaining:.1f} kg to go)"
        )
    return "\n".join(lines)
