"""CLI interface using Typer."""

from __future__ import annotations

import json
from contextlib import contextmanager
from datetime import date
from pathlib import Path
from typing import Generator, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from weightlog.app_logging import configure_logging
from weightlog.config import get_settings
from weightlog.db import get_db
from weightlog.tracking.dates import parse_date
from weightlog.tracking.errors import TrackerError
from weightlog.tracking.milestones import seed_milestones
from weightlog.tracking.models import EntryKind
from weightlog.tracking.report import build_chart, format_progress, summarize_progress
from weightlog.tracking.service import (
    get_reminder_time,
    save_entry,
    set_goal,
    set_reminder_time,
)
from weightlog.tracking.smoothing import latest_average
from weightlog.tracking.store import TrackerStore

app = typer.Typer(
    help="Daily weight tracker with carry-forward, trends, milestones and goals",
    no_args_is_help=True,
)
console = Console()

# Subcommand groups
goal_app = typer.Typer(help="Set and show the goal trajectory")
milestones_app = typer.Typer(help="Reward milestones")
reminder_app = typer.Typer(help="Daily reminder time")
config_app = typer.Typer(help="Manage configuration file")

app.add_typer(goal_app, name="goal")
app.add_typer(milestones_app, name="milestones")
app.add_typer(reminder_app, name="reminder")
app.add_typer(config_app, name="config")


# ============================================================================
# Helpers
# ============================================================================


def output_json(response: dict, file=None) -> None:
    """Output JSON response to stdout or file."""
    json_str = json.dumps(response, indent=2)
    if file:
        file.write(json_str)
    else:
        print(json_str)


def fail(command: str, error: TrackerError, json_output: bool) -> None:
    """Report a tracking failure as a structured result and exit 1."""
    if json_output:
        output_json({
            "success": False,
            "command": command,
            "errors": [error.message],
            "error_kind": error.kind,
        })
    else:
        console.print(f"[red]{error.kind}:[/red] {error.message}")
    raise typer.Exit(1)


def resolve_date(date_str: Optional[str]) -> date:
    """Parse --date, defaulting to today's local date."""
    return parse_date(date_str) if date_str else date.today()


@contextmanager
def open_store() -> Generator[TrackerStore, None, None]:
    """Open the configured database with schema and milestones in place."""
    settings = get_settings()
    db = get_db()
    db.initialize_schema()
    with db.get_connection() as conn:
        store = TrackerStore(conn)
        if settings.tracking.seed_milestones:
            seed_milestones(store)
        yield store


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at INFO level"),
) -> None:
    """Configure logging before any command runs."""
    configure_logging("INFO" if verbose else get_settings().logging.level)


# ============================================================================
# Setup Commands
# ============================================================================


@app.command()
def init(
    no_seed: bool = typer.Option(False, "--no-seed", help="Skip seeding default milestones"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Create the database and seed the default milestones."""
    try:
        db = get_db()
        db.initialize_schema()
        seeded = 0
        if not no_seed:
            with db.get_connection() as conn:
                seeded = seed_milestones(TrackerStore(conn))
    except TrackerError as e:
        fail("init", e, json_output)
        return

    if json_output:
        output_json({
            "success": True,
            "command": "init",
            "data": {"db_path": str(db.db_path), "milestones_seeded": seeded},
            "human_summary": f"Database ready at {db.db_path}",
        })
    else:
        console.print(f"[green]Database ready:[/green] {db.db_path}")
        if seeded:
            console.print(f"Seeded {seeded} milestones")


@app.command()
def backup(
    directory: Optional[Path] = typer.Option(
        None, "--dir", help="Backup directory (default from config)"
    ),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Copy the database file to a timestamped backup."""
    target_dir = directory or get_settings().backup.directory
    try:
        target = get_db().backup(target_dir)
    except TrackerError as e:
        fail("backup", e, json_output)
        return
    except OSError as e:
        if json_output:
            output_json({"success": False, "command": "backup", "errors": [str(e)]})
        else:
            console.print(f"[red]Backup failed:[/red] {e}")
        raise typer.Exit(1)

    if json_output:
        output_json({"success": True, "command": "backup", "data": {"path": str(target)}})
    else:
        console.print(f"[green]Backed up to[/green] {target}")


# ============================================================================
# Entry Commands
# ============================================================================


@app.command("log")
def log_entry(
    weight: float = typer.Argument(..., help="Weight in kg"),
    workout: int = typer.Option(0, "--workout", "-w", help="Workout minutes"),
    date_str: Optional[str] = typer.Option(
        None, "--date", "-d", help="Date (YYYY-MM-DD, default: today)"
    ),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Record a day's weight and workout (skipped days are carried forward)."""
    try:
        entry_date = resolve_date(date_str)
        with open_store() as store:
            result = save_entry(store, entry_date, weight, workout)
    except TrackerError as e:
        fail("log", e, json_output)
        return

    unlocked = result.unlocked
    if json_output:
        output_json({
            "success": True,
            "command": "log",
            "data": {
                "status": result.status.value,
                "date": result.entry.date.isoformat(),
                "weight_kg": result.entry.weight,
                "workout_minutes": result.entry.workout_minutes,
                "carried_dates": [d.isoformat() for d in result.carried_dates],
                "unlocked": (
                    {
                        "title": unlocked.title,
                        "threshold_kg": unlocked.threshold_weight,
                        "message": unlocked.message,
                    }
                    if unlocked
                    else None
                ),
            },
            "human_summary": f"Entry {result.status.value}: {result.entry.weight:.1f} kg on {result.entry.date}",
        })
        return

    console.print(
        f"[green]Entry {result.status.value}:[/green] {result.entry.weight:.1f} kg, "
        f"{result.entry.workout_minutes} min on {result.entry.date}"
    )
    if result.carried:
        console.print(
            f"[blue]Carried forward[/blue] {result.carried[0].weight:.1f} kg over "
            f"{len(result.carried)} skipped day(s)"
        )
    if unlocked:
        console.print(
            Panel(
                unlocked.message,
                title=f"{unlocked.title} unlocked ({unlocked.threshold_weight:.1f} kg)",
                border_style="magenta",
            )
        )


@app.command()
def entries(
    limit: int = typer.Option(30, "--limit", "-n", min=1, help="Number of entries to show"),
    ascending: bool = typer.Option(False, "--asc", help="Oldest first (all entries)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """List entries, newest first (or oldest first with --asc)."""
    try:
        with open_store() as store:
            if ascending:
                rows = store.list_entries_ascending()
            else:
                rows = store.list_entries_descending(limit=limit)
    except TrackerError as e:
        fail("entries", e, json_output)
        return

    if json_output:
        output_json({
            "success": True,
            "command": "entries",
            "data": {
                "entries": [
                    {
                        "date": e.date.isoformat(),
                        "weight_kg": e.weight,
                        "workout_minutes": e.workout_minutes,
                        "kind": e.kind.value,
                    }
                    for e in rows
                ]
            },
        })
        return

    if not rows:
        console.print("No entries found")
        return

    table = Table(title="Entries (oldest first)" if ascending else f"Entries (last {limit})")
    table.add_column("Date", style="cyan")
    table.add_column("Weight", justify="right")
    table.add_column("Workout", justify="right")
    table.add_column("Type")
    for e in rows:
        table.add_row(
            e.date.isoformat(),
            f"{e.weight:.1f}",
            str(e.workout_minutes),
            "[dim]carry[/dim]" if e.kind == EntryKind.CARRY else "manual",
        )
    console.print(table)


@app.command()
def trend(
    window: Optional[list[int]] = typer.Option(
        None, "--window", "-w", help="SMA window in days (repeatable)"
    ),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Show the latest simple moving average for each window."""
    windows = window or get_settings().tracking.sma_windows
    try:
        with open_store() as store:
            weights = [e.weight for e in store.list_entries_ascending()]
            averages = {w: latest_average(weights, w) for w in windows}
    except TrackerError as e:
        fail("trend", e, json_output)
        return

    if json_output:
        output_json({
            "success": True,
            "command": "trend",
            "data": {"samples": len(weights), "averages": {str(w): v for w, v in averages.items()}},
        })
        return

    table = Table(title=f"Moving averages ({len(weights)} days)")
    table.add_column("Window", style="cyan")
    table.add_column("SMA (kg)", justify="right", style="blue")
    for w, value in averages.items():
        table.add_row(f"{w}d", f"{value:.2f}" if value is not None else "[dim]not enough data[/dim]")
    console.print(table)


@app.command()
def chart(
    window: Optional[list[int]] = typer.Option(
        None, "--window", "-w", help="SMA window in days (repeatable)"
    ),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Show the chart series: weights, moving averages and plan line."""
    windows = window or get_settings().tracking.sma_windows
    try:
        with open_store() as store:
            series = build_chart(store, windows)
    except TrackerError as e:
        fail("chart", e, json_output)
        return

    if json_output:
        output_json({"success": True, "command": "chart", "data": series.to_dict()})
        return

    def cell(value: Optional[float]) -> str:
        return f"{value:.2f}" if value is not None else ""

    table = Table(title="Weight chart")
    table.add_column("Date", style="cyan")
    table.add_column("Weight", justify="right")
    table.add_column("Workout", justify="right")
    for w in windows:
        table.add_column(f"SMA {w}", justify="right", style="blue")
    table.add_column("Plan", justify="right", style="green")

    for i, label in enumerate(series.labels):
        weight_cell = f"{series.weights[i]:.1f}"
        if series.kinds[i] == EntryKind.CARRY:
            weight_cell = f"[dim]{weight_cell}[/dim]"
        table.add_row(
            label.isoformat(),
            weight_cell,
            str(series.workout_minutes[i]),
            *[cell(series.averages[w][i]) for w in windows],
            cell(series.plan[i]),
        )
    console.print(table)


@app.command()
def status(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Show progress against goal and milestones."""
    try:
        with open_store() as store:
            summary = summarize_progress(store)
    except TrackerError as e:
        fail("status", e, json_output)
        return

    if json_output:
        goal = summary.goal
        output_json({
            "success": True,
            "command": "status",
            "data": {
                "entry_count": summary.entry_count,
                "latest_date": summary.latest_date.isoformat() if summary.latest_date else None,
                "latest_weight_kg": summary.latest_weight,
                "change_since_start_kg": summary.change_since_start,
                "goal": (
                    {
                        "start_date": goal.start_date.isoformat(),
                        "start_weight_kg": goal.start_weight,
                        "target_date": goal.target_date.isoformat(),
                        "target_weight_kg": goal.target_weight,
                    }
                    if goal
                    else None
                ),
                "planned_kg": summary.planned_today,
                "delta_vs_plan_kg": summary.delta_vs_plan,
                "milestones_unlocked": len(summary.unlocked),
                "milestones_pending": summary.pending_count,
            },
        })
    else:
        console.print(Panel(format_progress(summary), title="Progress"))


# ============================================================================
# Goal Commands
# ============================================================================


@goal_app.command("set")
def goal_set(
    target_weight: float = typer.Argument(..., help="Target weight in kg"),
    target_date_str: str = typer.Option(..., "--by", help="Target date (YYYY-MM-DD)"),
    start_date_str: Optional[str] = typer.Option(
        None, "--start", help="Start date (must have an entry; default: latest entry)"
    ),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Set the goal trajectory (replaces any existing goal)."""
    try:
        target_date = parse_date(target_date_str)
        start_date = parse_date(start_date_str) if start_date_str else None
        with open_store() as store:
            goal = set_goal(store, target_date, target_weight, start_date=start_date)
    except TrackerError as e:
        fail("goal set", e, json_output)
        return

    if json_output:
        output_json({
            "success": True,
            "command": "goal set",
            "data": {
                "start_date": goal.start_date.isoformat(),
                "start_weight_kg": goal.start_weight,
                "target_date": goal.target_date.isoformat(),
                "target_weight_kg": goal.target_weight,
            },
        })
    else:
        console.print(
            f"[green]Goal set:[/green] {goal.start_weight:.1f} kg on {goal.start_date} -> "
            f"{goal.target_weight:.1f} kg by {goal.target_date}"
        )


@goal_app.command("show")
def goal_show(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Show the active goal trajectory."""
    try:
        with open_store() as store:
            goal = store.get_active_goal()
    except TrackerError as e:
        fail("goal show", e, json_output)
        return

    if json_output:
        output_json({
            "success": True,
            "command": "goal show",
            "data": {
                "goal": (
                    {
                        "start_date": goal.start_date.isoformat(),
                        "start_weight_kg": goal.start_weight,
                        "target_date": goal.target_date.isoformat(),
                        "target_weight_kg": goal.target_weight,
                    }
                    if goal
                    else None
                )
            },
        })
    elif goal is None:
        console.print("No goal set")
    else:
        console.print(
            f"{goal.start_weight:.1f} kg on {goal.start_date} -> "
            f"{goal.target_weight:.1f} kg by {goal.target_date}"
        )


# ============================================================================
# Milestone Commands
# ============================================================================


@milestones_app.command("list")
def milestones_list(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """List milestones and their unlock state."""
    try:
        with open_store() as store:
            milestones = store.list_milestones()
    except TrackerError as e:
        fail("milestones list", e, json_output)
        return

    if json_output:
        output_json({
            "success": True,
            "command": "milestones list",
            "data": {
                "milestones": [
                    {
                        "order": m.order,
                        "title": m.title,
                        "threshold_kg": m.threshold_weight,
                        "unlocked_at": m.unlocked_at.isoformat() if m.unlocked_at else None,
                        "message": m.message if m.is_unlocked else None,
                    }
                    for m in milestones
                ]
            },
        })
        return

    table = Table(title="Milestones")
    table.add_column("#", justify="right")
    table.add_column("Title", style="cyan")
    table.add_column("Threshold", justify="right")
    table.add_column("Unlocked")
    table.add_column("Reward")
    for m in milestones:
        table.add_row(
            str(m.order),
            m.title,
            f"{m.threshold_weight:.1f}",
            m.unlocked_at.strftime("%Y-%m-%d") if m.unlocked_at else "[dim]locked[/dim]",
            m.message if m.is_unlocked else "[dim]???[/dim]",
        )
    console.print(table)


# ============================================================================
# Reminder & Config Commands
# ============================================================================


@reminder_app.command("show")
def reminder_show(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Show the daily reminder time."""
    try:
        with open_store() as store:
            value = get_reminder_time(store)
    except TrackerError as e:
        fail("reminder show", e, json_output)
        return

    if json_output:
        output_json({"success": True, "command": "reminder show", "data": {"reminder_time": value}})
    else:
        console.print(f"Reminder time: [cyan]{value}[/cyan]")


@reminder_app.command("set")
def reminder_set(
    value: str = typer.Argument(..., help="Time of day, HH:MM (24-hour)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Set the daily reminder time."""
    try:
        with open_store() as store:
            stored = set_reminder_time(store, value)
    except TrackerError as e:
        fail("reminder set", e, json_output)
        return

    if json_output:
        output_json({"success": True, "command": "reminder set", "data": {"reminder_time": stored}})
    else:
        console.print(f"[green]Reminder time set to[/green] {stored}")


@config_app.command("init")
def config_init(
    path: Optional[Path] = typer.Option(None, "--path", help="Where to write config.yaml"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Write the current settings to a config file."""
    settings = get_settings()
    try:
        settings.save(path)
    except OSError as e:
        if json_output:
            output_json({"success": False, "command": "config init", "errors": [str(e)]})
        else:
            console.print(f"[red]Could not write config:[/red] {e}")
        raise typer.Exit(1)

    if json_output:
        output_json({
            "success": True,
            "command": "config init",
            "data": {"path": str(path) if path else None, "settings": settings.to_dict()},
        })
    else:
        console.print("[green]Configuration written[/green]")


@config_app.command("show")
def config_show(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Show the effective settings."""
    settings = get_settings()
    if json_output:
        output_json({"success": True, "command": "config show", "data": settings.to_dict()})
        return

    console.print(f"Database:    {settings.database.path}")
    console.print(f"SMA windows: {', '.join(str(w) for w in settings.tracking.sma_windows)}")
    console.print(f"Milestones:  {'seeded' if settings.tracking.seed_milestones else 'not seeded'}")
    console.print(f"Log level:   {settings.logging.level}")
    console.print(f"Backups:     {settings.backup.directory}")


if __name__ == "__main__":
    app()
