"""SQLite database schema definitions."""

SCHEMA_SQL = """
-- Daily entries: one row per local calendar date
CREATE TABLE IF NOT EXISTS entries (
    entry_id INTEGER PRIMARY KEY AUTOINCREMENT,
    entry_date DATE NOT NULL UNIQUE,
    weight_kg REAL NOT NULL CHECK(weight_kg > 0),
    workout_minutes INTEGER NOT NULL DEFAULT 0 CHECK(workout_minutes >= 0),
    entry_type TEXT NOT NULL DEFAULT 'manual' CHECK(entry_type IN ('manual', 'carry')),
    created_at_utc TIMESTAMP NOT NULL,
    updated_at_utc TIMESTAMP NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_entries_date ON entries(entry_date);

-- Reward milestones; only unlocked_at_utc changes after seeding
CREATE TABLE IF NOT EXISTS milestones (
    milestone_id INTEGER PRIMARY KEY AUTOINCREMENT,
    order_idx INTEGER NOT NULL,
    threshold_kg REAL NOT NULL,
    title TEXT NOT NULL,
    message TEXT NOT NULL,
    unlocked_at_utc TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_milestones_pending ON milestones(unlocked_at_utc, threshold_kg);

-- Goal trajectory (single active row, replaced wholesale)
CREATE TABLE IF NOT EXISTS weight_goals (
    goal_id INTEGER PRIMARY KEY AUTOINCREMENT,
    start_date DATE NOT NULL,
    start_weight_kg REAL NOT NULL,
    target_date DATE NOT NULL,
    target_weight_kg REAL NOT NULL,
    created_at_utc TIMESTAMP NOT NULL,
    updated_at_utc TIMESTAMP NOT NULL,
    CHECK(target_date > start_date)
);

-- Small key/value store (reminder time, ...)
CREATE TABLE IF NOT EXISTS settings (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);

INSERT OR IGNORE INTO settings (key, value) VALUES ('reminder_time', '20:30');
"""


def get_schema_sql() -> str:
    """Return the complete schema SQL."""
    return SCHEMA_SQL
