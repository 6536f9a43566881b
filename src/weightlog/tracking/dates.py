"""Calendar-day arithmetic.

All gap detection and interpolation works on whole calendar days expressed as
integers (days since 1970-01-01). Nothing here looks at wall-clock time, so
time-of-day and daylight-saving transitions cannot shift a day count.
"""

from __future__ import annotations

from datetime import date, timedelta

from weightlog.tracking.errors import ValidationError

EPOCH = date(1970, 1, 1)


def day_number(d: date) -> int:
    """Return the number of calendar days between the epoch and ``d``."""
    return d.toordinal() - EPOCH.toordinal()


def from_day_number(n: int) -> date:
    """Inverse of :func:`day_number`."""
    return EPOCH + timedelta(days=n)


def days_between(start: date, end: date) -> int:
    """Whole calendar days from ``start`` to ``end`` (negative if end is earlier)."""
    return day_number(end) - day_number(start)


def dates_strictly_between(start: date, end: date) -> list[date]:
    """Dates after ``start`` and before ``end``, ascending.

    Example:
        >>> dates_strictly_between(date(2024, 3, 1), date(2024, 3, 4))
        [datetime.date(2024, 3, 2), datetime.date(2024, 3, 3)]
    """
    first = day_number(start) + 1
    last = day_number(end)
    return [from_day_number(n) for n in range(first, last)]


def parse_date(value: str) -> date:
    """Parse a ``YYYY-MM-DD`` string, raising ValidationError on bad input."""
    try:
        return date.fromisoformat(value.strip())
    except ValueError as e:
        raise ValidationError(f"Invalid date '{value}', expected YYYY-MM-DD") from e
