"""Calendar helpers used by the engine.

All day arithmetic goes through these functions so the analysis code does not
depend on weekday conventions of any particular library.
"""
from __future__ import annotations

from datetime import date, timedelta


def add_days(day: date, days: int) -> date:
    """Return ``day`` shifted by ``days`` (negative values go backwards)."""
    return day + timedelta(days=days)


def days_between(start: date, end: date) -> int:
    """Signed number of whole days from ``start`` to ``end``."""
    return (end - start).days


def week_start(day: date, first_weekday: int = 0) -> date:
    """
    Return the first day of the week containing ``day``.

    Args:
        day: Any date
        first_weekday: 0 = Monday ... 6 = Sunday

    Example:
        >>> week_start(date(2024, 3, 14))  # Thursday
        datetime.date(2024, 3, 11)
        >>> week_start(date(2024, 3, 14), first_weekday=6)
        datetime.date(2024, 3, 10)
    """
    offset = (day.weekday() - first_weekday) % 7
    return day - timedelta(days=offset)


def is_future(day: date, as_of: date) -> bool:
    """Plan workouts strictly after ``as_of`` are the only ones the engine rewrites."""
    return day > as_of


def within_last_days(day: date, as_of: date, days: int) -> bool:
    """True when ``day`` lies in the ``days``-long window ending on ``as_of`` (inclusive)."""
    return 0 <= days_between(day, as_of) < days


def within_next_days(day: date, as_of: date, days: int) -> bool:
    """True when ``as_of < day <= as_of + days``."""
    return 0 < days_between(as_of, day) <= days
