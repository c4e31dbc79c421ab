# src/duewatch/tasks/countdown.py

from __future__ import annotations

MS_PER_MINUTE = 60_000
MS_PER_HOUR = 60 * MS_PER_MINUTE
MS_PER_DAY = 24 * MS_PER_HOUR

EXPIRED_LABEL = "expired"


def _whole(diff_ms: int, unit_ms: int) -> int:
    # Truncate toward zero so -90 minutes is "1 hour", not "2 hours".
    q = abs(diff_ms) // unit_ms
    return q if diff_ms >= 0 else -q


def _label(n: int, unit: str) -> str:
    count = abs(n)
    noun = unit if count == 1 else f"{unit}s"
    if n > 0:
        return f"in {count} {noun}"
    return f"overdue by {count} {noun}"


def format_countdown(due_date: int | None, now: int) -> str | None:
    """
    Relative-time label for a due date, using the coarsest non-zero unit.

    >>> format_countdown(3 * MS_PER_DAY + 5, 0)
    'in 3 days'
    >>> format_countdown(0, 2 * MS_PER_HOUR)
    'overdue by 2 hours'
    >>> format_countdown(30_000, 0)
    'expired'
    """
    if due_date is None:
        return None

    diff = due_date - now
    for unit_ms, unit in ((MS_PER_DAY, "day"), (MS_PER_HOUR, "hour"), (MS_PER_MINUTE, "minute")):
        n = _whole(diff, unit_ms)
        if n != 0:
            return _label(n, unit)
    return EXPIRED_LABEL
