"""
Day-granularity date helpers.

Every comparison made by the reconciliation engine happens on calendar days
in the fleet's operating timezone.  Range starts are normalised to 00:00:00
and range ends to 23:59:59.999999 of their day, so a one-day range
``[d, d]`` is a full day wide.

Inputs may be ``date``, ``datetime`` or ISO-8601 strings (``YYYY-MM-DD`` or a
full timestamp).  Anything else parses to ``None``, which callers treat as
"no transition due" rather than guessing.
"""

from __future__ import annotations

from datetime import date, datetime, time
from typing import Optional
from zoneinfo import ZoneInfo


def to_day(value, tz: Optional[ZoneInfo] = None) -> Optional[date]:
    """Return the calendar day of *value*, or ``None`` if it can't be parsed.

    Aware datetimes are converted to *tz* (when given) before the day is
    taken, so a UTC-midnight timestamp lands on the operator's local day.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        if tz is not None and value.tzinfo is not None:
            value = value.astimezone(tz)
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return date.fromisoformat(text)
        except ValueError:
            pass
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            return None
        return to_day(parsed, tz)
    return None


def day_start(value) -> Optional[datetime]:
    day = to_day(value)
    return datetime.combine(day, time.min) if day is not None else None


def day_end(value) -> Optional[datetime]:
    day = to_day(value)
    return datetime.combine(day, time.max) if day is not None else None


def local_today(tz_name: str) -> date:
    """Current calendar day in the fleet's operating timezone."""
    return datetime.now(ZoneInfo(tz_name)).date()


def days_between(a, b) -> int:
    """Absolute number of whole days between two day-like values."""
    first, second = to_day(a), to_day(b)
    if first is None or second is None:
        raise ValueError(f"Cannot compute days between {a!r} and {b!r}")
    return abs((second - first).days)
