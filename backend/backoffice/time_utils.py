from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def today() -> date:
    return datetime.now().date()


def parse_iso_date(value: Optional[str]) -> Optional[date]:
    """
    Parse a 'YYYY-MM-DD' string (or a full ISO datetime) into a date.

    - None / "" -> None
    - "2026-03-10T08:30" -> date(2026, 3, 10)
    """
    if value is None:
        return None
    s = value.strip()
    if not s:
        return None
    if "T" in s or " " in s:
        if s.endswith("Z"):
            s = s[:-1] + "+00:00"
        return datetime.fromisoformat(s).date()
    return date.fromisoformat(s)


def day_bounds(on_date: date) -> tuple[datetime, datetime]:
    """Half-open [start, end) datetime window covering one calendar day."""
    start = datetime.combine(on_date, time.min)
    return start, start + timedelta(days=1)


def week_bounds(on_date: date) -> tuple[date, date]:
    """Monday..Sunday (inclusive) of the week containing on_date."""
    week_start = on_date - timedelta(days=on_date.weekday())
    return week_start, week_start + timedelta(days=6)


def to_iso_date(value) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, datetime):
        value = value.date()
    return value.isoformat()


def to_iso_datetime(dt: Optional[datetime]) -> Optional[str]:
    if dt is None:
        return None
    return dt.replace(microsecond=0).isoformat()
