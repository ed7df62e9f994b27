"""UTC time helpers.

Timestamps are stored as naive UTC so SQLite (tests, local dev) and
PostgreSQL compare them the same way.
"""
from __future__ import annotations

from datetime import date, datetime, time, timezone
from typing import Optional

from .domain_errors import invalid


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def as_naive_utc(dt: Optional[datetime]) -> Optional[datetime]:
    if dt is None:
        return None
    if dt.tzinfo is None or dt.tzinfo.utcoffset(dt) is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def parse_iso_datetime(value: Optional[str], *, field: str = "date") -> Optional[datetime]:
    """
    Parse an ISO-8601 date or datetime string and normalize to UTC-naive datetime.

    - None / "" -> None
    - "YYYY-MM-DD" -> midnight of that day
    - "...Z" or "...+/-HH:MM" is converted to UTC and tzinfo is stripped
    """
    if value is None:
        return None
    s = value.strip()
    if not s:
        return None
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(s)
    except ValueError as error:
        raise invalid("INVALID_DATE", f"Invalid {field}: {value}") from error
    return as_naive_utc(dt)


def start_of_month(dt: datetime) -> datetime:
    return datetime.combine(date(dt.year, dt.month, 1), time.min)


def end_of_day(dt: datetime) -> datetime:
    return datetime.combine(dt.date(), time.max)
