from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """
    Serializes datetime to ISO-8601 with trailing 'Z'.
    If dt is naive, it is treated as UTC.
    """
    if dt is None:
        return None
    dt_utc = _as_utc(dt).replace(microsecond=0)
    return dt_utc.isoformat().replace("+00:00", "Z")


def to_utc_millis_z(dt: Optional[datetime]) -> Optional[str]:
    """
    ISO-8601 with millisecond precision and trailing 'Z'
    (e.g. 2025-01-20T09:15:00.000Z). Used by the CSV exports.
    """
    if dt is None:
        return None
    dt_utc = _as_utc(dt)
    return dt_utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt_utc.microsecond // 1000:03d}Z"


def start_of_day(dt: datetime) -> datetime:
    return dt.replace(hour=0, minute=0, second=0, microsecond=0)


def range_start(date_range: str, now: datetime) -> Optional[datetime]:
    """
    Lower bound for the dashboard date filters.

    - "today" -> midnight of `now`
    - "week"  -> 7 days before `now`
    - "month" -> same day of the previous month (clamped to month length)
    - anything else -> None (no filter)
    """
    if date_range == "today":
        return start_of_day(now)
    if date_range == "week":
        return now - timedelta(days=7)
    if date_range == "month":
        year, month = (now.year, now.month - 1) if now.month > 1 else (now.year - 1, 12)
        day = now.day
        while True:
            try:
                return now.replace(year=year, month=month, day=day)
            except ValueError:
                day -= 1
    return None
