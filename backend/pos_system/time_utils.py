from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """
    Serializes datetime to ISO-8601 with trailing 'Z'.
    If dt is naive, it is treated as UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt_utc = dt.astimezone(timezone.utc).replace(microsecond=0)
    return dt_utc.isoformat().replace("+00:00", "Z")


def local_day_bounds(tz_name: str, now: Optional[datetime] = None) -> tuple[datetime, datetime]:
    """
    Return the [start, end) UTC-naive range of the current calendar day
    in the given IANA timezone.

    `now` is a UTC-naive instant; defaults to utcnow().
    """
    tz = ZoneInfo(tz_name)
    now = now or utcnow()
    local_now = now.replace(tzinfo=timezone.utc).astimezone(tz)
    local_start = local_now.replace(hour=0, minute=0, second=0, microsecond=0)
    # Recompute the end from the next calendar date so DST days keep their real length
    next_day = (local_start + timedelta(days=1)).date()
    local_end = datetime(next_day.year, next_day.month, next_day.day, tzinfo=tz)

    start = local_start.astimezone(timezone.utc).replace(tzinfo=None)
    end = local_end.astimezone(timezone.utc).replace(tzinfo=None)
    return start, end
