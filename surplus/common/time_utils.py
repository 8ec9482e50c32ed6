from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Normalize a datetime to aware UTC.

    - SQLite hands back naive values; they were stored as UTC, so attach UTC.
    - Aware values from clients are converted.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def within_window(now: datetime, start: datetime, end: datetime) -> bool:
    return as_utc(start) <= as_utc(now) <= as_utc(end)
