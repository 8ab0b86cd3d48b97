from __future__ import annotations

"""Time utilities: utcnow and calendar-day keys for daily quotas."""

from datetime import datetime, timedelta, timezone


def utcnow() -> datetime:
    """Return current UTC datetime (timezone-aware)."""

    return datetime.now(timezone.utc)


def day_key(now: datetime, offset_minutes: int = 0) -> str:
    """Return the calendar date of `now` shifted by offset_minutes, as YYYY-MM-DD."""

    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    local = now.astimezone(timezone(timedelta(minutes=offset_minutes)))
    return local.date().isoformat()
