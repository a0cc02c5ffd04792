from datetime import date, datetime, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from app.config import settings

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Attach UTC to naive datetimes coming back from the store.

    SQLite drops tzinfo on the way in; every timestamp written by this
    service is UTC, so a naive value is read as UTC.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)

def parse_timestamp(value) -> Optional[datetime]:
    """Parse an ISO-8601 string (or pass through a datetime) into aware UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    return ensure_utc(datetime.fromisoformat(str(value).replace("Z", "+00:00")))

def local_today(now: Optional[datetime] = None) -> date:
    """
    Calendar date of ``now`` in the configured server timezone.

    Event dates are plain calendar dates entered by organisers, so "today"
    is resolved in local time rather than UTC.
    """
    now = ensure_utc(now) or utcnow()
    return now.astimezone(ZoneInfo(settings.timezone)).date()

def days_ago(days: int, now: Optional[datetime] = None) -> datetime:
    return (ensure_utc(now) or utcnow()) - timedelta(days=days)
