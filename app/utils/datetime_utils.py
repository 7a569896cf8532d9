# app/utils/datetime_utils.py
"""
Timezone helpers shared by services and schemas.

All timestamps are handled as timezone-aware UTC. Some drivers (SQLite) hand
back naive datetimes for ``DateTime(timezone=True)`` columns, so values read
from the database go through ``ensure_utc`` before comparison.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def is_expired(expires_at: datetime, now: Optional[datetime] = None) -> bool:
    """A post stays mutable up to and including its expiry instant."""
    now = now or utcnow()
    return ensure_utc(expires_at) < now


def days_from_now(days: int, now: Optional[datetime] = None) -> datetime:
    return (now or utcnow()) + timedelta(days=days)
