"""
Timezone utilities.

Stored timestamps are always UTC. Some backends (SQLite) hand back naive
datetimes; normalize them with ensure_utc before exposing them.
"""

from datetime import datetime, timezone

UTC = timezone.utc


def utc_now() -> datetime:
    """
    Get current time in UTC (timezone-aware).

    Always use this instead of datetime.utcnow() which returns
    naive datetime.
    """
    return datetime.now(UTC)


def ensure_utc(dt: datetime) -> datetime:
    """Treat naive datetimes as UTC; convert aware ones to UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)
