from .timezone import UTC, utc_now, ensure_utc

__all__ = ["UTC", "utc_now", "ensure_utc"]
