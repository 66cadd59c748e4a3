"""
In-memory feature store.

For development and testing. Data is lost on restart.
"""

import asyncio
from typing import Any, Iterable

from ...utils.timezone import utc_now
from ..interfaces import (
    FeatureEntry,
    FeatureStore,
    MISSING,
    ScopeKey,
    StoredFeature,
)


class MemoryFeatureStore(FeatureStore):
    """
    In-memory feature value storage.

    Useful for:
    - Development without database
    - Unit testing
    - Ephemeral deployments
    """

    name = "memory"

    def __init__(self):
        self._records: dict[tuple[str, ScopeKey], StoredFeature] = {}
        self._lock = asyncio.Lock()

    # ============================================================
    # READS
    # ============================================================

    async def get(self, feature: str, scope: ScopeKey) -> Any:
        """Get the stored value, or MISSING."""
        record = self._records.get((feature, scope))
        if record is None:
            return MISSING
        return record.value

    async def get_many(self, features: list[str], scope: ScopeKey) -> dict[str, Any]:
        """Get stored values for several features in one scope."""
        result = {}
        for feature in features:
            record = self._records.get((feature, scope))
            if record is not None:
                result[feature] = record.value
        return result

    async def feature_names(self) -> list[str]:
        """Sorted distinct feature names with stored values."""
        return sorted({feature for feature, _ in self._records})

    async def all_for(self, feature: str) -> list[StoredFeature]:
        """All stored records for a feature, ordered by scope."""
        records = [r for (f, _), r in self._records.items() if f == feature]
        return sorted(records, key=lambda r: r.scope)

    # ============================================================
    # WRITES
    # ============================================================

    async def set(self, feature: str, scope: ScopeKey, value: Any) -> None:
        """Store a value (upsert)."""
        async with self._lock:
            self._write(feature, scope, value)

    async def set_many(self, entries: Iterable[FeatureEntry]) -> None:
        """Store several values."""
        async with self._lock:
            for feature, scope, value in entries:
                self._write(feature, scope, value)

    async def forget(self, feature: str, scope: ScopeKey) -> None:
        """Remove one stored value."""
        async with self._lock:
            self._records.pop((feature, scope), None)

    async def purge(self, feature: str) -> None:
        """Remove a feature's values across all scopes."""
        async with self._lock:
            for key in [k for k in self._records if k[0] == feature]:
                del self._records[key]

    async def purge_all(self) -> None:
        """Remove every stored value."""
        async with self._lock:
            self._records.clear()

    def _write(self, feature: str, scope: ScopeKey, value: Any) -> None:
        now = utc_now()
        existing = self._records.get((feature, scope))
        self._records[(feature, scope)] = StoredFeature(
            feature=feature,
            scope=scope,
            value=value,
            created_at=existing.created_at if existing else now,
            updated_at=now,
        )

    # ============================================================
    # TEST HELPERS
    # ============================================================

    def clear(self) -> None:
        """Clear all data. Useful for testing."""
        self._records.clear()

    def seed(self, entries: Iterable[FeatureEntry]) -> None:
        """Seed with stored values. Useful for testing."""
        for feature, scope, value in entries:
            self._write(feature, scope, value)
