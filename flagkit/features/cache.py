"""
In-process resolution cache.

Memoizes (feature, scope) -> value so a resolved flag is not resolved or
written twice. No TTL and no eviction: entries live until they are
deleted, swept by feature, or the whole cache is cleared.
"""

from __future__ import annotations

import threading
from typing import Any

from .interfaces import MISSING


class ResolutionCache:
    """
    Lock-guarded dict that tells "absent" apart from falsy values.

    Usage:
        cache = ResolutionCache()
        cache.set("beta\\0User:1", False)
        value, found = cache.get("beta\\0User:1")   # (False, True)
    """

    def __init__(self):
        self._store: dict[str, Any] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> tuple[Any, bool]:
        with self._lock:
            value = self._store.get(key, MISSING)
        if value is MISSING:
            return None, False
        return value, True

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._store[key] = value

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._store.pop(key, MISSING) is not MISSING

    def delete_by_prefix(self, feature: str) -> int:
        """Drop every entry for a feature. Returns count removed."""
        prefix = f"{feature}\0"
        with self._lock:
            matching = [k for k in self._store if k.startswith(prefix)]
            for key in matching:
                del self._store[key]
        return len(matching)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._store

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)
