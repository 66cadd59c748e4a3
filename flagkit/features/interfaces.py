"""
Feature Flag Interfaces - Core abstractions.

These define the contracts for scopes, resolvers and storage drivers.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Awaitable, Callable, ClassVar, Iterable, NamedTuple, Protocol


ScopeKey = str

# Serialized key for "no scope"
GLOBAL_SCOPE: ScopeKey = "__global__"

# Scope/feature marker carried by feature-wide and global delete events
WILDCARD = "*"


class _Missing:
    """Sentinel for "no stored value" (a stored None is a real value)."""

    _instance: "_Missing | None" = None

    def __new__(cls) -> "_Missing":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


class Scopeable(Protocol):
    """
    Anything a feature can be resolved against.

    Needs an ``id``. The type part of the key defaults to the class
    name; define ``feature_scope()`` to override it.
    """

    id: Any


Resolver = Callable[[ScopeKey], Any | Awaitable[Any]]


class FeatureResolver(ABC):
    """
    Class-based feature definition.

    Registered under ``key`` when set, otherwise under the kebab-cased
    class name (``NewCheckoutExperience`` -> ``new-checkout-experience``).

    Example:
        class NewCheckoutExperience(FeatureResolver):
            async def resolve(self, scope: ScopeKey) -> bool:
                return scope.startswith("Team:")
    """

    key: ClassVar[str | None] = None

    @abstractmethod
    def resolve(self, scope: ScopeKey) -> Any | Awaitable[Any]:
        """Compute the feature value for a serialized scope."""
        pass


@dataclass
class StoredFeature:
    """
    Persisted feature value for one (feature, scope) pair.

    Attributes:
        feature: Feature name
        scope: Serialized scope key
        value: Any JSON-serializable value
        created_at: First write (never changes)
        updated_at: Last write
    """
    feature: str
    scope: ScopeKey
    value: Any
    created_at: datetime
    updated_at: datetime


class FeatureEntry(NamedTuple):
    """One write in a batched set_many call."""
    feature: str
    scope: ScopeKey
    value: Any


class FeatureStore(ABC):
    """
    Abstract storage driver for resolved feature values.

    Implementations:
    - MemoryFeatureStore: In-memory (dev/testing)
    - DatabaseFeatureStore: SQLAlchemy (PostgreSQL, SQLite)

    Drivers may also expose an async ``ensure_schema()`` method; the
    manager calls it when present.
    """

    name: ClassVar[str] = ""

    @abstractmethod
    async def get(self, feature: str, scope: ScopeKey) -> Any:
        """Get the stored value, or MISSING if not yet stored."""
        pass

    @abstractmethod
    async def get_many(self, features: list[str], scope: ScopeKey) -> dict[str, Any]:
        """Get stored values for several features in one scope. Missing ones are omitted."""
        pass

    @abstractmethod
    async def set(self, feature: str, scope: ScopeKey, value: Any) -> None:
        """Store a value (upsert). Keeps created_at, advances updated_at."""
        pass

    @abstractmethod
    async def set_many(self, entries: Iterable[FeatureEntry]) -> None:
        """Store several values. Same result as repeated set()."""
        pass

    @abstractmethod
    async def forget(self, feature: str, scope: ScopeKey) -> None:
        """Remove the stored value for one feature and scope."""
        pass

    @abstractmethod
    async def purge(self, feature: str) -> None:
        """Remove stored values for a feature across all scopes."""
        pass

    @abstractmethod
    async def purge_all(self) -> None:
        """Remove every stored value."""
        pass

    @abstractmethod
    async def feature_names(self) -> list[str]:
        """Sorted distinct names of features with at least one stored value."""
        pass

    @abstractmethod
    async def all_for(self, feature: str) -> list[StoredFeature]:
        """All stored records for a feature, ordered by scope."""
        pass
