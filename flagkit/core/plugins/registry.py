"""
Driver registry for pluggable feature stores.
"""
from __future__ import annotations

from typing import TypeVar, Generic, Callable, Any
import logging

from ..errors import UnknownDriverError

logger = logging.getLogger(__name__)

T = TypeVar("T")

DriverFactory = Callable[[dict[str, Any]], T]


class DriverRegistry(Generic[T]):
    """
    Registry of named driver factories.

    A factory receives the driver's config mapping and returns a new
    driver instance. Instances are not cached here; callers decide
    how long a driver lives.

    Example usage:
    ```python
    stores = DriverRegistry[FeatureStore]("flag")

    stores.register("memory", lambda config: MemoryFeatureStore())
    stores.register("redis", create_redis_store)

    store = stores.create("redis", {"driver": "redis", "url": "redis://..."})
    ```
    """

    def __init__(self, name: str):
        self.name = name
        self._factories: dict[str, DriverFactory[T]] = {}

    def register(self, kind: str, factory: DriverFactory[T]) -> None:
        """
        Register a driver factory.

        Args:
            kind: Driver kind referenced by the "driver" config field
            factory: Callable taking the driver config and returning a driver
        """
        if kind in self._factories:
            logger.warning(f"Overwriting existing {self.name} driver: {kind}")

        self._factories[kind] = factory
        logger.debug(f"Registered {self.name} driver: {kind}")

    def unregister(self, kind: str) -> bool:
        """Unregister a driver factory."""
        return self._factories.pop(kind, None) is not None

    def create(self, kind: str, config: dict[str, Any] | None = None) -> T:
        """
        Create a driver instance.

        Raises:
            UnknownDriverError: No factory registered for kind
        """
        if kind not in self._factories:
            available = ", ".join(sorted(self._factories)) or "none"
            raise UnknownDriverError(
                kind,
                f"Unknown {self.name} driver '{kind}'. "
                f"Available: {available}. Register it with extend().",
            )

        return self._factories[kind](dict(config or {}))

    def list(self) -> list[str]:
        """List all registered driver kinds."""
        return list(self._factories.keys())

    def has(self, kind: str) -> bool:
        """Check if a driver kind is registered."""
        return kind in self._factories

    def copy(self) -> "DriverRegistry[T]":
        """Copy this registry so local registrations don't leak back."""
        clone = DriverRegistry[T](self.name)
        clone._factories = dict(self._factories)
        return clone
