"""
Register the built-in feature store drivers.

Driver config fields:
- memory:   none
- database: session_factory (async_sessionmaker) or url (SQLAlchemy async URL),
            plus optional echo
"""

from typing import Any

from ...core.errors import UnknownDriverError
from ...core.plugins.registry import DriverRegistry
from ..interfaces import FeatureStore


def create_memory_store(config: dict[str, Any]) -> FeatureStore:
    from .memory import MemoryFeatureStore
    return MemoryFeatureStore()


def create_database_store(config: dict[str, Any]) -> FeatureStore:
    from sqlalchemy.ext.asyncio import (
        AsyncSession,
        async_sessionmaker,
        create_async_engine,
    )
    from .database import DatabaseFeatureStore

    session_factory = config.get("session_factory")
    if session_factory is None:
        url = config.get("url")
        if not url:
            raise UnknownDriverError(
                "database",
                "Database flag driver needs a session factory or a 'url'.",
            )
        engine = create_async_engine(url, echo=config.get("echo", False))
        session_factory = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    return DatabaseFeatureStore(session_factory)


def register_drivers(registry: DriverRegistry[FeatureStore]) -> None:
    """Register all built-in driver factories."""
    registry.register("memory", create_memory_store)
    registry.register("database", create_database_store)


# Shared registry; FlagManager copies it so extend() stays per-manager
flag_drivers = DriverRegistry[FeatureStore]("flag")
register_drivers(flag_drivers)
