"""
Pytest fixtures for testing.

Provides:
- Flag managers on the memory and database drivers
- SQLite in-memory database (aiosqlite) for the database driver
- Scope classes and counting helpers
- Event recorder for flag lifecycle hooks
"""

from dataclasses import dataclass
from typing import Any, AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from flagkit.features import (
    FLAG_DELETED,
    FLAG_RESOLVED,
    FLAG_UPDATED,
    DatabaseFeatureStore,
    FlagManager,
    MemoryFeatureStore,
)


# Test database URL (SQLite in-memory for speed)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

MEMORY_CONFIG = {
    "default": "memory",
    "drivers": {"memory": {"driver": "memory"}},
}


# ============ Scopes ============


@dataclass
class User:
    id: int
    name: str = "Test User"


@dataclass
class Team:
    id: int

    def feature_scope(self) -> str:
        return "Org"


# ============ Helpers ============


class CountingResolver:
    """Resolver that records how often it was called."""

    def __init__(self, value: Any = True):
        self.value = value
        self.calls: list[str] = []

    def __call__(self, scope: str) -> Any:
        self.calls.append(scope)
        return self.value(scope) if callable(self.value) else self.value

    @property
    def count(self) -> int:
        return len(self.calls)


class CountingStore(MemoryFeatureStore):
    """Memory store that counts read round-trips."""

    def __init__(self):
        super().__init__()
        self.get_calls = 0
        self.get_many_calls = 0
        self.set_calls = 0

    async def get(self, feature, scope):
        self.get_calls += 1
        return await super().get(feature, scope)

    async def get_many(self, features, scope):
        self.get_many_calls += 1
        return await super().get_many(features, scope)

    async def set(self, feature, scope, value):
        self.set_calls += 1
        await super().set(feature, scope, value)

    @property
    def reads(self) -> int:
        return self.get_calls + self.get_many_calls


class FailingStore(MemoryFeatureStore):
    """Memory store whose writes always fail."""

    async def set(self, feature, scope, value):
        raise RuntimeError("store unavailable")


# ============ Managers ============


@pytest.fixture
def flags() -> FlagManager:
    """Manager on the memory driver."""
    return FlagManager(MEMORY_CONFIG)


@pytest.fixture
def memory_store(flags: FlagManager) -> MemoryFeatureStore:
    return flags.store()


@pytest.fixture
def counting_store() -> CountingStore:
    return CountingStore()


@pytest.fixture
def counted_flags(counting_store: CountingStore) -> FlagManager:
    """Manager whose default store counts reads and writes."""
    manager = FlagManager({
        "default": "counting",
        "drivers": {"counting": {"driver": "counting"}},
    })
    manager.extend("counting", lambda config: counting_store)
    return manager


@pytest.fixture
def events(flags: FlagManager) -> list[tuple[str, dict[str, Any]]]:
    """Record every flag event emitted by the memory manager."""
    recorded: list[tuple[str, dict[str, Any]]] = []

    for name in (FLAG_RESOLVED, FLAG_UPDATED, FLAG_DELETED):
        async def handler(_event=name, **payload):
            recorded.append((_event, payload))

        flags.hooks.register(name, handler, source="tests")

    return recorded


# ============ Database ============


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def session_factory(db_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest_asyncio.fixture(scope="function")
async def db_store(session_factory) -> AsyncGenerator[DatabaseFeatureStore, None]:
    """Database store with its table created."""
    store = DatabaseFeatureStore(session_factory)
    await store.ensure_schema()
    yield store


@pytest_asyncio.fixture(scope="function")
async def db_flags(session_factory) -> FlagManager:
    """Manager on the database driver, schema ensured."""
    manager = FlagManager(
        {"default": "database", "drivers": {"database": {"driver": "database"}}},
        db=session_factory,
    )
    await manager.ensure_schema()
    return manager


@pytest_asyncio.fixture(scope="function")
async def file_session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """File-backed SQLite, so concurrent sessions use separate connections."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'flags.db'}")
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await DatabaseFeatureStore(factory).ensure_schema()
    yield factory

    await engine.dispose()
