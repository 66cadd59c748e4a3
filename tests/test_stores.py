"""
Feature store contract tests, run against every built-in driver.
"""

import asyncio

import pytest
import pytest_asyncio

from flagkit.features import (
    MISSING,
    DatabaseFeatureStore,
    FeatureEntry,
    MemoryFeatureStore,
)


@pytest_asyncio.fixture(params=["memory", "database"])
async def store(request, session_factory):
    if request.param == "memory":
        return MemoryFeatureStore()

    store = DatabaseFeatureStore(session_factory)
    await store.ensure_schema()
    return store


@pytest.mark.asyncio
async def test_get_missing(store):
    assert await store.get("beta", "User:1") is MISSING


@pytest.mark.asyncio
async def test_set_and_get(store):
    await store.set("beta", "User:1", True)
    await store.set("limits", "User:1", {"uploads": 5, "tier": "pro"})

    assert await store.get("beta", "User:1") is True
    assert await store.get("limits", "User:1") == {"uploads": 5, "tier": "pro"}
    assert await store.get("beta", "User:2") is MISSING


@pytest.mark.asyncio
async def test_falsy_values_are_stored(store):
    await store.set("off", "__global__", False)
    await store.set("zero", "__global__", 0)
    await store.set("none", "__global__", None)

    assert await store.get("off", "__global__") is False
    assert await store.get("zero", "__global__") == 0
    assert await store.get("none", "__global__") is None


@pytest.mark.asyncio
async def test_set_upserts(store):
    await store.set("variant", "User:1", "a")
    await store.set("variant", "User:1", "b")

    assert await store.get("variant", "User:1") == "b"
    assert len(await store.all_for("variant")) == 1


@pytest.mark.asyncio
async def test_overwrite_keeps_created_at(store):
    await store.set("beta", "User:1", True)
    [first] = await store.all_for("beta")

    await store.set("beta", "User:1", False)
    [second] = await store.all_for("beta")

    assert second.created_at == first.created_at
    assert second.updated_at >= first.updated_at
    assert second.value is False


@pytest.mark.asyncio
async def test_get_many_returns_only_found(store):
    await store.set("a", "User:1", True)
    await store.set("b", "User:1", False)
    await store.set("c", "User:2", True)

    found = await store.get_many(["a", "b", "c", "d"], "User:1")

    assert found == {"a": True, "b": False}


@pytest.mark.asyncio
async def test_get_many_empty(store):
    assert await store.get_many([], "User:1") == {}


@pytest.mark.asyncio
async def test_set_many(store):
    await store.set_many([
        FeatureEntry("a", "User:1", True),
        FeatureEntry("b", "User:1", "variant"),
        ("a", "User:2", False),
    ])

    assert await store.get_many(["a", "b"], "User:1") == {"a": True, "b": "variant"}
    assert await store.get("a", "User:2") is False


@pytest.mark.asyncio
async def test_forget(store):
    await store.set("beta", "User:1", True)
    await store.set("beta", "User:2", True)

    await store.forget("beta", "User:1")

    assert await store.get("beta", "User:1") is MISSING
    assert await store.get("beta", "User:2") is True


@pytest.mark.asyncio
async def test_purge(store):
    await store.set("beta", "User:1", True)
    await store.set("beta", "User:2", True)
    await store.set("other", "User:1", True)

    await store.purge("beta")

    assert await store.all_for("beta") == []
    assert await store.feature_names() == ["other"]


@pytest.mark.asyncio
async def test_purge_all(store):
    await store.set("a", "User:1", True)
    await store.set("b", "__global__", True)

    await store.purge_all()

    assert await store.feature_names() == []


@pytest.mark.asyncio
async def test_feature_names_sorted_distinct(store):
    await store.set("zeta", "User:1", True)
    await store.set("alpha", "User:1", True)
    await store.set("alpha", "User:2", False)

    assert await store.feature_names() == ["alpha", "zeta"]


@pytest.mark.asyncio
async def test_all_for_ordered_by_scope(store):
    await store.set("beta", "User:2", False)
    await store.set("beta", "Org:9", "x")
    await store.set("beta", "User:1", True)

    records = await store.all_for("beta")

    assert [r.scope for r in records] == ["Org:9", "User:1", "User:2"]
    assert [r.value for r in records] == ["x", True, False]
    assert all(r.feature == "beta" for r in records)
    assert all(r.created_at.tzinfo is not None for r in records)


@pytest.mark.asyncio
async def test_ensure_schema_is_idempotent(db_store):
    await db_store.set("beta", "User:1", True)
    await db_store.ensure_schema()

    assert await db_store.get("beta", "User:1") is True


def test_memory_store_has_no_schema_step():
    assert not hasattr(MemoryFeatureStore(), "ensure_schema")


@pytest.mark.asyncio
async def test_memory_seed_and_clear():
    store = MemoryFeatureStore()
    store.seed([
        FeatureEntry("beta", "User:1", True),
        FeatureEntry("theme", "__global__", "dark"),
    ])

    assert await store.feature_names() == ["beta", "theme"]

    store.clear()
    assert await store.feature_names() == []


@pytest.mark.asyncio
async def test_concurrent_writes_to_one_pair_last_writer_wins(file_session_factory):
    store = DatabaseFeatureStore(file_session_factory)
    values = [f"variant-{i}" for i in range(5)]

    await asyncio.gather(*(store.set("beta", "User:1", value) for value in values))

    [record] = await store.all_for("beta")
    assert record.value in values


@pytest.mark.asyncio
async def test_database_upsert_keeps_json_null(db_store):
    await db_store.set("limits", "User:1", {"uploads": 5})
    await db_store.set("limits", "User:1", None)

    assert await db_store.get("limits", "User:1") is None
