"""
Tests for the hook manager.
"""

import asyncio

import pytest

from flagkit.core.hooks import HookManager, HookPriority
from flagkit.features import FLAG_RESOLVED


@pytest.fixture
def hooks() -> HookManager:
    return HookManager()


@pytest.mark.asyncio
async def test_trigger_passes_payload(hooks):
    received = []

    @hooks.on("flag.updated")
    async def listener(**payload):
        received.append(payload)
        return "ok"

    result = await hooks.trigger("flag.updated", feature="beta", scope="User:1", value=True)

    assert received == [{"feature": "beta", "scope": "User:1", "value": True}]
    assert result.results == ["ok"]
    assert result.errors == []


@pytest.mark.asyncio
async def test_priority_order(hooks):
    order = []

    async def late(**payload):
        order.append("late")

    async def first(**payload):
        order.append("first")

    hooks.register("flag.resolved", late, priority=HookPriority.LATE)
    hooks.register("flag.resolved", first, priority=HookPriority.FIRST)

    await hooks.trigger("flag.resolved")

    assert order == ["first", "late"]


@pytest.mark.asyncio
async def test_errors_are_collected(hooks):
    async def broken(**payload):
        raise ValueError("boom")

    async def healthy(**payload):
        return 1

    hooks.register("flag.deleted", broken, source="audit")
    hooks.register("flag.deleted", healthy)

    result = await hooks.trigger("flag.deleted", feature="*", scope="*")

    assert result.results == [1]
    assert result.errors[0][0] == "audit"
    assert isinstance(result.errors[0][1], ValueError)


@pytest.mark.asyncio
async def test_once_hooks_run_once(hooks):
    calls = []

    @hooks.on("flag.updated", once=True)
    async def listener(**payload):
        calls.append(payload)

    await hooks.trigger("flag.updated", feature="a")
    await hooks.trigger("flag.updated", feature="b")

    assert calls == [{"feature": "a"}]
    assert not hooks.has_hooks("flag.updated")


def test_unregister_and_list(hooks):
    async def listener(**payload):
        pass

    hooks.register("flag.updated", listener)
    hooks.register("flag.resolved", listener)

    assert hooks.list_hooks() == ["flag.resolved", "flag.updated"]
    assert hooks.unregister("flag.updated", listener) is True
    assert hooks.unregister("flag.updated", listener) is False
    assert hooks.list_hooks("flag.") == ["flag.resolved"]

    hooks.clear()
    assert hooks.list_hooks() == []


@pytest.mark.asyncio
async def test_prefix_pattern_hears_every_flag_event(hooks):
    heard = []

    @hooks.on("flag.*")
    def listener(**payload):
        heard.append(payload["feature"])

    await hooks.trigger("flag.resolved", feature="a")
    await hooks.trigger("flag.deleted", feature="b")
    await hooks.trigger("user.created", feature="c")

    assert heard == ["a", "b"]
    assert hooks.has_hooks("flag.updated")
    assert not hooks.has_hooks("user.created")


@pytest.mark.asyncio
async def test_equal_priority_keeps_registration_order(hooks):
    order = []

    for label in ("one", "two", "three"):
        hooks.register("flag.updated", lambda _label=label, **payload: order.append(_label))

    await hooks.trigger("flag.updated")

    assert order == ["one", "two", "three"]


@pytest.mark.asyncio
async def test_overlapping_triggers_run_once_listener_once(hooks):
    calls = []

    async def slow(**payload):
        await asyncio.sleep(0.01)

    def first_only(**payload):
        calls.append(payload["feature"])

    hooks.register("flag.resolved", slow, priority=HookPriority.FIRST)
    hooks.register("flag.resolved", first_only, once=True)

    results = await asyncio.gather(
        hooks.trigger("flag.resolved", feature="a"),
        hooks.trigger("flag.resolved", feature="b"),
    )

    assert all(result.ok for result in results)
    assert len(calls) == 1
    assert hooks.unregister("flag.resolved", first_only) is False


@pytest.mark.asyncio
async def test_once_listener_race_does_not_fail_flag_operation(flags):
    async def slow(**payload):
        await asyncio.sleep(0.01)

    async def audit_once(**payload):
        pass

    flags.hooks.register(FLAG_RESOLVED, slow, priority=HookPriority.FIRST)
    flags.hooks.register(FLAG_RESOLVED, audit_once, once=True)
    flags.define("a", True)
    flags.define("b", False)

    assert await asyncio.gather(flags.value("a"), flags.value("b")) == [True, False]
