"""
Hook manager for feature flag lifecycle events.
"""
from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass, field
from enum import IntEnum
from itertools import count
from typing import Any, Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

Handler = Callable[..., Any | Awaitable[Any]]
H = TypeVar("H", bound=Handler)

_sequence = count()


class HookPriority(IntEnum):
    """Listener order within one event (lower runs first)."""
    FIRST = 0
    EARLY = 25
    NORMAL = 50
    LATE = 75
    LAST = 100


@dataclass(order=True)
class Hook:
    """A registered listener. Sorts by priority, then registration order."""
    priority: HookPriority
    seq: int
    name: str = field(compare=False)
    handler: Handler = field(compare=False)
    once: bool = field(default=False, compare=False)
    source: str = field(default="", compare=False)

    def matches(self, event: str) -> bool:
        if self.name.endswith("*"):
            return event.startswith(self.name[:-1])
        return event == self.name


@dataclass
class HookResult:
    """What the listeners of one trigger() call returned or raised."""
    hook_name: str
    results: list[Any] = field(default_factory=list)
    errors: list[tuple[str, Exception]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


class HookManager:
    """
    Dispatches flag lifecycle events to listeners.

    Events emitted by FlagManager:
    - flag.resolved: first resolution of a (feature, scope) pair
      payload: feature, scope, value
    - flag.updated: explicit activate/deactivate
      payload: feature, scope, value ("__global__" scope for *_for_everyone)
    - flag.deleted: forget/purge/purge_all
      payload: feature, scope ("*" for feature-wide or global purges)

    A listener name ending in "*" is a prefix pattern: "flag.*" hears
    every flag event. Listeners may be sync or async; a failing listener
    is logged and recorded on the result, never raised to the emitter.

    Example usage:
    ```python
    hooks = HookManager()

    @hooks.on("flag.updated")
    async def audit(feature: str, scope: str, value):
        await audit_log.record("flag.updated", feature=feature, scope=scope)

    await hooks.trigger("flag.updated", feature="beta", scope="User:1", value=True)
    ```
    """

    def __init__(self):
        self._hooks: list[Hook] = []

    def register(
        self,
        name: str,
        handler: Handler,
        *,
        priority: HookPriority = HookPriority.NORMAL,
        once: bool = False,
        source: str = "",
    ) -> Hook:
        """Add a listener for an event name or "prefix.*" pattern."""
        hook = Hook(priority, next(_sequence), name, handler, once, source)
        self._hooks.append(hook)
        self._hooks.sort()

        logger.debug("Registered %s listener %r (priority=%d)", name, handler, priority)
        return hook

    def unregister(self, name: str, handler: Handler) -> bool:
        """Remove the first listener registered under name with this handler."""
        for hook in self._hooks:
            if hook.name == name and hook.handler is handler:
                self._hooks.remove(hook)
                return True
        return False

    def on(
        self,
        name: str,
        *,
        priority: HookPriority = HookPriority.NORMAL,
        once: bool = False,
    ) -> Callable[[H], H]:
        """Decorator form of register()."""
        def decorator(func: H) -> H:
            self.register(name, func, priority=priority, once=once)
            return func
        return decorator

    async def trigger(self, name: str, *args, **kwargs) -> HookResult:
        """Call every listener matching name, in priority order."""
        result = HookResult(hook_name=name)
        matched = [hook for hook in self._hooks if hook.matches(name)]

        for hook in matched:
            if hook.once:
                # An overlapping trigger may already have consumed it
                if hook not in self._hooks:
                    continue
                self._hooks.remove(hook)

            try:
                value = hook.handler(*args, **kwargs)
                if inspect.isawaitable(value):
                    value = await value
                result.results.append(value)
            except Exception as e:
                result.errors.append((hook.source or repr(hook.handler), e))
                logger.exception("Listener for %s failed", name)

        return result

    def has_hooks(self, name: str) -> bool:
        """Check whether any listener would hear an event."""
        return any(hook.matches(name) for hook in self._hooks)

    def list_hooks(self, prefix: str | None = None) -> list[str]:
        """Registered listener names, optionally filtered by prefix."""
        names = {hook.name for hook in self._hooks}
        if prefix:
            names = {n for n in names if n.startswith(prefix)}
        return sorted(names)

    def clear(self, name: str | None = None) -> None:
        """Remove listeners registered under name, or all of them."""
        if name is None:
            self._hooks.clear()
        else:
            self._hooks = [hook for hook in self._hooks if hook.name != name]
