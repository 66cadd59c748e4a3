"""
Scoped feature checks.

    user_flags = flags.for_scope(user)
    if await user_flags.active("beta"):
        ...
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Awaitable, Callable, Iterable

if TYPE_CHECKING:
    from .manager import FlagManager


class PendingScopedFeature:
    """Manager calls with one scope pre-filled."""

    def __init__(self, manager: "FlagManager", scope: Any):
        self._manager = manager
        self._scope = scope

    @property
    def scope(self) -> Any:
        return self._scope

    async def value(self, feature: str) -> Any:
        return await self._manager.value(feature, self._scope)

    async def active(self, feature: str) -> bool:
        return await self._manager.active(feature, self._scope)

    async def inactive(self, feature: str) -> bool:
        return await self._manager.inactive(feature, self._scope)

    async def when(
        self,
        feature: str,
        on_active: Callable[[Any], Any | Awaitable[Any]],
        on_inactive: Callable[[], Any | Awaitable[Any]],
    ) -> Any:
        return await self._manager.when(feature, on_active, on_inactive, self._scope)

    async def activate(self, feature: str, value: Any = None) -> None:
        await self._manager.activate(feature, value, self._scope)

    async def deactivate(self, feature: str) -> None:
        await self._manager.deactivate(feature, self._scope)

    async def forget(self, feature: str) -> None:
        await self._manager.forget(feature, self._scope)

    async def values(self, features: Iterable[str]) -> dict[str, Any]:
        return await self._manager.values(features, self._scope)

    async def load(self, features: Iterable[str]) -> None:
        await self._manager.load(features, [self._scope])
