"""
Flag Manager - resolution, persistence and caching of feature values.

Read path (first hit wins):
1. Resolution cache
2. Feature store
3. Definition registry (resolver runs, value is stored then cached)

Once a value is stored, its resolver is not consulted again for that
scope until the value is forgotten or purged.
"""

from __future__ import annotations

import inspect
from typing import Any, Awaitable, Callable, Iterable, Mapping, TypeVar

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..core.config import FlagSettings
from ..core.errors import (
    FeatureNotDefinedError,
    FlagNotConfiguredError,
    UnknownDriverError,
)
from ..core.hooks import HookManager
from ..core.plugins.registry import DriverFactory, DriverRegistry
from .backends.register import flag_drivers
from .cache import ResolutionCache
from .definitions import DefinitionRegistry
from .interfaces import (
    FeatureEntry,
    FeatureResolver,
    FeatureStore,
    GLOBAL_SCOPE,
    MISSING,
    Resolver,
    ScopeKey,
    WILDCARD,
)
from .pending import PendingScopedFeature
from .scope import cache_key, serialize_scope

logger = structlog.get_logger()

TActive = TypeVar("TActive")
TInactive = TypeVar("TInactive")

FLAG_RESOLVED = "flag.resolved"
FLAG_UPDATED = "flag.updated"
FLAG_DELETED = "flag.deleted"


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


class FlagManager:
    """
    Feature flag manager.

    One instance per application; build it once and share it.

    Example:
    ```python
    flags = FlagManager({"default": "memory", "drivers": {"memory": {"driver": "memory"}}})
    flags.define("new-checkout", lambda scope: scope.startswith("Team:"))

    if await flags.active("new-checkout", team):
        ...
    ```
    """

    def __init__(
        self,
        config: FlagSettings | Mapping[str, Any] | None = None,
        db: async_sessionmaker[AsyncSession] | None = None,
        hooks: HookManager | None = None,
    ):
        self.hooks = hooks or HookManager()
        self.definitions = DefinitionRegistry()
        self.cache = ResolutionCache()
        self._stores: dict[str, FeatureStore] = {}
        self._drivers: DriverRegistry[FeatureStore] = flag_drivers.copy()
        self._config: FlagSettings | None = None
        self._db = db

        if config is not None:
            self.configure(config, db=db)

    # ============================================================
    # CONFIGURATION
    # ============================================================

    def configure(
        self,
        config: FlagSettings | Mapping[str, Any],
        db: async_sessionmaker[AsyncSession] | None = None,
    ) -> None:
        """Set the driver configuration (and optionally the database handle)."""
        if not isinstance(config, FlagSettings):
            config = FlagSettings(**dict(config))
        self._config = config
        if db is not None:
            self._db = db

    @property
    def config(self) -> FlagSettings:
        if self._config is None:
            raise FlagNotConfiguredError(
                "FlagManager is not configured. Call configure() first."
            )
        return self._config

    # ============================================================
    # DEFINITIONS
    # ============================================================

    def define(self, name: str, resolver: Resolver | bool) -> None:
        """Register a resolver function (or a constant bool) for a feature."""
        self.definitions.define(name, resolver)

    def define_class(
        self,
        resolver_cls: type[FeatureResolver],
        name: str | None = None,
    ) -> str:
        """Register a resolver class. Returns the feature name it was registered under."""
        return self.definitions.define_class(resolver_cls, name)

    def defined(self) -> list[str]:
        """Names of all defined features."""
        return self.definitions.defined()

    # ============================================================
    # RESOLUTION
    # ============================================================

    async def value(self, feature: str, scope: Any | None = None) -> Any:
        """
        Get a feature's value for a scope.

        Raises:
            FeatureNotDefinedError: Not cached, not stored, and no resolver
        """
        scope_key = serialize_scope(scope)
        key = cache_key(feature, scope_key)

        cached, found = self.cache.get(key)
        if found:
            return cached

        store = self.store()
        stored = await store.get(feature, scope_key)
        if stored is not MISSING:
            self.cache.set(key, stored)
            return stored

        value = await self._resolve(feature, scope_key)
        await store.set(feature, scope_key, value)
        self.cache.set(key, value)

        await self._emit(FLAG_RESOLVED, feature, scope_key, value)
        return value

    async def active(self, feature: str, scope: Any | None = None) -> bool:
        return bool(await self.value(feature, scope))

    async def inactive(self, feature: str, scope: Any | None = None) -> bool:
        return not await self.active(feature, scope)

    async def when(
        self,
        feature: str,
        on_active: Callable[[Any], TActive | Awaitable[TActive]],
        on_inactive: Callable[[], TInactive | Awaitable[TInactive]],
        scope: Any | None = None,
    ) -> TActive | TInactive:
        """Resolve once, then call on_active(value) or on_inactive()."""
        value = await self.value(feature, scope)
        if value:
            return await _maybe_await(on_active(value))
        return await _maybe_await(on_inactive())

    def for_scope(self, scope: Any) -> PendingScopedFeature:
        """Bind a scope for repeated checks: flags.for_scope(user).active("beta")."""
        return PendingScopedFeature(self, scope)

    # ============================================================
    # ACTIVATION
    # ============================================================

    async def activate(
        self,
        feature: str,
        value: Any = None,
        scope: Any | None = None,
    ) -> None:
        """Store a value (default True) for a scope, bypassing the resolver."""
        await self._update(feature, True if value is None else value, scope)

    async def deactivate(self, feature: str, scope: Any | None = None) -> None:
        """Store False for a scope, bypassing the resolver."""
        await self._update(feature, False, scope)

    async def activate_for_everyone(self, feature: str, value: Any = None) -> None:
        """Store a value (default True) globally and for every already-stored scope."""
        await self._update_everyone(feature, True if value is None else value)

    async def deactivate_for_everyone(self, feature: str) -> None:
        await self._update_everyone(feature, False)

    # ============================================================
    # BATCH / EAGER LOADING
    # ============================================================

    async def values(
        self,
        features: Iterable[str],
        scope: Any | None = None,
    ) -> dict[str, Any]:
        """
        Get several features for one scope.

        Cache misses are read from the store in one call; anything still
        missing is resolved one by one.
        """
        features = list(dict.fromkeys(features))
        scope_key = serialize_scope(scope)
        result: dict[str, Any] = {}

        misses = []
        for feature in features:
            cached, found = self.cache.get(cache_key(feature, scope_key))
            if found:
                result[feature] = cached
            else:
                misses.append(feature)

        if misses:
            store = self.store()
            stored = await store.get_many(misses, scope_key)

            for feature in misses:
                if feature in stored:
                    result[feature] = stored[feature]
                    self.cache.set(cache_key(feature, scope_key), stored[feature])
                    continue

                value = await self._resolve(feature, scope_key)
                await store.set(feature, scope_key, value)
                self.cache.set(cache_key(feature, scope_key), value)
                result[feature] = value
                await self._emit(FLAG_RESOLVED, feature, scope_key, value)

        return {feature: result[feature] for feature in features}

    async def load(self, features: Iterable[str], scopes: Iterable[Any]) -> None:
        """
        Warm the cache for every (feature, scope) pair.

        Call before looping over a collection so each item's checks are
        cache hits. Scopes are handled independently.
        """
        features = list(dict.fromkeys(features))
        store = self.store()

        for scope in scopes:
            scope_key = serialize_scope(scope)
            stored = await store.get_many(features, scope_key)

            for feature, value in stored.items():
                self.cache.set(cache_key(feature, scope_key), value)

            for feature in features:
                if feature in stored:
                    continue
                value = await self._resolve(feature, scope_key)
                await store.set(feature, scope_key, value)
                self.cache.set(cache_key(feature, scope_key), value)
                await self._emit(FLAG_RESOLVED, feature, scope_key, value)

        logger.debug("Feature values loaded", features=features)

    async def stored(self) -> list[str]:
        """Names of features with at least one stored value."""
        return await self.store().feature_names()

    # ============================================================
    # CLEANUP
    # ============================================================

    async def forget(self, feature: str, scope: Any | None = None) -> None:
        """Drop one stored value; the next read resolves it again."""
        scope_key = serialize_scope(scope)
        await self.store().forget(feature, scope_key)
        self.cache.delete(cache_key(feature, scope_key))
        await self.hooks.trigger(FLAG_DELETED, feature=feature, scope=scope_key)

    async def purge(self, feature: str) -> None:
        """Drop a feature's stored values for every scope."""
        await self.store().purge(feature)
        self.cache.delete_by_prefix(feature)
        logger.info("Feature purged", feature=feature)
        await self.hooks.trigger(FLAG_DELETED, feature=feature, scope=WILDCARD)

    async def purge_all(self) -> None:
        """Drop every stored value and the whole cache."""
        await self.store().purge_all()
        self.cache.clear()
        logger.info("All features purged")
        await self.hooks.trigger(FLAG_DELETED, feature=WILDCARD, scope=WILDCARD)

    def flush_cache(self) -> None:
        """Clear the in-process cache only; stored values are kept."""
        self.cache.clear()

    # ============================================================
    # DRIVERS
    # ============================================================

    def store(self, name: str | None = None) -> FeatureStore:
        """
        Get a store by driver name (default driver if omitted).

        Created on first access and reused afterwards.

        Raises:
            UnknownDriverError: Name not configured, or its kind has no factory
        """
        name = name or self.config.default

        store = self._stores.get(name)
        if store is not None:
            return store

        driver_config = self.config.driver_config(name)
        if driver_config is None:
            raise UnknownDriverError(name)

        driver_config = dict(driver_config)
        if self._db is not None:
            driver_config.setdefault("session_factory", self._db)
        if self.config.database_url:
            driver_config.setdefault("url", self.config.database_url)

        kind = driver_config.get("driver", name)
        store = self._drivers.create(kind, driver_config)
        self._stores[name] = store

        logger.debug("Feature store created", name=name, driver=kind)
        return store

    def extend(self, kind: str, factory: DriverFactory[FeatureStore]) -> None:
        """Register a custom driver kind for this manager."""
        self._drivers.register(kind, factory)

    async def ensure_schema(self) -> None:
        """Run the default store's ensure_schema() if it has one."""
        store = self.store()
        ensure = getattr(store, "ensure_schema", None)
        if callable(ensure):
            await ensure()
            logger.info("Feature store schema ensured", driver=store.name)

    def reset(self) -> None:
        """Forget definitions, cached values, stores, extensions and config."""
        self._stores.clear()
        self._drivers = flag_drivers.copy()
        self.definitions.clear()
        self.cache.clear()
        self._config = None
        self._db = None

    # ============================================================
    # HELPERS
    # ============================================================

    async def _resolve(self, feature: str, scope_key: ScopeKey) -> Any:
        resolver = self.definitions.lookup(feature)
        if resolver is None:
            raise FeatureNotDefinedError(feature)

        value = await _maybe_await(resolver(scope_key))
        logger.debug("Feature resolved", feature=feature, scope=scope_key)
        return value

    async def _update(self, feature: str, value: Any, scope: Any | None) -> None:
        scope_key = serialize_scope(scope)
        await self.store().set(feature, scope_key, value)
        self.cache.set(cache_key(feature, scope_key), value)
        await self._emit(FLAG_UPDATED, feature, scope_key, value)

    async def _update_everyone(self, feature: str, value: Any) -> None:
        store = self.store()
        scopes = {record.scope for record in await store.all_for(feature)}
        scopes.add(GLOBAL_SCOPE)

        await store.set_many(FeatureEntry(feature, scope, value) for scope in sorted(scopes))

        self.cache.delete_by_prefix(feature)
        for scope in scopes:
            self.cache.set(cache_key(feature, scope), value)

        logger.info("Feature updated for everyone", feature=feature, scopes=len(scopes))
        await self._emit(FLAG_UPDATED, feature, GLOBAL_SCOPE, value)

    async def _emit(self, event: str, feature: str, scope_key: ScopeKey, value: Any) -> None:
        await self.hooks.trigger(event, feature=feature, scope=scope_key, value=value)

