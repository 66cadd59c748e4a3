"""
Feature Flag System.

Resolve-once feature flags: a feature's resolver runs the first time it
is read for a scope, the value is stored, and later reads come from the
in-process cache or the store.

Level 1 - Global switch:
    flags.define("maintenance-banner", False)

    if await flags.active("maintenance-banner"):
        ...

Level 2 - Scoped:
    flags.define("rollout", lambda scope: int(scope.split(":")[1]) % 10 == 0)

    if await flags.active("rollout", user):      # resolved for "User:<id>"
        ...

Level 3 - Class-based:
    class NewCheckoutExperience(FeatureResolver):
        async def resolve(self, scope: str) -> bool:
            return await billing.is_enterprise(scope)

    flags.define_class(NewCheckoutExperience)    # "new-checkout-experience"

Level 4 - Rich values and manual control:
    await flags.activate("upload-limit", {"mb": 500}, scope=team)
    await flags.deactivate_for_everyone("legacy-export")

Level 5 - Collections:
    await flags.load(["beta", "rollout"], users)  # warm the cache
    for user in users:
        if await flags.for_scope(user).active("beta"):
            ...
"""

from .interfaces import (
    FeatureEntry,
    FeatureResolver,
    FeatureStore,
    GLOBAL_SCOPE,
    MISSING,
    Resolver,
    ScopeKey,
    Scopeable,
    StoredFeature,
    WILDCARD,
)

from .scope import serialize_scope
from .definitions import DefinitionRegistry, to_kebab
from .cache import ResolutionCache
from .pending import PendingScopedFeature
from .manager import FlagManager, FLAG_RESOLVED, FLAG_UPDATED, FLAG_DELETED

from .backends import (
    DatabaseFeatureStore,
    MemoryFeatureStore,
    flag_drivers,
)

__all__ = [
    # Interfaces
    "FeatureEntry",
    "FeatureResolver",
    "FeatureStore",
    "GLOBAL_SCOPE",
    "MISSING",
    "Resolver",
    "ScopeKey",
    "Scopeable",
    "StoredFeature",
    "WILDCARD",
    # Building blocks
    "serialize_scope",
    "DefinitionRegistry",
    "to_kebab",
    "ResolutionCache",
    "PendingScopedFeature",
    # Manager
    "FlagManager",
    "FLAG_RESOLVED",
    "FLAG_UPDATED",
    "FLAG_DELETED",
    # Backends
    "DatabaseFeatureStore",
    "MemoryFeatureStore",
    "flag_drivers",
]
