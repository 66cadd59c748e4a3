"""
flagkit - scoped, resolve-once feature flags.
"""

from .core import (
    FlagSettings,
    get_settings,
    FlagError,
    FeatureNotDefinedError,
    FlagNotConfiguredError,
    UnknownDriverError,
)
from .core.hooks import HookManager
from .features import (
    FeatureResolver,
    FeatureStore,
    FlagManager,
    GLOBAL_SCOPE,
    MemoryFeatureStore,
    DatabaseFeatureStore,
    PendingScopedFeature,
    StoredFeature,
    serialize_scope,
)

__version__ = "0.1.0"

__all__ = [
    "FlagSettings",
    "get_settings",
    "FlagError",
    "FeatureNotDefinedError",
    "FlagNotConfiguredError",
    "UnknownDriverError",
    "HookManager",
    "FeatureResolver",
    "FeatureStore",
    "FlagManager",
    "GLOBAL_SCOPE",
    "MemoryFeatureStore",
    "DatabaseFeatureStore",
    "PendingScopedFeature",
    "StoredFeature",
    "serialize_scope",
]
