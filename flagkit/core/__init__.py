"""
Core infrastructure: settings, errors, hooks and driver registries.
"""

from .config import FlagSettings, get_settings
from .errors import (
    FlagError,
    FeatureNotDefinedError,
    FlagNotConfiguredError,
    UnknownDriverError,
)

__all__ = [
    "FlagSettings",
    "get_settings",
    "FlagError",
    "FeatureNotDefinedError",
    "FlagNotConfiguredError",
    "UnknownDriverError",
]
