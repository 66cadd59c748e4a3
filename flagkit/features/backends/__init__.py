"""
Feature store driver implementations.
"""

from .database import DatabaseFeatureStore
from .memory import MemoryFeatureStore
from .register import flag_drivers, register_drivers

__all__ = [
    "DatabaseFeatureStore",
    "MemoryFeatureStore",
    "flag_drivers",
    "register_drivers",
]
