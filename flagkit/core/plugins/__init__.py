"""
Plugin registries for extensible components.
"""

from .registry import DriverRegistry, DriverFactory

__all__ = [
    "DriverRegistry",
    "DriverFactory",
]
