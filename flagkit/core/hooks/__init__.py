"""
Hook system for feature flag lifecycle events.
Lets auditing, logging and cache-warming code tap into flag changes.
"""

from .manager import HookManager, Hook, HookPriority, HookResult

__all__ = [
    "HookManager",
    "Hook",
    "HookPriority",
    "HookResult",
]
