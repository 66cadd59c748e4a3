"""
Scope serialization.

    serialize_scope(None)          -> "__global__"
    serialize_scope(User(id=42))   -> "User:42"
    serialize_scope(team)          -> "Org:7"   (team.feature_scope() == "Org")
"""

from typing import Any

from .interfaces import GLOBAL_SCOPE, ScopeKey


def serialize_scope(scope: Any | None) -> ScopeKey:
    """Turn a scope object into its canonical "<Type>:<id>" key."""
    if scope is None:
        return GLOBAL_SCOPE

    feature_scope = getattr(scope, "feature_scope", None)
    if callable(feature_scope):
        scope_type = feature_scope()
    else:
        scope_type = type(scope).__name__

    return f"{scope_type}:{scope.id}"


def cache_key(feature: str, scope: ScopeKey) -> str:
    """Cache key for a (feature, scope) pair; NUL-delimited."""
    return f"{feature}\0{scope}"
