"""
Feature definition registry.

Holds the resolvers that compute a feature's value the first time it
is read for a scope. Two kinds:

    registry.define("beta", True)
    registry.define("rollout", lambda scope: scope.endswith("0"))

    class NewCheckoutExperience(FeatureResolver):
        def resolve(self, scope): ...

    registry.define_class(NewCheckoutExperience)   # "new-checkout-experience"
"""

import re
from typing import Any

from .interfaces import FeatureResolver, Resolver

_CAMEL_BOUNDARY = re.compile(r"([a-z])([A-Z])")
_SEPARATORS = re.compile(r"[\s_]+")


def to_kebab(name: str) -> str:
    """NewCheckoutExperience -> new-checkout-experience."""
    name = _CAMEL_BOUNDARY.sub(r"\1-\2", name)
    name = _SEPARATORS.sub("-", name)
    return name.lower()


def _constant(value: bool) -> Resolver:
    def resolver(scope: str) -> bool:
        return value
    return resolver


class DefinitionRegistry:
    """
    Function and class-based feature definitions, keyed by name.

    Both maps may hold the same name; lookups prefer the function.
    Later registrations overwrite silently.
    """

    def __init__(self):
        self._functions: dict[str, Resolver] = {}
        self._classes: dict[str, type[FeatureResolver]] = {}

    def define(self, name: str, resolver: Resolver | bool) -> None:
        """Register a resolver function, or a constant for a bool literal."""
        if isinstance(resolver, bool):
            resolver = _constant(resolver)
        self._functions[name] = resolver

    def define_class(
        self,
        resolver_cls: type[FeatureResolver],
        name: str | None = None,
    ) -> str:
        """
        Register a resolver class.

        Args:
            resolver_cls: Class with a resolve(scope) method
            name: Explicit key; defaults to resolver_cls.key, then the kebab-cased class name

        Returns:
            The key it was registered under
        """
        key = name or getattr(resolver_cls, "key", None) or to_kebab(resolver_cls.__name__)
        self._classes[key] = resolver_cls
        return key

    def defined(self) -> list[str]:
        """Function-defined names followed by class-defined names."""
        return [*self._functions.keys(), *self._classes.keys()]

    def lookup(self, name: str) -> Resolver | None:
        """Get a callable resolver for name, or None if undefined."""
        resolver = self._functions.get(name)
        if resolver is not None:
            return resolver

        resolver_cls = self._classes.get(name)
        if resolver_cls is not None:
            return resolver_cls().resolve

        return None

    def has(self, name: str) -> bool:
        return name in self._functions or name in self._classes

    def clear(self) -> None:
        self._functions.clear()
        self._classes.clear()

    def __contains__(self, name: Any) -> bool:
        return self.has(name)
