"""
Feature flag errors.
"""


class FlagError(Exception):
    """Base class for feature flag errors."""
    pass


class FeatureNotDefinedError(FlagError):
    """Raised when resolving a feature that has no registered definition."""

    def __init__(self, feature: str):
        self.feature = feature
        super().__init__(
            f"Feature '{feature}' is not defined. Register it with define()."
        )


class FlagNotConfiguredError(FlagError):
    """Raised when the manager is used before it has been configured."""
    pass


class UnknownDriverError(FlagError):
    """Raised when a driver name has no config entry or no registered factory."""

    def __init__(self, name: str, message: str | None = None):
        self.name = name
        super().__init__(message or f"Flag driver '{name}' is not configured.")
