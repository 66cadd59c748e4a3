"""
Feature flag configuration using Pydantic Settings.
"""

from typing import Any
from functools import lru_cache
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_drivers() -> dict[str, dict[str, Any]]:
    return {
        "database": {"driver": "database"},
        "memory": {"driver": "memory"},
    }


class FlagSettings(BaseSettings):
    """
    Feature flag storage configuration.

    Shape:
        {
            "default": "database",
            "drivers": {
                "database": {"driver": "database"},
                "memory": {"driver": "memory"},
            },
        }

    Each driver entry names its driver kind; remaining fields are passed
    to the driver factory.
    """

    model_config = SettingsConfigDict(
        env_prefix="FLAG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    default: str = Field(
        default="database",
        description="Driver name used when none is requested explicitly",
    )
    drivers: dict[str, dict[str, Any]] = Field(
        default_factory=_default_drivers,
        description="Driver name -> driver config ({'driver': kind, ...})",
    )
    ensure_schema: bool = Field(
        default=True,
        description="Create the features table on startup",
    )
    database_url: str | None = Field(
        default=None,
        description="SQLAlchemy async URL for the database driver",
    )

    @field_validator("drivers", mode="before")
    @classmethod
    def validate_drivers(cls, v: Any) -> Any:
        if not isinstance(v, dict):
            raise ValueError("drivers must be a mapping of name -> config")
        for name, config in v.items():
            if not isinstance(config, dict):
                raise ValueError(f"driver '{name}' config must be a mapping")
        return v

    def driver_config(self, name: str) -> dict[str, Any] | None:
        """Get the config for a named driver, or None if not configured."""
        return self.drivers.get(name)


@lru_cache
def get_settings() -> FlagSettings:
    """Get cached settings instance."""
    return FlagSettings()
