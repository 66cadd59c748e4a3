"""
Feature Flag Models - SQLAlchemy model for stored feature values.

Tables:
- flag_features: one resolved value per (feature, scope)
"""

from typing import Any
from sqlalchemy import BigInteger, Integer, String, JSON, Index
from sqlalchemy.orm import Mapped, mapped_column

from ..models.base import Base, TimestampMixin


class FeatureValueModel(Base, TimestampMixin):
    """
    Stored feature value.

    Written the first time a feature is resolved for a scope, or when it
    is explicitly activated/deactivated.
    """

    __tablename__ = "flag_features"
    __table_args__ = (
        Index("idx_flag_features_lookup", "feature", "scope", unique=True),
    )

    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True,
    )
    feature: Mapped[str] = mapped_column(String(255), nullable=False)
    scope: Mapped[str] = mapped_column(String(255), nullable=False)

    # Any JSON value: true, false, "variant-b", {"limit": 10}, ...
    value: Mapped[Any] = mapped_column(JSON, nullable=False)

    def __repr__(self) -> str:
        return f"<FeatureValue {self.feature} {self.scope}={self.value!r}>"
