"""
Database backend for feature values.

Uses SQLAlchemy (PostgreSQL in production, SQLite in tests).
"""

from typing import Any, Iterable

from sqlalchemy import JSON, delete, select
from sqlalchemy.dialects import mysql, postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ...core.errors import FlagError
from ...models.base import Base
from ...utils.timezone import ensure_utc, utc_now
from ..interfaces import (
    FeatureEntry,
    FeatureStore,
    MISSING,
    ScopeKey,
    StoredFeature,
)
from ..models import FeatureValueModel

# ON CONFLICT / ON DUPLICATE KEY capable inserts per dialect
_UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
    "mysql": mysql.insert,
}


class DatabaseFeatureStore(FeatureStore):
    """
    SQL-backed feature value storage.

    Each operation runs in its own session and commits before returning,
    so a store instance can be shared for the lifetime of the process.
    """

    name = "database"

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def ensure_schema(self) -> None:
        """Create the flag_features table if it doesn't exist."""
        async with self.session_factory() as session:
            conn = await session.connection()
            await conn.run_sync(
                lambda sync_conn: Base.metadata.create_all(
                    sync_conn,
                    tables=[FeatureValueModel.__table__],
                )
            )
            await session.commit()

    # ============================================================
    # READS
    # ============================================================

    async def get(self, feature: str, scope: ScopeKey) -> Any:
        """Get the stored value, or MISSING."""
        query = select(FeatureValueModel.value).where(
            FeatureValueModel.feature == feature,
            FeatureValueModel.scope == scope,
        )
        async with self.session_factory() as session:
            result = await session.execute(query)
            row = result.first()

        if row is None:
            return MISSING
        return row.value

    async def get_many(self, features: list[str], scope: ScopeKey) -> dict[str, Any]:
        """Get stored values for several features in one query."""
        if not features:
            return {}

        query = select(FeatureValueModel.feature, FeatureValueModel.value).where(
            FeatureValueModel.feature.in_(features),
            FeatureValueModel.scope == scope,
        )
        async with self.session_factory() as session:
            result = await session.execute(query)
            return {row.feature: row.value for row in result}

    async def feature_names(self) -> list[str]:
        """Sorted distinct feature names with stored values."""
        query = (
            select(FeatureValueModel.feature)
            .distinct()
            .order_by(FeatureValueModel.feature)
        )
        async with self.session_factory() as session:
            result = await session.execute(query)
            return list(result.scalars().all())

    async def all_for(self, feature: str) -> list[StoredFeature]:
        """All stored records for a feature, ordered by scope."""
        query = (
            select(FeatureValueModel)
            .where(FeatureValueModel.feature == feature)
            .order_by(FeatureValueModel.scope)
        )
        async with self.session_factory() as session:
            result = await session.execute(query)
            models = result.scalars().all()

        return [self._model_to_record(m) for m in models]

    # ============================================================
    # WRITES
    # ============================================================

    async def set(self, feature: str, scope: ScopeKey, value: Any) -> None:
        """Store a value (upsert)."""
        async with self.session_factory() as session:
            async with session.begin():
                await self._upsert(session, feature, scope, value)

    async def set_many(self, entries: Iterable[FeatureEntry]) -> None:
        """Store several values in one transaction."""
        entries = list(entries)
        if not entries:
            return

        async with self.session_factory() as session:
            async with session.begin():
                for feature, scope, value in entries:
                    await self._upsert(session, feature, scope, value)

    async def forget(self, feature: str, scope: ScopeKey) -> None:
        """Remove one stored value."""
        query = delete(FeatureValueModel).where(
            FeatureValueModel.feature == feature,
            FeatureValueModel.scope == scope,
        )
        await self._execute(query)

    async def purge(self, feature: str) -> None:
        """Remove a feature's values across all scopes."""
        await self._execute(
            delete(FeatureValueModel).where(FeatureValueModel.feature == feature)
        )

    async def purge_all(self) -> None:
        """Remove every stored value."""
        await self._execute(delete(FeatureValueModel))

    # ============================================================
    # HELPERS
    # ============================================================

    async def _execute(self, statement) -> None:
        async with self.session_factory() as session:
            async with session.begin():
                await session.execute(statement)

    async def _upsert(
        self,
        session: AsyncSession,
        feature: str,
        scope: ScopeKey,
        value: Any,
    ) -> None:
        """
        Single-statement upsert keyed on (feature, scope).

        Concurrent writers to the same pair all succeed; the last one wins.
        created_at is only set by the insert.
        """
        conn = await session.connection()
        dialect = conn.dialect.name
        insert = _UPSERT_INSERTS.get(dialect)
        if insert is None:
            raise FlagError(f"Database flag driver does not support the '{dialect}' dialect.")

        now = utc_now()
        statement = insert(FeatureValueModel).values(
            feature=feature,
            scope=scope,
            value=JSON.NULL if value is None else value,
            created_at=now,
            updated_at=now,
        )

        if dialect == "mysql":
            statement = statement.on_duplicate_key_update(
                value=statement.inserted.value,
                updated_at=statement.inserted.updated_at,
            )
        else:
            statement = statement.on_conflict_do_update(
                index_elements=["feature", "scope"],
                set_={
                    "value": statement.excluded.value,
                    "updated_at": statement.excluded.updated_at,
                },
            )

        await session.execute(statement)

    def _model_to_record(self, model: FeatureValueModel) -> StoredFeature:
        """Convert SQLAlchemy model to dataclass."""
        return StoredFeature(
            feature=model.feature,
            scope=model.scope,
            value=model.value,
            created_at=ensure_utc(model.created_at),
            updated_at=ensure_utc(model.updated_at),
        )
