"""
Async database client.

Wraps the SQLAlchemy engine and session factory shared by the store
implementations. Each store method opens its own session, so a
`Database` can be shared freely between requests.
"""

from typing import Optional

from sqlalchemy import event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from expense_ledger.config import DatabaseSettings, get_settings
from expense_ledger.models.tables import Base
from expense_ledger.services.storage.interface import ConnectionError


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    # SQLite ignores ON DELETE CASCADE unless this is set per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """
    Owns the async engine and session factory.

    In-memory SQLite URLs get a `StaticPool` so every session sees the
    same database.
    """

    def __init__(self, settings: Optional[DatabaseSettings] = None):
        self._settings = settings or get_settings().database

        # Bound parameters carry tokens and password hashes; keep them out of error text
        engine_options = {
            "hide_parameters": True,
            "echo": self._settings.echo,
            "pool_pre_ping": self._settings.pool_pre_ping,
        }
        if self._settings.is_in_memory:
            engine_options["poolclass"] = StaticPool

        self._engine: AsyncEngine = create_async_engine(self._settings.url, **engine_options)

        if self._settings.is_sqlite:
            event.listen(self._engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

        self._sessionmaker = async_sessionmaker(
            bind=self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    def session(self) -> AsyncSession:
        """New session; use as `async with database.session() as session`."""
        return self._sessionmaker()

    @retry(
        retry=retry_if_exception_type(ConnectionError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def create_schema(self) -> None:
        """Create missing tables. Retries while the database is unreachable."""
        try:
            async with self._engine.begin() as connection:
                await connection.run_sync(Base.metadata.create_all)
        except SQLAlchemyError as e:
            raise ConnectionError(f"Failed to create schema: {e}") from e

    async def dispose(self) -> None:
        await self._engine.dispose()
