"""
Store (database engine + session factory) for the resolution engine.

The desktop app owns exactly one local store. Instead of a process-wide
engine, callers create a ``Store`` at startup, pass sessions from it into
repositories/services, and ``dispose()`` it at shutdown.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from relgraph.core.config import Settings, settings as default_settings
from relgraph.db.base import Base

logger = logging.getLogger(__name__)


def _configure_sqlite(engine: AsyncEngine) -> None:
    """
    Make SQLite behave like a transactional store.

    pysqlite/aiosqlite issue their own BEGIN and break SAVEPOINT handling,
    so we take over transaction start and switch foreign keys on.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, _connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


class Store:
    """Explicit handle on the relational store."""

    def __init__(self, database_url: Optional[str] = None, echo: Optional[bool] = None, config: Optional[Settings] = None):
        config = config or default_settings
        self.database_url = database_url or config.DATABASE_URL
        url = make_url(self.database_url)

        engine_kwargs = {
            "echo": config.DEBUG if echo is None else echo,  # prints SQL when DEBUG=True
            "future": True,
        }
        is_sqlite = url.get_backend_name() == "sqlite"
        if is_sqlite and url.database in (None, "", ":memory:"):
            # one shared connection so every session sees the same in-memory db
            engine_kwargs["poolclass"] = StaticPool

        self.engine: AsyncEngine = create_async_engine(self.database_url, **engine_kwargs)
        if is_sqlite:
            _configure_sqlite(self.engine)

        # Sessions are used to interact with the database (read, write, update, delete)
        self.session_maker = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,  # Keeps data accessible after commit
        )

    async def create_all(self) -> None:
        """Create every table known to the metadata (tests and first run)."""
        # models must be imported so they register on Base.metadata
        import relgraph.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Store schema ready at %s", self.engine.url.render_as_string(hide_password=True))

    async def drop_all(self) -> None:
        import relgraph.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def dispose(self) -> None:
        await self.engine.dispose()

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Plain session; the caller decides when to commit."""
        async with self.session_maker() as session:
            yield session

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Session wrapped in one transaction.

        Commits when the block exits cleanly and rolls back on any error,
        so a batch is either fully applied or not at all.
        """
        async with self.session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise
