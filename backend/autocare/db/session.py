"""
Engine and session factory construction.

The session factory is the database handle: it is created once in the app
lifespan, kept on app.state, and passed explicitly to the allocator and the
lifecycle. Nothing in the booking engine imports a module-level engine.
"""

from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from autocare.core.config import Settings


def _enable_sqlite_immediate_transactions(engine: AsyncEngine) -> None:
    """
    pysqlite defers BEGIN until the first DML statement, so two writers can
    both hold a read lock and deadlock on upgrade. Take the write lock when
    the transaction starts instead; concurrent writers then queue on the
    busy timeout.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        # SQLite ships with foreign keys off; enforce them like PostgreSQL does
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def create_engine(database_url: str, settings: Settings | None = None, echo: bool = False) -> AsyncEngine:
    url = make_url(database_url)

    if url.get_backend_name() == "sqlite":
        engine = create_async_engine(
            url,
            echo=echo,
            poolclass=NullPool,
            connect_args={"timeout": 30},
        )
        _enable_sqlite_immediate_transactions(engine)
        return engine

    pool_kwargs = {}
    if settings is not None:
        pool_kwargs = {
            "pool_size": settings.DB_POOL_SIZE,
            "max_overflow": settings.DB_MAX_OVERFLOW,
            "pool_timeout": settings.DB_POOL_TIMEOUT,
            "pool_recycle": settings.DB_POOL_RECYCLE,
        }
    return create_async_engine(url, echo=echo, pool_pre_ping=True, **pool_kwargs)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # Objects stay readable after commit; notification payloads are built from them.
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session for read paths and simple inserts."""
    session_factory: async_sessionmaker[AsyncSession] = request.app.state.session_factory
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
