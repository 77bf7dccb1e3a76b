"""
Database engine and session management.

Async SQLAlchemy engine shared by the API and the delivery worker.
"""
from typing import AsyncIterator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from hookrelay.config import settings


# Execution option asking for the database write lock when the transaction begins
WRITE_LOCK = "hookrelay_write_lock"


def _install_sqlite_transactions(engine: AsyncEngine) -> None:
    """
    Let SQLAlchemy emit BEGIN on SQLite instead of the driver.

    SQLite has no row locks, so a transaction begun with the WRITE_LOCK
    option opens with BEGIN IMMEDIATE and holds the database write lock
    until it ends. Other writers wait for it.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin(conn):
        if conn.get_execution_options().get(WRITE_LOCK):
            conn.exec_driver_sql("BEGIN IMMEDIATE")
        else:
            conn.exec_driver_sql("BEGIN")


def create_engine_from_url(database_url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine for the given URL."""
    engine = create_async_engine(database_url, echo=echo, pool_pre_ping=True)
    if engine.dialect.name == "sqlite":
        _install_sqlite_transactions(engine)
    return engine


def create_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Create a session factory bound to an engine.

    Records are read after commit for logging and responses, so instances
    are not expired on commit.
    """
    return async_sessionmaker(bind, expire_on_commit=False)


engine = create_engine_from_url(settings.DATABASE_URL)
AsyncSessionLocal = create_session_factory(engine)


async def get_db() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency yielding a request-scoped session."""
    async with AsyncSessionLocal() as session:
        yield session
