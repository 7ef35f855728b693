"""
Payload Pulverizer — Database Engine Management
=================================================

What:  Async SQLAlchemy engine and session factory construction, ORM base.
Why:   Centralizes all database connection logic in one place.
How:   build_engine() creates an aiosqlite-backed async engine for a given
       Settings object; build_session_factory() wraps it in an
       async_sessionmaker. The CounterStore owns both.
Who:   Used by CounterStore (services/counter_store.py).
When:  Once per application instance, when the store is constructed.

Architecture Decision:
    The engine is NOT created at module import. Each application instance
    gets its own engine bound to its own database file, so the CLI flag
    --db-path and per-test temporary databases never share a pool.

SQLite specifics:
    timeout:   sqlite3 busy timeout; a writer waits this long for the lock
    WAL mode:  Set on every new connection so readers (/stats) don't block
               writers (increments) and vice versa
"""

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from pulverizer.config import Settings


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares a single metadata object; CounterStore.open() calls
    Base.metadata.create_all() against it.
    """
    pass


def build_engine(settings: Settings) -> AsyncEngine:
    """
    Create the async engine for the configured SQLite file.

    Args:
        settings: Application settings (db_path, db_busy_timeout, log_level)

    Returns:
        AsyncEngine using the aiosqlite driver.
    """
    engine = create_async_engine(
        settings.database_url,
        connect_args={"timeout": settings.db_busy_timeout},
        # Echo SQL only when debugging; it is noisy
        echo=settings.log_level == "DEBUG",
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _set_sqlite_pragmas(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA synchronous=NORMAL")
        cursor.close()

    return engine


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Create a session factory bound to `engine`.

    expire_on_commit=False: Returned ORM rows stay readable after commit.
    """
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
