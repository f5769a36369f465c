"""
Database connection and session management for the local durable store.
Uses SQLAlchemy 2.0 async pattern.
"""

import sqlite3
from datetime import datetime, timezone
from pathlib import Path

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool, StaticPool

from skillgate.logging_config import get_logger

logger = get_logger(__name__)

IN_MEMORY_URL = "sqlite+aiosqlite:///:memory:"
OPEN_ERRORS = (SQLAlchemyError, OSError, sqlite3.Error)


def build_engine(database_url: str, *, echo: bool = False) -> AsyncEngine:
    """Create the async engine for the telemetry store."""
    if database_url.startswith("sqlite"):
        if ":memory:" in database_url:
            # A single shared connection keeps an in-memory database alive.
            engine = create_async_engine(
                database_url,
                echo=echo,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        else:
            # NullPool: every session gets its own connection, avoiding
            # "cannot commit transaction - SQL statements in progress".
            engine = create_async_engine(
                database_url,
                echo=echo,
                connect_args={"check_same_thread": False},
                poolclass=NullPool,
            )

        @event.listens_for(engine.sync_engine, "connect")
        def _set_sqlite_pragma(dbapi_conn, connection_record):
            """Enable WAL mode on every new SQLite connection."""
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA busy_timeout=5000")
            cursor.close()

        return engine

    return create_async_engine(
        database_url,
        echo=echo,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
    )


def build_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the given engine."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


async def init_db(engine: AsyncEngine) -> None:
    """Create telemetry tables if they do not exist."""
    # Import Base from kernel models to ensure all models are registered
    from skillgate.kernel.models import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def open_engine(database_url: str, *, echo: bool = False) -> AsyncEngine:
    """
    Build the engine and create tables, recovering from an unreadable store.

    A SQLite file that cannot be opened is moved aside to
    ``<name>.corrupt-<timestamp>`` (with its WAL and SHM files) and a fresh
    database is created in its place. If that fails too, telemetry falls back
    to an in-memory database for this process.
    """
    engine = build_engine(database_url, echo=echo)
    try:
        await init_db(engine)
        return engine
    except OPEN_ERRORS as exc:
        logger.error("Telemetry store could not be opened: %s", exc)
        await engine.dispose()

    if _quarantine_sqlite_file(database_url):
        engine = build_engine(database_url, echo=echo)
        try:
            await init_db(engine)
            logger.warning("Recreated telemetry store after moving the unreadable file aside")
            return engine
        except OPEN_ERRORS as exc:
            logger.error("Recreated telemetry store is still unusable: %s", exc)
            await engine.dispose()

    logger.warning("Falling back to an in-memory telemetry store; history will not survive a restart")
    engine = build_engine(IN_MEMORY_URL, echo=echo)
    await init_db(engine)
    return engine


def _quarantine_sqlite_file(database_url: str) -> bool:
    """Rename an on-disk SQLite database and its sidecars. Returns False if nothing was moved."""
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite" or not url.database or url.database == ":memory:":
        return False

    path = Path(url.database)
    if not path.exists():
        return False

    suffix = ".corrupt-" + datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%f")
    try:
        for candidate in (path, Path(f"{path}-wal"), Path(f"{path}-shm")):
            if candidate.exists():
                candidate.rename(candidate.with_name(candidate.name + suffix))
    except OSError as exc:
        logger.error("Could not move unreadable telemetry store aside: %s", exc, extra={"path": str(path)})
        return False
    logger.warning("Moved unreadable telemetry store aside", extra={"path": str(path), "suffix": suffix})
    return True


async def close_db(engine: AsyncEngine) -> None:
    """Close database connections."""
    await engine.dispose()
