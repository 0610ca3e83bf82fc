"""Async SQLAlchemy database setup over a single SQLite storage file."""

import logging

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from sqlalchemy import event
from sqlalchemy.exc import InterfaceError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from idregistry.config import build_database_url, settings
from idregistry.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

engine: AsyncEngine | None = None
async_session_maker: async_sessionmaker[AsyncSession] | None = None
database_path: str | None = None


def _install_sqlite_pragmas(target: AsyncEngine, journal_mode: str) -> None:
    @event.listens_for(target.sync_engine, "connect")
    def _on_connect(dbapi_connection: Any, _connection_record: Any) -> None:
        cursor = dbapi_connection.cursor()
        try:
            cursor.execute(f"PRAGMA journal_mode={journal_mode}")
            cursor.execute("PRAGMA foreign_keys=ON")
        finally:
            cursor.close()


def init_engine(path: str | None = None) -> AsyncEngine:
    """Create the process-wide engine and session factory.

    The pool is bounded (``pool_size`` + ``max_overflow``) and acquisition
    gives up after ``pool_timeout`` seconds instead of waiting forever.
    """
    global engine, async_session_maker, database_path

    resolved_path = path or settings.database_path
    if not resolved_path:
        raise ConfigurationError("No database path configured (set DATABASE_PATH)")

    Path(resolved_path).expanduser().parent.mkdir(parents=True, exist_ok=True)

    engine = create_async_engine(
        build_database_url(resolved_path),
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        pool_timeout=settings.database_pool_timeout_seconds,
        echo=settings.database_echo,
        pool_pre_ping=True,
    )
    _install_sqlite_pragmas(engine, settings.sqlite_journal_mode)

    async_session_maker = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )
    database_path = resolved_path

    logger.info(
        "Database engine created",
        extra={
            "database_path": resolved_path,
            "pool_size": settings.database_pool_size,
            "journal_mode": settings.sqlite_journal_mode,
        },
    )
    return engine


def _require_session_maker() -> async_sessionmaker[AsyncSession]:
    if async_session_maker is None:
        raise ConfigurationError("Database engine is not initialized")
    return async_session_maker


def _has_pending_state(session: AsyncSession) -> bool:
    return bool(session.new or session.dirty or session.deleted)


async def _finalize_session(session: AsyncSession, *, commit_on_exit: bool) -> None:
    if commit_on_exit:
        await session.commit()
        return

    if _has_pending_state(session):
        raise RuntimeError(
            "Session has pending ORM changes but commit_on_exit=False. "
            "Commit explicitly or use commit_on_exit=True."
        )

    # Commit, not rollback: rollback expires loaded instances, and callers
    # read them after the session closes.
    if session.in_transaction():
        await session.commit()


@asynccontextmanager
async def get_session_context(
    *,
    commit_on_exit: bool = True,
) -> AsyncGenerator[AsyncSession, None]:
    """Get a short-lived database session as a context manager."""
    session_maker = _require_session_maker()
    async with session_maker() as session:
        try:
            yield session
            await _finalize_session(session, commit_on_exit=commit_on_exit)
        except InterfaceError as e:
            if not session.in_transaction() and not _has_pending_state(session):
                logger.debug("Session connection already closed during cleanup, ignoring")
                return
            logger.warning(f"Database interface error with active transaction: {repr(e)}, rolling back")
            try:
                await session.rollback()
            except Exception:
                logger.warning("Rollback also failed (connection likely closed)")
            raise
        except Exception as e:
            logger.warning(f"Database session error: {repr(e)}, rolling back")
            try:
                await session.rollback()
            except Exception:
                logger.warning("Rollback also failed (connection likely closed)")
            raise e


async def init_db() -> None:
    """Initialize database (create tables if needed)."""
    if engine is None:
        raise ConfigurationError("Database engine is not initialized")
    logger.info("Initializing database tables")
    from idregistry.models.base import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Close database connections."""
    global engine, async_session_maker

    if engine is None:
        return
    logger.info("Closing database connections")
    await engine.dispose()
    engine = None
    async_session_maker = None
