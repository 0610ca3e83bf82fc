"""Database kernel utilities for short-lived read/write operations."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from time import monotonic
from typing import TypeVar

from sqlalchemy.exc import (
    DBAPIError,
    IntegrityError,
    InterfaceError,
    OperationalError,
    SQLAlchemyError,
)
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession

from idregistry.core.database import get_session_context
from idregistry.core.exceptions import StorageError, StorageUnavailableError

logger = logging.getLogger(__name__)

_ResultT = TypeVar("_ResultT")

_CONNECTION_ERROR_MARKERS = (
    "unable to open database file",
    "database is locked",
    "connection is closed",
    "cannot operate on a closed database",
)


class WriteConflictError(StorageError):
    """Write rejected by a uniqueness/integrity constraint."""


def is_unavailable_error(exc: Exception) -> bool:
    """Return True when storage could not be reached or the pool is exhausted."""
    if isinstance(exc, (PoolTimeoutError, InterfaceError)):
        return True
    if isinstance(exc, DBAPIError) and exc.connection_invalidated:
        return True
    if not isinstance(exc, OperationalError):
        return False

    # Schema faults such as "no such table" are operational errors too.
    lowered = str(exc).lower()
    return any(marker in lowered for marker in _CONNECTION_ERROR_MARKERS)


def translate_error(exc: SQLAlchemyError) -> StorageError:
    """Map a SQLAlchemy failure onto the application's storage errors."""
    if isinstance(exc, IntegrityError):
        return WriteConflictError(str(exc.orig or exc))
    if is_unavailable_error(exc):
        return StorageUnavailableError("Storage is unavailable", details={"reason": str(exc)})
    return StorageError("Storage operation failed", details={"reason": str(exc)})


async def db_read(
    fn: Callable[[AsyncSession], Awaitable[_ResultT]],
    *,
    operation_name: str,
) -> _ResultT:
    """Execute a read operation in a short-lived session."""
    started = monotonic()
    try:
        async with get_session_context(commit_on_exit=False) as session:
            result = await fn(session)
        logger.debug(
            "DB read operation completed",
            extra={
                "operation": operation_name,
                "duration_ms": round((monotonic() - started) * 1000, 2),
            },
        )
        return result
    except SQLAlchemyError as exc:
        translated = translate_error(exc)
        logger.warning(
            "DB read operation failed",
            extra={
                "operation": operation_name,
                "duration_ms": round((monotonic() - started) * 1000, 2),
                "failure_class": type(translated).__name__,
            },
        )
        raise translated from exc


async def db_write(
    fn: Callable[[AsyncSession], Awaitable[_ResultT]],
    *,
    operation_name: str,
) -> _ResultT:
    """Execute a write operation in a short-lived session and commit it.

    There are no retries here: storage failures surface immediately and
    callers decide whether a ``WriteConflictError`` is worth another go.
    """
    started = monotonic()
    try:
        async with get_session_context(commit_on_exit=False) as session:
            result = await fn(session)
            await session.commit()
        logger.debug(
            "DB write operation completed",
            extra={
                "operation": operation_name,
                "duration_ms": round((monotonic() - started) * 1000, 2),
            },
        )
        return result
    except SQLAlchemyError as exc:
        translated = translate_error(exc)
        logger.warning(
            "DB write operation failed",
            extra={
                "operation": operation_name,
                "duration_ms": round((monotonic() - started) * 1000, 2),
                "failure_class": type(translated).__name__,
            },
        )
        raise translated from exc
