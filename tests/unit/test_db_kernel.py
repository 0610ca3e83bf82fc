"""Unit tests for storage error translation."""

from __future__ import annotations

import sqlite3

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError, ProgrammingError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from idregistry.core.db_kernel import WriteConflictError, db_read, translate_error
from idregistry.core.exceptions import StorageError, StorageUnavailableError


def test_integrity_error_becomes_write_conflict() -> None:
    exc = IntegrityError("INSERT", {}, sqlite3.IntegrityError("UNIQUE constraint failed: ids.id"))

    translated = translate_error(exc)

    assert isinstance(translated, WriteConflictError)
    assert "UNIQUE constraint failed" in translated.message


@pytest.mark.parametrize(
    "exc",
    [
        PoolTimeoutError("QueuePool limit of size 10 overflow 0 reached"),
        OperationalError("SELECT 1", {}, sqlite3.OperationalError("unable to open database file")),
    ],
)
def test_connection_failures_become_unavailable(exc: Exception) -> None:
    assert isinstance(translate_error(exc), StorageUnavailableError)


def test_locked_database_is_unavailable() -> None:
    exc = OperationalError("INSERT", {}, sqlite3.OperationalError("database is locked"))

    assert isinstance(translate_error(exc), StorageUnavailableError)


def test_missing_table_is_not_reported_as_unavailable() -> None:
    exc = OperationalError("SELECT", {}, sqlite3.OperationalError("no such table: ids"))

    translated = translate_error(exc)

    assert type(translated) is StorageError
    assert "no such table" in translated.details["reason"]


def test_other_failures_become_storage_error() -> None:
    exc = ProgrammingError("SELECT", {}, sqlite3.ProgrammingError("bad parameter"))

    translated = translate_error(exc)

    assert type(translated) is StorageError


@pytest.mark.asyncio
async def test_db_read_translates_pool_timeout(monkeypatch: pytest.MonkeyPatch) -> None:
    class _FailingContext:
        async def __aenter__(self) -> None:
            raise PoolTimeoutError("QueuePool limit reached")

        async def __aexit__(self, *_args: object) -> None:
            return None

    monkeypatch.setattr(
        "idregistry.core.db_kernel.get_session_context",
        lambda **_kwargs: _FailingContext(),
    )

    async def _never_called(_session: object) -> None:
        raise AssertionError("operation should not run")

    with pytest.raises(StorageUnavailableError):
        await db_read(_never_called, operation_name="unit_test")
