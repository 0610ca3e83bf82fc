"""Unit tests for allocation against a real SQLite storage file."""

from __future__ import annotations

import itertools
from pathlib import Path
from typing import Any

import pytest
from sqlalchemy import select

from idregistry.core.database import get_session_context
from idregistry.core.exceptions import (
    AllocationConflictError,
    GenerationExhaustedError,
    InvalidOwnerError,
)
from idregistry.core.random_source import SystemRandomSource
from idregistry.models import IdRecord
from idregistry.repositories.id_record_repository import IdRecordRepository
from idregistry.services.allocation import allocate_id, preview_id
from idregistry.services.settings_store import AllocationSettings

AB4 = AllocationSettings(id_length=4, charset="AB", admin_secret="s")


class _SequenceRandomSource:
    def __init__(self, indices: list[int]) -> None:
        self._indices = itertools.cycle(indices)

    def next_index(self, bound: int) -> int:
        return next(self._indices) % bound


async def _insert(record_id: str, *, deleted: int = 0) -> None:
    async with get_session_context() as session:
        session.add(IdRecord(id=record_id, owner="seed", deleted=deleted))


async def _all_ids() -> list[str]:
    async with get_session_context(commit_on_exit=False) as session:
        result = await session.execute(select(IdRecord.id).order_by(IdRecord.id))
        return list(result.scalars().all())


@pytest.mark.asyncio
async def test_allocate_id_persists_unconfirmed_record(storage: Path) -> None:
    record = await allocate_id(
        owner="  bob_1  ",
        table_name="tickets",
        settings=AB4,
        random_source=_SequenceRandomSource([0, 1, 1, 0]),
    )

    assert record.id == "ABBA"
    assert record.owner == "bob_1"
    assert record.table_name == "tickets"
    assert record.confirmed == 0
    assert record.deleted == 0
    assert record.created_at is not None
    assert await _all_ids() == ["ABBA"]


@pytest.mark.asyncio
async def test_allocate_id_rejects_invalid_owner_before_storage(
    storage: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    async def _fail(*_args: Any, **_kwargs: Any) -> None:
        raise AssertionError("storage must not be touched")

    monkeypatch.setattr("idregistry.services.allocation.db_write", _fail)

    with pytest.raises(InvalidOwnerError):
        await allocate_id(
            owner="bob!1",
            table_name=None,
            settings=AB4,
            random_source=SystemRandomSource(),
        )


@pytest.mark.asyncio
async def test_allocate_id_avoids_soft_deleted_values(storage: Path) -> None:
    await _insert("AAAA", deleted=1)

    record = await allocate_id(
        owner="alice",
        table_name=None,
        settings=AB4,
        random_source=_SequenceRandomSource([0, 0, 0, 0, 1, 1, 1, 1]),
    )

    assert record.id == "BBBB"
    assert await _all_ids() == ["AAAA", "BBBB"]


@pytest.mark.asyncio
async def test_allocate_id_reenters_loop_after_insert_conflict(
    storage: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    await _insert("AAAA")
    checks: list[str] = []

    async def _stale_exists(self: IdRecordRepository, record_id: str) -> bool:
        # Simulates a concurrent insert landing after the existence check.
        checks.append(record_id)
        return False

    monkeypatch.setattr(IdRecordRepository, "exists", _stale_exists)

    record = await allocate_id(
        owner="alice",
        table_name=None,
        settings=AB4,
        random_source=_SequenceRandomSource([0, 0, 0, 0, 1, 1, 1, 1]),
    )

    assert checks == ["AAAA", "BBBB"]
    assert record.id == "BBBB"
    assert await _all_ids() == ["AAAA", "BBBB"]


@pytest.mark.asyncio
async def test_allocate_id_gives_up_after_repeated_insert_conflicts(
    storage: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    await _insert("AAAA")

    async def _stale_exists(self: IdRecordRepository, record_id: str) -> bool:
        return False

    monkeypatch.setattr(IdRecordRepository, "exists", _stale_exists)

    with pytest.raises(AllocationConflictError) as exc_info:
        await allocate_id(
            owner="alice",
            table_name=None,
            settings=AB4,
            random_source=_SequenceRandomSource([0]),
            max_insert_attempts=3,
        )

    assert exc_info.value.attempts == 3
    assert await _all_ids() == ["AAAA"]


@pytest.mark.asyncio
async def test_allocate_id_raises_when_space_exhausted(storage: Path) -> None:
    numeric_only = AllocationSettings(id_length=1, charset="01", admin_secret="s")

    with pytest.raises(GenerationExhaustedError) as exc_info:
        await allocate_id(
            owner="alice",
            table_name=None,
            settings=numeric_only,
            random_source=SystemRandomSource(),
        )

    assert exc_info.value.attempts == 100
    assert await _all_ids() == []


@pytest.mark.asyncio
async def test_allocations_fill_the_space_then_exhaust(storage: Path) -> None:
    tiny = AllocationSettings(id_length=1, charset="AB", admin_secret="s")
    source = _SequenceRandomSource([0, 1])

    first = await allocate_id(owner="a", table_name=None, settings=tiny, random_source=source)
    second = await allocate_id(owner="a", table_name=None, settings=tiny, random_source=source)

    assert {first.id, second.id} == {"A", "B"}
    with pytest.raises(GenerationExhaustedError):
        await allocate_id(owner="a", table_name=None, settings=tiny, random_source=source)


@pytest.mark.asyncio
async def test_preview_id_does_not_persist(storage: Path) -> None:
    await _insert("AAAA")

    preview = await preview_id(
        settings=AB4,
        random_source=_SequenceRandomSource([0, 0, 0, 0, 0, 0, 0, 1]),
    )

    assert preview == "AAAB"
    assert await _all_ids() == ["AAAA"]
