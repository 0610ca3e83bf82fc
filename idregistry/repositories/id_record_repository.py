"""Repository for IdRecord reads and lifecycle writes."""

from __future__ import annotations

import enum
import logging
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from idregistry.models.id_record import IdRecord

logger = logging.getLogger(__name__)


class MutationOutcome(str, enum.Enum):
    """Result of a lifecycle mutation that callers must branch on."""

    APPLIED = "applied"
    NOT_FOUND = "not_found"
    NOT_IMPLEMENTED = "not_implemented"


class IdRecordRepository:
    """Registry store operations bound to one session.

    The caller owns the transaction; nothing here commits.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def exists(self, record_id: str) -> bool:
        """Whether any row uses this value, including confirmed and soft-deleted ones."""
        count = await self.session.scalar(
            select(func.count()).select_from(IdRecord).where(IdRecord.id == record_id)
        )
        return bool(count)

    async def insert(self, record_id: str, owner: str, table_name: str | None) -> IdRecord:
        """Insert a fresh unconfirmed row.

        A concurrent insert of the same value raises ``IntegrityError`` on
        flush; the existing row is never overwritten.
        """
        record = IdRecord(
            id=record_id,
            owner=owner,
            table_name=table_name,
            confirmed=0,
            deleted=0,
        )
        self.session.add(record)
        await self.session.flush()
        await self.session.refresh(record)
        return record

    async def confirm(self, record_id: str) -> bool:
        """Mark an unconfirmed, non-deleted row confirmed; True if a row changed."""
        result = await self.session.execute(
            update(IdRecord)
            .where(
                IdRecord.id == record_id,
                IdRecord.confirmed == 0,
                IdRecord.deleted == 0,
            )
            .values(confirmed=1)
        )
        return (result.rowcount or 0) > 0

    async def lookup(self, record_id: str) -> IdRecord | None:
        """Active row for this value, or None when absent or soft-deleted."""
        result = await self.session.execute(
            select(IdRecord).where(IdRecord.id == record_id, IdRecord.deleted == 0)
        )
        return result.scalar_one_or_none()

    async def update(self, record_id: str, changes: Any) -> MutationOutcome:
        logger.info(
            "ID update requested but not available",
            extra={"id": record_id, "body_type": type(changes).__name__},
        )
        return MutationOutcome.NOT_IMPLEMENTED

    async def soft_delete(self, record_id: str) -> MutationOutcome:
        logger.info("ID delete requested but not available", extra={"id": record_id})
        return MutationOutcome.NOT_IMPLEMENTED
