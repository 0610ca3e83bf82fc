"""Lifecycle operations on issued IDs: confirm, lookup, update, delete."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from idregistry.core.db_kernel import db_read, db_write
from idregistry.core.exceptions import IdNotFoundError
from idregistry.models.id_record import IdRecord
from idregistry.repositories.id_record_repository import IdRecordRepository, MutationOutcome

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConfirmOutcome:
    success: bool
    message: str


async def confirm_id(record_id: str) -> ConfirmOutcome:
    """Confirm an ID; unknown or already confirmed IDs give ``success=False``."""

    async def _confirm(session: AsyncSession) -> bool:
        return await IdRecordRepository(session).confirm(record_id)

    changed = await db_write(_confirm, operation_name="confirm_id")
    if not changed:
        logger.info("Confirm matched no unconfirmed ID", extra={"id": record_id})
        return ConfirmOutcome(
            success=False,
            message=f"ID {record_id} not found or already confirmed",
        )

    logger.info("ID confirmed", extra={"id": record_id})
    return ConfirmOutcome(success=True, message=f"ID {record_id} confirmed")


async def lookup_id(record_id: str) -> IdRecord:
    """Return the active record or raise ``IdNotFoundError``."""

    async def _lookup(session: AsyncSession) -> IdRecord | None:
        return await IdRecordRepository(session).lookup(record_id)

    record = await db_read(_lookup, operation_name="lookup_id")
    if record is None:
        raise IdNotFoundError(record_id)
    return record


async def update_id(record_id: str, changes: Any) -> MutationOutcome:
    async def _update(session: AsyncSession) -> MutationOutcome:
        return await IdRecordRepository(session).update(record_id, changes)

    return await db_write(_update, operation_name="update_id")


async def delete_id(record_id: str) -> MutationOutcome:
    async def _delete(session: AsyncSession) -> MutationOutcome:
        return await IdRecordRepository(session).soft_delete(record_id)

    return await db_write(_delete, operation_name="delete_id")
