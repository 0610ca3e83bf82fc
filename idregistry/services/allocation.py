"""ID allocation engine: candidate generation, filtering and collision retries."""

from __future__ import annotations

import logging
import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from functools import partial

from sqlalchemy.ext.asyncio import AsyncSession

from idregistry.core.db_kernel import WriteConflictError, db_read, db_write
from idregistry.core.exceptions import (
    AllocationConflictError,
    GenerationExhaustedError,
    InvalidOwnerError,
)
from idregistry.core.random_source import RandomSource
from idregistry.models.id_record import IdRecord
from idregistry.repositories.id_record_repository import IdRecordRepository
from idregistry.services.settings_store import AllocationSettings

logger = logging.getLogger(__name__)

MAX_GENERATION_ATTEMPTS = 100
PROGRESS_LOG_INTERVAL = 20
MAX_INSERT_ATTEMPTS = 3

_DECIMAL_DIGITS = frozenset("0123456789")
_OWNER_PATTERN = re.compile(r"\w+")

ExistsCheck = Callable[[str], Awaitable[bool]]


@dataclass(frozen=True)
class AllocationSuccess:
    """Loop found an unused, non-numeric candidate."""

    id: str
    attempts: int


@dataclass(frozen=True)
class AllocationExhausted:
    """Attempt budget spent without a usable candidate."""

    attempts: int


AllocationResult = AllocationSuccess | AllocationExhausted


def generate_candidate(charset: str, id_length: int, random_source: RandomSource) -> str:
    """Draw ``id_length`` characters uniformly, with replacement, from ``charset``.

    Repeated characters in ``charset`` are proportionally more likely.
    """
    bound = len(charset)
    return "".join(charset[random_source.next_index(bound)] for _ in range(id_length))


def is_all_numeric(candidate: str) -> bool:
    """True when every character is an ASCII decimal digit."""
    return bool(candidate) and all(char in _DECIMAL_DIGITS for char in candidate)


def normalize_owner(owner: str) -> str:
    """Trim the owner and require letters, digits or underscore only."""
    cleaned = owner.strip()
    if not cleaned or not _OWNER_PATTERN.fullmatch(cleaned):
        raise InvalidOwnerError(owner)
    return cleaned


async def run_allocation_loop(
    *,
    exists: ExistsCheck,
    settings: AllocationSettings,
    random_source: RandomSource,
    max_attempts: int = MAX_GENERATION_ATTEMPTS,
) -> AllocationResult:
    """Generate candidates until one is non-numeric and unused.

    All-numeric candidates are discarded without a storage lookup. There is
    no delay between attempts.
    """
    if not settings.charset:
        raise ValueError("Charset is empty")
    if settings.id_length <= 0:
        raise ValueError("id_length must be > 0")

    for attempt in range(1, max_attempts + 1):
        candidate = generate_candidate(settings.charset, settings.id_length, random_source)

        if not is_all_numeric(candidate) and not await exists(candidate):
            return AllocationSuccess(id=candidate, attempts=attempt)

        if attempt % PROGRESS_LOG_INTERVAL == 0:
            logger.info(
                "Collision detected, retrying",
                extra={"attempt": attempt, "max_attempts": max_attempts},
            )

    logger.error(
        "ID generation space exhausted",
        extra={
            "attempts": max_attempts,
            "id_length": settings.id_length,
            "charset_size": len(settings.charset),
        },
    )
    return AllocationExhausted(attempts=max_attempts)


async def preview_id(
    *,
    settings: AllocationSettings,
    random_source: RandomSource,
) -> str:
    """Run the allocation loop without inserting.

    The value may be taken by the time a real allocation happens.
    """

    async def _preview(session: AsyncSession) -> AllocationResult:
        repository = IdRecordRepository(session)
        return await run_allocation_loop(
            exists=repository.exists,
            settings=settings,
            random_source=random_source,
        )

    result = await db_read(_preview, operation_name="preview_id")
    if isinstance(result, AllocationExhausted):
        raise GenerationExhaustedError(result.attempts)
    return result.id


async def _allocate_once(
    session: AsyncSession,
    *,
    owner: str,
    table_name: str | None,
    settings: AllocationSettings,
    random_source: RandomSource,
) -> IdRecord | AllocationExhausted:
    repository = IdRecordRepository(session)
    result = await run_allocation_loop(
        exists=repository.exists,
        settings=settings,
        random_source=random_source,
    )
    if isinstance(result, AllocationExhausted):
        return result
    return await repository.insert(result.id, owner, table_name)


async def allocate_id(
    *,
    owner: str,
    table_name: str | None,
    settings: AllocationSettings,
    random_source: RandomSource,
    max_insert_attempts: int = MAX_INSERT_ATTEMPTS,
) -> IdRecord:
    """Allocate a new ID and persist it for ``owner``.

    A uniqueness violation at insert time means another request took the
    same value after our existence check; the whole loop is re-entered
    with a fresh session, up to ``max_insert_attempts`` times.
    """
    cleaned_owner = normalize_owner(owner)

    for insert_attempt in range(1, max_insert_attempts + 1):
        try:
            outcome = await db_write(
                partial(
                    _allocate_once,
                    owner=cleaned_owner,
                    table_name=table_name,
                    settings=settings,
                    random_source=random_source,
                ),
                operation_name="allocate_id",
            )
        except WriteConflictError:
            logger.warning(
                "ID insert lost a uniqueness race, regenerating",
                extra={"insert_attempt": insert_attempt, "max_attempts": max_insert_attempts},
            )
            continue

        if isinstance(outcome, AllocationExhausted):
            raise GenerationExhaustedError(outcome.attempts)

        logger.info(
            "ID allocated",
            extra={"id": outcome.id, "owner": outcome.owner, "table": outcome.table_name},
        )
        return outcome

    raise AllocationConflictError(max_insert_attempts)
