"""Allocation settings loaded once from the ``settings`` table."""

from __future__ import annotations

import logging
import string
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from sqlalchemy import select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from idregistry.core.exceptions import ConfigurationError
from idregistry.models.setting import Setting

logger = logging.getLogger(__name__)

ID_LENGTH_KEY = "id_length"
CHARSET_KEY = "charset"
ADMIN_SECRET_KEY = "admin_secret"
REQUIRED_SETTING_KEYS: tuple[str, ...] = (ID_LENGTH_KEY, CHARSET_KEY, ADMIN_SECRET_KEY)

DEFAULT_ID_LENGTH = 12
DEFAULT_CHARSET = string.ascii_lowercase + string.ascii_uppercase + string.digits

# Limits enforced when provisioning, not when loading.
PROVISION_MIN_ID_LENGTH = 8
PROVISION_MAX_ID_LENGTH = 32
PROVISION_MAX_CHARSET_LENGTH = 100

REDACTED = "***"


@dataclass(frozen=True)
class AllocationSettings:
    """Immutable allocation parameters for the lifetime of the process."""

    id_length: int
    charset: str
    admin_secret: str

    def public_view(self) -> dict[str, Any]:
        """Settings for operational display, with the secret redacted."""
        return {
            "id_length": self.id_length,
            "charset": self.charset,
            "admin_secret": REDACTED,
        }


def parse_allocation_settings(values: Mapping[str, str | None]) -> AllocationSettings:
    """Validate raw settings rows.

    Raises ``ConfigurationError`` for missing keys, a non-integer or
    non-positive ``id_length`` and an empty ``charset``.
    """
    missing = [key for key in REQUIRED_SETTING_KEYS if values.get(key) is None]
    if missing:
        raise ConfigurationError(
            f"Missing {', '.join(repr(key) for key in missing)} in settings table",
            details={"missing_keys": missing},
        )

    raw_length = str(values[ID_LENGTH_KEY]).strip()
    try:
        id_length = int(raw_length)
    except ValueError as exc:
        raise ConfigurationError(
            f"Invalid 'id_length' value: {raw_length!r}",
            details={"id_length": raw_length},
        ) from exc
    if id_length <= 0:
        raise ConfigurationError(
            f"'id_length' must be positive, got {id_length}",
            details={"id_length": id_length},
        )

    charset = str(values[CHARSET_KEY])
    if not charset:
        raise ConfigurationError("'charset' must not be empty")

    return AllocationSettings(
        id_length=id_length,
        charset=charset,
        admin_secret=str(values[ADMIN_SECRET_KEY]),
    )


async def read_setting_rows(session: AsyncSession) -> dict[str, str | None]:
    result = await session.execute(select(Setting.key, Setting.value))
    return {key: value for key, value in result.all()}


async def load_allocation_settings(session: AsyncSession) -> AllocationSettings:
    """Read and validate the allocation settings."""
    rows = await read_setting_rows(session)
    loaded = parse_allocation_settings(rows)
    logger.info(
        "Allocation settings loaded",
        extra={"id_length": loaded.id_length, "charset": loaded.charset},
    )
    return loaded


def validate_provisioning_values(*, id_length: int, charset: str) -> str:
    """Check values written by the provisioning tool; returns the trimmed charset."""
    if not PROVISION_MIN_ID_LENGTH <= id_length <= PROVISION_MAX_ID_LENGTH:
        raise ConfigurationError(
            f"id_length must be between {PROVISION_MIN_ID_LENGTH} "
            f"and {PROVISION_MAX_ID_LENGTH}",
            details={"id_length": id_length},
        )
    cleaned = charset.strip()
    if not cleaned:
        raise ConfigurationError("charset must not be empty")
    if len(cleaned) > PROVISION_MAX_CHARSET_LENGTH:
        raise ConfigurationError(
            f"charset must be at most {PROVISION_MAX_CHARSET_LENGTH} characters",
            details={"charset_length": len(cleaned)},
        )
    return cleaned


async def seed_default_settings(session: AsyncSession, *, admin_secret: str) -> None:
    """Insert default settings only where no row exists yet."""
    defaults = {
        ID_LENGTH_KEY: str(DEFAULT_ID_LENGTH),
        CHARSET_KEY: DEFAULT_CHARSET,
        ADMIN_SECRET_KEY: admin_secret,
    }
    stmt = sqlite_insert(Setting).values(
        [{"key": key, "value": value} for key, value in defaults.items()]
    )
    await session.execute(stmt.on_conflict_do_nothing(index_elements=[Setting.key]))


async def save_settings(session: AsyncSession, values: Mapping[str, str]) -> None:
    """Insert or replace the given settings rows."""
    if not values:
        return
    stmt = sqlite_insert(Setting).values(
        [{"key": key, "value": value} for key, value in values.items()]
    )
    await session.execute(
        stmt.on_conflict_do_update(
            index_elements=[Setting.key],
            set_={"value": stmt.excluded.value},
        )
    )
