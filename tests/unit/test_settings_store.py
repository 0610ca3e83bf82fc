"""Unit tests for loading and provisioning allocation settings."""

from __future__ import annotations

from pathlib import Path

import pytest

from idregistry.core.database import get_session_context
from idregistry.core.exceptions import ConfigurationError
from idregistry.services.settings_store import (
    DEFAULT_CHARSET,
    AllocationSettings,
    load_allocation_settings,
    parse_allocation_settings,
    read_setting_rows,
    save_settings,
    seed_default_settings,
    validate_provisioning_values,
)


def test_parse_allocation_settings_valid() -> None:
    parsed = parse_allocation_settings(
        {"id_length": " 12 ", "charset": "abc123", "admin_secret": "s3cret"}
    )

    assert parsed == AllocationSettings(id_length=12, charset="abc123", admin_secret="s3cret")


def test_parse_allocation_settings_reports_missing_keys() -> None:
    with pytest.raises(ConfigurationError) as exc_info:
        parse_allocation_settings({"id_length": "8"})

    assert exc_info.value.details["missing_keys"] == ["charset", "admin_secret"]


@pytest.mark.parametrize("raw_length", ["twelve", "", "1.5"])
def test_parse_allocation_settings_rejects_non_integer_length(raw_length: str) -> None:
    with pytest.raises(ConfigurationError, match="Invalid 'id_length'"):
        parse_allocation_settings(
            {"id_length": raw_length, "charset": "ab", "admin_secret": "s"}
        )


@pytest.mark.parametrize("raw_length", ["0", "-3"])
def test_parse_allocation_settings_rejects_non_positive_length(raw_length: str) -> None:
    with pytest.raises(ConfigurationError, match="must be positive"):
        parse_allocation_settings(
            {"id_length": raw_length, "charset": "ab", "admin_secret": "s"}
        )


def test_parse_allocation_settings_rejects_empty_charset() -> None:
    with pytest.raises(ConfigurationError, match="'charset' must not be empty"):
        parse_allocation_settings({"id_length": "4", "charset": "", "admin_secret": "s"})


def test_public_view_redacts_secret() -> None:
    view = AllocationSettings(id_length=4, charset="AB", admin_secret="hunter2").public_view()

    assert view == {"id_length": 4, "charset": "AB", "admin_secret": "***"}


def test_validate_provisioning_values_bounds() -> None:
    assert validate_provisioning_values(id_length=8, charset="  abc  ") == "abc"
    assert validate_provisioning_values(id_length=32, charset="x" * 100) == "x" * 100

    with pytest.raises(ConfigurationError):
        validate_provisioning_values(id_length=7, charset="abc")
    with pytest.raises(ConfigurationError):
        validate_provisioning_values(id_length=33, charset="abc")
    with pytest.raises(ConfigurationError):
        validate_provisioning_values(id_length=12, charset="   ")
    with pytest.raises(ConfigurationError):
        validate_provisioning_values(id_length=12, charset="x" * 101)


@pytest.mark.asyncio
async def test_load_allocation_settings_from_storage(storage: Path) -> None:
    async with get_session_context(commit_on_exit=False) as session:
        loaded = await load_allocation_settings(session)

    assert loaded == AllocationSettings(id_length=4, charset="AB", admin_secret="test-secret")


@pytest.mark.asyncio
async def test_seed_keeps_existing_rows_and_save_replaces(storage: Path) -> None:
    async with get_session_context() as session:
        await seed_default_settings(session, admin_secret="other")
        await save_settings(session, {"id_length": "16"})

    async with get_session_context(commit_on_exit=False) as session:
        rows = await read_setting_rows(session)

    assert rows == {"id_length": "16", "charset": "AB", "admin_secret": "test-secret"}
    assert DEFAULT_CHARSET not in rows.values()
