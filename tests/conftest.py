"""Shared fixtures: temporary SQLite storage files with seeded settings."""

from __future__ import annotations

from collections.abc import AsyncGenerator, Callable
from pathlib import Path

import pytest
import pytest_asyncio
from sqlalchemy import create_engine, insert

from idregistry.core import database
from idregistry.models import Base, Setting

TEST_ADMIN_SECRET = "test-secret"

StorageFactory = Callable[..., Path]


@pytest.fixture
def make_storage(tmp_path: Path) -> StorageFactory:
    """Create a storage file with tables and the given settings rows."""

    def _make(
        *,
        id_length: str | None = "4",
        charset: str | None = "AB",
        admin_secret: str | None = TEST_ADMIN_SECRET,
        name: str = "registry.db",
    ) -> Path:
        path = tmp_path / name
        engine = create_engine(f"sqlite:///{path}")
        try:
            Base.metadata.create_all(engine)
            rows = [
                {"key": key, "value": value}
                for key, value in (
                    ("id_length", id_length),
                    ("charset", charset),
                    ("admin_secret", admin_secret),
                )
                if value is not None
            ]
            if rows:
                with engine.begin() as conn:
                    conn.execute(insert(Setting), rows)
        finally:
            engine.dispose()
        return path

    return _make


@pytest_asyncio.fixture
async def storage(make_storage: StorageFactory) -> AsyncGenerator[Path, None]:
    """Initialise the process engine against a fresh storage file."""
    path = make_storage()
    database.init_engine(str(path))
    try:
        yield path
    finally:
        await database.close_db()
