"""Provision an ID registry storage file and inspect its settings."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from collections.abc import Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from idregistry.core import database
from idregistry.core.db_kernel import db_read, db_write
from idregistry.core.exceptions import IdRegistryError
from idregistry.services.settings_store import (
    ADMIN_SECRET_KEY,
    CHARSET_KEY,
    DEFAULT_CHARSET,
    DEFAULT_ID_LENGTH,
    ID_LENGTH_KEY,
    REDACTED,
    read_setting_rows,
    save_settings,
    seed_default_settings,
    validate_provisioning_values,
)


def build_parser() -> argparse.ArgumentParser:
    """Build CLI parser."""
    parser = argparse.ArgumentParser(prog="idregistry-admin", description=__doc__)
    subparsers = parser.add_subparsers(dest="command", required=True)

    init_parser = subparsers.add_parser(
        "init",
        help="Create tables and write allocation settings",
    )
    init_parser.add_argument("--database-path", required=True, help="SQLite storage file")
    init_parser.add_argument(
        "--id-length",
        type=int,
        default=DEFAULT_ID_LENGTH,
        help=f"Characters per generated ID (default: {DEFAULT_ID_LENGTH})",
    )
    init_parser.add_argument(
        "--charset",
        default=DEFAULT_CHARSET,
        help="Characters eligible for generation (default: ASCII letters and digits)",
    )
    init_parser.add_argument(
        "--admin-secret",
        default=None,
        help="Secret for suspend/resume; replaces the stored one when given",
    )

    show_parser = subparsers.add_parser("show", help="Print current settings")
    show_parser.add_argument("--database-path", required=True, help="SQLite storage file")
    return parser


async def _init(args: argparse.Namespace) -> dict[str, str | None]:
    charset = validate_provisioning_values(id_length=args.id_length, charset=args.charset)
    values = {ID_LENGTH_KEY: str(args.id_length), CHARSET_KEY: charset}
    if args.admin_secret:
        values[ADMIN_SECRET_KEY] = args.admin_secret

    await database.init_db()

    async def _write(session: AsyncSession) -> dict[str, str | None]:
        await seed_default_settings(session, admin_secret=args.admin_secret or "")
        await save_settings(session, values)
        return await read_setting_rows(session)

    return await db_write(_write, operation_name="provision_settings")


async def _show(_args: argparse.Namespace) -> dict[str, str | None]:
    return await db_read(read_setting_rows, operation_name="show_settings")


async def async_main(argv: Sequence[str] | None = None) -> int:
    """Run one CLI command against the given storage file."""
    args = build_parser().parse_args(argv)
    handler = _init if args.command == "init" else _show

    try:
        database.init_engine(args.database_path)
        rows = await handler(args)
    except IdRegistryError as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        return 2
    finally:
        await database.close_db()

    if rows.get(ADMIN_SECRET_KEY):
        rows[ADMIN_SECRET_KEY] = REDACTED
    elif ADMIN_SECRET_KEY in rows:
        print(
            "Warning: admin_secret is empty; suspend/resume will reject every request",
            file=sys.stderr,
        )
    print(json.dumps({"database_path": args.database_path, "settings": rows}, indent=2))
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Sync wrapper."""
    return asyncio.run(async_main(argv))


if __name__ == "__main__":
    raise SystemExit(main())
