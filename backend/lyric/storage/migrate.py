"""
SQL migration runner.

Applies the *.sql files of a directory in lexicographic order, each inside
its own transaction together with its schema_migrations row. Files already
recorded are skipped; empty files are recorded without executing anything.

Usage:
    lyric-migrate --path migrations
    python -m lyric.storage.migrate
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

logger = logging.getLogger(__name__)

MIGRATIONS_TABLE = "schema_migrations"
RUN_TIMEOUT_SECONDS = 5 * 60

_CREATE_TABLE = text(
    f"""
    CREATE TABLE IF NOT EXISTS {MIGRATIONS_TABLE} (
        name TEXT PRIMARY KEY,
        applied_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT CURRENT_TIMESTAMP
    )
    """
)
_IS_APPLIED = text(f"SELECT 1 FROM {MIGRATIONS_TABLE} WHERE name = :name")
_RECORD = text(f"INSERT INTO {MIGRATIONS_TABLE} (name) VALUES (:name)")


class MigrationError(Exception):
    """A migration file could not be read or executed."""


def split_statements(sql: str) -> List[str]:
    """
    Split a migration file into statements.

    A statement ends at a line whose last non-blank character is ';'.
    Trailing text without a terminator is kept as a final statement. Blank
    and comment-only chunks are dropped.
    """
    statements: List[str] = []
    current: List[str] = []
    for line in sql.splitlines():
        current.append(line)
        if line.rstrip().endswith(";"):
            statements.append("\n".join(current))
            current = []
    if current:
        statements.append("\n".join(current))

    return [statement.strip() for statement in statements if _has_code(statement)]


def _has_code(chunk: str) -> bool:
    for line in chunk.splitlines():
        stripped = line.strip()
        if stripped and not stripped.startswith("--"):
            return True
    return False


async def ensure_table(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.execute(_CREATE_TABLE)


async def _is_applied(conn: AsyncConnection, name: str) -> bool:
    return (await conn.execute(_IS_APPLIED, {"name": name})).first() is not None


async def apply_migrations(engine: AsyncEngine, directory: Path) -> List[str]:
    """
    Apply every pending migration in directory.

    Args:
        engine: Target database engine
        directory: Folder holding *.sql files

    Returns:
        Names of the files applied by this run, in order

    Raises:
        MigrationError: when the directory is missing or a file fails; files
            applied before the failure stay applied
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise MigrationError(f"migrations directory {str(directory)!r} not found")

    await ensure_table(engine)

    applied: List[str] = []
    for path in sorted(directory.glob("*.sql"), key=lambda item: item.name):
        if not path.is_file():
            continue
        name = path.name

        async with engine.connect() as conn:
            if await _is_applied(conn, name):
                continue

        try:
            statements = split_statements(path.read_text(encoding="utf-8"))
        except OSError as exc:
            raise MigrationError(f"read {name}: {exc}") from exc

        try:
            async with engine.begin() as conn:
                for statement in statements:
                    await conn.exec_driver_sql(statement)
                await conn.execute(_RECORD, {"name": name})
        except SQLAlchemyError as exc:
            raise MigrationError(f"exec migration {name}: {exc}") from exc

        logger.info("applied migration %s (%d statements)", name, len(statements))
        applied.append(name)

    return applied


async def run(directory: Path) -> List[str]:
    # Imported here so --help works without database settings
    from lyric.core.database import async_engine, dispose_engine

    try:
        return await asyncio.wait_for(
            apply_migrations(async_engine, directory),
            timeout=RUN_TIMEOUT_SECONDS,
        )
    finally:
        await dispose_engine()


def main(argv: Optional[List[str]] = None) -> None:
    from lyric.core.config import get_settings
    from lyric.core.log import configure_logging

    parser = argparse.ArgumentParser(description="lyric-migrate: apply pending SQL migrations")
    parser.add_argument(
        "--path",
        default=None,
        help="directory containing .sql migrations (default: WEB_MIGRATIONS_DIR)",
    )
    args = parser.parse_args(argv)

    settings = get_settings()
    configure_logging(settings.log_level)
    directory = Path(args.path or settings.migrations_dir)

    try:
        applied = asyncio.run(run(directory))
    except (MigrationError, asyncio.TimeoutError) as exc:
        logger.error("migrate: %s", exc or "timed out")
        sys.exit(1)

    if not applied:
        logger.info("migrate: no migrations applied")
        return
    for name in applied:
        logger.info("migrate: applied %s", name)


if __name__ == "__main__":
    main()
