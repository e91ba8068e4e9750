"""
Unit tests for the SQL migration runner.

Tests:
- Statement splitting on terminated lines
- Lexicographic application and bookkeeping in schema_migrations
- Re-runs skip applied files; empty files are only recorded
- A failing file is rolled back and left unrecorded
"""

from pathlib import Path
from typing import AsyncGenerator, List

import pytest
import pytest_asyncio
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from lyric.storage.migrate import MigrationError, apply_migrations, split_statements


@pytest_asyncio.fixture
async def engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'migrate.db'}")
    yield engine
    await engine.dispose()


@pytest.fixture
def migrations_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "migrations"
    directory.mkdir()
    (directory / "010_seed.sql").write_text(
        "INSERT INTO languages (name) VALUES ('English');\n"
        "INSERT INTO languages (name) VALUES ('Vietnamese');\n"
    )
    (directory / "001_languages.sql").write_text(
        "-- languages\n"
        "CREATE TABLE languages (\n"
        "    id INTEGER PRIMARY KEY,\n"
        "    name TEXT NOT NULL UNIQUE\n"
        ");\n"
    )
    (directory / "002_empty.sql").write_text("-- intentionally blank\n\n")
    (directory / "README.md").write_text("not a migration")
    return directory


async def recorded(engine: AsyncEngine) -> List[str]:
    async with engine.connect() as conn:
        rows = await conn.execute(text("SELECT name FROM schema_migrations ORDER BY name"))
        return [row[0] for row in rows]


async def language_names(engine: AsyncEngine) -> List[str]:
    async with engine.connect() as conn:
        rows = await conn.execute(text("SELECT name FROM languages ORDER BY id"))
        return [row[0] for row in rows]


class TestSplitStatements:
    def test_splits_on_terminated_lines(self):
        sql = """
-- languages
CREATE TABLE languages (
    id SERIAL PRIMARY KEY,
    name TEXT NOT NULL
);

-- trailing comment only
INSERT INTO languages (name) VALUES ('English');
SELECT 1
"""
        assert split_statements(sql) == [
            "-- languages\nCREATE TABLE languages (\n    id SERIAL PRIMARY KEY,\n    name TEXT NOT NULL\n);",
            "-- trailing comment only\nINSERT INTO languages (name) VALUES ('English');",
            "SELECT 1",
        ]

    def test_comment_only_file(self):
        assert split_statements("-- nothing here\n\n") == []


class TestApplyMigrations:
    @pytest.mark.asyncio
    async def test_applies_in_name_order(self, engine: AsyncEngine, migrations_dir: Path):
        applied = await apply_migrations(engine, migrations_dir)

        assert applied == ["001_languages.sql", "002_empty.sql", "010_seed.sql"]
        assert await recorded(engine) == applied
        assert await language_names(engine) == ["English", "Vietnamese"]

    @pytest.mark.asyncio
    async def test_rerun_skips_applied_files(self, engine: AsyncEngine, migrations_dir: Path):
        await apply_migrations(engine, migrations_dir)

        assert await apply_migrations(engine, migrations_dir) == []
        assert await language_names(engine) == ["English", "Vietnamese"]

        (migrations_dir / "011_more.sql").write_text("INSERT INTO languages (name) VALUES ('French');\n")
        assert await apply_migrations(engine, migrations_dir) == ["011_more.sql"]
        assert await language_names(engine) == ["English", "Vietnamese", "French"]

    @pytest.mark.asyncio
    async def test_failed_file_rolled_back(self, engine: AsyncEngine, migrations_dir: Path):
        await apply_migrations(engine, migrations_dir)
        (migrations_dir / "020_broken.sql").write_text(
            "INSERT INTO languages (name) VALUES ('Korean');\n"
            "INSERT INTO no_such_table (name) VALUES ('x');\n"
        )
        (migrations_dir / "030_after.sql").write_text("INSERT INTO languages (name) VALUES ('Thai');\n")

        with pytest.raises(MigrationError, match="020_broken.sql"):
            await apply_migrations(engine, migrations_dir)

        assert await recorded(engine) == ["001_languages.sql", "002_empty.sql", "010_seed.sql"]
        assert await language_names(engine) == ["English", "Vietnamese"]

    @pytest.mark.asyncio
    async def test_missing_directory(self, engine: AsyncEngine, tmp_path: Path):
        with pytest.raises(MigrationError, match="not found"):
            await apply_migrations(engine, tmp_path / "absent")
