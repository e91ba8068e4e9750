"""
Database configuration for Lyric.

Provides the async SQLAlchemy engine, session factory, and base model class.
PostgreSQL (asyncpg) in deployment, SQLite (aiosqlite) for local runs and tests.
"""

from datetime import datetime, timezone
from typing import Any, AsyncGenerator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from .config import Settings, get_settings


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def engine_options(settings: Settings) -> dict[str, Any]:
    """
    Build create_async_engine keyword arguments from settings.

    Pool sizing only applies to server databases; SQLite keeps the
    dialect's default pool.
    """
    options: dict[str, Any] = {
        "echo": settings.sql_echo,
        "future": True,
    }
    if settings.async_database_url.startswith("postgresql"):
        options.update(
            pool_size=settings.database_max_conns,
            max_overflow=0,
            pool_recycle=int(settings.database_max_conn_lifetime.total_seconds()),
            pool_timeout=settings.database_max_conn_idle_time.total_seconds(),
            pool_pre_ping=True,
        )
    return options


settings = get_settings()

async_engine = create_async_engine(settings.async_database_url, **engine_options(settings))


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


if async_engine.dialect.name == "sqlite":
    event.listen(async_engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

# Session factory
AsyncSessionLocal = async_sessionmaker(
    bind=async_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency that provides an async database session.

    Usage with FastAPI:
        @app.get("/items")
        async def get_items(db: AsyncSession = Depends(get_async_session)):
            ...
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def create_all_tables() -> None:
    """Create all tables in the database (for development/testing)."""
    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine() -> None:
    """Close pooled connections on shutdown."""
    await async_engine.dispose()
