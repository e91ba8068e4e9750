"""
Common dependencies for Lyric API endpoints.

Provides reusable FastAPI dependencies for database sessions,
authentication, and other shared functionality.
"""

from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession

from lyric.core.database import get_async_session
from lyric.core.security import optional_user_id, require_user_id
from lyric.services.mailer import get_mailer


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Database session dependency.

    Provides an async database session for route handlers.
    The session is automatically committed on success or
    rolled back on exception.

    Usage:
        @router.get("/items")
        async def get_items(db: AsyncSession = Depends(get_db)):
            ...
    """
    async for session in get_async_session():
        yield session


# Re-export commonly used dependencies for convenience
__all__ = [
    "get_db",
    "get_mailer",
    "optional_user_id",
    "require_user_id",
]
