"""
Health check: report liveness plus a database round trip.
"""

import logging
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from lyric.core.database import utcnow

logger = logging.getLogger(__name__)


async def check_health(engine: AsyncEngine) -> dict[str, Any]:
    """
    Ping the database and build the health payload.

    Returns:
        {"status": "ok"|"degraded", "checked_at": iso, "database": {"status": "ok"|"error", "message"?}}
    """
    database: dict[str, Any] = {"status": "ok"}
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as exc:
        logger.warning("database health check failed: %s", exc)
        database = {"status": "error", "message": str(exc)}

    return {
        "status": "ok" if database["status"] == "ok" else "degraded",
        "checked_at": utcnow().isoformat(),
        "database": database,
    }
