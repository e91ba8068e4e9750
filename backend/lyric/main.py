"""
Lyric Backend

Main FastAPI application entry point: JSON API under /api, server-rendered
pages at the root and under /admin, and a /health probe.
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from lyric.api import api_router
from lyric.auth import AdminLoginRequired, admin_login_redirect_handler
from lyric.core.config import get_settings
from lyric.core.database import async_engine, dispose_engine
from lyric.core.errors import register_exception_handlers
from lyric.core.log import configure_logging
from lyric.core.middleware import REQUEST_ID_HEADER, install_middleware
from lyric.services.health import check_health
from lyric.web import web_router

# Load settings
settings = get_settings()
configure_logging(settings.log_level)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("%s %s starting (%s)", settings.app_name, settings.version, settings.app_env)
    yield
    await dispose_engine()
    logger.info("database pool closed")


app = FastAPI(
    title=settings.app_name,
    description="Song catalogue and lyric-chord backend",
    version=settings.version,
    lifespan=lifespan,
)

# Request id, real IP, access log and panic recovery
install_middleware(app)

# CORS configuration (loaded from environment)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[REQUEST_ID_HEADER],
)

register_exception_handlers(app)
app.add_exception_handler(AdminLoginRequired, admin_login_redirect_handler)

# Include API routes
app.include_router(api_router, prefix="/api")


@app.get("/health")
async def health_check() -> dict:
    """
    Health check endpoint for orchestration.

    Always answers 200; a failed database ping turns the status to "degraded".
    """
    return await check_health(async_engine)


# HTML pages last so /api and /health win over page routes
app.include_router(web_router)


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    uvicorn.run(
        "lyric.main:app",
        host=settings.listen_host,
        port=settings.listen_port,
        log_level=settings.log_level.lower(),
        timeout_graceful_shutdown=int(settings.shutdown_timeout.total_seconds()),
    )


if __name__ == "__main__":
    run()
