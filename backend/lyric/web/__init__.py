"""
Server-rendered HTML: public pages and the admin surface.
"""

from fastapi import APIRouter

from . import admin, pages

web_router = APIRouter()

# Admin surface (cookie session)
web_router.include_router(admin.router, tags=["admin"])

# Public pages
web_router.include_router(pages.router, tags=["pages"])

__all__ = ["web_router"]
