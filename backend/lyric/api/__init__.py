"""
Lyric API routes package.

Contains all JSON endpoint routers, mounted under /api by the application.
"""

from fastapi import APIRouter

from .auth import router as auth_router
from .catalogue import router as catalogue_router
from .community import router as community_router
from .playlists import router as playlists_router
from .songs import router as songs_router
from .trending import router as trending_router

# Main API router that includes all sub-routers
api_router = APIRouter()

# Login, OTP verification and account routes
api_router.include_router(auth_router, tags=["auth"])

# Song listing and owner mutations
api_router.include_router(songs_router, prefix="/songs", tags=["songs"])

# Playlists (authenticated)
api_router.include_router(playlists_router, prefix="/playlists", tags=["playlists"])

# Albums, artists, writers, release years, languages, levels, chords
api_router.include_router(catalogue_router, tags=["catalogue"])

# Trending sets and rankings
api_router.include_router(trending_router, prefix="/trending", tags=["trending"])

# Feedback and user lookup
api_router.include_router(community_router, tags=["community"])

__all__ = [
    "api_router",
    "auth_router",
    "catalogue_router",
    "community_router",
    "playlists_router",
    "songs_router",
    "trending_router",
]
