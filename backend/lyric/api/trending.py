"""
Trending endpoints: curated sets plus play-count rankings over the last 30 days.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from lyric.api.deps import get_db
from lyric.core.errors import ValidationErrors
from lyric.services.params import parse_positive_int
from lyric.services.trending import TrendingService

router = APIRouter()


def _parse_limit(limit: Optional[str]) -> Optional[int]:
    errors = ValidationErrors()
    value = parse_positive_int(limit, "limit", errors)
    errors.raise_if_any()
    return value


@router.get("")
async def list_trending_sets(db: AsyncSession = Depends(get_db)) -> dict:
    sets = await TrendingService(db).sets()
    return {"data": [item.model_dump() for item in sets]}


@router.get("/albums")
async def list_trending_albums(limit: Optional[str] = None, db: AsyncSession = Depends(get_db)) -> dict:
    albums = await TrendingService(db).albums(_parse_limit(limit))
    return {"data": [album.model_dump() for album in albums]}


@router.get("/artists")
async def list_trending_artists(limit: Optional[str] = None, db: AsyncSession = Depends(get_db)) -> dict:
    artists = await TrendingService(db).artists(_parse_limit(limit))
    return {"data": [artist.model_dump() for artist in artists]}
