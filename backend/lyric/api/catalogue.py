"""
Catalogue list endpoints for Lyric.

Albums, artists, writers and release years are paginated; languages, levels
and chord lookups return plain {"data": ...} envelopes.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from lyric.api.deps import get_db, optional_user_id
from lyric.core.errors import ValidationErrors
from lyric.services.albums import AlbumFilters, AlbumService
from lyric.services.catalogue import ChordService, LanguageService, LevelService, ReleaseYearService
from lyric.services.contributors import ArtistService, ContributorFilters, WriterService
from lyric.services.params import parse_int, parse_positive_int, parse_search

router = APIRouter()


@router.get("/albums")
async def list_albums(
    page: Optional[str] = None,
    per_page: Optional[str] = None,
    search: Optional[str] = None,
    artist_id: Optional[str] = None,
    writer_id: Optional[str] = None,
    release_year: Optional[str] = None,
    playlist_id: Optional[str] = None,
    user_id: Optional[str] = None,
    caller_id: Optional[int] = Depends(optional_user_id),
    db: AsyncSession = Depends(get_db),
) -> dict:
    errors = ValidationErrors()
    filters = AlbumFilters(
        page=parse_positive_int(page, "page", errors),
        per_page=parse_positive_int(per_page, "per_page", errors),
        search=parse_search(search),
        artist_id=parse_positive_int(artist_id, "artist_id", errors),
        writer_id=parse_positive_int(writer_id, "writer_id", errors),
        release_year=parse_int(release_year, "release_year", errors),
        playlist_id=parse_positive_int(playlist_id, "playlist_id", errors),
        user_id=parse_positive_int(user_id, "user_id", errors),
    )
    errors.raise_if_any()

    if caller_id is not None:
        filters.user_id = caller_id
    return (await AlbumService(db).list(filters)).to_dict()


@router.get("/artists")
async def list_artists(
    page: Optional[str] = None,
    per_page: Optional[str] = None,
    search: Optional[str] = None,
    album_id: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
) -> dict:
    errors = ValidationErrors()
    filters = ContributorFilters(
        page=parse_positive_int(page, "page", errors),
        per_page=parse_positive_int(per_page, "per_page", errors),
        search=parse_search(search),
        album_id=parse_positive_int(album_id, "album_id", errors),
    )
    errors.raise_if_any()
    return (await ArtistService(db).list(filters)).to_dict()


@router.get("/writers")
async def list_writers(
    page: Optional[str] = None,
    per_page: Optional[str] = None,
    search: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
) -> dict:
    errors = ValidationErrors()
    filters = ContributorFilters(
        page=parse_positive_int(page, "page", errors),
        per_page=parse_positive_int(per_page, "per_page", errors),
        search=parse_search(search),
    )
    errors.raise_if_any()
    return (await WriterService(db).list(filters)).to_dict()


@router.get("/release-year")
async def list_release_years(
    page: Optional[str] = None,
    per_page: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
) -> dict:
    errors = ValidationErrors()
    page_number = parse_positive_int(page, "page", errors)
    page_size = parse_positive_int(per_page, "per_page", errors)
    errors.raise_if_any()
    return (await ReleaseYearService(db).list(page_number, page_size)).to_dict()


@router.get("/languages")
async def list_languages(db: AsyncSession = Depends(get_db)) -> dict:
    languages = await LanguageService(db).list()
    return {"data": [language.model_dump() for language in languages]}


@router.get("/levels")
async def list_levels(db: AsyncSession = Depends(get_db)) -> dict:
    levels = await LevelService(db).list()
    return {"data": [level.model_dump() for level in levels]}


@router.get("/chords/{name}")
async def get_chord(name: str, db: AsyncSession = Depends(get_db)) -> dict:
    """
    Look up a chord and its fingering positions by name (case-insensitive).

    Raises:
        AppError 404: chord not found
    """
    chord = await ChordService(db).find(name)
    return {"data": chord.model_dump()}
