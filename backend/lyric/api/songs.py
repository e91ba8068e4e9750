"""
Song endpoints for Lyric.

Listing and reading are public; every mutation requires a bearer token and,
except playlist sync and level votes, ownership of the song.
"""

from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from lyric.api.deps import get_db, optional_user_id, require_user_id
from lyric.core.errors import ValidationErrors
from lyric.schemas import SongPayload, SyncPlaylistsPayload
from lyric.services.params import (
    parse_flag,
    parse_int,
    parse_path_id,
    parse_positive_int,
    parse_search,
)
from lyric.services.songs import SongFilters, SongService

router = APIRouter()


@router.get("")
async def list_songs(
    page: Optional[str] = None,
    per_page: Optional[str] = None,
    search: Optional[str] = None,
    album_id: Optional[str] = None,
    artist_id: Optional[str] = None,
    writer_id: Optional[str] = None,
    playlist_id: Optional[str] = None,
    user_id: Optional[str] = None,
    release_year: Optional[str] = None,
    level_id: Optional[str] = None,
    language: Optional[str] = None,
    is_trending: Optional[str] = None,
    caller_id: Optional[int] = Depends(optional_user_id),
    db: AsyncSession = Depends(get_db),
) -> dict:
    """
    List songs, newest first; is_trending=1 with a level_id orders by recent plays.

    A signed-in caller's own id replaces any user_id in the query, so
    bookmarks and playlist_ids always reflect the caller's playlists. The
    caller also sees their own level vote in user_level_id.

    Raises:
        AppError 422: {"<field>": "must be a positive integer"} per bad parameter
    """
    errors = ValidationErrors()
    filters = SongFilters(
        page=parse_positive_int(page, "page", errors),
        per_page=parse_positive_int(per_page, "per_page", errors),
        search=parse_search(search),
        album_id=parse_positive_int(album_id, "album_id", errors),
        artist_id=parse_positive_int(artist_id, "artist_id", errors),
        writer_id=parse_positive_int(writer_id, "writer_id", errors),
        playlist_id=parse_positive_int(playlist_id, "playlist_id", errors),
        user_id=parse_positive_int(user_id, "user_id", errors),
        release_year=parse_int(release_year, "release_year", errors),
        level_id=parse_positive_int(level_id, "level_id", errors),
        language=parse_search(language) or None,
        is_trending=parse_flag(is_trending),
        caller_id=caller_id,
    )
    errors.raise_if_any()

    if caller_id is not None:
        filters.user_id = caller_id

    result = await SongService(db).list(filters)
    return result.to_dict()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_song(
    data: SongPayload,
    user_id: int = Depends(require_user_id),
    db: AsyncSession = Depends(get_db),
) -> dict:
    song_id = await SongService(db).create(data.validated(), user_id)
    return {"data": {"message": "Song created successfully", "song_id": song_id}}


@router.get("/{song_id}")
async def get_song(
    song_id: str,
    caller_id: Optional[int] = Depends(optional_user_id),
    db: AsyncSession = Depends(get_db),
) -> dict:
    """Fetch one song and record a play for trending."""
    song = await SongService(db).get_and_record_play(parse_path_id(song_id), caller_id)
    return {"data": song.model_dump()}


@router.put("/{song_id}")
async def update_song(
    song_id: str,
    data: SongPayload,
    user_id: int = Depends(require_user_id),
    db: AsyncSession = Depends(get_db),
) -> dict:
    song_pk = parse_path_id(song_id)
    await SongService(db).update(song_pk, data.validated(), user_id)
    return {"data": {"message": "Song updated successfully"}}


@router.delete("/{song_id}")
async def delete_song(
    song_id: str,
    user_id: int = Depends(require_user_id),
    db: AsyncSession = Depends(get_db),
) -> dict:
    await SongService(db).delete(parse_path_id(song_id), user_id)
    return {"data": {"message": "Song deleted successfully"}}


@router.post("/{song_id}/status/{song_status}")
async def update_song_status(
    song_id: str,
    song_status: str,
    user_id: int = Depends(require_user_id),
    db: AsyncSession = Depends(get_db),
) -> dict:
    await SongService(db).update_status(parse_path_id(song_id), song_status, user_id)
    return {"data": {"message": "Song status updated successfully"}}


@router.post("/{song_id}/levels/{level_id}")
async def assign_level(
    song_id: str,
    level_id: str,
    user_id: int = Depends(require_user_id),
    db: AsyncSession = Depends(get_db),
) -> dict:
    song_pk = parse_path_id(song_id, "song_id")
    level_pk = parse_path_id(level_id, "level_id")
    await SongService(db).assign_level(song_pk, level_pk, user_id)
    return {"data": {"message": "Level assigned successfully"}}


@router.post("/{song_id}/playlists")
async def sync_playlists(
    song_id: str,
    data: SyncPlaylistsPayload,
    user_id: int = Depends(require_user_id),
    db: AsyncSession = Depends(get_db),
) -> dict:
    """
    Replace the caller's playlists that contain this song.

    Raises:
        AppError 422: playlist_ids contains non-positive values
        AppError 404: song not found
        AppError 401: a playlist is not owned by the caller
    """
    song_pk = parse_path_id(song_id, "song_id")
    errors = ValidationErrors()
    if any(value <= 0 for value in data.playlist_ids):
        errors.add("playlist_ids", "playlist_ids must contain positive integers")
    errors.raise_if_any()

    await SongService(db).sync_playlists(song_pk, user_id, data.playlist_ids)
    return {"data": {"message": "Playlists synced successfully"}}
