"""
Playlist endpoints for Lyric.

All endpoints require authentication. Ownership (or membership, for adding
songs and leaving) is checked by PlaylistService.
"""

from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from lyric.api.deps import get_db, require_user_id
from lyric.core.errors import ValidationErrors
from lyric.schemas import PlaylistNamePayload, PlaylistSharePayload, PlaylistSongsPayload
from lyric.services.params import parse_path_id, parse_positive_int, parse_search
from lyric.services.playlists import PlaylistFilters, PlaylistService

router = APIRouter()


# =============================================================================
# Helper Functions
# =============================================================================


def _validated_name(data: PlaylistNamePayload) -> str:
    name = data.name.strip()
    if not name:
        errors = ValidationErrors()
        errors.add("name", "name is required")
        errors.raise_if_any()
    return name


def _validated_song_ids(data: PlaylistSongsPayload) -> list[int]:
    errors = ValidationErrors()
    if not data.song_ids or any(value <= 0 for value in data.song_ids):
        errors.add("song_ids", "song_ids must include at least one positive integer")
    errors.raise_if_any()
    return data.song_ids


# =============================================================================
# Endpoints
# =============================================================================


@router.get("")
async def list_playlists(
    page: Optional[str] = None,
    per_page: Optional[str] = None,
    search: Optional[str] = None,
    user_id: int = Depends(require_user_id),
    db: AsyncSession = Depends(get_db),
) -> dict:
    errors = ValidationErrors()
    filters = PlaylistFilters(
        user_id=user_id,
        page=parse_positive_int(page, "page", errors),
        per_page=parse_positive_int(per_page, "per_page", errors),
        search=parse_search(search),
    )
    errors.raise_if_any()
    return (await PlaylistService(db).list(filters)).to_dict()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_playlist(
    data: PlaylistNamePayload,
    user_id: int = Depends(require_user_id),
    db: AsyncSession = Depends(get_db),
) -> dict:
    playlist_id = await PlaylistService(db).create(_validated_name(data), user_id)
    return {"data": {"message": "Playlist created successfully", "playlist_id": playlist_id}}


@router.put("/{playlist_id}")
async def update_playlist(
    playlist_id: str,
    data: PlaylistNamePayload,
    user_id: int = Depends(require_user_id),
    db: AsyncSession = Depends(get_db),
) -> dict:
    playlist_pk = parse_path_id(playlist_id)
    await PlaylistService(db).rename(playlist_pk, user_id, _validated_name(data))
    return {"data": {"message": "Playlist updated successfully"}}


@router.delete("/{playlist_id}")
async def delete_playlist(
    playlist_id: str,
    user_id: int = Depends(require_user_id),
    db: AsyncSession = Depends(get_db),
) -> dict:
    await PlaylistService(db).delete(parse_path_id(playlist_id), user_id)
    return {"data": {"message": "Playlist deleted successfully"}}


@router.post("/{playlist_id}/songs")
async def add_songs(
    playlist_id: str,
    data: PlaylistSongsPayload,
    user_id: int = Depends(require_user_id),
    db: AsyncSession = Depends(get_db),
) -> dict:
    playlist_pk = parse_path_id(playlist_id)
    await PlaylistService(db).add_songs(playlist_pk, user_id, _validated_song_ids(data))
    return {"data": {"message": "Songs added to playlist successfully"}}


@router.delete("/{playlist_id}/songs")
async def remove_songs(
    playlist_id: str,
    data: PlaylistSongsPayload,
    user_id: int = Depends(require_user_id),
    db: AsyncSession = Depends(get_db),
) -> dict:
    playlist_pk = parse_path_id(playlist_id)
    await PlaylistService(db).remove_songs(playlist_pk, user_id, _validated_song_ids(data))
    return {"data": {"message": "Songs removed from playlist successfully"}}


@router.post("/{playlist_id}/share")
async def share_playlist(
    playlist_id: str,
    data: PlaylistSharePayload,
    user_id: int = Depends(require_user_id),
    db: AsyncSession = Depends(get_db),
) -> dict:
    playlist_pk = parse_path_id(playlist_id)
    errors = ValidationErrors()
    if any(value <= 0 for value in data.user_ids):
        errors.add("user_ids", "user_ids must contain positive integers")
    errors.raise_if_any()

    await PlaylistService(db).share(playlist_pk, user_id, data.user_ids)
    return {"data": {"message": "Playlist sharing updated successfully"}}


@router.delete("/{playlist_id}/share")
async def leave_playlist(
    playlist_id: str,
    user_id: int = Depends(require_user_id),
    db: AsyncSession = Depends(get_db),
) -> dict:
    await PlaylistService(db).leave(parse_path_id(playlist_id), user_id)
    return {"data": {"message": "Left playlist successfully"}}
