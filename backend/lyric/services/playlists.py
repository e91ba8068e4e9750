"""
Playlist service.

A playlist is owned by one user and may be shared with others through
playlist_user. Owners rename, delete, share and remove songs; owners and
shared members may add songs. Members may leave a playlist shared with them.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from sqlalchemy import delete, exists, func, insert, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from lyric.core.database import utcnow
from lyric.core.errors import AppError
from lyric.models import Playlist, PlaylistSong, PlaylistUser, Song, User
from lyric.schemas import PlaylistItem, SharedUser

from .pagination import Page, count_rows

logger = logging.getLogger(__name__)


@dataclass
class PlaylistFilters:
    user_id: int
    page: Optional[int] = None
    per_page: Optional[int] = None
    search: str = ""


class PlaylistService:
    def __init__(self, db: AsyncSession):
        self.db = db

    # =========================================================================
    # Queries
    # =========================================================================

    async def list(self, filters: PlaylistFilters) -> Page[PlaylistItem]:
        """Playlists the user owns or that are shared with them, newest first."""
        result: Page[PlaylistItem] = Page.empty(filters.page, filters.per_page)

        shared_with_caller = exists().where(
            PlaylistUser.playlist_id == Playlist.id,
            PlaylistUser.user_id == filters.user_id,
        )
        conditions = [or_(Playlist.user_id == filters.user_id, shared_with_caller)]
        if filters.search:
            conditions.append(Playlist.name.ilike(f"%{filters.search}%"))

        result.total = await count_rows(self.db, select(Playlist.id).where(*conditions))
        if result.total == 0:
            return result

        totals = (
            select(PlaylistSong.playlist_id, func.count(PlaylistSong.song_id).label("total"))
            .group_by(PlaylistSong.playlist_id)
            .subquery()
        )
        query = (
            select(Playlist.id, Playlist.name, Playlist.user_id, func.coalesce(totals.c.total, 0))
            .outerjoin(totals, totals.c.playlist_id == Playlist.id)
            .where(*conditions)
            .order_by(Playlist.id.desc())
            .limit(result.per_page)
            .offset(result.offset)
        )
        playlists = [
            PlaylistItem(id=playlist_id, name=name, total=total, is_owner=owner_id == filters.user_id)
            for playlist_id, name, owner_id, total in (await self.db.execute(query)).all()
        ]

        owned: Dict[int, PlaylistItem] = {item.id: item for item in playlists if item.is_owner}
        if owned:
            rows = await self.db.execute(
                select(PlaylistUser.playlist_id, User.id, User.email)
                .join(User, User.id == PlaylistUser.user_id)
                .where(PlaylistUser.playlist_id.in_(list(owned)))
                .order_by(User.id.asc())
            )
            for playlist_id, user_id, email in rows:
                owned[playlist_id].shared_with.append(SharedUser(id=user_id, email=email))

        result.data = playlists
        return result

    # =========================================================================
    # Mutations
    # =========================================================================

    async def create(self, name: str, user_id: int) -> int:
        try:
            result = await self.db.execute(
                insert(Playlist)
                .values(name=name, user_id=user_id, created_at=utcnow())
                .returning(Playlist.id)
            )
        except IntegrityError as exc:
            error = AppError.bad_request("invalid user_id")
            error.__cause__ = exc
            raise error
        playlist_id = result.scalar_one()
        logger.info("playlist %d created by user %d", playlist_id, user_id)
        return playlist_id

    async def rename(self, playlist_id: int, user_id: int, name: str) -> None:
        result = await self.db.execute(
            update(Playlist)
            .where(Playlist.id == playlist_id, Playlist.user_id == user_id)
            .values(name=name)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise AppError.not_found("playlist not found")

    async def delete(self, playlist_id: int, user_id: int) -> None:
        result = await self.db.execute(
            delete(Playlist)
            .where(Playlist.id == playlist_id, Playlist.user_id == user_id)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise AppError.not_found("playlist not found")

    async def add_songs(self, playlist_id: int, user_id: int, song_ids: Sequence[int]) -> None:
        """
        Add songs to a playlist the user owns or is a member of.

        Songs already in the playlist are skipped.

        Raises:
            AppError: 404 "playlist not found", 400 "one or more songs were not found"
        """
        await self._require_access(playlist_id, user_id)
        wanted = _unique(song_ids)
        await self._require_songs(wanted)

        present = set(
            (
                await self.db.execute(
                    select(PlaylistSong.song_id).where(
                        PlaylistSong.playlist_id == playlist_id,
                        PlaylistSong.song_id.in_(wanted),
                    )
                )
            ).scalars().all()
        )
        missing = [song_id for song_id in wanted if song_id not in present]
        if missing:
            await self.db.execute(
                insert(PlaylistSong),
                [{"playlist_id": playlist_id, "song_id": song_id} for song_id in missing],
            )

    async def remove_songs(self, playlist_id: int, user_id: int, song_ids: Sequence[int]) -> None:
        await self._require_owner(playlist_id, user_id)
        await self.db.execute(
            delete(PlaylistSong)
            .where(
                PlaylistSong.playlist_id == playlist_id,
                PlaylistSong.song_id.in_(_unique(song_ids)),
            )
            .execution_options(synchronize_session=False)
        )

    async def share(self, playlist_id: int, owner_id: int, user_ids: Sequence[int]) -> None:
        """
        Replace the set of users a playlist is shared with.

        The owner's own id is ignored; an empty list unshares the playlist.

        Raises:
            AppError: 404 "playlist not found", 400 "one or more users were not found"
        """
        await self._require_owner(playlist_id, owner_id)
        wanted = [user_id for user_id in _unique(user_ids) if user_id != owner_id]
        if wanted:
            found = (await self.db.execute(select(User.id).where(User.id.in_(wanted)))).scalars().all()
            if len(set(found)) != len(wanted):
                raise AppError.bad_request("one or more users were not found")

        await self.db.execute(
            delete(PlaylistUser)
            .where(PlaylistUser.playlist_id == playlist_id)
            .execution_options(synchronize_session=False)
        )
        if wanted:
            await self.db.execute(
                insert(PlaylistUser),
                [{"playlist_id": playlist_id, "user_id": user_id} for user_id in wanted],
            )

    async def leave(self, playlist_id: int, user_id: int) -> None:
        owner_id = await self.db.scalar(select(Playlist.user_id).where(Playlist.id == playlist_id))
        if owner_id is None:
            raise AppError.not_found("playlist not found")
        if owner_id == user_id:
            raise AppError.bad_request("playlist owner cannot leave")

        result = await self.db.execute(
            delete(PlaylistUser)
            .where(PlaylistUser.playlist_id == playlist_id, PlaylistUser.user_id == user_id)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise AppError.bad_request("user is not a member of this playlist")

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _require_owner(self, playlist_id: int, user_id: int) -> None:
        owned = await self.db.scalar(
            select(exists().where(Playlist.id == playlist_id, Playlist.user_id == user_id))
        )
        if not owned:
            raise AppError.not_found("playlist not found")

    async def _require_access(self, playlist_id: int, user_id: int) -> None:
        member = exists().where(
            PlaylistUser.playlist_id == Playlist.id,
            PlaylistUser.user_id == user_id,
        )
        allowed = await self.db.scalar(
            select(
                exists().where(
                    Playlist.id == playlist_id,
                    or_(Playlist.user_id == user_id, member),
                )
            )
        )
        if not allowed:
            raise AppError.not_found("playlist not found")

    async def _require_songs(self, song_ids: List[int]) -> None:
        found = (await self.db.execute(select(Song.id).where(Song.id.in_(song_ids)))).scalars().all()
        if len(set(found)) != len(song_ids):
            raise AppError.bad_request("one or more songs were not found")


def _unique(values: Sequence[int]) -> List[int]:
    return list(dict.fromkeys(values))
