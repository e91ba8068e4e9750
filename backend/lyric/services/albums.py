"""
Album catalogue service.

An album is bookmarked when every one of its songs sits in the playlists
selected by the request (the caller's playlists, or one explicit playlist).
"""

from dataclasses import dataclass
from typing import Dict, List, Optional

from sqlalchemy import distinct, exists, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from lyric.models import Album, AlbumArtist, AlbumSong, Playlist, PlaylistSong, Song, SongWriter
from lyric.schemas import AlbumItem

from .pagination import Page, count_rows


@dataclass
class AlbumFilters:
    page: Optional[int] = None
    per_page: Optional[int] = None
    search: str = ""
    artist_id: Optional[int] = None
    writer_id: Optional[int] = None
    release_year: Optional[int] = None
    playlist_id: Optional[int] = None
    user_id: Optional[int] = None


class AlbumService:
    """Paginated album list with song totals and bookmark flags."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def _conditions(filters: AlbumFilters) -> list:
        conditions = []
        if filters.search:
            conditions.append(Album.name.ilike(f"%{filters.search}%"))
        if filters.artist_id is not None:
            conditions.append(
                exists().where(
                    AlbumArtist.album_id == Album.id,
                    AlbumArtist.artist_id == filters.artist_id,
                )
            )
        if filters.writer_id is not None:
            conditions.append(
                exists()
                .where(AlbumSong.album_id == Album.id)
                .where(
                    SongWriter.song_id == AlbumSong.song_id,
                    SongWriter.writer_id == filters.writer_id,
                )
            )
        if filters.release_year is not None:
            conditions.append(Album.release_year == filters.release_year)
        return conditions

    async def list(self, filters: AlbumFilters) -> Page[AlbumItem]:
        result: Page[AlbumItem] = Page.empty(filters.page, filters.per_page)
        conditions = self._conditions(filters)

        result.total = await count_rows(self.db, select(Album.id).where(*conditions))
        if result.total == 0:
            return result

        totals = (
            select(AlbumSong.album_id, func.count(distinct(AlbumSong.song_id)).label("total"))
            .group_by(AlbumSong.album_id)
            .subquery()
        )
        query = (
            select(Album.id, Album.name, Album.release_year, func.coalesce(totals.c.total, 0))
            .outerjoin(totals, totals.c.album_id == Album.id)
            .where(*conditions)
            .order_by(Album.name.asc(), Album.id.asc())
            .limit(result.per_page)
            .offset(result.offset)
        )
        albums = [
            AlbumItem(id=album_id, name=name, release_year=year, total=total)
            for album_id, name, year, total in (await self.db.execute(query)).all()
        ]
        if albums:
            await self._attach_bookmarks(albums, filters.user_id, filters.playlist_id)
        result.data = albums
        return result

    async def _attach_bookmarks(
        self,
        albums: List[AlbumItem],
        user_id: Optional[int],
        playlist_id: Optional[int],
    ) -> None:
        if user_id is None and playlist_id is None:
            return

        index: Dict[int, AlbumItem] = {album.id: album for album in albums}
        query = (
            select(Song.album_id, func.count(distinct(Song.id)))
            .select_from(PlaylistSong)
            .join(Song, Song.id == PlaylistSong.song_id)
            .where(Song.album_id.in_(list(index)))
        )
        if user_id is not None:
            query = query.join(Playlist, Playlist.id == PlaylistSong.playlist_id).where(
                Playlist.user_id == user_id
            )
        if playlist_id is not None:
            query = query.where(PlaylistSong.playlist_id == playlist_id)
        query = query.group_by(Song.album_id)

        for album_id, bookmarked in (await self.db.execute(query)).all():
            album = index.get(album_id)
            if album is not None and album.total > 0 and bookmarked >= album.total:
                album.is_bookmark = True
