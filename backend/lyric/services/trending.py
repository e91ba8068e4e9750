"""
Trending collections and play-count rankings.

Rankings only count plays recorded inside the trailing window
(TRENDING_WINDOW, thirty days) and are ordered by play count descending.
"""

from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from lyric.core.database import utcnow
from lyric.core.errors import AppError
from lyric.models import Album, AlbumArtist, AlbumSong, Artist, ArtistSong, Level, Play, TrendingSet
from lyric.schemas import NamedItem, TrendingAlbumItem, TrendingArtistItem, TrendingSetItem

from .songs import PLAY_WINDOW, title_case

TRENDING_WINDOW = PLAY_WINDOW
DEFAULT_LIMIT = 10
MAX_LIMIT = 100


def normalise_limit(limit: Optional[int]) -> int:
    if limit is None or limit <= 0:
        return DEFAULT_LIMIT
    return min(limit, MAX_LIMIT)


class TrendingService:
    """
    Usage:
        service = TrendingService(db)
        albums = await service.albums(limit=5)
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    def _set_query(self):
        return (
            select(
                TrendingSet.id,
                TrendingSet.name,
                TrendingSet.level_id,
                Level.name.label("level_name"),
                TrendingSet.description,
            )
            .outerjoin(Level, Level.id == TrendingSet.level_id)
        )

    @staticmethod
    def _set_item(row) -> TrendingSetItem:
        return TrendingSetItem(
            id=row.id,
            name=row.name,
            level_id=row.level_id,
            level=title_case(row.level_name),
            description=row.description,
        )

    async def sets(self) -> List[TrendingSetItem]:
        rows = await self.db.execute(self._set_query().order_by(TrendingSet.id.asc()))
        return [self._set_item(row) for row in rows.all()]

    async def get_set(self, set_id: int) -> TrendingSetItem:
        """
        Raises:
            AppError: 404 "trending not found"
        """
        row = (await self.db.execute(self._set_query().where(TrendingSet.id == set_id))).first()
        if row is None:
            raise AppError.not_found("trending not found")
        return self._set_item(row)

    async def albums(self, limit: Optional[int] = None, now: Optional[datetime] = None) -> List[TrendingAlbumItem]:
        """Albums ranked by the summed recent plays of their songs, with artists attached."""
        since = (now or utcnow()) - TRENDING_WINDOW

        song_plays = (
            select(Play.song_id, func.count().label("play_count"))
            .where(Play.created_at >= since)
            .group_by(Play.song_id)
            .subquery()
        )
        total_plays = func.sum(song_plays.c.play_count).label("total_plays")
        query = (
            select(Album.id, Album.name, total_plays)
            .join(AlbumSong, AlbumSong.album_id == Album.id)
            .join(song_plays, song_plays.c.song_id == AlbumSong.song_id)
            .group_by(Album.id, Album.name)
            .order_by(total_plays.desc(), Album.id.asc())
            .limit(normalise_limit(limit))
        )
        albums = [
            TrendingAlbumItem(id=album_id, name=name, total_plays=int(plays or 0))
            for album_id, name, plays in (await self.db.execute(query)).all()
        ]
        if not albums:
            return albums

        index: Dict[int, TrendingAlbumItem] = {album.id: album for album in albums}
        artist_rows = await self.db.execute(
            select(AlbumArtist.album_id, Artist.id, Artist.name)
            .join(Artist, Artist.id == AlbumArtist.artist_id)
            .where(AlbumArtist.album_id.in_(list(index)))
            .order_by(Artist.name.asc(), Artist.id.asc())
        )
        for album_id, artist_id, name in artist_rows:
            index[album_id].artists.append(NamedItem(id=artist_id, name=name))
        return albums

    async def artists(self, limit: Optional[int] = None, now: Optional[datetime] = None) -> List[TrendingArtistItem]:
        """Artists ranked by recent plays of the songs they appear on."""
        since = (now or utcnow()) - TRENDING_WINDOW
        total_plays = func.count(Play.song_id).label("total_plays")
        query = (
            select(Artist.id, Artist.name, total_plays)
            .join(ArtistSong, ArtistSong.artist_id == Artist.id)
            .join(Play, Play.song_id == ArtistSong.song_id)
            .where(Play.created_at >= since)
            .group_by(Artist.id, Artist.name)
            .order_by(total_plays.desc(), Artist.id.asc())
            .limit(normalise_limit(limit))
        )
        return [
            TrendingArtistItem(id=artist_id, name=name, total_plays=plays)
            for artist_id, name, plays in (await self.db.execute(query)).all()
        ]
