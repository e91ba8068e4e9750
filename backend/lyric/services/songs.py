"""
Song catalogue service.

Lists are composed in two stages: one anchor query selects the page of
songs (fixing order and cardinality), then batch queries keyed by the page's
song ids attach artists, writers, albums and bookmark flags. The number of
queries per page is constant and joins never multiply song rows.

Mutations are owner-scoped: only the user in songs.created_by may update,
delete or change the status of a song.
"""

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Dict, List, Optional, Sequence

from sqlalchemy import delete, exists, func, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from lyric.core.database import utcnow
from lyric.core.errors import AppError
from lyric.models import (
    Album,
    AlbumSong,
    Artist,
    ArtistSong,
    Language,
    Level,
    LevelSong,
    Play,
    Playlist,
    PlaylistSong,
    Song,
    SongWriter,
    Writer,
)
from lyric.models.catalogue import OWNER_SONG_STATUSES, SONG_STATUS_CREATED
from lyric.schemas import NamedItem, SongAlbum, SongItem, SongPayload

from .pagination import Page, count_rows

logger = logging.getLogger(__name__)

PLAY_WINDOW = timedelta(days=30)


def title_case(value: Optional[str]) -> Optional[str]:
    """"EASY" / "easy" -> "Easy"; None stays None."""
    if value is None:
        return None
    text = value.strip()
    if not text:
        return text
    lower = text.lower()
    return lower[:1].upper() + lower[1:]


def release_year_expr():
    """COALESCE(album.release_year, song.release_year) for the song's primary album."""
    album_year = (
        select(Album.release_year)
        .where(Album.id == Song.album_id)
        .correlate(Song)
        .scalar_subquery()
    )
    return func.coalesce(album_year, Song.release_year)


@dataclass
class SongFilters:
    """Filters accepted by the song list."""

    page: Optional[int] = None
    per_page: Optional[int] = None
    search: str = ""
    album_id: Optional[int] = None
    artist_id: Optional[int] = None
    writer_id: Optional[int] = None
    playlist_id: Optional[int] = None
    user_id: Optional[int] = None
    release_year: Optional[int] = None
    level_id: Optional[int] = None
    language: Optional[str] = None
    is_trending: bool = False
    caller_id: Optional[int] = None
    order_by_title: bool = False


class SongService:
    """
    Song queries and owner-scoped mutations.

    Usage:
        service = SongService(db)
        page = await service.list(SongFilters(artist_id=3))
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    # =========================================================================
    # Queries
    # =========================================================================

    def _conditions(self, filters: SongFilters) -> list:
        conditions = []
        if filters.search:
            conditions.append(Song.title.ilike(f"%{filters.search}%"))
        if filters.album_id is not None:
            conditions.append(
                exists().where(AlbumSong.song_id == Song.id, AlbumSong.album_id == filters.album_id)
            )
        if filters.artist_id is not None:
            conditions.append(
                exists().where(ArtistSong.song_id == Song.id, ArtistSong.artist_id == filters.artist_id)
            )
        if filters.writer_id is not None:
            conditions.append(
                exists().where(SongWriter.song_id == Song.id, SongWriter.writer_id == filters.writer_id)
            )
        if filters.playlist_id is not None:
            conditions.append(
                exists().where(
                    PlaylistSong.song_id == Song.id,
                    PlaylistSong.playlist_id == filters.playlist_id,
                )
            )
        if filters.release_year is not None:
            conditions.append(release_year_expr() == filters.release_year)
        if filters.level_id is not None:
            conditions.append(Song.level_id == filters.level_id)
        if filters.language:
            conditions.append(
                exists().where(
                    Language.id == Song.language_id,
                    func.lower(Language.name) == filters.language.strip().lower(),
                )
            )
        return conditions

    async def list(self, filters: SongFilters) -> Page[SongItem]:
        """
        Return one page of songs matching the filters.

        Bookmarks and playlist_ids are resolved only when the filters name a
        user or a playlist; otherwise every song has is_bookmark=False.
        is_trending with a level orders by plays inside PLAY_WINDOW; songs
        without recent plays follow, newest first.
        """
        result: Page[SongItem] = Page.empty(filters.page, filters.per_page)
        conditions = self._conditions(filters)

        result.total = await count_rows(self.db, select(Song.id).where(*conditions))
        if result.total == 0:
            return result

        query = self._base_query().where(*conditions)
        if filters.is_trending and filters.level_id is not None:
            plays = self._recent_plays()
            query = query.outerjoin(plays, plays.c.song_id == Song.id).order_by(
                func.coalesce(plays.c.total_plays, 0).desc(), Song.id.desc()
            )
        elif filters.order_by_title:
            query = query.order_by(Song.title.asc(), Song.id.asc())
        else:
            query = query.order_by(Song.id.desc())

        rows = (await self.db.execute(query.limit(result.per_page).offset(result.offset))).all()
        songs = [self._row_to_item(row) for row in rows]
        if not songs:
            return result

        await self._decorate(songs)
        await self._attach_bookmarks(songs, filters.user_id, filters.playlist_id)
        await self._attach_user_levels(songs, filters.caller_id)
        result.data = songs
        return result

    async def get(self, song_id: int, user_id: Optional[int] = None) -> SongItem:
        """
        Fetch a single song in list-item shape.

        With user_id the song also carries that user's level vote and the
        ids of their playlists holding it.

        Raises:
            AppError: 404 if the song does not exist
        """
        row = (await self.db.execute(self._base_query().where(Song.id == song_id))).first()
        if row is None:
            raise AppError.not_found("song not found")
        song = self._row_to_item(row)
        await self._decorate([song])
        if user_id is not None:
            await self._attach_bookmarks([song], user_id, None)
            await self._attach_user_levels([song], user_id)
        return song

    @staticmethod
    def _recent_plays():
        return (
            select(Play.song_id, func.count().label("total_plays"))
            .where(Play.created_at >= utcnow() - PLAY_WINDOW)
            .group_by(Play.song_id)
            .subquery("play_counts")
        )

    async def record_play(self, song_id: int, user_id: Optional[int] = None) -> None:
        """Append a play event for trending aggregation."""
        await self.db.execute(insert(Play).values(song_id=song_id, user_id=user_id, created_at=utcnow()))

    async def get_and_record_play(self, song_id: int, user_id: Optional[int] = None) -> SongItem:
        song = await self.get(song_id, user_id)
        await self.record_play(song_id, user_id)
        return song

    def _base_query(self):
        return (
            select(
                Song.id,
                Song.title,
                Level.name.label("level_name"),
                Song.level_id,
                Song.key,
                Language.name.label("language_name"),
                Song.lyric,
                release_year_expr().label("release_year"),
                Song.album_id,
                Song.status,
            )
            .select_from(Song)
            .outerjoin(Level, Level.id == Song.level_id)
            .outerjoin(Language, Language.id == Song.language_id)
        )

    @staticmethod
    def _row_to_item(row) -> SongItem:
        language = row.language_name.lower() if row.language_name is not None else None
        return SongItem(
            id=row.id,
            title=row.title,
            level=title_case(row.level_name),
            level_id=row.level_id,
            key=row.key,
            language=language,
            lyric=row.lyric,
            release_year=row.release_year,
            album_id=row.album_id,
            status=row.status,
        )

    async def _decorate(self, songs: List[SongItem]) -> None:
        """Attach artists, writers and albums with one query each."""
        index: Dict[int, SongItem] = {song.id: song for song in songs}
        song_ids = list(index)

        artist_rows = await self.db.execute(
            select(ArtistSong.song_id, Artist.id, Artist.name)
            .join(Artist, Artist.id == ArtistSong.artist_id)
            .where(ArtistSong.song_id.in_(song_ids))
            .order_by(Artist.name.asc(), Artist.id.asc())
        )
        for song_id, artist_id, name in artist_rows:
            index[song_id].artists.append(NamedItem(id=artist_id, name=name))

        writer_rows = await self.db.execute(
            select(SongWriter.song_id, Writer.id, Writer.name)
            .join(Writer, Writer.id == SongWriter.writer_id)
            .where(SongWriter.song_id.in_(song_ids))
            .order_by(Writer.name.asc(), Writer.id.asc())
        )
        for song_id, writer_id, name in writer_rows:
            index[song_id].writers.append(NamedItem(id=writer_id, name=name))

        album_rows = await self.db.execute(
            select(AlbumSong.song_id, Album.id, Album.name, Album.release_year)
            .join(Album, Album.id == AlbumSong.album_id)
            .where(AlbumSong.song_id.in_(song_ids))
            .order_by(Album.name.asc(), Album.id.asc())
        )
        for song_id, album_id, name, year in album_rows:
            index[song_id].albums.append(SongAlbum(id=album_id, name=name, release_year=year))

    async def _attach_bookmarks(
        self,
        songs: List[SongItem],
        user_id: Optional[int],
        playlist_id: Optional[int],
    ) -> None:
        if user_id is None and playlist_id is None:
            return

        query = (
            select(PlaylistSong.song_id, PlaylistSong.playlist_id)
            .distinct()
            .where(PlaylistSong.song_id.in_([song.id for song in songs]))
            .order_by(PlaylistSong.playlist_id.asc())
        )
        if user_id is not None:
            query = query.join(Playlist, Playlist.id == PlaylistSong.playlist_id).where(
                Playlist.user_id == user_id
            )
        if playlist_id is not None:
            query = query.where(PlaylistSong.playlist_id == playlist_id)

        index: Dict[int, SongItem] = {song.id: song for song in songs}
        for song_id, holder_id in await self.db.execute(query):
            index[song_id].playlist_ids.append(holder_id)
        for song in songs:
            song.is_bookmark = bool(song.playlist_ids)

    async def _attach_user_levels(self, songs: List[SongItem], user_id: Optional[int]) -> None:
        """Fill user_level_id with the user's latest level vote per song."""
        if user_id is None:
            return

        rows = await self.db.execute(
            select(LevelSong.song_id, LevelSong.level_id)
            .where(
                LevelSong.user_id == user_id,
                LevelSong.song_id.in_([song.id for song in songs]),
            )
            .order_by(LevelSong.updated_at.asc())
        )
        index: Dict[int, SongItem] = {song.id: song for song in songs}
        for song_id, level_id in rows:
            index[song_id].user_level_id = level_id

    # =========================================================================
    # Mutations
    # =========================================================================

    async def create(self, payload: SongPayload, user_id: Optional[int]) -> int:
        """
        Insert a song with its artist, writer and album relations.

        Raises:
            AppError: 400 if a referenced level, language, album, artist or writer does not exist
        """
        try:
            result = await self.db.execute(
                insert(Song)
                .values(
                    title=payload.title,
                    level_id=payload.level_id,
                    key=payload.key,
                    language_id=payload.language_id,
                    lyric=payload.lyric,
                    release_year=payload.release_year,
                    album_id=payload.album_ids[0] if payload.album_ids else None,
                    primary_writer_id=payload.writer_ids[0] if payload.writer_ids else None,
                    created_by=user_id,
                    status=SONG_STATUS_CREATED,
                    created_at=utcnow(),
                    updated_at=utcnow(),
                )
                .returning(Song.id)
            )
            song_id = result.scalar_one()
            await self._insert_relations(song_id, payload)
        except IntegrityError as exc:
            raise self._reference_error(exc)

        logger.info("song %d created by user %s", song_id, user_id)
        return song_id

    async def update(self, song_id: int, payload: SongPayload, user_id: Optional[int]) -> None:
        """
        Replace a song's columns and relation sets.

        Args:
            song_id: Song to update
            payload: Validated song payload
            user_id: Owning user; None skips the ownership check (admin edits)

        Raises:
            AppError: 404 if the song is missing or not owned, 400 on bad references
        """
        scope = [Song.id == song_id]
        if user_id is not None:
            scope.append(Song.created_by == user_id)

        try:
            result = await self.db.execute(
                update(Song)
                .where(*scope)
                .values(
                    title=payload.title,
                    level_id=payload.level_id,
                    key=payload.key,
                    language_id=payload.language_id,
                    lyric=payload.lyric,
                    release_year=payload.release_year,
                    album_id=payload.album_ids[0] if payload.album_ids else None,
                    primary_writer_id=payload.writer_ids[0] if payload.writer_ids else None,
                    updated_at=utcnow(),
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise AppError.not_found("song not found")

            await self.db.execute(delete(ArtistSong).where(ArtistSong.song_id == song_id))
            await self.db.execute(delete(SongWriter).where(SongWriter.song_id == song_id))
            await self.db.execute(delete(AlbumSong).where(AlbumSong.song_id == song_id))
            await self._insert_relations(song_id, payload)
        except IntegrityError as exc:
            raise self._reference_error(exc)

    async def _insert_relations(self, song_id: int, payload: SongPayload) -> None:
        artist_ids = _unique(payload.artist_ids)
        writer_ids = _unique(payload.writer_ids)
        album_ids = _unique(payload.album_ids)
        if artist_ids:
            await self.db.execute(
                insert(ArtistSong), [{"artist_id": i, "song_id": song_id} for i in artist_ids]
            )
        if writer_ids:
            await self.db.execute(
                insert(SongWriter), [{"writer_id": i, "song_id": song_id} for i in writer_ids]
            )
        if album_ids:
            await self.db.execute(
                insert(AlbumSong), [{"album_id": i, "song_id": song_id} for i in album_ids]
            )

    @staticmethod
    def _reference_error(exc: IntegrityError) -> AppError:
        logger.info("song mutation rejected: %s", exc.orig)
        error = AppError.bad_request("invalid resources")
        error.__cause__ = exc
        return error

    async def delete(self, song_id: int, user_id: int) -> None:
        """Delete an owned song; relation rows go with it."""
        result = await self.db.execute(
            delete(Song)
            .where(Song.id == song_id, Song.created_by == user_id)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise AppError.not_found("song not found")

    async def update_status(self, song_id: int, status: str, user_id: int) -> None:
        """
        Move an owned song between the owner-settable statuses.

        Raises:
            AppError: 400 for statuses other than created/pending, 404 when not owned
        """
        status = status.strip().lower()
        if status not in OWNER_SONG_STATUSES:
            raise AppError.bad_request("invalid status")

        result = await self.db.execute(
            update(Song)
            .where(Song.id == song_id, Song.created_by == user_id)
            .values(status=status, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise AppError.not_found("song not found")

    async def assign_level(self, song_id: int, level_id: int, user_id: int) -> None:
        """
        Set a song's level and record the caller's level vote.

        Raises:
            AppError: 400 "level not found", 404 "song not found"
        """
        level_exists = await self.db.scalar(select(exists().where(Level.id == level_id)))
        if not level_exists:
            raise AppError.bad_request("level not found")

        result = await self.db.execute(
            update(Song)
            .where(Song.id == song_id)
            .values(level_id=level_id, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise AppError.not_found("song not found")

        vote = await self.db.get(LevelSong, (song_id, level_id, user_id))
        try:
            if vote is None:
                await self.db.execute(
                    insert(LevelSong).values(
                        song_id=song_id, level_id=level_id, user_id=user_id, updated_at=utcnow()
                    )
                )
            else:
                vote.updated_at = utcnow()
                await self.db.flush()
        except IntegrityError as exc:
            raise self._reference_error(exc)

    async def sync_playlists(self, song_id: int, user_id: int, playlist_ids: Sequence[int]) -> None:
        """
        Replace the caller's playlists containing a song.

        Rows linking the song to other users' playlists are left untouched.

        Raises:
            AppError: 404 if the song is missing, 401 if any playlist is not the caller's
        """
        song_exists = await self.db.scalar(select(exists().where(Song.id == song_id)))
        if not song_exists:
            raise AppError.not_found("song not found")

        wanted = _unique(playlist_ids)
        if wanted:
            owned = (
                await self.db.execute(
                    select(Playlist.id).where(Playlist.user_id == user_id, Playlist.id.in_(wanted))
                )
            ).scalars().all()
            if len(set(owned)) != len(wanted):
                raise AppError.unauthorized("unauthorized playlist access")

        owned_playlists = select(Playlist.id).where(Playlist.user_id == user_id)
        await self.db.execute(
            delete(PlaylistSong).where(
                PlaylistSong.song_id == song_id,
                PlaylistSong.playlist_id.in_(owned_playlists),
            )
        )
        if wanted:
            try:
                await self.db.execute(
                    insert(PlaylistSong),
                    [{"playlist_id": playlist_id, "song_id": song_id} for playlist_id in wanted],
                )
            except IntegrityError as exc:
                error = AppError.bad_request("invalid playlist or song reference")
                error.__cause__ = exc
                raise error

    # =========================================================================
    # Admin helpers
    # =========================================================================

    async def admin_list(self, search: str = "", limit: int = 50) -> List[SongItem]:
        """First songs by title for the admin table, decorated like the API list."""
        query = self._base_query().order_by(Song.title.asc(), Song.id.asc()).limit(limit)
        if search:
            query = query.where(Song.title.ilike(f"%{search}%"))
        songs = [self._row_to_item(row) for row in (await self.db.execute(query)).all()]
        if songs:
            await self._decorate(songs)
        return songs

    async def admin_delete(self, song_id: int) -> None:
        """Delete any song regardless of owner."""
        result = await self.db.execute(
            delete(Song).where(Song.id == song_id).execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise AppError.not_found("song not found")


def _unique(values: Sequence[int]) -> List[int]:
    """Drop duplicates, keeping first-seen order."""
    return list(dict.fromkeys(values))
