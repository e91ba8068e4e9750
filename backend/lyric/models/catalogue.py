"""
Catalogue models for Lyric.

Songs and the records they are filed under: albums, artists, writers,
languages and difficulty levels, plus the join tables linking them.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from lyric.core.database import Base, utcnow

SONG_STATUS_CREATED = "created"
SONG_STATUS_PENDING = "pending"
SONG_STATUS_APPROVED = "approved"
SONG_STATUS_REJECTED = "rejected"

# Full workflow; approved/rejected are reviewer decisions.
SONG_STATUSES = (
    SONG_STATUS_CREATED,
    SONG_STATUS_PENDING,
    SONG_STATUS_APPROVED,
    SONG_STATUS_REJECTED,
)

# Statuses a song's creator may set through the API.
OWNER_SONG_STATUSES = (SONG_STATUS_CREATED, SONG_STATUS_PENDING)


class Language(Base):
    """Song language (e.g. english, burmese)."""

    __tablename__ = "languages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)

    def __repr__(self) -> str:
        return f"<Language(id={self.id!r}, name={self.name!r})>"


class Level(Base):
    """Playing difficulty level (e.g. easy, medium, hard)."""

    __tablename__ = "levels"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)

    def __repr__(self) -> str:
        return f"<Level(id={self.id!r}, name={self.name!r})>"


class Album(Base):
    """Album; its release year takes precedence over a song's own year."""

    __tablename__ = "albums"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    release_year: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        doc="Release year shared by the album's songs"
    )

    def __repr__(self) -> str:
        return f"<Album(id={self.id!r}, name={self.name!r})>"


class Artist(Base):
    """Performing artist."""

    __tablename__ = "artists"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<Artist(id={self.id!r}, name={self.name!r})>"


class Writer(Base):
    """Songwriter / composer."""

    __tablename__ = "writers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<Writer(id={self.id!r}, name={self.name!r})>"


class Song(Base):
    """
    Song model holding the chord sheet and its catalogue attributes.

    The lyric column stores the chord-annotated body ([C]Amazing [G]grace...).
    Only the creator (created_by) may update, delete or change the status.
    """

    __tablename__ = "songs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    level_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("levels.id", ondelete="SET NULL"),
        nullable=True,
        doc="Current difficulty level"
    )
    key: Mapped[Optional[str]] = mapped_column(
        String(16),
        nullable=True,
        doc="Musical key, e.g. G or Em"
    )
    language_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("languages.id", ondelete="SET NULL"),
        nullable=True,
    )
    lyric: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        doc="Chord-annotated song body"
    )
    release_year: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    album_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("albums.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
        doc="Primary album"
    )
    primary_writer_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("writers.id", ondelete="SET NULL"),
        nullable=True,
    )
    created_by: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
        doc="Owning user"
    )
    status: Mapped[str] = mapped_column(
        String(16),
        default=SONG_STATUS_CREATED,
        nullable=False,
        doc="Workflow status: created, pending, approved, rejected"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Song(id={self.id!r}, title={self.title!r}, status={self.status!r})>"


# =============================================================================
# Join tables
# =============================================================================


class ArtistSong(Base):
    __tablename__ = "artist_song"

    artist_id: Mapped[int] = mapped_column(
        ForeignKey("artists.id", ondelete="CASCADE"), primary_key=True
    )
    song_id: Mapped[int] = mapped_column(
        ForeignKey("songs.id", ondelete="CASCADE"), primary_key=True, index=True
    )


class SongWriter(Base):
    __tablename__ = "song_writer"

    song_id: Mapped[int] = mapped_column(
        ForeignKey("songs.id", ondelete="CASCADE"), primary_key=True
    )
    writer_id: Mapped[int] = mapped_column(
        ForeignKey("writers.id", ondelete="CASCADE"), primary_key=True, index=True
    )


class AlbumSong(Base):
    __tablename__ = "album_song"

    album_id: Mapped[int] = mapped_column(
        ForeignKey("albums.id", ondelete="CASCADE"), primary_key=True
    )
    song_id: Mapped[int] = mapped_column(
        ForeignKey("songs.id", ondelete="CASCADE"), primary_key=True, index=True
    )


class AlbumArtist(Base):
    __tablename__ = "album_artist"

    album_id: Mapped[int] = mapped_column(
        ForeignKey("albums.id", ondelete="CASCADE"), primary_key=True
    )
    artist_id: Mapped[int] = mapped_column(
        ForeignKey("artists.id", ondelete="CASCADE"), primary_key=True
    )


class LevelSong(Base):
    """Level votes: which user assigned which level to a song."""

    __tablename__ = "level_song"

    song_id: Mapped[int] = mapped_column(
        ForeignKey("songs.id", ondelete="CASCADE"), primary_key=True
    )
    level_id: Mapped[int] = mapped_column(
        ForeignKey("levels.id", ondelete="CASCADE"), primary_key=True
    )
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )
