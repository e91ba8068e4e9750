"""
SQLAlchemy models for Lyric.

This module exports all database models for convenient importing:

    from lyric.models import User, Song, Album, Playlist, Chord

Importing the package registers every table on Base.metadata.
"""

from .user import AdminUser, LoginCode, User
from .catalogue import (
    Album,
    AlbumArtist,
    AlbumSong,
    Artist,
    ArtistSong,
    Language,
    Level,
    LevelSong,
    Song,
    SongWriter,
    Writer,
)
from .playlist import Playlist, PlaylistSong, PlaylistUser
from .chord import Chord, ChordPosition
from .activity import Feedback, Play, TrendingSet

__all__ = [
    "AdminUser",
    "LoginCode",
    "User",
    "Album",
    "AlbumArtist",
    "AlbumSong",
    "Artist",
    "ArtistSong",
    "Language",
    "Level",
    "LevelSong",
    "Song",
    "SongWriter",
    "Writer",
    "Playlist",
    "PlaylistSong",
    "PlaylistUser",
    "Chord",
    "ChordPosition",
    "Feedback",
    "Play",
    "TrendingSet",
]
