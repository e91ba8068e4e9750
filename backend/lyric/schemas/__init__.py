"""
Pydantic schemas for Lyric.

Request bodies and response items for the JSON API.
"""

from .auth import CodeRequest, LoginRequest
from .catalogue import (
    AlbumItem,
    ChordItem,
    ChordPositionItem,
    CountedItem,
    NamedItem,
    ReleaseYearItem,
    SongAlbum,
    SongItem,
    TrendingAlbumItem,
    TrendingArtistItem,
    TrendingSetItem,
)
from .feedback import FeedbackItem, FeedbackPayload, UserItem
from .playlist import (
    PlaylistItem,
    PlaylistNamePayload,
    PlaylistSharePayload,
    PlaylistSongsPayload,
    SharedUser,
)
from .song import SongPayload, SyncPlaylistsPayload

__all__ = [
    "CodeRequest",
    "LoginRequest",
    "AlbumItem",
    "ChordItem",
    "ChordPositionItem",
    "CountedItem",
    "NamedItem",
    "ReleaseYearItem",
    "SongAlbum",
    "SongItem",
    "TrendingAlbumItem",
    "TrendingArtistItem",
    "TrendingSetItem",
    "FeedbackItem",
    "FeedbackPayload",
    "UserItem",
    "PlaylistItem",
    "PlaylistNamePayload",
    "PlaylistSharePayload",
    "PlaylistSongsPayload",
    "SharedUser",
    "SongPayload",
    "SyncPlaylistsPayload",
]
