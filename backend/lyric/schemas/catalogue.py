"""
Pydantic schemas for catalogue list responses.
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class NamedItem(BaseModel):
    """Plain {id, name} pair used for languages, levels and relation lists."""

    id: int
    name: str


class SongAlbum(BaseModel):
    id: int
    name: str
    release_year: Optional[int] = None


class SongItem(BaseModel):
    """Song list item decorated with its artists, writers and albums."""

    id: int
    title: str
    level: Optional[str] = Field(default=None, description="Title-cased level name")
    level_id: Optional[int] = None
    key: Optional[str] = None
    language: Optional[str] = Field(default=None, description="Lowercased language name")
    lyric: Optional[str] = None
    release_year: Optional[int] = Field(
        default=None,
        description="Album release year, falling back to the song's own year",
    )
    album_id: Optional[int] = None
    status: str
    artists: List[NamedItem] = Field(default_factory=list)
    writers: List[NamedItem] = Field(default_factory=list)
    albums: List[SongAlbum] = Field(default_factory=list)
    is_bookmark: bool = False
    playlist_ids: List[int] = Field(default_factory=list)
    user_level_id: Optional[int] = Field(default=None, description="The caller's own level vote")


class AlbumItem(BaseModel):
    id: int
    name: str
    release_year: Optional[int] = None
    total: int = Field(default=0, description="Number of songs on the album")
    is_bookmark: bool = False
    playlist_ids: List[int] = Field(default_factory=list)
    user_level_id: Optional[int] = Field(default=None, description="The caller's own level vote")


class CountedItem(BaseModel):
    """Artist or writer with the number of songs linked to it."""

    id: int
    name: str
    total: int = 0


class ReleaseYearItem(BaseModel):
    id: int
    name: int
    total: int


# --- Trending ---

class TrendingSetItem(BaseModel):
    id: int
    name: str
    level_id: Optional[int] = None
    level: Optional[str] = None
    description: Optional[str] = None


class TrendingAlbumItem(BaseModel):
    id: int
    name: str
    total_plays: int
    artists: List[NamedItem] = Field(default_factory=list)


class TrendingArtistItem(BaseModel):
    id: int
    name: str
    total_plays: int


# --- Chords ---

class ChordPositionItem(BaseModel):
    id: int
    base_fret: int
    frets: Optional[List[Optional[int]]] = None
    fingers: Optional[List[Optional[int]]] = None


class ChordItem(BaseModel):
    id: int
    name: str
    positions: List[ChordPositionItem] = Field(default_factory=list)
