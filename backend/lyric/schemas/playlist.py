"""
Pydantic schemas for playlist endpoints.
"""

from typing import List

from pydantic import BaseModel, ConfigDict, Field


class SharedUser(BaseModel):
    id: int
    email: str


class PlaylistItem(BaseModel):
    """Playlist list item as seen by the calling user."""

    id: int
    name: str
    total: int = Field(default=0, description="Number of songs in the playlist")
    is_owner: bool = False
    shared_with: List[SharedUser] = Field(default_factory=list)


class PlaylistNamePayload(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)

    name: str = ""


class PlaylistSongsPayload(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)

    song_ids: List[int] = Field(default_factory=list)


class PlaylistSharePayload(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)

    user_ids: List[int] = Field(default_factory=list)
