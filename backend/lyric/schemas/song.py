"""
Pydantic schemas for song mutation requests.

Bodies are decoded strictly: unknown fields or wrongly typed values are a
400 "invalid JSON payload". Field-level rules (required, positive) are
checked separately so every problem is reported in one 422 response.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from lyric.core.errors import ValidationErrors


class SongPayload(BaseModel):
    """Create/update song request body."""

    model_config = ConfigDict(extra="forbid", strict=True)

    title: str = ""
    level_id: Optional[int] = None
    key: Optional[str] = None
    language_id: Optional[int] = None
    release_year: Optional[int] = None
    album_ids: List[int] = Field(default_factory=list)
    artist_ids: List[int] = Field(default_factory=list)
    writer_ids: List[int] = Field(default_factory=list)
    lyric: str = ""

    def validated(self) -> "SongPayload":
        """
        Apply field rules and return a cleaned copy.

        Raises:
            AppError: 422 with one message per offending field
        """
        errors = ValidationErrors()

        title = self.title.strip()
        if not title:
            errors.add("title", "title is required")

        if self.level_id is None:
            errors.add("level_id", "level_id is required")
        elif self.level_id <= 0:
            errors.add("level_id", "level_id must be a positive integer")

        if not self.language_id:
            errors.add("language_id", "language_id is required")
        elif self.language_id < 0:
            errors.add("language_id", "language_id must be a positive integer")

        if not self.lyric.strip():
            errors.add("lyric", "lyric is required")

        if self.release_year is not None and self.release_year <= 0:
            errors.add("release_year", "release_year must be a positive integer")

        for field in ("album_ids", "artist_ids", "writer_ids"):
            if any(value <= 0 for value in getattr(self, field)):
                errors.add(field, f"{field} must contain positive integers")

        errors.raise_if_any()

        key = (self.key or "").strip()
        return self.model_copy(update={"title": title, "key": key or None})


class SyncPlaylistsPayload(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)

    playlist_ids: List[int] = Field(default_factory=list)
