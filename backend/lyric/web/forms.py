"""
Admin song form parsing.

The admin pages post url-encoded forms, so every value arrives as a string.
SongForm keeps the raw values for re-rendering and collects one message per
field; to_payload() converts a clean form into the SongPayload the service
layer accepts.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from starlette.datastructures import FormData

from lyric.schemas import SongPayload
from lyric.services.params import parse_int_or_default

TITLE_REQUIRED = "Title is required."
LEVEL_REQUIRED = "Level is required."
LEVEL_INVALID = "Choose a valid level."
LANGUAGE_REQUIRED = "Language is required."
LANGUAGE_INVALID = "Choose a valid language."
RELEASE_YEAR_INVALID = "Release year must be a number."
ALBUM_INVALID = "Album must be a valid number."
ARTISTS_INVALID = "Artist selection must contain numeric IDs."
WRITERS_INVALID = "Writer selection must contain numeric IDs."


@dataclass
class SongForm:
    title: str = ""
    level_id: str = ""
    language_id: str = ""
    key: str = ""
    release_year: str = ""
    album_id: str = ""
    artist_ids: List[str] = field(default_factory=list)
    writer_ids: List[str] = field(default_factory=list)
    lyric: str = ""
    errors: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_form(cls, form: FormData) -> "SongForm":
        def text(name: str) -> str:
            value = form.get(name)
            return value.strip() if isinstance(value, str) else ""

        def many(name: str) -> List[str]:
            return [value.strip() for value in form.getlist(name) if isinstance(value, str) and value.strip()]

        lyric = form.get("lyric")
        return cls(
            title=text("title"),
            level_id=text("level_id"),
            language_id=text("language_id"),
            key=text("key"),
            release_year=text("release_year"),
            album_id=text("album_id"),
            artist_ids=many("artist_ids"),
            writer_ids=many("writer_ids"),
            lyric=lyric if isinstance(lyric, str) else "",
        )

    @classmethod
    def from_song(cls, song, language_id: Optional[int]) -> "SongForm":
        """Prefill the edit form from a SongItem and the stored language id."""
        return cls(
            title=song.title,
            level_id=str(song.level_id or ""),
            language_id=str(language_id or ""),
            key=song.key or "",
            release_year=str(song.release_year or ""),
            album_id=str(song.album_id or ""),
            artist_ids=[str(artist.id) for artist in song.artists],
            writer_ids=[str(writer.id) for writer in song.writers],
            lyric=song.lyric or "",
        )

    def validate(self, level_ids: Iterable[int], language_ids: Iterable[int]) -> bool:
        """
        Check every field against the submitted values and the known options.

        Returns:
            True when the form has no errors
        """
        self.errors = {}

        if not self.title:
            self.errors["title"] = TITLE_REQUIRED

        _check_choice(self, "level_id", set(level_ids), LEVEL_REQUIRED, LEVEL_INVALID)
        _check_choice(self, "language_id", set(language_ids), LANGUAGE_REQUIRED, LANGUAGE_INVALID)

        if self.release_year and _positive(self.release_year) is None:
            self.errors["release_year"] = RELEASE_YEAR_INVALID
        if self.album_id and _positive(self.album_id) is None:
            self.errors["album_id"] = ALBUM_INVALID
        if any(_positive(value) is None for value in self.artist_ids):
            self.errors["artist_ids"] = ARTISTS_INVALID
        if any(_positive(value) is None for value in self.writer_ids):
            self.errors["writer_ids"] = WRITERS_INVALID

        return not self.errors

    def to_payload(self) -> SongPayload:
        album_id = _positive(self.album_id)
        return SongPayload(
            title=self.title,
            level_id=_positive(self.level_id),
            key=self.key or None,
            language_id=_positive(self.language_id),
            release_year=_positive(self.release_year),
            album_ids=[album_id] if album_id else [],
            artist_ids=[int(value) for value in self.artist_ids],
            writer_ids=[int(value) for value in self.writer_ids],
            lyric=self.lyric,
        )


def _positive(raw: str) -> Optional[int]:
    value = parse_int_or_default(raw, 0)
    return value if value > 0 else None


def _check_choice(form: SongForm, name: str, allowed: set, required: str, invalid: str) -> None:
    raw = getattr(form, name)
    if not raw:
        form.errors[name] = required
        return
    value = _positive(raw)
    if value is None or value not in allowed:
        form.errors[name] = invalid
