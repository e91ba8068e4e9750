"""
Chord engine: parsing, transposition and song view models.

Pure functions only; nothing here touches the database or the request.
"""

from .parser import (
    ChordPosition,
    InlineSegment,
    ParsedLine,
    ParsedSong,
    classify_line,
    parse_inline,
    parse_line,
    parse_song,
)
from .transpose import (
    base_key,
    clamp_transpose,
    effective_key,
    extract_key,
    transpose_body,
    transpose_chord,
)
from .view import Layout, SongView, build_song_view, song_url

__all__ = [
    "ChordPosition",
    "InlineSegment",
    "ParsedLine",
    "ParsedSong",
    "classify_line",
    "parse_inline",
    "parse_line",
    "parse_song",
    "base_key",
    "clamp_transpose",
    "effective_key",
    "extract_key",
    "transpose_body",
    "transpose_chord",
    "Layout",
    "SongView",
    "build_song_view",
    "song_url",
]
