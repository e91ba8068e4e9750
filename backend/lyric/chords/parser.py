"""
Chord sheet parsing.

A song body is plain text with chord tokens embedded in the lyric:

    Key: G
    Intro: G D Em C
    ||
    Verse 1
    [C]Amazing [G]grace, how [D]sweet the sound

Lines before the first "||" marker form the prelude; everything after it is
the rendered body. Each body line is classified as empty, a section header
(no "[") or content (lyric with chords).
"""

from dataclasses import dataclass, field
from typing import List

from .transpose import CHORD_TOKEN_PATTERN

BODY_MARKER = "||"

LINE_EMPTY = "empty"
LINE_SECTION = "section"
LINE_CONTENT = "content"


@dataclass(frozen=True)
class ChordPosition:
    """A chord name anchored at a character column of the stripped lyric."""

    name: str
    col: int


@dataclass(frozen=True)
class InlineSegment:
    is_chord: bool
    text: str


@dataclass
class ParsedLine:
    raw: str
    kind: str
    in_body: bool
    lyric: str = ""
    chord_line: str = ""
    chord_positions: List[ChordPosition] = field(default_factory=list)
    inline_segments: List[InlineSegment] = field(default_factory=list)


@dataclass
class ParsedSong:
    prelude: List[str]
    lines: List[ParsedLine]

    @property
    def body_lines(self) -> List[ParsedLine]:
        return [line for line in self.lines if line.in_body]


def classify_line(line: str) -> str:
    if not line.strip():
        return LINE_EMPTY
    if "[" not in line:
        return LINE_SECTION
    return LINE_CONTENT


def parse_inline(line: str) -> tuple[str, List[ChordPosition]]:
    """
    Strip chord tokens from a line.

    Returns:
        The lyric text and the chords, each anchored at the length of lyric
        emitted before it.
    """
    lyric_parts: List[str] = []
    length = 0
    positions: List[ChordPosition] = []
    last = 0
    for match in CHORD_TOKEN_PATTERN.finditer(line):
        text = line[last:match.start()]
        lyric_parts.append(text)
        length += len(text)
        positions.append(ChordPosition(name=match.group(0)[1:-1], col=length))
        last = match.end()
    lyric_parts.append(line[last:])
    return "".join(lyric_parts), positions


def build_chord_line(positions: List[ChordPosition]) -> str:
    """
    Lay chord names out on a row of spaces above the lyric.

    A chord that would overlap its left neighbour is written right after it.
    """
    builder = ""
    for chord in positions:
        if chord.col < 0:
            continue
        if len(builder) < chord.col:
            builder += " " * (chord.col - len(builder))
        builder += chord.name
    return builder


def build_inline_segments(line: str) -> List[InlineSegment]:
    segments: List[InlineSegment] = []
    last = 0
    for match in CHORD_TOKEN_PATTERN.finditer(line):
        if match.start() > last:
            segments.append(InlineSegment(is_chord=False, text=line[last:match.start()]))
        segments.append(InlineSegment(is_chord=True, text=match.group(0)[1:-1]))
        last = match.end()
    if last < len(line):
        segments.append(InlineSegment(is_chord=False, text=line[last:]))
    if not segments:
        segments.append(InlineSegment(is_chord=False, text=line))
    return segments


def parse_line(line: str, in_body: bool = True) -> ParsedLine:
    kind = classify_line(line)
    parsed = ParsedLine(raw=line, kind=kind, in_body=in_body)
    if kind == LINE_SECTION:
        parsed.lyric = line
        parsed.inline_segments = [InlineSegment(is_chord=False, text=line)]
    elif kind == LINE_CONTENT:
        parsed.lyric, parsed.chord_positions = parse_inline(line)
        parsed.chord_line = build_chord_line(parsed.chord_positions)
        parsed.inline_segments = build_inline_segments(line)
    return parsed


def parse_song(body: str) -> ParsedSong:
    """
    Split a body into prelude and parsed lines.

    A body without any "||" marker has no prelude and is rendered entirely.
    """
    lines = [raw.rstrip("\r") for raw in (body or "").split("\n")]
    in_body = not any(line.strip() == BODY_MARKER for line in lines)

    prelude: List[str] = []
    parsed: List[ParsedLine] = []
    for line in lines:
        if line.strip() == BODY_MARKER:
            in_body = True
            continue
        parsed.append(parse_line(line, in_body))
        if not in_body:
            prelude.append(line)

    return ParsedSong(prelude=prelude, lines=parsed)
