"""
Song detail view models.

Builds everything the song page template needs from a song body and the
layout query parameters: the three render modes (overlay, inline, lyric),
the effective key and the URLs behind every control button.
"""

from dataclasses import dataclass, field
from typing import List, Optional
from urllib.parse import urlencode

from .parser import (
    LINE_CONTENT,
    LINE_EMPTY,
    LINE_SECTION,
    InlineSegment,
    ParsedLine,
    parse_song,
)
from .transpose import (
    MAX_TRANSPOSE,
    MIN_TRANSPOSE,
    base_key,
    clamp_transpose,
    transpose_body,
    transpose_chord,
)

MODE_OVERLAY = "overlay"
MODE_INLINE = "inline"
MODE_LYRIC = "lyric"
MODES = (MODE_OVERLAY, MODE_INLINE, MODE_LYRIC)

MIN_GAP, MAX_GAP, DEFAULT_GAP = -8, 16, 2
MIN_LINE_GAP, MAX_LINE_GAP, DEFAULT_LINE_GAP = -8, 24, 0
MIN_COLUMNS, MAX_COLUMNS, DEFAULT_COLUMNS = 1, 2, 1

GAP_STEP = 2


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def clamp_gap(value: int) -> int:
    return _clamp(value, MIN_GAP, MAX_GAP)


def clamp_line_gap(value: int) -> int:
    return _clamp(value, MIN_LINE_GAP, MAX_LINE_GAP)


def clamp_columns(value: int) -> int:
    return _clamp(value, MIN_COLUMNS, MAX_COLUMNS)


def normalize_mode(mode: Optional[str]) -> str:
    mode = (mode or "").strip().lower()
    return mode if mode in MODES else MODE_OVERLAY


def format_signed(value: int) -> str:
    return f"+{value}" if value >= 0 else str(value)


def format_pixels(value: int) -> str:
    return f"{value}px"


@dataclass(frozen=True)
class Layout:
    """Clamped layout controls for one song page."""

    mode: str = MODE_OVERLAY
    transpose: int = 0
    gap: int = DEFAULT_GAP
    line_gap: int = DEFAULT_LINE_GAP
    columns: int = DEFAULT_COLUMNS

    @classmethod
    def from_params(
        cls,
        mode: Optional[str] = None,
        transpose: int = 0,
        gap: int = DEFAULT_GAP,
        line_gap: int = DEFAULT_LINE_GAP,
        columns: int = DEFAULT_COLUMNS,
    ) -> "Layout":
        return cls(
            mode=normalize_mode(mode),
            transpose=clamp_transpose(transpose),
            gap=clamp_gap(gap),
            line_gap=clamp_line_gap(line_gap),
            columns=clamp_columns(columns),
        )

    def with_changes(self, **changes) -> "Layout":
        values = {
            "mode": self.mode,
            "transpose": self.transpose,
            "gap": self.gap,
            "line_gap": self.line_gap,
            "columns": self.columns,
        }
        values.update(changes)
        return Layout.from_params(**values)


def song_url(song_id, layout: Layout) -> str:
    """
    Canonical song page URL for a layout.

    Parameters equal to their defaults are omitted; out-of-range values are
    clamped before they are written.
    """
    layout = Layout.from_params(
        layout.mode, layout.transpose, layout.gap, layout.line_gap, layout.columns
    )
    params: list[tuple[str, str]] = []
    if layout.mode != MODE_OVERLAY:
        params.append(("view", layout.mode))
    if layout.transpose != 0:
        params.append(("transpose", str(layout.transpose)))
    if layout.gap != DEFAULT_GAP:
        params.append(("gap", str(layout.gap)))
    if layout.line_gap != DEFAULT_LINE_GAP:
        params.append(("lineGap", str(layout.line_gap)))
    if layout.columns != DEFAULT_COLUMNS:
        params.append(("columns", str(layout.columns)))

    base = f"/songs/{song_id}"
    if not params:
        return base
    return base + "?" + urlencode(sorted(params))


# =============================================================================
# Render rows
# =============================================================================


@dataclass
class OverlayLine:
    kind: str
    chord_line: str = ""
    lyric: str = ""


@dataclass
class InlineLine:
    kind: str
    segments: List[InlineSegment] = field(default_factory=list)
    raw: str = ""


@dataclass
class LyricLine:
    kind: str
    text: str = ""


def build_overlay(lines: List[ParsedLine]) -> List[OverlayLine]:
    rows: List[OverlayLine] = []
    for line in lines:
        if line.kind == LINE_EMPTY:
            rows.append(OverlayLine(kind=LINE_EMPTY))
        elif line.kind == LINE_SECTION:
            rows.append(OverlayLine(kind=LINE_SECTION, lyric=line.raw))
        else:
            rows.append(OverlayLine(kind=LINE_CONTENT, chord_line=line.chord_line, lyric=line.lyric))
    return rows


def build_inline(lines: List[ParsedLine]) -> List[InlineLine]:
    return [
        InlineLine(kind=line.kind, segments=list(line.inline_segments), raw=line.raw)
        for line in lines
    ]


def build_lyrics(lines: List[ParsedLine]) -> List[LyricLine]:
    rows: List[LyricLine] = []
    for line in lines:
        if line.kind == LINE_EMPTY:
            rows.append(LyricLine(kind=LINE_EMPTY))
        elif line.kind == LINE_SECTION:
            rows.append(LyricLine(kind=LINE_SECTION, text=line.raw))
        else:
            rows.append(LyricLine(kind=LINE_CONTENT, text=line.lyric))
    return rows


# =============================================================================
# Controls
# =============================================================================


@dataclass(frozen=True)
class Option:
    label: str
    value: object
    active: bool
    url: str


@dataclass(frozen=True)
class Stepper:
    """A -/reset/+ control pair with its current value."""

    value: int
    display: str
    down_url: str
    up_url: str
    reset_url: str
    can_decrease: bool
    can_increase: bool


@dataclass
class SongView:
    song_id: object
    title: str
    layout: Layout
    prelude: List[str]
    overlay: List[OverlayLine]
    inline: List[InlineLine]
    lyrics: List[LyricLine]
    base_key: str
    effective_key: str
    key_display: str
    mode_options: List[Option]
    column_options: List[Option]
    transpose: Stepper
    gap: Stepper
    line_gap: Stepper

    @property
    def has_key(self) -> bool:
        return bool(self.base_key)

    @property
    def show_line_gap_controls(self) -> bool:
        return self.layout.mode == MODE_INLINE


def key_display(base: str, effective: str, steps: int) -> str:
    if not base:
        return "Key: —"
    if steps != 0 and effective and effective != base:
        return f"Key: {base} → {effective}"
    return f"Key: {base}"


def build_song_view(
    song_id,
    title: str,
    body: Optional[str],
    key: Optional[str] = None,
    layout: Optional[Layout] = None,
) -> SongView:
    """
    Prepare the song detail view for a body and layout.

    Args:
        song_id: Song identifier used in control URLs
        title: Song title
        body: Chord-annotated song body
        key: Declared song key; a "Key:" directive in the body is used otherwise
        layout: Requested layout (defaults when omitted)

    Returns:
        SongView with all three render modes populated
    """
    layout = layout or Layout()
    layout = Layout.from_params(
        layout.mode, layout.transpose, layout.gap, layout.line_gap, layout.columns
    )

    parsed = parse_song(transpose_body(body or "", layout.transpose))
    lines = parsed.body_lines

    base = base_key(key, body)
    effective = transpose_chord(base, layout.transpose) if base else ""

    def url(**changes) -> str:
        return song_url(song_id, layout.with_changes(**changes))

    return SongView(
        song_id=song_id,
        title=title,
        layout=layout,
        prelude=parsed.prelude,
        overlay=build_overlay(lines),
        inline=build_inline(lines),
        lyrics=build_lyrics(lines),
        base_key=base,
        effective_key=effective,
        key_display=key_display(base, effective, layout.transpose),
        mode_options=[
            Option(label, mode, mode == layout.mode, url(mode=mode))
            for label, mode in (("Overlay", MODE_OVERLAY), ("Inline", MODE_INLINE), ("Lyric", MODE_LYRIC))
        ],
        column_options=[
            Option(label, columns, columns == layout.columns, url(columns=columns))
            for label, columns in (("1 column", 1), ("2 columns", 2))
        ],
        transpose=Stepper(
            value=layout.transpose,
            display=format_signed(layout.transpose),
            down_url=url(transpose=layout.transpose - 1),
            up_url=url(transpose=layout.transpose + 1),
            reset_url=url(transpose=0),
            can_decrease=layout.transpose > MIN_TRANSPOSE,
            can_increase=layout.transpose < MAX_TRANSPOSE,
        ),
        gap=Stepper(
            value=layout.gap,
            display=format_pixels(layout.gap),
            down_url=url(gap=layout.gap - GAP_STEP),
            up_url=url(gap=layout.gap + GAP_STEP),
            reset_url=url(gap=DEFAULT_GAP),
            can_decrease=layout.gap > MIN_GAP,
            can_increase=layout.gap < MAX_GAP,
        ),
        line_gap=Stepper(
            value=layout.line_gap,
            display=format_pixels(layout.line_gap),
            down_url=url(line_gap=layout.line_gap - GAP_STEP),
            up_url=url(line_gap=layout.line_gap + GAP_STEP),
            reset_url=url(line_gap=DEFAULT_LINE_GAP),
            can_decrease=layout.line_gap > MIN_LINE_GAP,
            can_increase=layout.line_gap < MAX_LINE_GAP,
        ),
    )
