"""
Unit tests for the chord engine.

Tests:
- Line classification and inline chord parsing
- Chord line layout (including overlapping chords)
- Transposition of chords, bodies and keys
- Song view models and layout control URLs
"""

import pytest

from lyric.chords import (
    Layout,
    base_key,
    build_song_view,
    classify_line,
    extract_key,
    parse_inline,
    parse_line,
    parse_song,
    song_url,
    transpose_body,
    transpose_chord,
)
from lyric.chords.parser import LINE_CONTENT, LINE_EMPTY, LINE_SECTION, build_chord_line


class TestParsing:
    """Tests for line classification and inline chord extraction."""

    def test_classify_line(self):
        assert classify_line("   ") == LINE_EMPTY
        assert classify_line("Verse 1") == LINE_SECTION
        assert classify_line("[C]Amazing") == LINE_CONTENT

    def test_overlay_columns(self):
        """Chords anchor at the length of lyric emitted before them."""
        line = parse_line("[C]Amazing [G]grace")
        assert line.lyric == "Amazing grace"
        assert [(chord.name, chord.col) for chord in line.chord_positions] == [("C", 0), ("G", 8)]
        assert line.chord_line == "C       G"

    def test_overlapping_chords_slide_right(self):
        _, positions = parse_inline("[Am7][G]x")
        assert build_chord_line(positions) == "Am7G"

    @pytest.mark.parametrize(
        "line",
        [
            "[C]Amazing [G]grace",
            "How [D]sweet the [G/B]sound[C]",
            "no chords [here",
            "[N.C.]",
        ],
    )
    def test_inline_segments_reassemble_lyric(self, line):
        parsed = parse_line(line)
        lyric = "".join(segment.text for segment in parsed.inline_segments if not segment.is_chord)
        expected, _ = parse_inline(line)
        assert lyric == expected

    def test_prelude_split_on_marker(self):
        song = parse_song("Key: G\nIntro: G D\n||\nVerse\n[G]Hello")
        assert song.prelude == ["Key: G", "Intro: G D"]
        assert [line.kind for line in song.body_lines] == [LINE_SECTION, LINE_CONTENT]

    def test_body_without_marker_is_rendered_entirely(self):
        song = parse_song("Verse\n[G]Hello")
        assert song.prelude == []
        assert len(song.body_lines) == 2


class TestTransposition:
    """Tests for chord and body transposition."""

    def test_scenario_transpose_up_and_down(self):
        body = "[C]Amazing [G]grace"
        assert transpose_body(body, 2) == "[D]Amazing [A]grace"
        assert transpose_body(body, -2) == "[A#]Amazing [F]grace"

    def test_flats_in_sharps_out(self):
        assert transpose_chord("Bbmaj7/D", 2) == "Cmaj7/E"
        assert transpose_chord("Eb", 1) == "E"

    def test_quality_and_bass_preserved(self):
        assert transpose_chord("C#m7/G#", 1) == "Dm7/A"

    def test_unparseable_tokens_pass_through(self):
        assert transpose_body("[N.C.] [x2]", 3) == "[N.C.] [x2]"

    @pytest.mark.parametrize("a,b", [(1, 2), (5, -7), (-11, 11), (3, 9)])
    def test_group_action(self, a, b):
        body = "[C]one [F#m]two [A#/D]three [G7]"
        assert transpose_body(transpose_body(body, a), b) == transpose_body(body, a + b)

    def test_full_octave_is_identity(self):
        body = "[C]one [F#m]two [A/C#]three"
        assert transpose_body(body, 12) == body
        assert transpose_body(body, 0) == body

    def test_key_directive(self):
        assert extract_key("{key: [Am] minor}\n[Am]la") == "Am"
        assert extract_key("KEY: G\n||") == "G"
        assert base_key("D", "Key: G") == "D"
        assert base_key(None, "no directive") == ""


class TestSongView:
    """Tests for the song page view model."""

    def test_key_display(self):
        view = build_song_view(1, "Grace", "[C]Amazing", key="C", layout=Layout(transpose=2))
        assert view.effective_key == "D"
        assert view.key_display == "Key: C → D"

        view = build_song_view(1, "Grace", "[C]Amazing")
        assert view.key_display == "Key: —"
        assert not view.has_key

    def test_transposed_overlay(self):
        view = build_song_view(1, "Grace", "[C]Amazing [G]grace", layout=Layout(transpose=2))
        assert view.overlay[0].chord_line == "D       A"
        assert view.lyrics[0].text == "Amazing grace"

    def test_layout_clamps(self):
        layout = Layout.from_params(mode="bogus", transpose=40, gap=-99, line_gap=99, columns=7)
        assert layout == Layout(mode="overlay", transpose=11, gap=-8, line_gap=24, columns=2)

    def test_song_url_omits_defaults(self):
        assert song_url(5, Layout()) == "/songs/5"
        assert song_url(5, Layout(mode="inline", transpose=-1, columns=2)) == (
            "/songs/5?columns=2&transpose=-1&view=inline"
        )

    def test_stepper_limits(self):
        view = build_song_view(1, "Grace", "[C]x", layout=Layout(transpose=11))
        assert not view.transpose.can_increase
        assert view.transpose.can_decrease
        assert view.transpose.up_url == "/songs/1?transpose=11"
        assert view.transpose.display == "+11"
        assert view.gap.display == "2px"

    def test_mode_options(self):
        view = build_song_view(3, "Grace", "[C]x", layout=Layout(mode="lyric"))
        active = [option.label for option in view.mode_options if option.active]
        assert active == ["Lyric"]
        assert [option.label for option in view.column_options] == ["1 column", "2 columns"]
        assert not view.show_line_gap_controls
