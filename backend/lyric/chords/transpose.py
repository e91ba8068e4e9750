"""
Semitone transposition for chord tokens and chord-annotated bodies.

Input accepts both sharp and flat spellings; output always uses sharps.
Tokens that do not look like a chord (e.g. [N.C.] or [x2]) are left as-is.
"""

import re
from typing import Optional

MIN_TRANSPOSE = -11
MAX_TRANSPOSE = 11

SHARPS = ("C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B")
FLATS = ("C", "Db", "D", "Eb", "E", "F", "Gb", "G", "Ab", "A", "Bb", "B")

NOTE_TO_INDEX: dict[str, int] = {}
for _index, _note in enumerate(SHARPS):
    NOTE_TO_INDEX[_note] = _index
for _index, _note in enumerate(FLATS):
    NOTE_TO_INDEX[_note] = _index

CHORD_TOKEN_PATTERN = re.compile(r"\[[^\]]+\]")
CHORD_ROOT_PATTERN = re.compile(r"^([A-G])([b#]?)(.*)$", re.DOTALL)


def clamp_transpose(steps: int) -> int:
    return max(MIN_TRANSPOSE, min(MAX_TRANSPOSE, steps))


def normalize_note(note: str) -> str:
    """
    Canonicalise a note name to its sharp spelling.

    Returns the cleaned input unchanged when it is not a known note.
    """
    cleaned = note.strip()
    if len(cleaned) <= 1:
        return cleaned.upper()

    leading = cleaned[0].upper()
    rest = cleaned[1:]
    if rest[0] in ("b", "B"):
        rest = "b" + rest[1:]
    candidate = leading + rest

    index = NOTE_TO_INDEX.get(candidate)
    if index is None:
        index = NOTE_TO_INDEX.get(candidate.upper())
    if index is not None:
        return SHARPS[index]
    return candidate


def transpose_note(note: str, steps: int) -> str:
    index = NOTE_TO_INDEX.get(normalize_note(note))
    if index is None:
        return note
    return SHARPS[(index + steps) % len(SHARPS)]


def transpose_chord(token: str, steps: int) -> str:
    """
    Transpose a single chord name such as "C#m7/G#".

    The quality suffix is kept verbatim and the bass note after "/" is
    shifted by the same number of steps.

    Example:
        >>> transpose_chord("Bbmaj7/D", 2)
        'Cmaj7/E'
    """
    if steps == 0:
        return token

    primary, _, bass = token.partition("/")
    bass = bass.split("/")[0]
    match = CHORD_ROOT_PATTERN.match(primary)
    if match is None:
        return token

    root = transpose_note(match.group(1) + match.group(2), steps)
    quality = match.group(3)
    if bass:
        return f"{root}{quality}/{transpose_note(bass, steps)}"
    return f"{root}{quality}"


def transpose_body(body: str, steps: int) -> str:
    """Rewrite every [X] chord token in a body by the given number of semitones."""
    steps %= len(SHARPS)
    if steps == 0:
        return body

    def _replace(match: re.Match) -> str:
        return "[" + transpose_chord(match.group(0)[1:-1], steps) + "]"

    return CHORD_TOKEN_PATTERN.sub(_replace, body)


# =============================================================================
# Key detection
# =============================================================================

KEY_DIRECTIVE_PATTERN = re.compile(r"\{?\s*key\s*:\s*([^}\n]+)\}?", re.IGNORECASE)


def normalize_key(value: Optional[str]) -> str:
    """Strip chord brackets from a key value and keep its first word."""
    if not value:
        return ""
    cleaned = value.replace("[", "").replace("]", "").strip()
    fields = cleaned.split()
    return fields[0] if fields else ""


def extract_key(body: Optional[str]) -> str:
    """Find a "Key: X" or "{key: X}" directive in a song body."""
    if not body:
        return ""
    match = KEY_DIRECTIVE_PATTERN.search(body)
    if match is None:
        return ""
    return normalize_key(match.group(1))


def base_key(song_key: Optional[str], body: Optional[str]) -> str:
    """The song's declared key, falling back to a directive in its body."""
    return normalize_key(song_key) or extract_key(body)


def effective_key(song_key: Optional[str], body: Optional[str], steps: int) -> str:
    key = base_key(song_key, body)
    if not key:
        return ""
    return transpose_chord(key, clamp_transpose(steps))
