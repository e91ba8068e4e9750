"""
Query-string parsing helpers.

Every parser records its problem on a shared ValidationErrors collector so
a request reports all bad fields in one 422 response.
"""

from typing import Optional

from lyric.core.errors import AppError, ValidationErrors

POSITIVE_INTEGER = "must be a positive integer"


def _to_int(raw: str) -> Optional[int]:
    text = raw.strip()
    sign = ""
    if text[:1] in ("+", "-"):
        sign, text = text[0], text[1:]
    if not (text.isascii() and text.isdigit()):
        return None
    return int(sign + text)


def parse_positive_int(raw: Optional[str], field: str, errors: ValidationErrors) -> Optional[int]:
    """Parse an optional positive integer; blank means absent."""
    if raw is None or not raw.strip():
        return None
    value = _to_int(raw)
    if value is None or value <= 0:
        errors.add(field, POSITIVE_INTEGER)
        return None
    return value


def parse_int(raw: Optional[str], field: str, errors: ValidationErrors) -> Optional[int]:
    """Parse an optional integer of any sign; blank means absent."""
    if raw is None or not raw.strip():
        return None
    value = _to_int(raw)
    if value is None:
        errors.add(field, "must be an integer")
    return value


def parse_search(raw: Optional[str]) -> str:
    return (raw or "").strip()


def parse_int_or_default(raw: Optional[str], default: int) -> int:
    """Lenient integer parse for layout controls; bad input falls back to the default."""
    if raw is None or not raw.strip():
        return default
    value = _to_int(raw)
    return default if value is None else value


def parse_path_id(raw: str, field: str = "id") -> int:
    """
    Parse a positive integer path segment.

    Raises:
        AppError: 400 "<field> must be a positive integer"
    """
    value = _to_int(raw) if raw else None
    if value is None or value <= 0:
        raise AppError.bad_request(f"{field} {POSITIVE_INTEGER}")
    return value


def parse_flag(raw: Optional[str]) -> bool:
    """"1" and "true" (any case) switch a query flag on; anything else is off."""
    return (raw or "").strip().lower() in ("1", "true")
