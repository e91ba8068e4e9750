"""
Jinja2 environment shared by the public pages and the admin surface.
"""

from pathlib import Path

from fastapi.templating import Jinja2Templates

BASE_DIR = Path(__file__).resolve().parent

templates = Jinja2Templates(directory=BASE_DIR / "templates")


def join_names(items, empty: str = "—") -> str:
    """Comma-join the names of artists or writers; a dash when there are none."""
    names = [item.name for item in items or []]
    return ", ".join(names) if names else empty


templates.env.filters["join_names"] = join_names
