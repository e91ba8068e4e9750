"""
Small catalogue lookups: release years, languages, levels, chords and user search.
"""

from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from lyric.core.errors import AppError
from lyric.models import Chord, Language, Level, Song, User
from lyric.schemas import ChordItem, ChordPositionItem, NamedItem, ReleaseYearItem, UserItem

from .pagination import Page, count_rows
from .songs import release_year_expr

USER_SEARCH_LIMIT = 20


class ReleaseYearService:
    """Distinct effective release years with the number of songs in each."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list(self, page: Optional[int] = None, per_page: Optional[int] = None) -> Page[ReleaseYearItem]:
        result: Page[ReleaseYearItem] = Page.empty(page, per_page)

        year = release_year_expr().label("year")
        grouped = (
            select(year, func.count(Song.id).label("total"))
            .where(year.is_not(None))
            .group_by(year)
        )
        result.total = await count_rows(self.db, grouped)
        if result.total == 0:
            return result

        rows = await self.db.execute(
            grouped.order_by(year.desc()).limit(result.per_page).offset(result.offset)
        )
        result.data = [ReleaseYearItem(id=value, name=value, total=total) for value, total in rows.all()]
        return result


class LanguageService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list(self) -> List[NamedItem]:
        return await named_options(self.db, Language)

    async def names(self) -> List[str]:
        return [item.name for item in await self.list()]


class LevelService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list(self) -> List[NamedItem]:
        return await named_options(self.db, Level)


class ChordService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def find(self, name: str) -> ChordItem:
        """
        Look a chord up by case-insensitive name.

        Raises:
            AppError: 404 "chord not found"
        """
        result = await self.db.execute(
            select(Chord)
            .where(func.lower(Chord.name) == name.strip().lower())
            .options(selectinload(Chord.positions))
            .order_by(Chord.id.asc())
            .limit(1)
        )
        chord = result.scalar_one_or_none()
        if chord is None:
            raise AppError.not_found("chord not found")

        return ChordItem(
            id=chord.id,
            name=chord.name,
            positions=[
                ChordPositionItem(
                    id=position.id,
                    base_fret=position.base_fret,
                    frets=position.frets,
                    fingers=position.fingers,
                )
                for position in chord.positions
            ],
        )


class UserService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def search_by_email(self, email: str) -> List[UserItem]:
        """Users whose email contains the fragment, at most twenty, ordered by email."""
        rows = await self.db.execute(
            select(User.id, User.email)
            .where(User.email.ilike(f"%{email.strip()}%"))
            .order_by(User.email.asc())
            .limit(USER_SEARCH_LIMIT)
        )
        return [UserItem(id=user_id, email=address) for user_id, address in rows.all()]

    async def list_all(self) -> List[User]:
        """Every account for the admin table."""
        return list((await self.db.execute(select(User).order_by(User.id.asc()))).scalars().all())


async def named_options(db: AsyncSession, model) -> List[NamedItem]:
    """{id, name} pairs for any catalogue table with a name column, sorted by name."""
    rows = await db.execute(select(model.id, model.name).order_by(model.name.asc(), model.id.asc()))
    return [NamedItem(id=item_id, name=name) for item_id, name in rows.all()]
