"""
Artist and writer catalogue services.

Both lists share one shape, {id, name, total}, where total is the number of
distinct songs linked through the entity's join table.
"""

from dataclasses import dataclass
from typing import Optional

from sqlalchemy import distinct, exists, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from lyric.models import AlbumArtist, Artist, ArtistSong, SongWriter, Writer
from lyric.schemas import CountedItem

from .pagination import Page, count_rows


@dataclass
class ContributorFilters:
    page: Optional[int] = None
    per_page: Optional[int] = None
    search: str = ""
    album_id: Optional[int] = None


class _ContributorService:
    model = None
    link = None
    link_column = None

    def __init__(self, db: AsyncSession):
        self.db = db

    def _conditions(self, filters: ContributorFilters) -> list:
        conditions = []
        if filters.search:
            conditions.append(self.model.name.ilike(f"%{filters.search}%"))
        return conditions

    async def list(self, filters: ContributorFilters) -> Page[CountedItem]:
        result: Page[CountedItem] = Page.empty(filters.page, filters.per_page)
        conditions = self._conditions(filters)

        result.total = await count_rows(self.db, select(self.model.id).where(*conditions))
        if result.total == 0:
            return result

        link_column = getattr(self.link, self.link_column)
        totals = (
            select(link_column.label("owner_id"), func.count(distinct(self.link.song_id)).label("total"))
            .group_by(link_column)
            .subquery()
        )
        query = (
            select(self.model.id, self.model.name, func.coalesce(totals.c.total, 0))
            .outerjoin(totals, totals.c.owner_id == self.model.id)
            .where(*conditions)
            .order_by(self.model.name.asc(), self.model.id.asc())
            .limit(result.per_page)
            .offset(result.offset)
        )
        result.data = [
            CountedItem(id=item_id, name=name, total=total)
            for item_id, name, total in (await self.db.execute(query)).all()
        ]
        return result


class ArtistService(_ContributorService):
    model = Artist
    link = ArtistSong
    link_column = "artist_id"

    def _conditions(self, filters: ContributorFilters) -> list:
        conditions = super()._conditions(filters)
        if filters.album_id is not None:
            conditions.append(
                exists().where(
                    AlbumArtist.artist_id == Artist.id,
                    AlbumArtist.album_id == filters.album_id,
                )
            )
        return conditions


class WriterService(_ContributorService):
    model = Writer
    link = SongWriter
    link_column = "writer_id"
