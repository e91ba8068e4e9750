"""
Pagination contract shared by every list endpoint.

    page <= 0      -> 1
    per_page <= 0  -> 10
    per_page > 100 -> 100
"""

from dataclasses import dataclass, field
from typing import Any, Generic, List, Optional, TypeVar

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

DEFAULT_PAGE = 1
DEFAULT_PER_PAGE = 10
MAX_PER_PAGE = 100

T = TypeVar("T")


def normalise_page(page: Optional[int]) -> int:
    if page is not None and page > 0:
        return page
    return DEFAULT_PAGE


def normalise_per_page(per_page: Optional[int]) -> int:
    if per_page is None or per_page <= 0:
        return DEFAULT_PER_PAGE
    return min(per_page, MAX_PER_PAGE)


def offset(page: int, per_page: int) -> int:
    return max(page - 1, 0) * per_page


@dataclass
class Page(Generic[T]):
    """One page of results plus the total under the same filters."""

    page: int
    per_page: int
    total: int = 0
    data: List[T] = field(default_factory=list)

    @classmethod
    def empty(cls, page: Optional[int], per_page: Optional[int]) -> "Page[T]":
        return cls(page=normalise_page(page), per_page=normalise_per_page(per_page))

    @property
    def offset(self) -> int:
        return offset(self.page, self.per_page)

    def to_dict(self) -> dict[str, Any]:
        return {
            "data": [item.model_dump() if hasattr(item, "model_dump") else item for item in self.data],
            "page": self.page,
            "per_page": self.per_page,
            "total": self.total,
        }


async def count_rows(db: AsyncSession, query: Select) -> int:
    """Count the rows a select would return."""
    result = await db.execute(select(func.count()).select_from(query.order_by(None).subquery()))
    return int(result.scalar_one())
