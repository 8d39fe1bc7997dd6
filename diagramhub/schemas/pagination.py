"""Pagination normalisation shared by every list endpoint.

Out-of-range values are clamped, never rejected: ``page=0, limit=1000``
becomes ``page=1, limit=100``. ``page`` is also capped so the row offset
stays inside a signed 64-bit integer, which is what the databases accept.
"""

from dataclasses import dataclass
from typing import Optional

from ..repositories.base import MAX_PAGE_SIZE

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10

# Largest OFFSET we hand to the database. Below 2**63 so LIMIT + OFFSET cannot overflow either.
MAX_OFFSET = 2**62


@dataclass(frozen=True)
class PageParams:
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @classmethod
    def normalize(cls, page: Optional[int] = None, limit: Optional[int] = None) -> "PageParams":
        limit = DEFAULT_LIMIT if limit is None else max(1, min(limit, MAX_PAGE_SIZE))
        page = DEFAULT_PAGE if page is None else max(1, min(page, MAX_OFFSET // limit + 1))
        return cls(page=page, limit=limit)
