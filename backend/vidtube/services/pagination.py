"""
Page/limit handling shared by every paginated listing.

Non-numeric values are rejected by request validation (400); values below 1
are clamped to 1 and `limit` is capped at MAX_LIMIT.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from fastapi import Query

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100


@dataclass(frozen=True)
class PageParams:
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @classmethod
    def clamped(cls, page: int | None, limit: int | None) -> "PageParams":
        page = DEFAULT_PAGE if page is None else max(1, page)
        limit = DEFAULT_LIMIT if limit is None else min(max(1, limit), MAX_LIMIT)
        return cls(page=page, limit=limit)

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True)
class Pagination:
    skip: int
    take: int
    current_page: int
    total_pages: int
    total_count: int
    limit: int

    def meta(self, total_key: str = "totalCount") -> dict:
        return {
            "currentPage": self.current_page,
            "totalPages": self.total_pages,
            total_key: self.total_count,
            "limit": self.limit,
        }


def paginate(page: int | None, limit: int | None, total_count: int) -> Pagination:
    params = PageParams.clamped(page, limit)
    return Pagination(
        skip=params.skip,
        take=params.limit,
        current_page=params.page,
        total_pages=math.ceil(total_count / params.limit) if total_count > 0 else 0,
        total_count=total_count,
        limit=params.limit,
    )


def page_params(
    page: int = Query(DEFAULT_PAGE, description="1-based page number"),
    limit: int = Query(DEFAULT_LIMIT, description="Items per page"),
) -> PageParams:
    """FastAPI dependency reading `page`/`limit` from the query string."""
    return PageParams.clamped(page, limit)
