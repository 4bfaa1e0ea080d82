"""
Filter/sort/join composition for video listings.

Every listing built here computes its page and its total from the same
filter expression so pagination metadata matches the rows returned.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Sequence

from fastapi import status
from sqlalchemy import ColumnElement, Select, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from vidtube.models import User, Video
from vidtube.responses import ApiError
from vidtube.services.ids import parse_id
from vidtube.services.pagination import PageParams

SORTABLE_FIELDS = {
    "createdAt": Video.created_at,
    "updatedAt": Video.updated_at,
    "views": Video.views,
    "title": Video.title,
    "duration": Video.duration,
}
SORT_DIRECTIONS = ("asc", "desc")
LIKE_ESCAPE = "\\"


@dataclass(frozen=True)
class FeedFilters:
    query: str | None = None
    user_id: str | uuid.UUID | None = None
    published_only: bool = True


@dataclass(frozen=True)
class FeedSort:
    sort_by: str | None = None
    sort_type: str | None = None


def owner_projection():
    """Eager-load only the public owner fields used in listings."""
    return joinedload(Video.owner).load_only(User.id, User.full_name, User.username, User.avatar)


def escape_like(text: str) -> str:
    """Make `text` match literally inside a LIKE pattern."""
    return text.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2).replace("%", LIKE_ESCAPE + "%").replace("_", LIKE_ESCAPE + "_")


def build_conditions(filters: FeedFilters) -> list[ColumnElement[bool]]:
    conditions: list[ColumnElement[bool]] = []
    if filters.query:
        pattern = f"%{escape_like(filters.query)}%"
        conditions.append(
            or_(
                Video.title.ilike(pattern, escape=LIKE_ESCAPE),
                Video.description.ilike(pattern, escape=LIKE_ESCAPE),
            )
        )
    if filters.user_id is not None and filters.user_id != "":
        conditions.append(Video.owner_id == parse_id(filters.user_id, "user"))
    if filters.published_only:
        conditions.append(Video.is_published.is_(True))
    return conditions


def order_clause(sort: FeedSort):
    sort_by = sort.sort_by or "createdAt"
    sort_type = (sort.sort_type or "desc").lower()
    column = SORTABLE_FIELDS.get(sort_by)
    if column is None:
        raise ApiError(
            status.HTTP_400_BAD_REQUEST,
            f"Invalid sortBy; expected one of {', '.join(SORTABLE_FIELDS)}",
        )
    if sort_type not in SORT_DIRECTIONS:
        raise ApiError(status.HTTP_400_BAD_REQUEST, "Invalid sortType; expected asc or desc")
    ordered = column.desc() if sort_type == "desc" else column.asc()
    # id breaks ties so pages never overlap
    return [ordered, Video.id.desc() if sort_type == "desc" else Video.id.asc()]


def apply_page(stmt: Select, params: PageParams) -> Select:
    return stmt.offset(params.skip).limit(params.limit)


async def count_where(session: AsyncSession, conditions: Sequence[ColumnElement[bool]]) -> int:
    total = await session.scalar(select(func.count(Video.id)).where(*conditions))
    return int(total or 0)


async def build_video_feed(
    session: AsyncSession,
    filters: FeedFilters,
    sort: FeedSort,
    params: PageParams,
) -> tuple[list[Video], int]:
    conditions = build_conditions(filters)
    stmt = (
        select(Video)
        .where(*conditions)
        .options(owner_projection())
        .order_by(*order_clause(sort))
    )
    res = await session.execute(apply_page(stmt, params))
    items = list(res.scalars().unique().all())
    total = await count_where(session, conditions)
    return items, total


async def get_video_with_owner(session: AsyncSession, video_id: uuid.UUID) -> Video | None:
    res = await session.execute(
        select(Video)
        .where(Video.id == video_id)
        .options(owner_projection())
        .execution_options(populate_existing=True)
    )
    return res.scalars().unique().one_or_none()
