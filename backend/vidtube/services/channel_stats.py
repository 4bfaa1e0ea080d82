"""
Channel-level rollups for the dashboard.
"""

from __future__ import annotations

import uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.models import Like, LikeTarget, Subscription, Video
from vidtube.schemas import ChannelStats, ChannelVideoRead
from vidtube.services.likes import likes_subquery
from vidtube.services.pagination import PageParams, Pagination, paginate
from vidtube.services.video_feed import FeedSort, order_clause


async def channel_stats(session: AsyncSession, channel_id: uuid.UUID) -> ChannelStats:
    total_subscribers = await session.scalar(
        select(func.count(Subscription.id)).where(Subscription.channel_id == channel_id)
    )

    video_row = (
        await session.execute(
            select(
                func.count(Video.id).label("total_videos"),
                func.coalesce(func.sum(Video.views), 0).label("total_views"),
            ).where(Video.owner_id == channel_id)
        )
    ).one()

    total_likes = await session.scalar(
        select(func.count(Like.id))
        .join(Video, Video.id == Like.target_id)
        .where(Like.target_kind == LikeTarget.video.value, Video.owner_id == channel_id)
    )

    return ChannelStats(
        total_subscribers=total_subscribers or 0,
        total_videos=video_row.total_videos or 0,
        total_views=int(video_row.total_views or 0),
        total_likes=total_likes or 0,
    )


async def channel_videos(
    session: AsyncSession,
    channel_id: uuid.UUID,
    params: PageParams,
    sort: FeedSort,
) -> tuple[list[ChannelVideoRead], Pagination]:
    likes = likes_subquery(LikeTarget.video)
    likes_count = func.coalesce(likes.c.likes_count, 0).label("likes_count")
    stmt = (
        select(Video, likes_count)
        .outerjoin(likes, likes.c.target_id == Video.id)
        .where(Video.owner_id == channel_id)
        .order_by(*order_clause(sort))
        .offset(params.skip)
        .limit(params.limit)
    )
    rows = (await session.execute(stmt)).all()
    videos = [
        ChannelVideoRead.model_validate(row.Video).model_copy(update={"likes_count": int(row.likes_count)})
        for row in rows
    ]

    total = await session.scalar(select(func.count(Video.id)).where(Video.owner_id == channel_id))
    return videos, paginate(params.page, params.limit, int(total or 0))
