"""
Dashboard API routes: statistics scoped to the caller's own channel.
"""

from fastapi import APIRouter, Depends, Query

from .deps import CurrentUser, SessionDep
from .responses import ApiResponse
from .services.channel_stats import channel_stats, channel_videos
from .services.pagination import PageParams, page_params
from .services.video_feed import FeedSort

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/stats")
async def get_channel_stats(current_user: CurrentUser, session: SessionDep):
    """Subscriber, video, view and like totals for the caller's channel."""
    stats = await channel_stats(session, current_user.id)
    return ApiResponse(200, stats, "Channel stats fetched successfully")


@router.get("/videos")
async def get_channel_videos(
    current_user: CurrentUser,
    session: SessionDep,
    params: PageParams = Depends(page_params),
    sort_by: str | None = Query("createdAt", alias="sortBy"),
    sort_type: str | None = Query("desc", alias="sortType"),
):
    """All of the caller's videos, published or not, each with its like count."""
    videos, pagination = await channel_videos(session, current_user.id, params, FeedSort(sort_by, sort_type))
    return ApiResponse(
        200,
        {"videos": videos, "pagination": pagination.meta("totalVideos")},
        "Channel videos fetched successfully",
    )
