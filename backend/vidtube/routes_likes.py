from __future__ import annotations

from fastapi import APIRouter, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .deps import CurrentUser, SessionDep
from .models import Comment, Like, LikeTarget, Tweet, Video
from .responses import ApiError, ApiResponse
from .schemas import VideoWithOwner
from .services.ids import parse_id
from .services.likes import toggle_like
from .services.video_feed import owner_projection

router = APIRouter(prefix="/likes", tags=["likes"])

_TARGET_MODELS = {
    LikeTarget.video: Video,
    LikeTarget.comment: Comment,
    LikeTarget.tweet: Tweet,
}


async def _toggle(session: AsyncSession, current_user, kind: LikeTarget, raw_id: str) -> ApiResponse:
    target_id = parse_id(raw_id, kind.value)
    if not await session.get(_TARGET_MODELS[kind], target_id):
        raise ApiError(status.HTTP_404_NOT_FOUND, f"{kind.value.capitalize()} not found")
    liked = await toggle_like(session, current_user.id, kind, target_id)
    message = f"{kind.value.capitalize()} {'liked' if liked else 'unliked'} successfully"
    return ApiResponse(status.HTTP_200_OK, {"isLiked": liked}, message)


@router.post("/toggle/v/{video_id}")
@router.post("/video/{video_id}")
async def toggle_video_like(video_id: str, current_user: CurrentUser, session: SessionDep):
    return await _toggle(session, current_user, LikeTarget.video, video_id)


@router.post("/toggle/c/{comment_id}")
@router.post("/comment/{comment_id}")
async def toggle_comment_like(comment_id: str, current_user: CurrentUser, session: SessionDep):
    return await _toggle(session, current_user, LikeTarget.comment, comment_id)


@router.post("/toggle/t/{tweet_id}")
@router.post("/tweet/{tweet_id}")
async def toggle_tweet_like(tweet_id: str, current_user: CurrentUser, session: SessionDep):
    return await _toggle(session, current_user, LikeTarget.tweet, tweet_id)


@router.get("/videos")
async def get_liked_videos(current_user: CurrentUser, session: SessionDep):
    res = await session.execute(
        select(Video)
        .join(Like, Like.target_id == Video.id)
        .where(Like.target_kind == LikeTarget.video.value, Like.liked_by_id == current_user.id)
        .options(owner_projection())
        .order_by(Like.created_at.desc())
    )
    videos = [VideoWithOwner.model_validate(v) for v in res.scalars().unique().all()]
    return ApiResponse(status.HTTP_200_OK, videos, "Liked videos fetched successfully")
