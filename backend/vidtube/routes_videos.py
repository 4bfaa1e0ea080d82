from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .deps import CurrentUser, MediaDep, OptionalUser, SessionDep
from .models import Comment, LikeTarget, PlaylistVideo, User, Video, WatchHistory, utcnow
from .responses import ApiError, ApiResponse
from .schemas import VideoRead, VideoWithOwner
from .services.ids import parse_id
from .services.likes import delete_likes_for
from .services.ownership import ensure_owner
from .services.pagination import PageParams, page_params, paginate
from .services.uploads import discard_media, has_file, upload_to_media
from .services.video_feed import FeedFilters, FeedSort, build_video_feed, get_video_with_owner

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/videos", tags=["videos"])


async def _get_video_or_404(session: AsyncSession, video_id: str) -> Video:
    video = await session.get(Video, parse_id(video_id, "video"))
    if not video:
        raise ApiError(status.HTTP_404_NOT_FOUND, "Video not found")
    return video


async def _record_watch(session: AsyncSession, user: User, video: Video) -> None:
    entry = await session.get(WatchHistory, (user.id, video.id))
    if entry:
        entry.watched_at = utcnow()
    else:
        session.add(WatchHistory(user_id=user.id, video_id=video.id))


@router.get("")
async def get_all_videos(
    session: SessionDep,
    params: PageParams = Depends(page_params),
    query: str | None = Query(None, description="Substring matched against title or description"),
    sort_by: str | None = Query(None, alias="sortBy"),
    sort_type: str | None = Query(None, alias="sortType"),
    user_id: str | None = Query(None, alias="userId"),
):
    filters = FeedFilters(query=query, user_id=user_id, published_only=True)
    videos, total = await build_video_feed(session, filters, FeedSort(sort_by, sort_type), params)
    pagination = paginate(params.page, params.limit, total)
    return ApiResponse(
        status.HTTP_200_OK,
        {
            "videos": [VideoWithOwner.model_validate(v) for v in videos],
            "pagination": pagination.meta("totalVideos"),
        },
        "Videos fetched successfully!",
    )


@router.post("")
async def publish_a_video(
    current_user: CurrentUser,
    session: SessionDep,
    media: MediaDep,
    title: str | None = Form(None),
    description: str | None = Form(None),
    video_file: UploadFile | None = File(None, alias="videoFile"),
    thumbnail: UploadFile | None = File(None),
):
    if not title or not title.strip() or not description or not description.strip():
        raise ApiError(status.HTTP_400_BAD_REQUEST, "Title and description are required")
    if not has_file(video_file):
        raise ApiError(status.HTTP_400_BAD_REQUEST, "Video file is required")
    if not has_file(thumbnail):
        raise ApiError(status.HTTP_400_BAD_REQUEST, "Thumbnail image is required")

    video_asset = await upload_to_media(media, video_file, "videos", "Failed to upload video or thumbnail", "video")
    thumb_asset = await upload_to_media(media, thumbnail, "thumbnails", "Failed to upload video or thumbnail", "image")

    video = Video(
        video_file=video_asset.url,
        thumbnail=thumb_asset.url,
        title=title.strip(),
        description=description.strip(),
        duration=video_asset.duration,
        owner_id=current_user.id,
    )
    session.add(video)
    await session.commit()
    await session.refresh(video)
    logger.info("User %s published video %s", current_user.id, video.id)
    return ApiResponse(status.HTTP_201_CREATED, VideoRead.model_validate(video), "Video published successfully!")


@router.get("/{video_id}")
async def get_video_by_id(video_id: str, session: SessionDep, current_user: OptionalUser):
    vid = parse_id(video_id, "video")
    res = await session.execute(update(Video).where(Video.id == vid).values(views=Video.views + 1))
    if res.rowcount == 0:
        raise ApiError(status.HTTP_404_NOT_FOUND, "Video not found")
    video = await get_video_with_owner(session, vid)
    if current_user is not None:
        await _record_watch(session, current_user, video)
    await session.commit()
    return ApiResponse(status.HTTP_200_OK, VideoWithOwner.model_validate(video), "Video fetched successfully!")


@router.patch("/toggle/publish/{video_id}")
async def toggle_publish_status(video_id: str, current_user: CurrentUser, session: SessionDep):
    video = await _get_video_or_404(session, video_id)
    ensure_owner(video.owner_id, current_user.id, "You are not authorized to change this video's publish status")
    video.is_published = not video.is_published
    await session.commit()
    await session.refresh(video)
    state = "published" if video.is_published else "unpublished"
    return ApiResponse(status.HTTP_200_OK, VideoRead.model_validate(video), f"Video {state} successfully!")


@router.patch("/{video_id}")
async def update_video(
    video_id: str,
    current_user: CurrentUser,
    session: SessionDep,
    media: MediaDep,
    title: str | None = Form(None),
    description: str | None = Form(None),
    thumbnail: UploadFile | None = File(None),
):
    vid = parse_id(video_id, "video")
    has_title = bool(title and title.strip())
    has_description = bool(description and description.strip())
    if not has_title and not has_description and not has_file(thumbnail):
        raise ApiError(status.HTTP_400_BAD_REQUEST, "At least one field is required to update")

    video = await _get_video_or_404(session, vid)
    ensure_owner(video.owner_id, current_user.id, "You are not authorized to update this video")

    if has_title:
        video.title = title.strip()
    if has_description:
        video.description = description.strip()
    previous_thumbnail = None
    if has_file(thumbnail):
        asset = await upload_to_media(media, thumbnail, "thumbnails", "Failed to upload thumbnail", "image")
        previous_thumbnail = video.thumbnail
        video.thumbnail = asset.url

    await session.commit()
    await session.refresh(video)
    if previous_thumbnail:
        await discard_media(media, previous_thumbnail)
    return ApiResponse(status.HTTP_200_OK, VideoRead.model_validate(video), "Video updated successfully!")


@router.delete("/{video_id}")
async def delete_video(video_id: str, current_user: CurrentUser, session: SessionDep):
    video = await _get_video_or_404(session, video_id)
    ensure_owner(video.owner_id, current_user.id, "You are not authorized to delete this video")

    comment_ids = list((await session.scalars(select(Comment.id).where(Comment.video_id == video.id))).all())
    await delete_likes_for(session, LikeTarget.comment, comment_ids)
    await delete_likes_for(session, LikeTarget.video, [video.id])
    await session.execute(delete(Comment).where(Comment.video_id == video.id))
    await session.execute(delete(PlaylistVideo).where(PlaylistVideo.video_id == video.id))
    await session.execute(delete(WatchHistory).where(WatchHistory.video_id == video.id))
    await session.delete(video)
    await session.commit()
    logger.info("User %s deleted video %s", current_user.id, video.id)
    return ApiResponse(status.HTTP_200_OK, {}, "Video deleted successfully!")
