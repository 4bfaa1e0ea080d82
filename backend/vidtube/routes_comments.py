from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from .deps import CurrentUser, SessionDep
from .models import Comment, LikeTarget, User, Video
from .responses import ApiError, ApiResponse
from .schemas import CommentCreate, CommentRead, CommentWithOwner
from .services.ids import parse_id
from .services.likes import delete_likes_for, likes_subquery
from .services.ownership import ensure_owner
from .services.pagination import PageParams, page_params, paginate

router = APIRouter(prefix="/comments", tags=["comments"])


def _require_content(data: CommentCreate) -> str:
    if data.content is None or not data.content.strip():
        raise ApiError(status.HTTP_400_BAD_REQUEST, "Comment content is required")
    return data.content.strip()


async def _get_comment_or_404(session: AsyncSession, comment_id: str) -> Comment:
    comment = await session.get(Comment, parse_id(comment_id, "comment"))
    if not comment:
        raise ApiError(status.HTTP_404_NOT_FOUND, "Comment not found")
    return comment


@router.get("/{video_id}")
async def get_video_comments(
    video_id: str,
    session: SessionDep,
    params: PageParams = Depends(page_params),
):
    vid = parse_id(video_id, "video")
    if not await session.get(Video, vid):
        raise ApiError(status.HTTP_404_NOT_FOUND, "Video not found")

    likes = likes_subquery(LikeTarget.comment)
    stmt = (
        select(Comment, func.coalesce(likes.c.likes_count, 0).label("likes_count"))
        .outerjoin(likes, likes.c.target_id == Comment.id)
        .where(Comment.video_id == vid)
        .options(joinedload(Comment.owner).load_only(User.id, User.full_name, User.username, User.avatar))
        .order_by(Comment.created_at.desc(), Comment.id.desc())
        .offset(params.skip)
        .limit(params.limit)
    )
    rows = (await session.execute(stmt)).unique().all()
    comments = [
        CommentWithOwner.model_validate(row.Comment).model_copy(update={"likes_count": int(row.likes_count)})
        for row in rows
    ]
    total = await session.scalar(select(func.count(Comment.id)).where(Comment.video_id == vid))
    pagination = paginate(params.page, params.limit, int(total or 0))
    return ApiResponse(
        status.HTTP_200_OK,
        {"comments": comments, "pagination": pagination.meta("totalComments")},
        "Comments fetched successfully",
    )


@router.post("/{video_id}")
async def add_comment(video_id: str, data: CommentCreate, current_user: CurrentUser, session: SessionDep):
    vid = parse_id(video_id, "video")
    content = _require_content(data)
    if not await session.get(Video, vid):
        raise ApiError(status.HTTP_404_NOT_FOUND, "Video not found")
    comment = Comment(content=content, video_id=vid, owner_id=current_user.id)
    session.add(comment)
    await session.commit()
    await session.refresh(comment)
    return ApiResponse(status.HTTP_201_CREATED, CommentRead.model_validate(comment), "Comment added successfully")


@router.patch("/c/{comment_id}")
async def update_comment(comment_id: str, data: CommentCreate, current_user: CurrentUser, session: SessionDep):
    cid = parse_id(comment_id, "comment")
    content = _require_content(data)
    comment = await _get_comment_or_404(session, cid)
    ensure_owner(comment.owner_id, current_user.id, "You are not authorized to update this comment")
    comment.content = content
    await session.commit()
    await session.refresh(comment)
    return ApiResponse(status.HTTP_200_OK, CommentRead.model_validate(comment), "Comment updated successfully")


@router.delete("/c/{comment_id}")
async def delete_comment(comment_id: str, current_user: CurrentUser, session: SessionDep):
    comment = await _get_comment_or_404(session, comment_id)
    ensure_owner(comment.owner_id, current_user.id, "You are not authorized to delete this comment")
    await delete_likes_for(session, LikeTarget.comment, [comment.id])
    await session.delete(comment)
    await session.commit()
    return ApiResponse(status.HTTP_200_OK, {}, "Comment deleted successfully")
