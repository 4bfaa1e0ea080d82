from __future__ import annotations

from fastapi import APIRouter, status
from sqlalchemy import func, select
from sqlalchemy.orm import joinedload

from .deps import CurrentUser, SessionDep
from .models import LikeTarget, Tweet, User
from .responses import ApiError, ApiResponse
from .schemas import TweetCreate, TweetRead, TweetWithOwner
from .services.ids import parse_id
from .services.likes import delete_likes_for, likes_subquery
from .services.ownership import ensure_owner

router = APIRouter(prefix="/tweets", tags=["tweets"])


def _require_content(data: TweetCreate) -> str:
    if data.content is None or not data.content.strip():
        raise ApiError(status.HTTP_400_BAD_REQUEST, "Tweet content is required")
    return data.content.strip()


@router.post("")
async def create_tweet(data: TweetCreate, current_user: CurrentUser, session: SessionDep):
    tweet = Tweet(content=_require_content(data), owner_id=current_user.id)
    session.add(tweet)
    await session.commit()
    await session.refresh(tweet)
    return ApiResponse(status.HTTP_201_CREATED, TweetRead.model_validate(tweet), "Tweet created successfully")


@router.get("/user/{user_id}")
async def get_user_tweets(user_id: str, session: SessionDep):
    uid = parse_id(user_id, "user")
    if not await session.get(User, uid):
        raise ApiError(status.HTTP_404_NOT_FOUND, "User not found")

    likes = likes_subquery(LikeTarget.tweet)
    stmt = (
        select(Tweet, func.coalesce(likes.c.likes_count, 0).label("likes_count"))
        .outerjoin(likes, likes.c.target_id == Tweet.id)
        .where(Tweet.owner_id == uid)
        .options(joinedload(Tweet.owner).load_only(User.id, User.full_name, User.username, User.avatar))
        .order_by(Tweet.created_at.desc())
    )
    rows = (await session.execute(stmt)).unique().all()
    tweets = [
        TweetWithOwner.model_validate(row.Tweet).model_copy(update={"likes_count": int(row.likes_count)})
        for row in rows
    ]
    return ApiResponse(status.HTTP_200_OK, tweets, "Tweets fetched successfully")


@router.patch("/{tweet_id}")
async def update_tweet(tweet_id: str, data: TweetCreate, current_user: CurrentUser, session: SessionDep):
    tid = parse_id(tweet_id, "tweet")
    content = _require_content(data)
    tweet = await session.get(Tweet, tid)
    if not tweet:
        raise ApiError(status.HTTP_404_NOT_FOUND, "Tweet not found")
    ensure_owner(tweet.owner_id, current_user.id, "You are not authorized to update this tweet")
    tweet.content = content
    await session.commit()
    await session.refresh(tweet)
    return ApiResponse(status.HTTP_200_OK, TweetRead.model_validate(tweet), "Tweet updated successfully")


@router.delete("/{tweet_id}")
async def delete_tweet(tweet_id: str, current_user: CurrentUser, session: SessionDep):
    tweet = await session.get(Tweet, parse_id(tweet_id, "tweet"))
    if not tweet:
        raise ApiError(status.HTTP_404_NOT_FOUND, "Tweet not found")
    ensure_owner(tweet.owner_id, current_user.id, "You are not authorized to delete this tweet")
    await delete_likes_for(session, LikeTarget.tweet, [tweet.id])
    await session.delete(tweet)
    await session.commit()
    return ApiResponse(status.HTTP_200_OK, {}, "Tweet deleted successfully")
