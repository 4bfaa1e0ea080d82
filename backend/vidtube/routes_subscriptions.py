from __future__ import annotations

from fastapi import APIRouter, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from .deps import CurrentUser, SessionDep
from .models import Subscription, User
from .responses import ApiError, ApiResponse
from .schemas import OwnerRead, SubscriptionRead
from .services.ids import parse_id

router = APIRouter(prefix="/subscriptions", tags=["subscriptions"])


async def _find_subscription(session: AsyncSession, subscriber_id, channel_id) -> Subscription | None:
    return await session.scalar(
        select(Subscription).where(
            Subscription.subscriber_id == subscriber_id,
            Subscription.channel_id == channel_id,
        )
    )


@router.post("/c/{channel_id}")
async def subscribe(channel_id: str, current_user: CurrentUser, session: SessionDep):
    cid = parse_id(channel_id, "channel")
    if cid == current_user.id:
        raise ApiError(status.HTTP_400_BAD_REQUEST, "You cannot subscribe to your own channel")
    if not await session.get(User, cid):
        raise ApiError(status.HTTP_404_NOT_FOUND, "Channel not found")
    if await _find_subscription(session, current_user.id, cid):
        raise ApiError(status.HTTP_400_BAD_REQUEST, "Already subscribed to this channel")

    subscription = Subscription(subscriber_id=current_user.id, channel_id=cid)
    session.add(subscription)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise ApiError(status.HTTP_400_BAD_REQUEST, "Already subscribed to this channel")
    await session.refresh(subscription)
    return ApiResponse(status.HTTP_201_CREATED, SubscriptionRead.model_validate(subscription), "Subscribed successfully")


@router.delete("/c/{channel_id}")
async def unsubscribe(channel_id: str, current_user: CurrentUser, session: SessionDep):
    cid = parse_id(channel_id, "channel")
    subscription = await _find_subscription(session, current_user.id, cid)
    if not subscription:
        raise ApiError(status.HTTP_400_BAD_REQUEST, "Not subscribed to this channel")
    await session.delete(subscription)
    await session.commit()
    return ApiResponse(status.HTTP_200_OK, {}, "Unsubscribed successfully")


@router.get("/c/{channel_id}")
async def get_channel_subscribers(channel_id: str, session: SessionDep):
    cid = parse_id(channel_id, "channel")
    if not await session.get(User, cid):
        raise ApiError(status.HTTP_404_NOT_FOUND, "Channel not found")
    res = await session.execute(
        select(User)
        .join(Subscription, Subscription.subscriber_id == User.id)
        .where(Subscription.channel_id == cid)
        .order_by(Subscription.created_at.desc())
    )
    subscribers = [OwnerRead.model_validate(u) for u in res.scalars().all()]
    return ApiResponse(
        status.HTTP_200_OK,
        {"subscribers": subscribers, "totalSubscribers": len(subscribers)},
        "Subscribers fetched successfully",
    )


@router.get("/u/{subscriber_id}")
async def get_subscribed_channels(subscriber_id: str, session: SessionDep):
    sid = parse_id(subscriber_id, "subscriber")
    if not await session.get(User, sid):
        raise ApiError(status.HTTP_404_NOT_FOUND, "User not found")
    res = await session.execute(
        select(User)
        .join(Subscription, Subscription.channel_id == User.id)
        .where(Subscription.subscriber_id == sid)
        .order_by(Subscription.created_at.desc())
    )
    channels = [OwnerRead.model_validate(u) for u in res.scalars().all()]
    return ApiResponse(
        status.HTTP_200_OK,
        {"channels": channels, "totalChannels": len(channels)},
        "Subscribed channels fetched successfully",
    )
