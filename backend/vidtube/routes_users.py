from __future__ import annotations

import logging
import uuid

from fastapi import APIRouter, Body, File, Form, Request, UploadFile, status
from pydantic import ValidationError
from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from .deps import ACCESS_COOKIE, REFRESH_COOKIE, CurrentUser, MediaDep, SessionDep
from .models import Subscription, User, Video, WatchHistory
from .responses import ApiError, ApiResponse
from .schemas import (
    AccountUpdate,
    ChangePasswordRequest,
    ChannelProfileRead,
    LoginRequest,
    LoginResponse,
    RefreshTokenRequest,
    UserRead,
    VideoWithOwner,
    normalize_email,
)
from .security import (
    TokenError,
    create_access_token,
    create_refresh_token,
    decode_refresh_token,
    hash_password,
    verify_password,
)
from .services.uploads import discard_media, has_file, upload_to_media
from .services.video_feed import owner_projection
from .settings import get_settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


def _cookie_options() -> dict:
    return {"httponly": True, "secure": get_settings().cookie_secure, "samesite": "lax"}


async def _issue_tokens(session: AsyncSession, user: User) -> tuple[str, str]:
    access_token = create_access_token(user)
    refresh_token = create_refresh_token(user)
    user.refresh_token = refresh_token
    await session.commit()
    await session.refresh(user)
    return access_token, refresh_token


def _with_token_cookies(response: ApiResponse, access_token: str, refresh_token: str) -> ApiResponse:
    options = _cookie_options()
    response.set_cookie(ACCESS_COOKIE, access_token, **options)
    response.set_cookie(REFRESH_COOKIE, refresh_token, **options)
    return response


@router.post("/register")
async def register_user(
    session: SessionDep,
    media: MediaDep,
    full_name: str | None = Form(None, alias="fullName"),
    email: str | None = Form(None),
    username: str | None = Form(None),
    password: str | None = Form(None),
    avatar: UploadFile | None = File(None),
    cover_image: UploadFile | None = File(None, alias="coverImage"),
):
    fields = [full_name, email, username, password]
    if any(value is None or value.strip() == "" for value in fields):
        raise ApiError(status.HTTP_400_BAD_REQUEST, "All fields are required")

    username = username.strip().lower()
    try:
        email = normalize_email(email)
    except ValidationError:
        raise ApiError(status.HTTP_400_BAD_REQUEST, "Invalid email address")
    existing = await session.scalar(select(User).where(or_(User.username == username, User.email == email)))
    if existing:
        raise ApiError(status.HTTP_409_CONFLICT, "User with email or username already exists")

    if not has_file(avatar):
        raise ApiError(status.HTTP_400_BAD_REQUEST, "Avatar file is required")

    avatar_asset = await upload_to_media(media, avatar, "avatars", "Failed to upload avatar")
    cover_url = None
    if has_file(cover_image):
        cover_url = (await upload_to_media(media, cover_image, "covers", "Failed to upload cover image")).url

    user = User(
        full_name=full_name.strip(),
        email=email,
        username=username,
        password=hash_password(password),
        avatar=avatar_asset.url,
        cover_image=cover_url,
    )
    session.add(user)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        await discard_media(media, avatar_asset.url)
        await discard_media(media, cover_url)
        raise ApiError(status.HTTP_409_CONFLICT, "User with email or username already exists")
    await session.refresh(user)
    logger.info("Registered user %s (%s)", user.username, user.id)
    return ApiResponse(status.HTTP_201_CREATED, UserRead.model_validate(user), "User registered successfully")


@router.post("/login")
async def login_user(data: LoginRequest, session: SessionDep):
    if not data.email and not data.username:
        raise ApiError(status.HTTP_400_BAD_REQUEST, "username or email is required")

    conditions = []
    if data.username:
        conditions.append(User.username == data.username)
    if data.email:
        conditions.append(User.email == data.email)
    user = await session.scalar(select(User).where(or_(*conditions)))
    if not user:
        raise ApiError(status.HTTP_404_NOT_FOUND, "User does not exist")
    if not verify_password(data.password, user.password):
        raise ApiError(status.HTTP_401_UNAUTHORIZED, "Invalid user credentials")

    access_token, refresh_token = await _issue_tokens(session, user)
    payload = LoginResponse(user=UserRead.model_validate(user), access_token=access_token, refresh_token=refresh_token)
    response = ApiResponse(status.HTTP_200_OK, payload, "User logged in successfully")
    return _with_token_cookies(response, access_token, refresh_token)


@router.post("/logout")
async def logout_user(current_user: CurrentUser, session: SessionDep):
    current_user.refresh_token = None
    await session.commit()
    response = ApiResponse(status.HTTP_200_OK, {}, "User logged out")
    options = _cookie_options()
    response.delete_cookie(ACCESS_COOKIE, **options)
    response.delete_cookie(REFRESH_COOKIE, **options)
    return response


@router.post("/refresh-token")
async def refresh_access_token(
    request: Request,
    session: SessionDep,
    data: RefreshTokenRequest | None = Body(None),
):
    incoming = request.cookies.get(REFRESH_COOKIE) or (data.refresh_token if data else None)
    if not incoming:
        raise ApiError(status.HTTP_401_UNAUTHORIZED, "Unauthorized request")
    try:
        payload = decode_refresh_token(incoming)
        user_id = uuid.UUID(payload["sub"])
    except (TokenError, ValueError):
        raise ApiError(status.HTTP_401_UNAUTHORIZED, "Invalid refresh token")

    user = await session.get(User, user_id)
    if not user:
        raise ApiError(status.HTTP_401_UNAUTHORIZED, "Invalid refresh token")
    if incoming != user.refresh_token:
        raise ApiError(status.HTTP_401_UNAUTHORIZED, "Refresh token is expired or used")

    access_token, refresh_token = await _issue_tokens(session, user)
    response = ApiResponse(
        status.HTTP_200_OK,
        {"accessToken": access_token, "refreshToken": refresh_token},
        "Access token refreshed",
    )
    return _with_token_cookies(response, access_token, refresh_token)


@router.post("/change-password")
async def change_password(data: ChangePasswordRequest, current_user: CurrentUser, session: SessionDep):
    if not verify_password(data.old_password, current_user.password):
        raise ApiError(status.HTTP_400_BAD_REQUEST, "Invalid old password")
    if not data.new_password.strip():
        raise ApiError(status.HTTP_400_BAD_REQUEST, "New password is required")
    current_user.password = hash_password(data.new_password)
    await session.commit()
    return ApiResponse(status.HTTP_200_OK, {}, "Password changed successfully")


@router.get("/current-user")
async def get_current_user_profile(current_user: CurrentUser):
    return ApiResponse(status.HTTP_200_OK, UserRead.model_validate(current_user), "User fetched successfully")


@router.patch("/update-account")
async def update_account_details(data: AccountUpdate, current_user: CurrentUser, session: SessionDep):
    if data.full_name is None and data.email is None:
        raise ApiError(status.HTTP_400_BAD_REQUEST, "At least one field (fullName or email) is required")
    if data.full_name is not None:
        if not data.full_name.strip():
            raise ApiError(status.HTTP_400_BAD_REQUEST, "Full name cannot be empty")
        current_user.full_name = data.full_name.strip()
    if data.email is not None:
        email = normalize_email(str(data.email))
        taken = await session.scalar(select(User.id).where(User.email == email, User.id != current_user.id))
        if taken:
            raise ApiError(status.HTTP_409_CONFLICT, "Email is already in use")
        current_user.email = email
    await session.commit()
    await session.refresh(current_user)
    return ApiResponse(status.HTTP_200_OK, UserRead.model_validate(current_user), "Account details updated successfully")


@router.patch("/avatar")
async def update_user_avatar(
    current_user: CurrentUser,
    session: SessionDep,
    media: MediaDep,
    avatar: UploadFile | None = File(None),
):
    if not has_file(avatar):
        raise ApiError(status.HTTP_400_BAD_REQUEST, "Avatar file is missing")
    asset = await upload_to_media(media, avatar, "avatars", "Failed to upload avatar")
    previous = current_user.avatar
    current_user.avatar = asset.url
    await session.commit()
    await session.refresh(current_user)
    await discard_media(media, previous)
    return ApiResponse(status.HTTP_200_OK, UserRead.model_validate(current_user), "Avatar updated successfully")


@router.patch("/cover-image")
async def update_user_cover_image(
    current_user: CurrentUser,
    session: SessionDep,
    media: MediaDep,
    cover_image: UploadFile | None = File(None, alias="coverImage"),
):
    if not has_file(cover_image):
        raise ApiError(status.HTTP_400_BAD_REQUEST, "Cover image file is missing")
    asset = await upload_to_media(media, cover_image, "covers", "Failed to upload cover image")
    previous = current_user.cover_image
    current_user.cover_image = asset.url
    await session.commit()
    await session.refresh(current_user)
    await discard_media(media, previous)
    return ApiResponse(status.HTTP_200_OK, UserRead.model_validate(current_user), "Cover image updated successfully")


@router.get("/c/{username}")
async def get_user_channel_profile(username: str, current_user: CurrentUser, session: SessionDep):
    if not username.strip():
        raise ApiError(status.HTTP_400_BAD_REQUEST, "username is missing")
    channel = await session.scalar(select(User).where(User.username == username.strip().lower()))
    if not channel:
        raise ApiError(status.HTTP_404_NOT_FOUND, "Channel does not exist")

    subscribers_count = await session.scalar(
        select(func.count(Subscription.id)).where(Subscription.channel_id == channel.id)
    )
    subscribed_to_count = await session.scalar(
        select(func.count(Subscription.id)).where(Subscription.subscriber_id == channel.id)
    )
    is_subscribed = await session.scalar(
        select(Subscription.id).where(
            Subscription.channel_id == channel.id,
            Subscription.subscriber_id == current_user.id,
        )
    )
    profile = ChannelProfileRead.model_validate(channel).model_copy(
        update={
            "subscribers_count": subscribers_count or 0,
            "channels_subscribed_to_count": subscribed_to_count or 0,
            "is_subscribed": is_subscribed is not None,
        }
    )
    return ApiResponse(status.HTTP_200_OK, profile, "User channel fetched successfully")


@router.get("/history")
async def get_watch_history(current_user: CurrentUser, session: SessionDep):
    res = await session.execute(
        select(Video)
        .join(WatchHistory, WatchHistory.video_id == Video.id)
        .where(WatchHistory.user_id == current_user.id)
        .options(owner_projection())
        .order_by(WatchHistory.watched_at.desc())
    )
    videos = [VideoWithOwner.model_validate(v) for v in res.scalars().unique().all()]
    return ApiResponse(status.HTTP_200_OK, videos, "Watch history fetched successfully")
