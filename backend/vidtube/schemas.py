from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field, TypeAdapter, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)


def _strip(value: str | None) -> str | None:
    return value.strip() if isinstance(value, str) else value


_email_adapter = TypeAdapter(EmailStr)


def normalize_email(value: str) -> str:
    """Validate `value` as an email address and return it lowercased; raises `ValidationError`."""
    return str(_email_adapter.validate_python(value.strip())).lower()


# Users
class OwnerRead(CamelModel):
    id: uuid.UUID
    full_name: str
    username: str
    avatar: str


class UserRead(CamelModel):
    id: uuid.UUID
    username: str
    email: str
    full_name: str
    avatar: str
    cover_image: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ChannelProfileRead(UserRead):
    subscribers_count: int = 0
    channels_subscribed_to_count: int = 0
    is_subscribed: bool = False


class LoginRequest(CamelModel):
    email: str | None = None
    username: str | None = None
    password: str

    @field_validator("email", "username")
    @classmethod
    def normalize(cls, value: str | None) -> str | None:
        value = _strip(value)
        return value.lower() if value else None


class LoginResponse(CamelModel):
    user: UserRead
    access_token: str
    refresh_token: str


class RefreshTokenRequest(CamelModel):
    refresh_token: str | None = None


class ChangePasswordRequest(CamelModel):
    old_password: str
    new_password: str


class AccountUpdate(CamelModel):
    full_name: str | None = None
    email: EmailStr | None = None


# Videos
class VideoBase(CamelModel):
    id: uuid.UUID
    video_file: str
    thumbnail: str
    title: str
    description: str
    duration: float
    views: int
    is_published: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None


class VideoRead(VideoBase):
    owner: uuid.UUID = Field(validation_alias=AliasChoices("owner_id", "owner"))


class VideoWithOwner(VideoBase):
    owner: OwnerRead | None = None


class ChannelVideoRead(VideoRead):
    likes_count: int = 0


class VideoUpdate(CamelModel):
    title: str | None = None
    description: str | None = None


# Comments
class CommentCreate(CamelModel):
    content: str | None = None


class CommentRead(CamelModel):
    id: uuid.UUID
    content: str
    video: uuid.UUID = Field(validation_alias=AliasChoices("video_id", "video"))
    owner: uuid.UUID = Field(validation_alias=AliasChoices("owner_id", "owner"))
    created_at: datetime | None = None
    updated_at: datetime | None = None


class CommentWithOwner(CommentRead):
    owner: OwnerRead | None = None
    likes_count: int = 0


# Tweets
class TweetCreate(CamelModel):
    content: str | None = None


class TweetRead(CamelModel):
    id: uuid.UUID
    content: str
    owner: uuid.UUID = Field(validation_alias=AliasChoices("owner_id", "owner"))
    created_at: datetime | None = None
    updated_at: datetime | None = None


class TweetWithOwner(TweetRead):
    owner: OwnerRead | None = None
    likes_count: int = 0


# Playlists
class PlaylistCreate(CamelModel):
    name: str | None = None
    description: str | None = None


class PlaylistUpdate(CamelModel):
    name: str | None = None
    description: str | None = None


class PlaylistRead(CamelModel):
    id: uuid.UUID
    name: str
    description: str
    owner: uuid.UUID = Field(validation_alias=AliasChoices("owner_id", "owner"))
    videos: list[uuid.UUID] = Field(default_factory=list, validation_alias=AliasChoices("video_ids", "videos"))
    created_at: datetime | None = None
    updated_at: datetime | None = None


class PlaylistWithVideos(PlaylistRead):
    videos: list[VideoRead] = Field(default_factory=list)


# Subscriptions
class SubscriptionRead(CamelModel):
    id: uuid.UUID
    subscriber: uuid.UUID = Field(validation_alias=AliasChoices("subscriber_id", "subscriber"))
    channel: uuid.UUID = Field(validation_alias=AliasChoices("channel_id", "channel"))
    created_at: datetime | None = None


# Dashboard
class ChannelStats(CamelModel):
    total_subscribers: int = 0
    total_videos: int = 0
    total_views: int = 0
    total_likes: int = 0
