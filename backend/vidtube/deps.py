from __future__ import annotations

import uuid
from typing import Annotated, Optional

from fastapi import Depends, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from .db import get_session
from .integrations.cloudinary_api import MediaClient, get_media_client
from .models import User
from .responses import ApiError
from .security import TokenError, decode_access_token

security = HTTPBearer(auto_error=False)

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"


def _extract_token(request: Request, credentials: Optional[HTTPAuthorizationCredentials]) -> str | None:
    if credentials and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(ACCESS_COOKIE) or None


async def _resolve_user(session: AsyncSession, token: str) -> User:
    try:
        payload = decode_access_token(token)
        user_id = uuid.UUID(payload["sub"])
    except (TokenError, ValueError):
        raise ApiError(status.HTTP_401_UNAUTHORIZED, "Invalid access token")
    user = await session.get(User, user_id)
    if not user:
        raise ApiError(status.HTTP_401_UNAUTHORIZED, "Invalid access token")
    return user


async def get_current_user(
    request: Request,
    session: AsyncSession = Depends(get_session),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> User:
    """Dependency that requires a valid access token."""
    token = _extract_token(request, credentials)
    if not token:
        raise ApiError(status.HTTP_401_UNAUTHORIZED, "Unauthorized request")
    return await _resolve_user(session, token)


async def get_optional_user(
    request: Request,
    session: AsyncSession = Depends(get_session),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> User | None:
    """Dependency that returns the caller when authenticated, None otherwise."""
    token = _extract_token(request, credentials)
    if not token:
        return None
    try:
        return await _resolve_user(session, token)
    except ApiError:
        return None


SessionDep = Annotated[AsyncSession, Depends(get_session)]
CurrentUser = Annotated[User, Depends(get_current_user)]
OptionalUser = Annotated[Optional[User], Depends(get_optional_user)]
MediaDep = Annotated[MediaClient, Depends(get_media_client)]
