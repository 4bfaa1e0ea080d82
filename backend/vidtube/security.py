"""
Password hashing and JWT access/refresh token handling.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from passlib.context import CryptContext

from .models import User
from .settings import get_settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ALGORITHM = "HS256"


class TokenError(Exception):
    pass


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    return pwd_context.verify(password, hashed)


def _encode(claims: dict[str, Any], secret: str, expire_minutes: int) -> str:
    now = datetime.now(timezone.utc)
    payload = {**claims, "iat": now, "exp": now + timedelta(minutes=expire_minutes)}
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def create_access_token(user: User) -> str:
    settings = get_settings()
    claims = {
        "sub": str(user.id),
        "email": user.email,
        "username": user.username,
        "fullName": user.full_name,
    }
    return _encode(claims, settings.access_token_secret, settings.access_token_expire_minutes)


def create_refresh_token(user: User) -> str:
    settings = get_settings()
    return _encode({"sub": str(user.id), "jti": uuid.uuid4().hex}, settings.refresh_token_secret, settings.refresh_token_expire_minutes)


def _decode(token: str, secret: str) -> dict[str, Any]:
    try:
        payload = jwt.decode(token, secret, algorithms=[ALGORITHM])
    except jwt.PyJWTError as exc:
        raise TokenError(str(exc)) from exc
    if not payload.get("sub"):
        raise TokenError("token has no subject")
    return payload


def decode_access_token(token: str) -> dict[str, Any]:
    return _decode(token, get_settings().access_token_secret)


def decode_refresh_token(token: str) -> dict[str, Any]:
    return _decode(token, get_settings().refresh_token_secret)
