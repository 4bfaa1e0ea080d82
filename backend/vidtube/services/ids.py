from __future__ import annotations

import uuid

from fastapi import status

from vidtube.responses import ApiError


def is_valid_id(value: object) -> bool:
    if isinstance(value, uuid.UUID):
        return True
    try:
        uuid.UUID(str(value))
    except (TypeError, ValueError):
        return False
    return True


def parse_id(value: object, label: str = "resource") -> uuid.UUID:
    """Return `value` as a UUID or fail the request with 400 before touching storage."""
    if isinstance(value, uuid.UUID):
        return value
    if value is None or not is_valid_id(value):
        raise ApiError(status.HTTP_400_BAD_REQUEST, f"Invalid {label} ID")
    return uuid.UUID(str(value))
