from __future__ import annotations

from typing import Any

from fastapi import status

from vidtube.responses import ApiError


def is_owner(resource_owner_id: Any, caller_id: Any) -> bool:
    return str(resource_owner_id) == str(caller_id)


def ensure_owner(resource_owner_id: Any, caller_id: Any, message: str = "You are not authorized to modify this resource") -> None:
    if not is_owner(resource_owner_id, caller_id):
        raise ApiError(status.HTTP_403_FORBIDDEN, message)
