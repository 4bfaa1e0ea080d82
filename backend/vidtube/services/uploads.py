"""
Local staging of multipart uploads before they are forwarded to the media service.

The staged file is always removed, whether forwarding succeeds or fails.
"""

from __future__ import annotations

import logging
import uuid
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

from fastapi import UploadFile, status

from vidtube.integrations.cloudinary_api import MediaAsset, MediaClient, MediaUploadError, public_id_from_url
from vidtube.responses import ApiError
from vidtube.settings import get_settings

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


def has_file(upload: UploadFile | None) -> bool:
    return upload is not None and bool(upload.filename)


@asynccontextmanager
async def stage_upload(upload: UploadFile) -> AsyncIterator[Path]:
    temp_dir = Path(get_settings().upload_temp_dir)
    temp_dir.mkdir(parents=True, exist_ok=True)
    suffix = Path(upload.filename or "").suffix
    path = temp_dir / f"{uuid.uuid4().hex}{suffix}"
    try:
        with path.open("wb") as fh:
            while chunk := await upload.read(CHUNK_SIZE):
                fh.write(chunk)
        yield path
    finally:
        path.unlink(missing_ok=True)
        await upload.close()


async def upload_to_media(
    media: MediaClient,
    upload: UploadFile,
    folder: str,
    failure_message: str,
    resource_type: str = "auto",
) -> MediaAsset:
    """Stage `upload` locally, forward it and map any failure to a 500 envelope."""
    try:
        async with stage_upload(upload) as path:
            return await media.upload(path, folder, resource_type=resource_type)
    except (MediaUploadError, OSError) as exc:
        logger.error("%s: %s", failure_message, exc)
        raise ApiError(status.HTTP_500_INTERNAL_SERVER_ERROR, failure_message) from exc


async def discard_media(media: MediaClient, url: str | None, resource_type: str = "image") -> None:
    """Remove a replaced asset; failures are logged and never fail the request."""
    public_id = public_id_from_url(url)
    if not public_id:
        return
    try:
        await media.destroy(public_id, resource_type=resource_type)
    except MediaUploadError as exc:
        logger.warning("Could not remove media asset %s: %s", public_id, exc)
