from __future__ import annotations

import hashlib
import logging
import re
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import httpx

from vidtube.settings import get_settings

logger = logging.getLogger(__name__)

CLOUDINARY_API_URL = "https://api.cloudinary.com/v1_1"

_PUBLIC_ID_RE = re.compile(r"/upload/(?:[^/]+/)*?(?:v\d+/)?(?P<public_id>[^.]+)(?:\.\w+)?$")


class MediaUploadError(RuntimeError):
    pass


@dataclass(frozen=True)
class MediaAsset:
    url: str
    public_id: str | None = None
    resource_type: str | None = None
    duration: float = 0.0


def public_id_from_url(url: str | None) -> str | None:
    """Recover the asset public id from a delivery URL (``.../upload/v123/avatars/abc.png`` -> ``avatars/abc``)."""
    if not url:
        return None
    match = _PUBLIC_ID_RE.search(url)
    return match.group("public_id") if match else None


class MediaClient:
    def __init__(
        self,
        cloud_name: str | None,
        api_key: str | None,
        api_secret: str | None,
        timeout: float = 300.0,
    ) -> None:
        self.cloud_name = cloud_name
        self.api_key = api_key
        self.api_secret = api_secret
        self.timeout = timeout

    @classmethod
    def from_settings(cls) -> "MediaClient":
        settings = get_settings()
        return cls(
            settings.cloudinary_cloud_name,
            settings.cloudinary_api_key,
            settings.cloudinary_api_secret,
            timeout=settings.media_upload_timeout_sec,
        )

    @property
    def configured(self) -> bool:
        return bool(self.cloud_name and self.api_key and self.api_secret)

    def _sign(self, params: dict[str, Any]) -> str:
        to_sign = "&".join(f"{k}={params[k]}" for k in sorted(params) if params[k] not in (None, ""))
        return hashlib.sha1(f"{to_sign}{self.api_secret}".encode()).hexdigest()

    def _signed(self, params: dict[str, Any]) -> dict[str, Any]:
        params = {**params, "timestamp": int(time.time())}
        return {**params, "api_key": self.api_key, "signature": self._sign(params)}

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout)

    async def upload(self, path: Path, folder: str, resource_type: str = "auto") -> MediaAsset:
        if not self.configured:
            raise MediaUploadError("Cloudinary credentials missing")
        url = f"{CLOUDINARY_API_URL}/{self.cloud_name}/{resource_type}/upload"
        data = self._signed({"folder": folder})
        try:
            async with self._client() as client:
                with path.open("rb") as fh:
                    resp = await client.post(url, data=data, files={"file": (path.name, fh)})
        except (httpx.HTTPError, OSError) as exc:
            raise MediaUploadError(f"Media upload failed: {exc}") from exc
        if resp.status_code >= 400:
            raise MediaUploadError(f"Media upload error: {resp.status_code}")
        payload = resp.json()
        secure_url = payload.get("secure_url") or payload.get("url")
        if not secure_url:
            raise MediaUploadError("Media upload returned no url")
        logger.info("Uploaded %s to %s (%s)", path.name, folder, payload.get("public_id"))
        return MediaAsset(
            url=secure_url,
            public_id=payload.get("public_id"),
            resource_type=payload.get("resource_type"),
            duration=float(payload.get("duration") or 0.0),
        )

    async def destroy(self, public_id: str, resource_type: str = "image") -> bool:
        if not self.configured:
            raise MediaUploadError("Cloudinary credentials missing")
        url = f"{CLOUDINARY_API_URL}/{self.cloud_name}/{resource_type}/destroy"
        try:
            async with self._client() as client:
                resp = await client.post(url, data=self._signed({"public_id": public_id}))
        except httpx.HTTPError as exc:
            raise MediaUploadError(f"Media destroy failed: {exc}") from exc
        if resp.status_code >= 400:
            raise MediaUploadError(f"Media destroy error: {resp.status_code}")
        return resp.json().get("result") == "ok"


def get_media_client() -> MediaClient:
    return MediaClient.from_settings()
