import asyncio
import hashlib
import io

import httpx
import pytest
from starlette.datastructures import UploadFile

from vidtube.integrations.cloudinary_api import MediaClient, MediaUploadError, public_id_from_url
from vidtube.responses import ApiError
from vidtube.services.uploads import discard_media, upload_to_media


class MockedMediaClient(MediaClient):
    def __init__(self, handler, **kwargs):
        kwargs.setdefault("cloud_name", "demo")
        kwargs.setdefault("api_key", "key")
        kwargs.setdefault("api_secret", "secret")
        super().__init__(**kwargs)
        self.handler = handler

    def _client(self):
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.mark.parametrize(
    "url,expected",
    [
        ("https://res.cloudinary.com/demo/image/upload/v1712/avatars/abc.png", "avatars/abc"),
        ("https://res.cloudinary.com/demo/video/upload/v1/clip.mp4", "clip"),
        ("https://res.cloudinary.com/demo/image/upload/sample", "sample"),
        ("https://example.com/no-upload-segment.png", None),
        (None, None),
        ("", None),
    ],
)
def test_public_id_from_url(url, expected):
    assert public_id_from_url(url) == expected


def test_signature_matches_cloudinary_scheme():
    client = MediaClient("demo", "key", "secret")
    expected = hashlib.sha1(b"folder=avatars&timestamp=1700000000secret").hexdigest()
    assert client._sign({"folder": "avatars", "timestamp": 1700000000}) == expected


def test_upload_posts_signed_form(tmp_path):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = request.content
        return httpx.Response(
            200,
            json={
                "secure_url": "https://res.cloudinary.com/demo/video/upload/v1/videos/x.mp4",
                "public_id": "videos/x",
                "resource_type": "video",
                "duration": 31.2,
            },
        )

    path = tmp_path / "clip.mp4"
    path.write_bytes(b"frames")
    asset = asyncio.run(MockedMediaClient(handler).upload(path, "videos", resource_type="video"))

    assert seen["url"] == "https://api.cloudinary.com/v1_1/demo/video/upload"
    assert b'name="signature"' in seen["body"]
    assert b'name="api_key"' in seen["body"]
    assert b"frames" in seen["body"]
    assert asset.url.endswith("/videos/x.mp4")
    assert asset.public_id == "videos/x"
    assert asset.duration == 31.2


def test_upload_error_status_raises(tmp_path):
    path = tmp_path / "a.png"
    path.write_bytes(b"x")
    client = MockedMediaClient(lambda request: httpx.Response(500, json={"error": "nope"}))
    with pytest.raises(MediaUploadError):
        asyncio.run(client.upload(path, "avatars"))


def test_upload_without_credentials_raises(tmp_path):
    path = tmp_path / "a.png"
    path.write_bytes(b"x")
    with pytest.raises(MediaUploadError):
        asyncio.run(MediaClient(None, None, None).upload(path, "avatars"))


def test_staged_file_is_removed_after_failure(media, upload_dir):
    media.fail = True
    upload = UploadFile(file=io.BytesIO(b"payload"), filename="clip.mp4")
    with pytest.raises(ApiError) as err:
        asyncio.run(upload_to_media(media, upload, "videos", "Failed to upload video", "video"))
    assert err.value.status_code == 500
    assert err.value.message == "Failed to upload video"
    assert len(media.staged_paths) == 1
    assert not media.staged_paths[0].exists()
    assert list(upload_dir.iterdir()) == []


def test_staged_file_is_removed_after_success(media, upload_dir):
    upload = UploadFile(file=io.BytesIO(b"payload"), filename="thumb.jpg")
    asset = asyncio.run(upload_to_media(media, upload, "thumbnails", "Failed", "image"))
    assert asset.url.endswith("/thumbnails/asset1.bin")
    assert media.staged_paths[0].suffix == ".jpg"
    assert list(upload_dir.iterdir()) == []


def test_discard_media_swallows_service_errors():
    class Broken:
        async def destroy(self, public_id, resource_type="image"):
            raise MediaUploadError("down")

    asyncio.run(discard_media(Broken(), "https://res.cloudinary.com/demo/image/upload/v1/avatars/old.png"))
    asyncio.run(discard_media(Broken(), None))
