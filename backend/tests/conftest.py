import asyncio
import os
import tempfile
from pathlib import Path

import pytest

_TMP = Path(tempfile.mkdtemp(prefix="vidtube-tests-"))
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{_TMP / 'default.db'}")
os.environ.setdefault("UPLOAD_TEMP_DIR", str(_TMP / "uploads"))

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import NullPool  # noqa: E402

from vidtube.db import Base, get_session  # noqa: E402
from vidtube.integrations.cloudinary_api import MediaAsset, MediaUploadError, get_media_client  # noqa: E402
from vidtube.main import app  # noqa: E402
from vidtube.settings import get_settings  # noqa: E402

API = "/api/v1"


class FakeMediaClient:
    """Stands in for the cloud media service; records what it was asked to do."""

    def __init__(self):
        self.uploads = []
        self.destroyed = []
        self.staged_paths = []
        self.fail = False
        # one-shot coroutine run before the next upload completes
        self.before_upload = None

    async def upload(self, path, folder, resource_type="auto"):
        assert path.exists()
        self.staged_paths.append(path)
        hook, self.before_upload = self.before_upload, None
        if hook is not None:
            await hook()
        if self.fail:
            raise MediaUploadError("media service unavailable")
        n = len(self.uploads) + 1
        kind = "video" if resource_type == "video" else "image"
        self.uploads.append((folder, resource_type))
        return MediaAsset(
            url=f"https://res.cloudinary.com/demo/{kind}/upload/v1/{folder}/asset{n}.bin",
            public_id=f"{folder}/asset{n}",
            resource_type=kind,
            duration=12.5 if kind == "video" else 0.0,
        )

    async def destroy(self, public_id, resource_type="image"):
        self.destroyed.append(public_id)
        return True


@pytest.fixture()
def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool)

    async def _create():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(_create())
    yield engine
    asyncio.run(engine.dispose())


@pytest.fixture()
def media():
    return FakeMediaClient()


@pytest.fixture()
def upload_dir(tmp_path, monkeypatch):
    path = tmp_path / "staging"
    monkeypatch.setattr(get_settings(), "upload_temp_dir", str(path))
    return path


@pytest.fixture()
def client(engine, media, upload_dir):
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async def override_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[get_media_client] = lambda: media
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()


def register(client, username, password="secret123", email=None, full_name=None, cover=False):
    files = {"avatar": ("avatar.png", b"\x89PNG avatar", "image/png")}
    if cover:
        files["coverImage"] = ("cover.png", b"\x89PNG cover", "image/png")
    return client.post(
        f"{API}/users/register",
        data={
            "fullName": full_name or username.title(),
            "email": email or f"{username}@example.com",
            "username": username,
            "password": password,
        },
        files=files,
    )


def login(client, username, password="secret123"):
    resp = client.post(f"{API}/users/login", json={"username": username, "password": password})
    assert resp.status_code == 200, resp.text
    client.cookies.clear()
    return resp.json()["data"]


@pytest.fixture()
def make_user(client):
    """Register and log in a user; returns (user, auth headers)."""

    def _make(username):
        resp = register(client, username)
        assert resp.status_code == 201, resp.text
        data = login(client, username)
        return data["user"], {"Authorization": f"Bearer {data['accessToken']}"}

    return _make


def upload_video(client, headers, title="Cats", description="Funny cats", published=True):
    resp = client.post(
        f"{API}/videos",
        data={"title": title, "description": description},
        files={
            "videoFile": ("clip.mp4", b"\x00\x00video", "video/mp4"),
            "thumbnail": ("thumb.jpg", b"\xff\xd8thumb", "image/jpeg"),
        },
        headers=headers,
    )
    assert resp.status_code == 201, resp.text
    video = resp.json()["data"]
    if not published:
        toggled = client.patch(f"{API}/videos/toggle/publish/{video['id']}", headers=headers)
        assert toggled.status_code == 200
        video = toggled.json()["data"]
    return video
