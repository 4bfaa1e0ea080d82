#!/usr/bin/env python3
"""
Smoke E2E test: walks the main user journey against a running server.

Requires Cloudinary credentials on the server side. Images are generated
inline; the video comes from SMOKE_VIDEO.

Env vars:
  BASE_URL       (default http://localhost:8000)
  API_PREFIX     (default /api/v1)
  SMOKE_PASSWORD (default smoke-pass-123)
  SMOKE_VIDEO    (path to a small .mp4, required)
"""
from __future__ import annotations

import json
import os
import sys
import time
from urllib.request import Request, urlopen
from urllib.error import HTTPError, URLError

import httpx

BASE_URL = os.environ.get("BASE_URL", "http://localhost:8000").rstrip("/")
API_PREFIX = os.environ.get("API_PREFIX", "/api/v1")
PASSWORD = os.environ.get("SMOKE_PASSWORD", "smoke-pass-123")

SMOKE_TAG = f"smoke{int(time.time())}"

# ── Helpers ──────────────────────────────────────────────────

class SmokeError(Exception):
    pass


TOKEN: str | None = None


def _headers(content_type: str | None = "application/json") -> dict[str, str]:
    h = {}
    if content_type:
        h["Content-Type"] = content_type
    if TOKEN:
        h["Authorization"] = f"Bearer {TOKEN}"
    return h


def _send(method: str, path: str, data: bytes | None, headers: dict[str, str], expect: int) -> dict:
    url = f"{BASE_URL}{API_PREFIX}{path}"
    req = Request(url, data=data, headers=headers, method=method)
    try:
        with urlopen(req, timeout=60) as resp:
            raw = resp.read().decode()
            body = json.loads(raw) if raw else {}
            if resp.status != expect:
                raise SmokeError(f"{method} {path} → {resp.status}, expected {expect}")
            return body.get("data", body)
    except HTTPError as e:
        raw = e.read().decode()[:500]
        raise SmokeError(f"{method} {path} → {e.code}: {raw}")
    except URLError as e:
        raise SmokeError(f"{method} {path} → URLError: {e}")


def _req(method: str, path: str, body: dict | None = None, expect: int = 200) -> dict:
    data = json.dumps(body).encode() if body is not None else None
    return _send(method, path, data, _headers(), expect)


def _multipart(path: str, fields: dict[str, str], files: dict[str, tuple[str, bytes, str]], expect: int = 201) -> dict:
    url = f"{BASE_URL}{API_PREFIX}{path}"
    try:
        resp = httpx.post(url, data=fields, files=files, headers=_headers(None), timeout=60)
    except httpx.HTTPError as e:
        raise SmokeError(f"POST {path} → {type(e).__name__}: {e}")
    if resp.status_code != expect:
        raise SmokeError(f"POST {path} → {resp.status_code}: {resp.text[:500]}")
    body = resp.json() if resp.content else {}
    return body.get("data", body)


def GET(path: str) -> dict:
    return _req("GET", path)


def POST(path: str, body: dict | None = None, expect: int = 200) -> dict:
    return _req("POST", path, body, expect)


def PATCH(path: str, body: dict | None = None) -> dict:
    return _req("PATCH", path, body)


def step(name: str):
    print(f"\n{'='*60}")
    print(f"  STEP: {name}")
    print(f"{'='*60}")


def ok(msg: str):
    print(f"  ✅ {msg}")


def fail(msg: str):
    print(f"  ❌ {msg}")
    raise SmokeError(msg)


# 1x1 transparent PNG
PNG = bytes.fromhex(
    "89504e470d0a1a0a0000000d4948445200000001000000010806000000"
    "1f15c4890000000d49444154789c6300010000050001"
    "0d0a2db40000000049454e44ae426082"
)

# ── Steps ────────────────────────────────────────────────────

def step1_health():
    step("1. Health check")
    data = GET("/healthcheck")
    if data.get("status") != "OK":
        fail(f"Unexpected healthcheck payload: {data}")
    ok("API is up")


def step2_register_and_login() -> dict:
    global TOKEN
    step("2. Register + login")
    user = _multipart(
        "/users/register",
        {"fullName": "Smoke Tester", "email": f"{SMOKE_TAG}@example.com", "username": SMOKE_TAG, "password": PASSWORD},
        {"avatar": ("avatar.png", PNG, "image/png")},
    )
    ok(f"User {user['username']} registered ({user['id']})")
    session = POST("/users/login", {"username": SMOKE_TAG, "password": PASSWORD})
    TOKEN = session["accessToken"]
    ok("Logged in, access token received")
    return user


def step3_publish_video() -> dict:
    step("3. Publish video")
    sample = os.environ.get("SMOKE_VIDEO")
    if not sample or not os.path.exists(sample):
        fail("Set SMOKE_VIDEO to a small .mp4 file accepted by the media service")
    with open(sample, "rb") as fh:
        content = fh.read()
    video = _multipart(
        "/videos",
        {"title": f"Smoke video {SMOKE_TAG}", "description": "Automated smoke upload"},
        {"videoFile": ("sample.mp4", content, "video/mp4"), "thumbnail": ("thumb.png", PNG, "image/png")},
    )
    ok(f"Video {video['id']} published (duration={video['duration']})")
    return video


def step4_feed(video_id: str):
    step("4. Feed search")
    feed = GET(f"/videos?query={SMOKE_TAG}")
    ids = [v["id"] for v in feed.get("videos", [])]
    if video_id not in ids:
        fail(f"Video {video_id} missing from feed: {ids}")
    ok(f"Feed returns {feed['pagination']['totalVideos']} match(es)")
    viewed = GET(f"/videos/{video_id}")
    ok(f"Video fetched, views={viewed['views']}")


def step5_like(video_id: str):
    step("5. Like toggle")
    first = POST(f"/likes/toggle/v/{video_id}")
    if not first.get("isLiked"):
        fail(f"Expected isLiked=true, got {first}")
    ok("Video liked")


def step6_playlist(video_id: str) -> str:
    step("6. Playlist")
    playlist = POST("/playlists", {"name": f"Favorites {SMOKE_TAG}", "description": "Smoke picks"}, expect=201)
    pid = playlist["id"]
    added = PATCH(f"/playlists/add/{video_id}/{pid}")
    if video_id not in added.get("videos", []):
        fail(f"Video not in playlist after add: {added}")
    ok(f"Playlist {pid} holds the video")
    return pid


def step7_dashboard():
    step("7. Dashboard")
    stats = GET("/dashboard/stats")
    ok(f"Stats: {stats}")
    if stats.get("totalVideos", 0) < 1 or stats.get("totalLikes", 0) < 1:
        fail("Dashboard totals do not reflect the smoke run")


def step8_cleanup(video_id: str, playlist_id: str):
    step("8. Cleanup")
    _req("DELETE", f"/playlists/{playlist_id}")
    _req("DELETE", f"/videos/{video_id}")
    ok("Playlist and video deleted")


# ── Main ─────────────────────────────────────────────────────

def main():
    print(f"\n🔬 Smoke E2E Test: {BASE_URL}{API_PREFIX}")

    try:
        step1_health()
        user = step2_register_and_login()
        video = step3_publish_video()
        step4_feed(video["id"])
        step5_like(video["id"])
        playlist_id = step6_playlist(video["id"])
        step7_dashboard()
        step8_cleanup(video["id"], playlist_id)
    except SmokeError as e:
        print(f"\n❌ SMOKE FAILED: {e}")
        sys.exit(1)

    print(f"\n✅ SMOKE PASSED for user {user['username']}")


if __name__ == "__main__":
    main()
