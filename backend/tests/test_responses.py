from fastapi import FastAPI
from fastapi.testclient import TestClient

from vidtube.responses import ApiError, ApiResponse, install_error_handlers
from vidtube.schemas import ChannelStats

from conftest import API


def _app() -> FastAPI:
    app = FastAPI()
    install_error_handlers(app)

    @app.get("/ok")
    async def ok():
        return ApiResponse(200, ChannelStats(total_views=7), "fine")

    @app.get("/teapot")
    async def teapot():
        raise ApiError(418, "Short and stout", ["spout missing"])

    @app.get("/boom")
    async def boom():
        raise RuntimeError("kaboom")

    @app.get("/number")
    async def number(n: int):
        return ApiResponse(200, {"n": n})

    return app


def test_success_envelope_uses_camel_case():
    resp = TestClient(_app()).get("/ok")
    assert resp.status_code == 200
    assert resp.json() == {
        "statusCode": 200,
        "data": {"totalSubscribers": 0, "totalVideos": 0, "totalViews": 7, "totalLikes": 0},
        "message": "fine",
        "success": True,
    }


def test_api_error_envelope():
    resp = TestClient(_app()).get("/teapot")
    assert resp.status_code == 418
    assert resp.json() == {
        "statusCode": 418,
        "data": None,
        "message": "Short and stout",
        "success": False,
        "errors": ["spout missing"],
    }


def test_unexpected_error_becomes_generic_500():
    resp = TestClient(_app(), raise_server_exceptions=False).get("/boom")
    assert resp.status_code == 500
    body = resp.json()
    assert body["message"] == "Internal Server Error"
    assert body["success"] is False
    assert "kaboom" not in resp.text


def test_validation_error_is_400_with_details():
    resp = TestClient(_app()).get("/number", params={"n": "seven"})
    assert resp.status_code == 400
    body = resp.json()
    assert body["message"] == "Validation failed"
    assert body["errors"] and body["errors"][0].startswith("n:")


def test_unknown_route_uses_envelope(client):
    resp = client.get(f"{API}/nowhere")
    assert resp.status_code == 404
    assert resp.json()["success"] is False


def test_healthcheck(client):
    resp = client.get(f"{API}/healthcheck")
    assert resp.status_code == 200
    assert resp.json()["data"] == {"status": "OK"}
