from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .responses import ApiResponse, install_error_handlers
from .routes_comments import router as comments_router
from .routes_dashboard import router as dashboard_router
from .routes_likes import router as likes_router
from .routes_playlists import router as playlists_router
from .routes_subscriptions import router as subscriptions_router
from .routes_tweets import router as tweets_router
from .routes_users import router as users_router
from .routes_videos import router as videos_router
from .settings import get_settings

logger = logging.getLogger("vidtube")

settings = get_settings()
app = FastAPI(title=settings.app_name)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

install_error_handlers(app)


@app.get("/ping")
async def ping():
    return {"status": "ok"}


@app.get(f"{settings.api_prefix}/healthcheck")
async def healthcheck():
    return ApiResponse(200, {"status": "OK"}, "Health check passed")


for router in (
    users_router,
    videos_router,
    comments_router,
    likes_router,
    tweets_router,
    subscriptions_router,
    playlists_router,
    dashboard_router,
):
    app.include_router(router, prefix=settings.api_prefix)

logger.info("%s API mounted under %s", settings.app_name, settings.api_prefix)
