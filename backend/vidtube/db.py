from __future__ import annotations

from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from .settings import get_settings

settings = get_settings()


class Base(DeclarativeBase):
    """Declarative base for every vidtube table."""


def _engine_options(url: str) -> dict:
    # sqlite (tests, local runs) has no server to ping
    if url.startswith("sqlite"):
        return {}
    return {"pool_pre_ping": True, "pool_size": settings.db_pool_size}


engine = create_async_engine(settings.async_database_url, echo=False, **_engine_options(settings.async_database_url))
AsyncSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_session() -> AsyncIterator[AsyncSession]:
    """Request-scoped session; callers commit explicitly."""
    async with AsyncSessionLocal() as session:
        yield session
