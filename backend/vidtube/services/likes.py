from __future__ import annotations

import logging
import uuid

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.models import Like, LikeTarget

logger = logging.getLogger(__name__)


def likes_subquery(kind: LikeTarget):
    """Per-target like counts for one target kind, meant for an outer join."""
    return (
        select(Like.target_id.label("target_id"), func.count(Like.id).label("likes_count"))
        .where(Like.target_kind == kind.value)
        .group_by(Like.target_id)
        .subquery()
    )


async def toggle_like(session: AsyncSession, user_id: uuid.UUID, kind: LikeTarget, target_id: uuid.UUID) -> bool:
    """Flip the (user, target) like and return whether it is now liked.

    Creation relies on the unique constraint: a concurrent insert of the same
    row leaves the target liked rather than duplicating it.
    """
    existing = await session.scalar(
        select(Like).where(
            Like.liked_by_id == user_id,
            Like.target_kind == kind.value,
            Like.target_id == target_id,
        )
    )
    if existing:
        await session.delete(existing)
        await session.commit()
        return False

    session.add(Like(liked_by_id=user_id, target_kind=kind.value, target_id=target_id))
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        logger.info("Concurrent like on %s %s by %s", kind.value, target_id, user_id)
    return True


async def delete_likes_for(session: AsyncSession, kind: LikeTarget, target_ids: list[uuid.UUID]) -> None:
    if not target_ids:
        return
    await session.execute(delete(Like).where(Like.target_kind == kind.value, Like.target_id.in_(target_ids)))
