from __future__ import annotations

import uuid

from fastapi import APIRouter, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from .deps import CurrentUser, SessionDep
from .models import Playlist, PlaylistVideo, Video
from .responses import ApiError, ApiResponse
from .schemas import PlaylistCreate, PlaylistRead, PlaylistUpdate, PlaylistWithVideos
from .services.ids import parse_id
from .services.ownership import ensure_owner

router = APIRouter(prefix="/playlists", tags=["playlists"])

DUPLICATE_NAME = "Playlist with the same name already exists"


async def _load_playlist(session: AsyncSession, playlist_id: uuid.UUID, with_videos: bool = False) -> Playlist:
    loader = selectinload(Playlist.items)
    if with_videos:
        loader = loader.selectinload(PlaylistVideo.video)
    res = await session.execute(
        select(Playlist)
        .where(Playlist.id == playlist_id)
        .options(loader)
        .execution_options(populate_existing=True)
    )
    playlist = res.scalar_one_or_none()
    if not playlist:
        raise ApiError(status.HTTP_404_NOT_FOUND, "Playlist not found")
    return playlist


async def _name_taken(session: AsyncSession, owner_id: uuid.UUID, name: str, exclude_id: uuid.UUID | None = None) -> bool:
    stmt = select(Playlist.id).where(Playlist.owner_id == owner_id, Playlist.name == name)
    if exclude_id is not None:
        stmt = stmt.where(Playlist.id != exclude_id)
    return (await session.scalar(stmt)) is not None


def _parse_pair(video_id: str, playlist_id: str) -> tuple[uuid.UUID, uuid.UUID]:
    try:
        return parse_id(video_id, "video"), parse_id(playlist_id, "playlist")
    except ApiError:
        raise ApiError(status.HTTP_400_BAD_REQUEST, "Invalid playlist ID or video ID")


@router.post("")
async def create_playlist(data: PlaylistCreate, current_user: CurrentUser, session: SessionDep):
    if any(value is None or not value.strip() for value in (data.name, data.description)):
        raise ApiError(status.HTTP_400_BAD_REQUEST, "All fields are required")
    name = data.name.strip()
    if await _name_taken(session, current_user.id, name):
        raise ApiError(status.HTTP_400_BAD_REQUEST, DUPLICATE_NAME)

    playlist = Playlist(name=name, description=data.description.strip(), owner_id=current_user.id)
    session.add(playlist)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise ApiError(status.HTTP_400_BAD_REQUEST, DUPLICATE_NAME)
    playlist = await _load_playlist(session, playlist.id)
    return ApiResponse(status.HTTP_201_CREATED, PlaylistRead.model_validate(playlist), "Playlist created successfully")


@router.get("/user/{user_id}")
async def get_user_playlists(user_id: str, session: SessionDep):
    uid = parse_id(user_id, "user")
    res = await session.execute(
        select(Playlist)
        .where(Playlist.owner_id == uid)
        .options(selectinload(Playlist.items).selectinload(PlaylistVideo.video))
        .order_by(Playlist.created_at.desc())
    )
    playlists = [PlaylistWithVideos.model_validate(p) for p in res.scalars().all()]
    return ApiResponse(status.HTTP_200_OK, playlists, "User playlists fetched successfully")


@router.get("/{playlist_id}")
async def get_playlist_by_id(playlist_id: str, session: SessionDep):
    playlist = await _load_playlist(session, parse_id(playlist_id, "playlist"), with_videos=True)
    return ApiResponse(status.HTTP_200_OK, PlaylistWithVideos.model_validate(playlist), "Playlist fetched successfully")


@router.patch("/add/{video_id}/{playlist_id}")
async def add_video_to_playlist(video_id: str, playlist_id: str, current_user: CurrentUser, session: SessionDep):
    vid, pid = _parse_pair(video_id, playlist_id)
    playlist = await _load_playlist(session, pid)
    ensure_owner(playlist.owner_id, current_user.id, "You are not authorized to modify this playlist")
    if vid in playlist.video_ids:
        raise ApiError(status.HTTP_400_BAD_REQUEST, "Video already in playlist")
    if not await session.get(Video, vid):
        raise ApiError(status.HTTP_404_NOT_FOUND, "Video not found")

    next_position = max((item.position for item in playlist.items), default=-1) + 1
    playlist.items.append(PlaylistVideo(video_id=vid, position=next_position))
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise ApiError(status.HTTP_400_BAD_REQUEST, "Video already in playlist")
    playlist = await _load_playlist(session, pid)
    return ApiResponse(status.HTTP_200_OK, PlaylistRead.model_validate(playlist), "Video added to playlist successfully")


@router.patch("/remove/{video_id}/{playlist_id}")
async def remove_video_from_playlist(video_id: str, playlist_id: str, current_user: CurrentUser, session: SessionDep):
    vid, pid = _parse_pair(video_id, playlist_id)
    playlist = await _load_playlist(session, pid)
    ensure_owner(playlist.owner_id, current_user.id, "You are not authorized to modify this playlist")
    item = next((item for item in playlist.items if item.video_id == vid), None)
    if item is None:
        raise ApiError(status.HTTP_400_BAD_REQUEST, "Video not found in playlist")

    playlist.items.remove(item)
    await session.commit()
    playlist = await _load_playlist(session, pid)
    return ApiResponse(
        status.HTTP_200_OK, PlaylistRead.model_validate(playlist), "Video removed from playlist successfully"
    )


@router.patch("/{playlist_id}")
async def update_playlist(playlist_id: str, data: PlaylistUpdate, current_user: CurrentUser, session: SessionDep):
    pid = parse_id(playlist_id, "playlist")
    if data.name is None and data.description is None:
        raise ApiError(status.HTTP_400_BAD_REQUEST, "At least one field (name or description) is required")
    if data.name is not None and not data.name.strip():
        raise ApiError(status.HTTP_400_BAD_REQUEST, "Name cannot be empty")
    if data.description is not None and not data.description.strip():
        raise ApiError(status.HTTP_400_BAD_REQUEST, "Description cannot be empty")

    playlist = await _load_playlist(session, pid)
    ensure_owner(playlist.owner_id, current_user.id, "You are not authorized to update this playlist")

    if data.name is not None:
        name = data.name.strip()
        if await _name_taken(session, current_user.id, name, exclude_id=pid):
            raise ApiError(status.HTTP_400_BAD_REQUEST, DUPLICATE_NAME)
        playlist.name = name
    if data.description is not None:
        playlist.description = data.description.strip()
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise ApiError(status.HTTP_400_BAD_REQUEST, DUPLICATE_NAME)
    playlist = await _load_playlist(session, pid)
    return ApiResponse(status.HTTP_200_OK, PlaylistRead.model_validate(playlist), "Playlist updated successfully!")


@router.delete("/{playlist_id}")
async def delete_playlist(playlist_id: str, current_user: CurrentUser, session: SessionDep):
    playlist = await _load_playlist(session, parse_id(playlist_id, "playlist"))
    ensure_owner(playlist.owner_id, current_user.id, "You are not authorized to delete this playlist")
    await session.delete(playlist)
    await session.commit()
    return ApiResponse(status.HTTP_200_OK, {}, "Playlist deleted successfully")
