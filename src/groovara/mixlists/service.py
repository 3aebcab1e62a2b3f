"""Mixlist service: snapshot creation, listing, deletion and loading for reveal."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

import structlog
from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from groovara.db.models import Mixlist, MixlistSong
from groovara.mixlists.schemas import MixlistCreateRequest
from groovara.reveal.entities import MixlistDefinition, SongEntry

logger = structlog.get_logger()


class MixlistLoadError(Exception):
    """The mixlist could not be loaded for viewing. Terminal; no retry here."""

    def __init__(self, mixlist_id: str, message: str) -> None:
        super().__init__(message)
        self.mixlist_id = mixlist_id


class MixlistNotFoundError(MixlistLoadError):
    def __init__(self, mixlist_id: str) -> None:
        super().__init__(mixlist_id, f"Mixlist {mixlist_id} not found")


class MixlistUnavailableError(MixlistLoadError):
    def __init__(self, mixlist_id: str) -> None:
        super().__init__(mixlist_id, f"Mixlist {mixlist_id} could not be loaded")


def _is_uuid(value: str) -> bool:
    try:
        uuid.UUID(value)
    except (TypeError, ValueError):
        return False
    return True


def default_title(tracklist_title: str | None, now: datetime | None = None) -> str:
    """Fall back to a dated title when the source tracklist has none."""
    if tracklist_title and tracklist_title.strip():
        return tracklist_title.strip()
    now = now or datetime.now(timezone.utc)
    return f"Mixlist • {now.strftime('%Y-%m-%d')}"


async def create_mixlist(db: AsyncSession, owner_id: str, request: MixlistCreateRequest) -> Mixlist:
    """Snapshot the given tracks into a new mixlist, renumbering positions from zero."""
    mixlist = Mixlist(
        id=str(uuid.uuid4()),
        owner_id=owner_id,
        title=default_title(request.tracklist_title),
        source_tracklist_id=request.source_tracklist_id,
        message=request.message,
        finishing_note=request.finishing_note,
        reveal_mode=request.reveal_mode,
        include_song_notes=request.include_song_notes,
        is_public=request.is_public,
        created_at=datetime.now(timezone.utc),
    )
    db.add(mixlist)
    for position, track in enumerate(request.songs):
        db.add(
            MixlistSong(
                id=str(uuid.uuid4()),
                mixlist_id=mixlist.id,
                position=position,
                platform=track.platform,
                track_id=track.track_id,
                title=track.title,
                artist=track.artist,
                album=track.album,
                url=track.url,
                note=track.note,
            )
        )
    await db.flush()
    logger.info("mixlist_created", mixlist_id=mixlist.id, owner_id=owner_id, song_count=len(request.songs))
    return mixlist


async def list_mixlists(db: AsyncSession, owner_id: str) -> list[tuple[Mixlist, int]]:
    """Owner's mixlists, newest first, with their song counts."""
    song_count = (
        select(func.count(MixlistSong.id))
        .where(MixlistSong.mixlist_id == Mixlist.id)
        .correlate(Mixlist)
        .scalar_subquery()
    )
    result = await db.execute(
        select(Mixlist, song_count)
        .where(Mixlist.owner_id == owner_id)
        .order_by(Mixlist.created_at.desc())
    )
    return [(row[0], row[1] or 0) for row in result.all()]


async def delete_mixlist(db: AsyncSession, owner_id: str, mixlist_id: str) -> bool:
    """Delete an owned mixlist. Songs and reveal progress go with it via ON DELETE CASCADE."""
    if not _is_uuid(mixlist_id):
        return False
    result = await db.execute(
        delete(Mixlist).where(Mixlist.id == mixlist_id, Mixlist.owner_id == owner_id)
    )
    deleted = (result.rowcount or 0) > 0
    if deleted:
        logger.info("mixlist_deleted", mixlist_id=mixlist_id, owner_id=owner_id)
    return deleted


async def load_mixlist(db: AsyncSession, mixlist_id: str) -> tuple[MixlistDefinition, list[SongEntry]]:
    """Load the read-only inputs of a reveal session.

    Raises MixlistNotFoundError for unknown or malformed ids and
    MixlistUnavailableError when storage fails.
    """
    if not _is_uuid(mixlist_id):
        raise MixlistNotFoundError(mixlist_id)

    try:
        mixlist = await db.get(Mixlist, mixlist_id)
        if mixlist is None:
            raise MixlistNotFoundError(mixlist_id)
        result = await db.execute(
            select(MixlistSong)
            .where(MixlistSong.mixlist_id == mixlist_id)
            .order_by(MixlistSong.position)
        )
        rows = list(result.scalars().all())
    except SQLAlchemyError as exc:
        logger.error("mixlist_load_failed", mixlist_id=mixlist_id, error=str(exc))
        raise MixlistUnavailableError(mixlist_id) from exc

    definition = MixlistDefinition(
        id=mixlist.id,
        message=mixlist.message,
        finishing_note=mixlist.finishing_note,
        reveal_mode=mixlist.reveal_mode,
        include_song_notes=mixlist.include_song_notes,
        title=mixlist.title,
    )
    songs = [
        SongEntry(
            position=row.position,
            title=row.title,
            artist=row.artist,
            url=row.url,
            album=row.album,
            note=row.note,
            platform=row.platform,
            track_id=row.track_id,
        )
        for row in rows
    ]
    return definition, songs
