"""Durable storage for reveal progress."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import Insert
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from groovara.db.models import MixlistProgress
from groovara.reveal.progress import RevealProgress

PROGRESS_CONSTRAINT = "uq_mixlist_progress_viewer"


@dataclass(frozen=True)
class StoredProgress:
    """A progress row exactly as read back from storage. Not yet normalized."""

    revealed_count: Any
    clicked_json: Any


class ProgressStore(ABC):
    """Keyed by (mixlist_id, viewer_id). Saves are absolute upserts, never increments."""

    @abstractmethod
    async def load(self, mixlist_id: str, viewer_id: str) -> StoredProgress | None:
        """Return the stored row, or None if the viewer has no progress yet."""

    @abstractmethod
    async def save(self, mixlist_id: str, viewer_id: str, progress: RevealProgress) -> None:
        """Insert or overwrite the viewer's progress."""


def build_progress_upsert(mixlist_id: str, viewer_id: str, progress: RevealProgress) -> Insert:
    """Last writer wins: the conflicting row takes the new absolute values."""
    stmt = pg_insert(MixlistProgress).values(
        mixlist_id=mixlist_id,
        viewer_id=viewer_id,
        revealed_count=progress.revealed_slots,
        clicked_json=list(progress.clicked),
    )
    return stmt.on_conflict_do_update(
        constraint=PROGRESS_CONSTRAINT,
        set_={
            "revealed_count": stmt.excluded.revealed_count,
            "clicked_json": stmt.excluded.clicked_json,
            "updated_at": func.now(),
        },
    )


class SqlProgressStore(ProgressStore):
    """PostgreSQL-backed store. Opens a short session per call so it can outlive requests."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def load(self, mixlist_id: str, viewer_id: str) -> StoredProgress | None:
        async with self._session_factory() as session:
            result = await session.execute(
                select(MixlistProgress.revealed_count, MixlistProgress.clicked_json).where(
                    MixlistProgress.mixlist_id == mixlist_id,
                    MixlistProgress.viewer_id == viewer_id,
                )
            )
            row = result.one_or_none()
        if row is None:
            return None
        return StoredProgress(revealed_count=row.revealed_count, clicked_json=row.clicked_json)

    async def save(self, mixlist_id: str, viewer_id: str, progress: RevealProgress) -> None:
        async with self._session_factory() as session:
            await session.execute(build_progress_upsert(mixlist_id, viewer_id, progress))
            await session.commit()
