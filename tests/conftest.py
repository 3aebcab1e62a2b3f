"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import AsyncGenerator, Callable
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from groovara.database import get_session, get_session_factory
from groovara.dependencies import get_progress_store
from groovara.main import create_app
from groovara.reveal.entities import MixlistDefinition, SongEntry
from groovara.reveal.progress import RevealProgress
from groovara.reveal.store import ProgressStore, StoredProgress

MIXLIST_ID = "6f1c2f0e-8a4b-4c1d-9e2f-3a5b7c9d1e0f"


class RecordingStore(ProgressStore):
    """In-memory ProgressStore that records calls and can be told to fail."""

    def __init__(self, rows: dict[tuple[str, str], StoredProgress] | None = None) -> None:
        self.rows: dict[tuple[str, str], StoredProgress] = dict(rows or {})
        self.loads: list[tuple[str, str]] = []
        self.saves: list[tuple[str, str, RevealProgress]] = []
        self.fail_load = False
        self.fail_save = False

    async def load(self, mixlist_id: str, viewer_id: str) -> StoredProgress | None:
        self.loads.append((mixlist_id, viewer_id))
        if self.fail_load:
            raise RuntimeError("progress table unavailable")
        return self.rows.get((mixlist_id, viewer_id))

    async def save(self, mixlist_id: str, viewer_id: str, progress: RevealProgress) -> None:
        if self.fail_save:
            raise RuntimeError("progress table unavailable")
        self.saves.append((mixlist_id, viewer_id, progress.copy()))
        self.rows[(mixlist_id, viewer_id)] = StoredProgress(progress.revealed_slots, list(progress.clicked))


@pytest.fixture
def store() -> RecordingStore:
    return RecordingStore()


@pytest.fixture
def make_songs() -> Callable[..., list[SongEntry]]:
    """Build an ordered song list; ``notes`` maps 0-based position to note text."""

    def _make(count: int, notes: dict[int, str] | None = None) -> list[SongEntry]:
        notes = notes or {}
        return [
            SongEntry(
                position=i,
                title=f"Song Title {i}",
                artist=f"Artist {i}",
                url=f"https://open.spotify.com/track/{i}",
                album=f"Album {i}" if i % 2 == 0 else None,
                note=notes.get(i),
                platform="spotify",
                track_id=f"trk{i}",
            )
            for i in range(count)
        ]

    return _make


@pytest.fixture
def make_definition() -> Callable[..., MixlistDefinition]:
    def _make(**overrides: object) -> MixlistDefinition:
        fields: dict[str, object] = {
            "id": MIXLIST_ID,
            "message": "Made this for you",
            "finishing_note": "Thanks for listening.",
            "reveal_mode": True,
            "include_song_notes": True,
            "title": "Road Trip",
        }
        fields.update(overrides)
        return MixlistDefinition(**fields)  # type: ignore[arg-type]

    return _make


def _mock_db() -> MagicMock:
    """Session double: sync add(), awaitable query and transaction methods."""
    db = MagicMock()
    for name in ("execute", "get", "flush", "commit", "rollback", "close"):
        setattr(db, name, AsyncMock())
    db.execute.return_value = MagicMock()
    return db


async def _fake_session() -> AsyncGenerator[MagicMock, None]:
    yield _mock_db()


@pytest.fixture
def app(store: RecordingStore) -> FastAPI:
    """App with storage collaborators replaced; no DB or Redis required."""
    application = create_app()
    application.dependency_overrides[get_progress_store] = lambda: store
    application.dependency_overrides[get_session] = _fake_session
    application.dependency_overrides[get_session_factory] = lambda: MagicMock()
    return application


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the app without running its lifespan."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
