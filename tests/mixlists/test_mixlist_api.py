"""Mixlist REST endpoints with storage collaborators replaced."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from httpx import AsyncClient

from groovara.mixlists.service import MixlistNotFoundError, MixlistUnavailableError
from groovara.reveal.store import StoredProgress

MIXLIST_ID = "6f1c2f0e-8a4b-4c1d-9e2f-3a5b7c9d1e0f"


@pytest.fixture
def loaded(make_definition, make_songs):
    definition = make_definition()
    songs = make_songs(3, notes={0: "opening track"})
    with patch("groovara.mixlists.router.load_mixlist", AsyncMock(return_value=(definition, songs))) as mock:
        yield mock


@pytest.mark.asyncio
class TestRevealEndpoints:
    async def test_anonymous_viewer_sees_fresh_reveal(self, client: AsyncClient, store, loaded) -> None:
        response = await client.get(f"/api/v1/mixlists/{MIXLIST_ID}/reveal")
        assert response.status_code == 200
        data = response.json()
        assert data["visible_count"] == 1
        assert data["cards"] == [
            {"position": 0, "number": 1, "hidden": True, "title": None, "artist": None, "album": None, "url": None}
        ]
        assert data["persisted"] is False
        assert data["finishing_note"] is None
        assert data["note_panel"]["state"] == "hidden"
        assert store.loads == []

    async def test_viewer_progress_hydrated(self, client: AsyncClient, store, loaded) -> None:
        store.rows[(MIXLIST_ID, "viewer-1")] = StoredProgress(2, [True, False, False])
        response = await client.get(
            f"/api/v1/mixlists/{MIXLIST_ID}/reveal", headers={"X-Viewer-Id": "viewer-1"}
        )
        data = response.json()
        assert data["revealed_slots"] == 2
        assert data["stage"] == "revealing"
        assert data["cards"][0]["title"] == "Song Title 0"
        assert data["note_panel"] == {"label": "SONG #1 NOTE", "state": "note", "body": "opening track"}
        assert data["persisted"] is True

    async def test_open_persists_before_responding(self, client: AsyncClient, store, loaded) -> None:
        response = await client.post(
            f"/api/v1/mixlists/{MIXLIST_ID}/reveal/open",
            json={"index": 0},
            headers={"X-Viewer-Id": "viewer-1"},
        )
        assert response.status_code == 200
        assert response.json()["can_advance"] is True
        assert len(store.saves) == 1
        assert store.rows[(MIXLIST_ID, "viewer-1")] == StoredProgress(1, [True, False, False])

    async def test_advance_requires_opened_slot(self, client: AsyncClient, store, loaded) -> None:
        response = await client.post(
            f"/api/v1/mixlists/{MIXLIST_ID}/reveal/advance", headers={"X-Viewer-Id": "viewer-1"}
        )
        assert response.status_code == 200
        assert response.json()["revealed_slots"] == 1
        assert store.saves == []

    async def test_advance_after_open(self, client: AsyncClient, store, loaded) -> None:
        store.rows[(MIXLIST_ID, "viewer-1")] = StoredProgress(1, [True, False, False])
        response = await client.post(
            f"/api/v1/mixlists/{MIXLIST_ID}/reveal/advance", headers={"X-Viewer-Id": "viewer-1"}
        )
        assert response.json()["revealed_slots"] == 2
        assert store.rows[(MIXLIST_ID, "viewer-1")] == StoredProgress(2, [True, False, False])

    async def test_negative_index_rejected(self, client: AsyncClient, loaded) -> None:
        response = await client.post(f"/api/v1/mixlists/{MIXLIST_ID}/reveal/open", json={"index": -1})
        assert response.status_code == 422
        assert response.json()["detail"] == "Validation error"

    async def test_progress_read_failure_is_invisible(self, client: AsyncClient, store, loaded) -> None:
        store.fail_load = True
        response = await client.get(
            f"/api/v1/mixlists/{MIXLIST_ID}/reveal", headers={"X-Viewer-Id": "viewer-1"}
        )
        assert response.status_code == 200
        assert response.json()["revealed_slots"] == 1


@pytest.mark.asyncio
class TestLoadFailures:
    async def test_not_found(self, client: AsyncClient) -> None:
        with patch(
            "groovara.mixlists.router.load_mixlist",
            AsyncMock(side_effect=MixlistNotFoundError(MIXLIST_ID)),
        ):
            response = await client.get(f"/api/v1/mixlists/{MIXLIST_ID}/reveal")
        assert response.status_code == 404
        assert response.json()["detail"] == "Mixlist not found"

    async def test_unavailable(self, client: AsyncClient) -> None:
        with patch(
            "groovara.mixlists.router.load_mixlist",
            AsyncMock(side_effect=MixlistUnavailableError(MIXLIST_ID)),
        ):
            response = await client.get(f"/api/v1/mixlists/{MIXLIST_ID}/reveal")
        assert response.status_code == 503


@pytest.mark.asyncio
class TestOwnerEndpoints:
    async def test_create_requires_identity(self, client: AsyncClient) -> None:
        body = {"songs": [{"platform": "spotify", "track_id": "a", "title": "A", "artist": "B", "url": "https://x"}]}
        response = await client.post("/api/v1/mixlists", json=body)
        assert response.status_code == 401
        assert response.json()["detail"] == "Authentication required"

    async def test_create(self, client: AsyncClient) -> None:
        body = {
            "tracklist_title": "Gift",
            "songs": [{"platform": "spotify", "track_id": "a", "title": "A", "artist": "B", "url": "https://x"}],
        }
        response = await client.post("/api/v1/mixlists", json=body, headers={"X-Viewer-Id": "owner-1"})
        assert response.status_code == 201
        data = response.json()
        assert data["title"] == "Gift"
        assert data["song_count"] == 1
        assert data["reveal_mode"] is True

    async def test_delete_missing_is_404(self, client: AsyncClient) -> None:
        with patch("groovara.mixlists.router.delete_mixlist", AsyncMock(return_value=False)):
            response = await client.delete(f"/api/v1/mixlists/{MIXLIST_ID}", headers={"X-Viewer-Id": "owner-1"})
        assert response.status_code == 404

    async def test_delete(self, client: AsyncClient) -> None:
        with patch("groovara.mixlists.router.delete_mixlist", AsyncMock(return_value=True)) as mock:
            response = await client.delete(f"/api/v1/mixlists/{MIXLIST_ID}", headers={"X-Viewer-Id": "owner-1"})
        assert response.status_code == 204
        assert mock.await_args.args[1:] == ("owner-1", MIXLIST_ID)

    async def test_list(self, client: AsyncClient) -> None:
        row = MagicMock(
            id=MIXLIST_ID,
            title="Gift",
            message=None,
            reveal_mode=True,
            include_song_notes=False,
            is_public=True,
            created_at=None,
        )
        with patch("groovara.mixlists.router.list_mixlists", AsyncMock(return_value=[(row, 4)])):
            response = await client.get("/api/v1/mixlists", headers={"X-Viewer-Id": "owner-1"})
        data = response.json()
        assert data["total"] == 1
        assert data["mixlists"][0]["song_count"] == 4
