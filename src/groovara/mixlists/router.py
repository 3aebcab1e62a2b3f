"""Mixlist API endpoints: owner lifecycle plus stateless reveal reads and mutations."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.ext.asyncio import AsyncSession

from groovara.database import get_session
from groovara.dependencies import build_tracker, get_progress_store, get_viewer_id, require_owner_id
from groovara.mixlists.schemas import (
    MixlistCreateRequest,
    MixlistListResponse,
    MixlistSummary,
    RevealOpenRequest,
)
from groovara.mixlists.service import create_mixlist, delete_mixlist, list_mixlists, load_mixlist
from groovara.reveal.schemas import RevealView
from groovara.reveal.session import RevealSession
from groovara.reveal.store import ProgressStore

router = APIRouter(prefix="/api/v1/mixlists", tags=["Mixlists"])


# ---- Owner lifecycle ----


@router.post("", status_code=201, response_model=MixlistSummary)
async def create(
    body: MixlistCreateRequest,
    owner_id: str = Depends(require_owner_id),
    db: AsyncSession = Depends(get_session),
) -> MixlistSummary:
    """Snapshot a tracklist into a new shareable mixlist."""
    mixlist = await create_mixlist(db, owner_id, body)
    await db.commit()
    return MixlistSummary(
        id=mixlist.id,
        title=mixlist.title,
        message=mixlist.message,
        reveal_mode=mixlist.reveal_mode,
        include_song_notes=mixlist.include_song_notes,
        is_public=mixlist.is_public,
        created_at=mixlist.created_at,
        song_count=len(body.songs),
    )


@router.get("", response_model=MixlistListResponse)
async def list_owned(
    owner_id: str = Depends(require_owner_id),
    db: AsyncSession = Depends(get_session),
) -> MixlistListResponse:
    rows = await list_mixlists(db, owner_id)
    items = [
        MixlistSummary(
            id=m.id,
            title=m.title,
            message=m.message,
            reveal_mode=m.reveal_mode,
            include_song_notes=m.include_song_notes,
            is_public=m.is_public,
            created_at=m.created_at,
            song_count=count,
        )
        for m, count in rows
    ]
    return MixlistListResponse(mixlists=items, total=len(items))


@router.delete("/{mixlist_id}", status_code=204)
async def delete_owned(
    mixlist_id: str,
    owner_id: str = Depends(require_owner_id),
    db: AsyncSession = Depends(get_session),
) -> Response:
    if not await delete_mixlist(db, owner_id, mixlist_id):
        raise HTTPException(404, "Mixlist not found")
    await db.commit()
    return Response(status_code=204)


# ---- Reveal (stateless: hydrate, mutate, flush before responding) ----


async def _open_session(
    db: AsyncSession,
    store: ProgressStore,
    mixlist_id: str,
    viewer_id: str | None,
) -> RevealSession:
    definition, songs = await load_mixlist(db, mixlist_id)
    session = RevealSession(definition, songs, build_tracker(store))
    await session.start(viewer_id)
    return session


@router.get("/{mixlist_id}/reveal", response_model=RevealView)
async def get_reveal(
    mixlist_id: str,
    selected: int = 0,
    viewer_id: str | None = Depends(get_viewer_id),
    db: AsyncSession = Depends(get_session),
    store: ProgressStore = Depends(get_progress_store),
) -> RevealView:
    """Current reveal view for this viewer. Anonymous viewers always see a fresh reveal."""
    session = await _open_session(db, store, mixlist_id, viewer_id)
    return session.select(selected)


@router.post("/{mixlist_id}/reveal/open", response_model=RevealView)
async def open_slot(
    mixlist_id: str,
    body: RevealOpenRequest,
    viewer_id: str | None = Depends(get_viewer_id),
    db: AsyncSession = Depends(get_session),
    store: ProgressStore = Depends(get_progress_store),
) -> RevealView:
    session = await _open_session(db, store, mixlist_id, viewer_id)
    view = session.open_slot(body.index)
    await session.tracker.flush()
    return view


@router.post("/{mixlist_id}/reveal/advance", response_model=RevealView)
async def advance(
    mixlist_id: str,
    selected: int = 0,
    viewer_id: str | None = Depends(get_viewer_id),
    db: AsyncSession = Depends(get_session),
    store: ProgressStore = Depends(get_progress_store),
) -> RevealView:
    session = await _open_session(db, store, mixlist_id, viewer_id)
    session.select(selected)
    view = session.advance()
    await session.tracker.flush()
    return view
