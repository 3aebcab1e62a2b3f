"""WebSocket endpoint driving a live reveal session."""

import json
import uuid

import structlog
from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from groovara.config import get_settings
from groovara.database import get_session_factory
from groovara.dependencies import build_tracker, get_progress_store
from groovara.mixlists.service import MixlistNotFoundError, MixlistUnavailableError, load_mixlist
from groovara.reveal.schemas import RevealView
from groovara.reveal.session import RevealSession
from groovara.reveal.store import ProgressStore
from groovara.ws.manager import manager

logger = structlog.get_logger()

router = APIRouter()


def _view_message(view: RevealView) -> dict:
    return {"type": "view", "data": view.model_dump(mode="json")}


def _index_of(msg: dict) -> int | None:
    index = msg.get("index")
    if isinstance(index, bool) or not isinstance(index, int):
        return None
    return index


@router.websocket("/ws/mixlists/{mixlist_id}")
async def reveal_socket(
    websocket: WebSocket,
    mixlist_id: str,
    viewer_id: str | None = Query(default=None),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    store: ProgressStore = Depends(get_progress_store),
) -> None:
    """Live reveal session for one viewer.

    Protocol:
        Client -> Server:
            {"action": "open", "index": 0}
            {"action": "advance"}
            {"action": "select", "index": 2}
            {"action": "ping"}

        Server -> Client:
            {"type": "view", "data": {...}}
            {"type": "pong"}
            {"type": "error", "message": "..."}

    Progress writes are debounced and flushed when the socket closes.
    """
    viewer_id = (viewer_id or "").strip() or None
    settings = get_settings()

    if not manager.can_accept(viewer_id, settings.ws_max_sessions_per_viewer):
        await websocket.close(code=4029, reason="Too many open reveal sessions")
        return

    try:
        async with session_factory() as db:
            definition, songs = await load_mixlist(db, mixlist_id)
    except MixlistNotFoundError:
        await websocket.close(code=4404, reason="Mixlist not found")
        return
    except MixlistUnavailableError:
        await websocket.close(code=4503, reason="Couldn't load this mixlist")
        return

    # Other connects from this viewer may have registered while loading
    if not manager.can_accept(viewer_id, settings.ws_max_sessions_per_viewer):
        await websocket.close(code=4029, reason="Too many open reveal sessions")
        return

    session = RevealSession(definition, songs, build_tracker(store))
    conn_id = str(uuid.uuid4())
    manager.register(conn_id, session, viewer_id)

    try:
        await websocket.accept()
        await websocket.send_json(_view_message(await session.start(viewer_id)))

        while True:
            raw = await websocket.receive_text()
            try:
                msg = json.loads(raw)
            except json.JSONDecodeError:
                await websocket.send_json({"type": "error", "message": "Invalid JSON"})
                continue
            if not isinstance(msg, dict):
                await websocket.send_json({"type": "error", "message": "Invalid message"})
                continue

            action = msg.get("action")

            if action in ("open", "select"):
                index = _index_of(msg)
                if index is None:
                    await websocket.send_json({"type": "error", "message": "Invalid index"})
                    continue
                view = session.open_slot(index) if action == "open" else session.select(index)
                await websocket.send_json(_view_message(view))

            elif action == "advance":
                await websocket.send_json(_view_message(session.advance()))

            elif action == "ping":
                await websocket.send_json({"type": "pong"})

            else:
                await websocket.send_json({
                    "type": "error",
                    "message": f"Unknown action: {action}",
                })

    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("ws_reveal_error", conn_id=conn_id, mixlist_id=mixlist_id)
    finally:
        await manager.release(conn_id)
