"""Live reveal session registry.

Tracks every open WebSocket reveal session so that pending progress writes
are flushed when a viewer disconnects or the application shuts down.
"""

import asyncio
import time
from collections import defaultdict
from dataclasses import dataclass, field

import structlog

from groovara.reveal.session import RevealSession

logger = structlog.get_logger()


@dataclass
class LiveSession:
    """One connected viewer on one mixlist."""

    session: RevealSession
    mixlist_id: str
    viewer_id: str | None
    connected_at: float = field(default_factory=time.time)


class RevealSessionManager:
    """Registry of live reveal sessions. Single event loop, no locking needed."""

    def __init__(self) -> None:
        self._sessions: dict[str, LiveSession] = {}  # conn_id -> session
        self._viewer_sessions: dict[str, set[str]] = defaultdict(set)  # viewer_id -> {conn_ids}

    @property
    def session_count(self) -> int:
        return len(self._sessions)

    def can_accept(self, viewer_id: str | None, max_per_viewer: int) -> bool:
        """Anonymous viewers are not capped; identified viewers get max_per_viewer sessions."""
        if viewer_id is None:
            return True
        return len(self._viewer_sessions.get(viewer_id, ())) < max_per_viewer

    def register(self, conn_id: str, session: RevealSession, viewer_id: str | None) -> None:
        self._sessions[conn_id] = LiveSession(
            session=session,
            mixlist_id=session.definition.id,
            viewer_id=viewer_id,
        )
        if viewer_id is not None:
            self._viewer_sessions[viewer_id].add(conn_id)
        logger.info("ws_reveal_connected", conn_id=conn_id, mixlist_id=session.definition.id, viewer_id=viewer_id)

    async def release(self, conn_id: str) -> None:
        """Forget a session and run its teardown (flush-on-exit)."""
        live = self._sessions.pop(conn_id, None)
        if live is None:
            return

        if live.viewer_id is not None:
            self._viewer_sessions[live.viewer_id].discard(conn_id)
            if not self._viewer_sessions[live.viewer_id]:
                del self._viewer_sessions[live.viewer_id]

        await live.session.close()
        logger.info("ws_reveal_disconnected", conn_id=conn_id, mixlist_id=live.mixlist_id, viewer_id=live.viewer_id)

    async def close_all(self) -> None:
        """Release every session, e.g. on application shutdown."""
        conn_ids = list(self._sessions)
        if conn_ids:
            await asyncio.gather(*(self.release(c) for c in conn_ids), return_exceptions=True)

    def get_stats(self) -> dict:
        mixlists: dict[str, int] = defaultdict(int)
        for live in self._sessions.values():
            mixlists[live.mixlist_id] += 1
        return {
            "total_sessions": len(self._sessions),
            "identified_viewers": len(self._viewer_sessions),
            "mixlists": dict(mixlists),
        }


manager = RevealSessionManager()
