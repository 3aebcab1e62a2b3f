"""Reveal progress tracker.

Holds the authoritative in-memory reveal state for one viewing session and
reconciles it with a ProgressStore. Storage failures are logged and never
raised: the in-memory state stays authoritative whatever the write outcome.
"""

from __future__ import annotations

from collections.abc import Awaitable

import structlog

from groovara.reveal.debounce import Debouncer
from groovara.reveal.progress import (
    RevealProgress,
    complete_progress,
    fresh_progress,
    normalize_progress,
)
from groovara.reveal.store import ProgressStore

logger = structlog.get_logger()

DEFAULT_COMMIT_DELAY = 0.25


class RevealTracker:
    """Mutable reveal state with debounced, idempotent persistence.

    Progress is only read or written when the mixlist is in reveal mode, it
    has songs, a store is configured and the viewer has a durable identity.
    Anything else is ephemeral session state.
    """

    def __init__(
        self,
        store: ProgressStore | None = None,
        *,
        commit_delay: float = DEFAULT_COMMIT_DELAY,
        flush_on_exit: bool = True,
    ) -> None:
        self._store = store
        self._debouncer = Debouncer(commit_delay, self._write)
        self._generation = 0
        self._hydrated = False
        self.flush_on_exit = flush_on_exit
        self.mixlist_id: str | None = None
        self.viewer_id: str | None = None
        self.reveal_mode = True
        self.progress = RevealProgress(0, [])

    @property
    def song_count(self) -> int:
        return self.progress.song_count

    @property
    def persistent(self) -> bool:
        return (
            self._store is not None
            and bool(self.viewer_id)
            and self.mixlist_id is not None
            and self.reveal_mode
            and self.song_count > 0
        )

    @property
    def hydrated(self) -> bool:
        return self._hydrated

    @property
    def write_pending(self) -> bool:
        return self._debouncer.pending

    async def hydrate(
        self,
        mixlist_id: str,
        viewer_id: str | None,
        song_count: int,
        *,
        reveal_mode: bool = True,
    ) -> RevealProgress:
        """Bind to (mixlist, viewer) and load its progress. Never raises on storage errors.

        Writes for the previous binding, pending or already running, land
        before anything is read. Mutations are refused until hydration ends.
        If another hydrate starts meanwhile, this one's result is discarded.
        """
        self._generation += 1
        generation = self._generation
        self._hydrated = False

        await self._debouncer.flush()
        if generation != self._generation:
            logger.info("reveal_hydration_superseded", mixlist_id=mixlist_id, viewer_id=viewer_id)
            return self.progress

        self.mixlist_id = mixlist_id
        self.viewer_id = viewer_id or None
        self.reveal_mode = reveal_mode

        if not reveal_mode:
            self.progress = complete_progress(song_count)
            self._hydrated = True
            return self.progress

        self.progress = fresh_progress(song_count)
        if not self.persistent:
            self._hydrated = True
            return self.progress

        stored = None
        try:
            stored = await self._store.load(mixlist_id, self.viewer_id)  # type: ignore[union-attr,arg-type]
        except Exception:
            logger.warning(
                "reveal_progress_load_failed",
                mixlist_id=mixlist_id,
                viewer_id=viewer_id,
                exc_info=True,
            )

        if generation != self._generation:
            logger.info("reveal_hydration_superseded", mixlist_id=mixlist_id, viewer_id=viewer_id)
            return self.progress

        if stored is not None:
            self.progress = normalize_progress(song_count, stored.revealed_count, stored.clicked_json)
        self._hydrated = True
        return self.progress

    # --- Mutators ---

    def open_slot(self, index: int) -> bool:
        """Mark a revealed slot as opened.

        Out of range or repeated opens are no-ops, as is anything before
        hydration has finished.
        """
        if not self._hydrated or not self.reveal_mode:
            return False
        if not 0 <= index < min(self.progress.revealed_slots, self.song_count):
            return False
        if self.progress.clicked[index]:
            return False
        self.progress.clicked[index] = True
        self.commit()
        return True

    def advance(self) -> bool:
        """Instantiate the next slot once the current last slot has been opened."""
        if not self._hydrated or not self.reveal_mode or not self.progress.next_slot_unlocked():
            return False
        self.progress.revealed_slots = min(self.progress.revealed_slots + 1, self.song_count)
        self.commit()
        return True

    # --- Persistence ---

    def commit(self) -> None:
        """Schedule a debounced write of the current state."""
        if not self._hydrated or not self.persistent:
            return
        self._debouncer.schedule()

    async def flush(self) -> None:
        await self._debouncer.flush()

    async def close(self) -> None:
        """Teardown: flush the pending write, or drop it when flush_on_exit is off."""
        if self.flush_on_exit:
            await self._debouncer.flush()
        elif self._debouncer.cancel():
            logger.info("reveal_progress_write_dropped", mixlist_id=self.mixlist_id, viewer_id=self.viewer_id)

    def _write(self) -> Awaitable[None]:
        """Capture the binding and a normalized snapshot when the timer fires."""
        if not self.persistent:
            return self._save(None, None, None)
        snapshot = normalize_progress(self.song_count, self.progress.revealed_slots, self.progress.clicked)
        return self._save(self.mixlist_id, self.viewer_id, snapshot)

    async def _save(self, mixlist_id: str | None, viewer_id: str | None, snapshot: RevealProgress | None) -> None:
        if snapshot is None:
            return
        try:
            await self._store.save(mixlist_id, viewer_id, snapshot)  # type: ignore[union-attr,arg-type]
        except Exception:
            logger.warning(
                "reveal_progress_save_failed",
                mixlist_id=mixlist_id,
                viewer_id=viewer_id,
                revealed_slots=snapshot.revealed_slots,
                exc_info=True,
            )
