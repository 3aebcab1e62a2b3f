"""A viewer's reveal session over one loaded mixlist."""

from __future__ import annotations

from collections.abc import Sequence

from groovara.reveal.entities import MixlistDefinition, SongEntry
from groovara.reveal.policy import RevealPolicy
from groovara.reveal.schemas import RevealView
from groovara.reveal.tracker import RevealTracker


class RevealSession:
    """Binds a mixlist, its songs and a tracker, and owns the note panel selection.

    Mutators apply synchronously and return the freshly derived view; any
    resulting write is persisted in the background by the tracker.
    """

    def __init__(
        self,
        definition: MixlistDefinition,
        songs: Sequence[SongEntry],
        tracker: RevealTracker,
    ) -> None:
        self.definition = definition
        self.songs = tuple(songs)
        self.tracker = tracker
        self.selected_index = 0

    @property
    def policy(self) -> RevealPolicy:
        return RevealPolicy(self.definition, self.songs, self.tracker.progress)

    async def start(self, viewer_id: str | None) -> RevealView:
        await self.tracker.hydrate(
            self.definition.id,
            viewer_id,
            len(self.songs),
            reveal_mode=self.definition.reveal_mode,
        )
        self.selected_index = self.policy.selected_index_clamped(self.selected_index)
        return self.view()

    def open_slot(self, index: int) -> RevealView:
        self.select(index)
        self.tracker.open_slot(index)
        return self.view()

    def advance(self) -> RevealView:
        self.tracker.advance()
        return self.view()

    def select(self, index: int) -> RevealView:
        self.selected_index = self.policy.selected_index_clamped(index)
        return self.view()

    async def close(self) -> None:
        await self.tracker.close()

    def view(self) -> RevealView:
        policy = self.policy
        selected = policy.selected_index_clamped(self.selected_index)
        return RevealView(
            mixlist_id=self.definition.id,
            title=self.definition.title,
            message=self.definition.message,
            reveal_mode=self.definition.reveal_mode,
            include_song_notes=self.definition.include_song_notes,
            song_count=policy.song_count,
            stage=policy.stage(),
            revealed_slots=self.tracker.progress.revealed_slots,
            visible_count=policy.visible_count(),
            can_advance=policy.can_advance(),
            show_advance=policy.show_advance(),
            cards=policy.cards(),
            selected_index=selected,
            note_panel=policy.note_panel(selected),
            finishing_note=self.definition.finishing_note if policy.show_finishing_note() else None,
            is_empty=policy.song_count == 0,
            persisted=self.tracker.persistent,
        )
