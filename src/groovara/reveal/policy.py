"""Reveal policy engine.

Pure derivations over (definition, ordered songs, progress, selection) that
tell the presentation layer what it may show. Nothing here performs I/O or
mutates its inputs.
"""

from __future__ import annotations

from collections.abc import Sequence

from groovara.reveal.entities import MixlistDefinition, SongEntry
from groovara.reveal.progress import RevealProgress
from groovara.reveal.schemas import (
    NOTE_EMPTY,
    NOTE_HIDDEN,
    NOTE_NONE_SELECTED,
    NOTE_PRESENT,
    NotePanel,
    SongCard,
)


def _note_key(note: str | None) -> str:
    return (note or "").strip()


class RevealPolicy:
    """Derived visibility for one mixlist as seen by one viewer."""

    def __init__(
        self,
        definition: MixlistDefinition,
        songs: Sequence[SongEntry],
        progress: RevealProgress,
    ) -> None:
        self.definition = definition
        self.songs = songs
        self.progress = progress

    @property
    def reveal_mode(self) -> bool:
        return self.definition.reveal_mode

    @property
    def song_count(self) -> int:
        return len(self.songs)

    # --- Slots ---

    def visible_count(self) -> int:
        if not self.reveal_mode:
            return self.song_count
        return max(0, min(self.progress.revealed_slots, self.song_count))

    def visible_songs(self) -> list[SongEntry]:
        return list(self.songs[: self.visible_count()])

    def is_slot_hidden(self, index: int) -> bool:
        """Hidden slots render as a numbered placeholder with an open affordance."""
        return self.reveal_mode and not self.progress.is_opened(index)

    def can_advance(self) -> bool:
        return self.reveal_mode and self.progress.revealed_slots < self.song_count and self.progress.next_slot_unlocked()

    def show_advance(self) -> bool:
        """Whether the 'reveal next' control exists at all (it may still be disabled)."""
        return self.reveal_mode and self.progress.revealed_slots < self.song_count

    def show_finishing_note(self) -> bool:
        if not _note_key(self.definition.finishing_note):
            return False
        if not self.reveal_mode:
            return True
        return self.progress.is_complete()

    def stage(self) -> str | None:
        if not self.reveal_mode:
            return None
        return self.progress.stage()

    def cards(self) -> list[SongCard]:
        cards = []
        for index, song in enumerate(self.visible_songs()):
            if self.is_slot_hidden(index):
                cards.append(SongCard(position=index, number=index + 1, hidden=True))
                continue
            cards.append(
                SongCard(
                    position=index,
                    number=index + 1,
                    hidden=False,
                    title=song.title,
                    artist=song.artist,
                    album=song.album,
                    url=song.url,
                )
            )
        return cards

    # --- Selection and notes ---

    def selected_index_clamped(self, requested: int) -> int:
        visible = self.visible_count()
        if visible == 0:
            return 0
        return max(0, min(requested, visible - 1))

    def active_song(self, selected: int) -> SongEntry | None:
        if self.visible_count() == 0:
            return None
        return self.songs[self.selected_index_clamped(selected)]

    def active_song_is_hidden(self, selected: int) -> bool:
        return self.reveal_mode and not self.progress.is_opened(self.selected_index_clamped(selected))

    def note_group_label(self, selected: int) -> str:
        """Label for the note panel.

        Songs sharing the selected song's exact note text (ignoring surrounding
        whitespace) are grouped into a min-max range, e.g. ``SONGS #2–#5 NOTE``.
        """
        song = self.active_song(selected)
        if song is None:
            return "SONG NOTE"

        index = self.selected_index_clamped(selected)
        text = _note_key(song.note)
        if not text:
            return f"SONG #{index + 1} NOTE"

        matches = [i + 1 for i, other in enumerate(self.songs) if _note_key(other.note) == text]
        if len(matches) <= 1:
            return f"SONG #{index + 1} NOTE"
        return f"SONGS #{min(matches)}–#{max(matches)} NOTE"

    def note_panel(self, selected: int) -> NotePanel | None:
        """Side panel content, or None when the mixlist does not include song notes."""
        if not self.definition.include_song_notes:
            return None

        label = self.note_group_label(selected)
        song = self.active_song(selected)
        if song is None:
            return NotePanel(label=label, state=NOTE_NONE_SELECTED)
        if self.active_song_is_hidden(selected):
            return NotePanel(label=label, state=NOTE_HIDDEN)
        if _note_key(song.note):
            return NotePanel(label=label, state=NOTE_PRESENT, body=song.note)
        return NotePanel(label=label, state=NOTE_EMPTY)
