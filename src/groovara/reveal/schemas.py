"""Pydantic schemas for the reveal view handed to the presentation layer."""

from __future__ import annotations

from pydantic import BaseModel

# Note panel states
NOTE_NONE_SELECTED = "none_selected"
NOTE_HIDDEN = "hidden"
NOTE_PRESENT = "note"
NOTE_EMPTY = "empty"


class SongCard(BaseModel):
    """One instantiated slot. Hidden slots expose only their position."""

    position: int
    number: int
    hidden: bool
    title: str | None = None
    artist: str | None = None
    album: str | None = None
    url: str | None = None


class NotePanel(BaseModel):
    label: str
    state: str  # none_selected, hidden, note, empty
    body: str | None = None


class RevealView(BaseModel):
    mixlist_id: str
    title: str | None
    message: str | None
    reveal_mode: bool
    include_song_notes: bool
    song_count: int
    stage: str | None  # None outside reveal mode
    revealed_slots: int
    visible_count: int
    can_advance: bool
    show_advance: bool
    cards: list[SongCard]
    selected_index: int
    note_panel: NotePanel | None
    finishing_note: str | None
    is_empty: bool
    persisted: bool
