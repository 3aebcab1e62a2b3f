"""Read-only mixlist inputs to the reveal core.

Loaded once per view session and never mutated afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class MixlistDefinition:
    id: str
    message: str | None = None
    finishing_note: str | None = None
    reveal_mode: bool = True
    include_song_notes: bool = True
    title: str | None = None


@dataclass(frozen=True)
class SongEntry:
    position: int
    title: str
    artist: str
    url: str
    album: str | None = None
    note: str | None = None
    platform: str | None = None
    track_id: str | None = None
