"""Reveal progress: how many song slots are unlocked and which have been opened.

Stages: not_started -> revealing -> completed. A viewer with no stored row is
not_started, which derives exactly like revealing(1, [False, ...]).
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

NOT_STARTED = "not_started"
REVEALING = "revealing"
COMPLETED = "completed"

STAGE_ORDER: dict[str, int] = {NOT_STARTED: 0, REVEALING: 1, COMPLETED: 2}


@dataclass
class RevealProgress:
    """Mutable reveal state for one viewer of one mixlist.

    ``clicked`` always has one entry per song; ``clicked[i]`` can only be True
    for ``i < revealed_slots``.
    """

    revealed_slots: int
    clicked: list[bool] = field(default_factory=list)

    @property
    def song_count(self) -> int:
        return len(self.clicked)

    def is_opened(self, index: int) -> bool:
        return 0 <= index < len(self.clicked) and self.clicked[index] is True

    def next_slot_unlocked(self) -> bool:
        """Sequential unlock: the last revealed slot must be opened before the next appears."""
        return 0 < self.revealed_slots < self.song_count and self.clicked[self.revealed_slots - 1] is True

    def is_complete(self) -> bool:
        n = self.song_count
        return n > 0 and self.revealed_slots == n and self.clicked[n - 1] is True

    def stage(self) -> str:
        if self.is_complete():
            return COMPLETED
        if self.revealed_slots <= 1 and not any(self.clicked):
            return NOT_STARTED
        return REVEALING

    def copy(self) -> RevealProgress:
        return RevealProgress(self.revealed_slots, list(self.clicked))


def fresh_progress(song_count: int) -> RevealProgress:
    """Default state: first slot instantiated, nothing opened."""
    if song_count <= 0:
        return RevealProgress(0, [])
    return RevealProgress(1, [False] * song_count)


def complete_progress(song_count: int) -> RevealProgress:
    """State used outside reveal mode: every slot revealed and opened."""
    song_count = max(song_count, 0)
    return RevealProgress(song_count, [True] * song_count)


def _coerce_slots(value: Any) -> int:  # noqa: ANN401
    if isinstance(value, bool):
        return 1
    try:
        return int(value)
    except (TypeError, ValueError):
        return 1


def normalize_progress(song_count: int, revealed_slots: Any, clicked: Any) -> RevealProgress:  # noqa: ANN401
    """Bring stored or in-memory values back within the invariants for ``song_count`` songs.

    - revealed_slots is clamped into [1, song_count] (0 when there are no songs)
    - clicked is resized to song_count; only literal True counts as opened
    - any opened flag at or beyond revealed_slots is reset to False
    """
    if song_count <= 0:
        return RevealProgress(0, [])

    slots = max(1, min(_coerce_slots(revealed_slots), song_count))

    raw: Sequence[Any] = clicked if isinstance(clicked, (list, tuple)) else ()
    safe = [i < slots and i < len(raw) and raw[i] is True for i in range(song_count)]
    return RevealProgress(slots, safe)
