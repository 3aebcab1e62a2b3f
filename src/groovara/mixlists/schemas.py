"""Pydantic schemas for mixlist creation and listing."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, field_validator


def _blank_to_none(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


class SourceTrack(BaseModel):
    """A tracklist song as handed over by the authoring side, snapshotted verbatim."""

    platform: str = Field(min_length=1, max_length=16)
    track_id: str = Field(min_length=1, max_length=128)
    title: str = Field(min_length=1, max_length=300)
    artist: str = Field(min_length=1, max_length=300)
    album: str | None = Field(default=None, max_length=300)
    url: str = Field(min_length=1)
    note: str | None = None

    @field_validator("platform", "track_id", "title", "artist", "url")
    @classmethod
    def _required_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator("album", "note")
    @classmethod
    def _optional_text(cls, value: str | None) -> str | None:
        return _blank_to_none(value)


class MixlistCreateRequest(BaseModel):
    source_tracklist_id: str | None = Field(default=None, max_length=64)
    tracklist_title: str | None = Field(default=None, max_length=200)
    message: str | None = None
    finishing_note: str | None = None
    reveal_mode: bool = True
    include_song_notes: bool = True
    is_public: bool = True
    songs: list[SourceTrack] = Field(min_length=1)

    @field_validator("tracklist_title", "message", "finishing_note")
    @classmethod
    def _trim(cls, value: str | None) -> str | None:
        return _blank_to_none(value)


class MixlistSummary(BaseModel):
    id: str
    title: str | None
    message: str | None
    reveal_mode: bool
    include_song_notes: bool
    is_public: bool
    created_at: datetime | None
    song_count: int | None = None


class MixlistListResponse(BaseModel):
    mixlists: list[MixlistSummary]
    total: int


class RevealOpenRequest(BaseModel):
    index: int = Field(ge=0)
