"""ORM models for mixlists, their song snapshots and per-viewer reveal progress."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import (
    BigInteger,
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from groovara.db.base import Base


# ---------------------------------------------------------------------------
# Mixlists
# ---------------------------------------------------------------------------


class Mixlist(Base):
    """A shareable snapshot of a tracklist. Immutable to viewers."""

    __tablename__ = "mixlists"

    id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True, default=lambda: str(uuid.uuid4()))
    owner_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    title: Mapped[str | None] = mapped_column(String(200), nullable=True)
    source_tracklist_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    message: Mapped[str | None] = mapped_column(Text, nullable=True)
    finishing_note: Mapped[str | None] = mapped_column(Text, nullable=True)
    reveal_mode: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default="true")
    include_song_notes: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default="true")
    is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default="true")
    created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), server_default=func.now())

    songs: Mapped[list[MixlistSong]] = relationship(
        "MixlistSong",
        back_populates="mixlist",
        order_by="MixlistSong.position",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class MixlistSong(Base):
    """One song snapshotted into a mixlist. Position is zero-based and unique per mixlist."""

    __tablename__ = "mixlist_songs"
    __table_args__ = (UniqueConstraint("mixlist_id", "position", name="uq_mixlist_song_position"),)

    id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True, default=lambda: str(uuid.uuid4()))
    mixlist_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("mixlists.id", ondelete="CASCADE"), nullable=False
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    platform: Mapped[str] = mapped_column(String(16), nullable=False)
    track_id: Mapped[str] = mapped_column(String(128), nullable=False)
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    artist: Mapped[str] = mapped_column(String(300), nullable=False)
    album: Mapped[str | None] = mapped_column(String(300), nullable=True)
    url: Mapped[str] = mapped_column(Text, nullable=False)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)

    mixlist: Mapped[Mixlist] = relationship("Mixlist", back_populates="songs")


# ---------------------------------------------------------------------------
# Reveal progress
# ---------------------------------------------------------------------------


class MixlistProgress(Base):
    """Reveal progress per (mixlist, viewer). UNIQUE(mixlist_id, viewer_id) backs the upsert.

    Stored values are untrusted: they are normalized against the current song
    count every time they cross the storage boundary.
    """

    __tablename__ = "mixlist_progress"
    __table_args__ = (UniqueConstraint("mixlist_id", "viewer_id", name="uq_mixlist_progress_viewer"),)

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    mixlist_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("mixlists.id", ondelete="CASCADE"), nullable=False
    )
    viewer_id: Mapped[str] = mapped_column(String(128), nullable=False)
    revealed_count: Mapped[int | None] = mapped_column(Integer, nullable=True, server_default="1")
    clicked_json: Mapped[list[Any] | None] = mapped_column(JSONB, nullable=True, server_default="[]")
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
