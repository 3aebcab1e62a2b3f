"""Mixlists, snapshotted songs and per-viewer reveal progress.

Revision ID: 001_mixlist_tables
Revises:
Create Date: 2026-10-19
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001_mixlist_tables"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- Mixlists ---
    op.create_table(
        "mixlists",
        sa.Column("id", postgresql.UUID(as_uuid=False), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("owner_id", sa.String(128), nullable=False),
        sa.Column("title", sa.String(200), nullable=True),
        sa.Column("source_tracklist_id", sa.String(64), nullable=True),
        sa.Column("message", sa.Text, nullable=True),
        sa.Column("finishing_note", sa.Text, nullable=True),
        sa.Column("reveal_mode", sa.Boolean, nullable=False, server_default="true"),
        sa.Column("include_song_notes", sa.Boolean, nullable=False, server_default="true"),
        sa.Column("is_public", sa.Boolean, nullable=False, server_default="true"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("NOW()")),
    )
    op.create_index("ix_mixlists_owner_id", "mixlists", ["owner_id"])

    # --- Songs (immutable snapshot) ---
    op.create_table(
        "mixlist_songs",
        sa.Column("id", postgresql.UUID(as_uuid=False), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column(
            "mixlist_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("mixlists.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("position", sa.Integer, nullable=False),
        sa.Column("platform", sa.String(16), nullable=False),
        sa.Column("track_id", sa.String(128), nullable=False),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column("artist", sa.String(300), nullable=False),
        sa.Column("album", sa.String(300), nullable=True),
        sa.Column("url", sa.Text, nullable=False),
        sa.Column("note", sa.Text, nullable=True),
        sa.UniqueConstraint("mixlist_id", "position", name="uq_mixlist_song_position"),
        sa.CheckConstraint("position >= 0", name="ck_mixlist_song_position_nonneg"),
    )

    # --- Reveal progress ---
    op.create_table(
        "mixlist_progress",
        sa.Column("id", sa.BigInteger, primary_key=True, autoincrement=True),
        sa.Column(
            "mixlist_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("mixlists.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("viewer_id", sa.String(128), nullable=False),
        sa.Column("revealed_count", sa.Integer, nullable=True, server_default="1"),
        sa.Column("clicked_json", postgresql.JSONB, nullable=True, server_default=sa.text("'[]'::jsonb")),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("NOW()")),
        sa.UniqueConstraint("mixlist_id", "viewer_id", name="uq_mixlist_progress_viewer"),
    )
    op.create_index("ix_mixlist_progress_viewer", "mixlist_progress", ["viewer_id"])


def downgrade() -> None:
    op.drop_index("ix_mixlist_progress_viewer", table_name="mixlist_progress")
    op.drop_table("mixlist_progress")
    op.drop_table("mixlist_songs")
    op.drop_index("ix_mixlists_owner_id", table_name="mixlists")
    op.drop_table("mixlists")
