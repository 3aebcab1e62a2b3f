"""Shared FastAPI dependencies."""

from fastapi import Header, HTTPException

from groovara.config import get_settings
from groovara.database import get_session_factory
from groovara.reveal.store import ProgressStore, SqlProgressStore
from groovara.reveal.tracker import RevealTracker


def get_viewer_id(x_viewer_id: str | None = Header(default=None)) -> str | None:
    """Optional viewer identity from the identity collaborator. Blank means anonymous."""
    if x_viewer_id is None:
        return None
    return x_viewer_id.strip() or None


def require_owner_id(x_viewer_id: str | None = Header(default=None)) -> str:
    """Owner operations need a durable identity."""
    owner_id = get_viewer_id(x_viewer_id)
    if owner_id is None:
        raise HTTPException(401, "Authentication required")
    return owner_id


def get_progress_store() -> ProgressStore:
    return SqlProgressStore(get_session_factory())


def build_tracker(store: ProgressStore | None) -> RevealTracker:
    """Tracker configured from settings."""
    settings = get_settings()
    return RevealTracker(
        store,
        commit_delay=settings.reveal_commit_delay_seconds,
        flush_on_exit=settings.reveal_flush_on_exit,
    )
