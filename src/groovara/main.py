"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from groovara.config import get_settings
from groovara.database import close_db, init_db
from groovara.health.router import router as health_router
from groovara.middleware import setup_middleware
from groovara.mixlists.router import router as mixlists_router
from groovara.redis_client import close_redis, init_redis
from groovara.ws.manager import manager as reveal_sessions
from groovara.ws.router import router as ws_router

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    await init_redis(settings.redis_url, max_connections=settings.redis_max_connections)

    yield

    # Flush pending reveal progress before the engine goes away
    logger.info("reveal_sessions_closing", sessions=reveal_sessions.session_count)
    await reveal_sessions.close_all()

    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Groovara API",
        description="Mixlist sharing with progressive song reveal",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(mixlists_router)
    app.include_router(ws_router)

    return app


app = create_app()
