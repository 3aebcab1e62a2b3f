"""Global error handlers: consistent JSON error responses."""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from groovara.mixlists.service import MixlistNotFoundError, MixlistUnavailableError

logger = structlog.get_logger()


def setup_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content={"detail": "Validation error", "errors": exc.errors()},
        )

    @app.exception_handler(MixlistNotFoundError)
    async def mixlist_not_found_handler(_request: Request, exc: MixlistNotFoundError) -> JSONResponse:
        """Absent, deleted or malformed mixlist ids are all reported the same way."""
        return JSONResponse(
            status_code=404,
            content={"detail": "Mixlist not found", "mixlist_id": exc.mixlist_id},
        )

    @app.exception_handler(MixlistUnavailableError)
    async def mixlist_unavailable_handler(_request: Request, exc: MixlistUnavailableError) -> JSONResponse:
        return JSONResponse(
            status_code=503,
            content={"detail": "Couldn't load this mixlist", "mixlist_id": exc.mixlist_id},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all for unhandled exceptions: always return JSON."""
        logger.error(
            "unhandled_exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            exc_info=exc,
        )
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )
