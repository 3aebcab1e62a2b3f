"""Request context middleware: request id and viewer identity for log correlation."""

import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Ensure every request has an X-Request-Id and bind it (plus the viewer) to structlog."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get("X-Request-Id") or str(uuid.uuid4())
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)
        viewer_id = request.headers.get("X-Viewer-Id", "").strip()
        if viewer_id:
            structlog.contextvars.bind_contextvars(viewer_id=viewer_id)
        response = await call_next(request)
        response.headers["X-Request-Id"] = request_id
        return response
