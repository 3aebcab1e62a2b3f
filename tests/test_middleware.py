"""Middleware tests: request context, rate limiting, CORS, error handling."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from httpx import AsyncClient
from starlette.requests import Request

from groovara import redis_client
from groovara.config import Settings
from groovara.middleware.logging import service_context
from groovara.middleware.rate_limit import rate_limit_subject


def _request(headers: dict[str, str] | None = None, client: tuple[str, int] | None = ("10.0.0.7", 5000)) -> Request:
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "client": client,
    }
    return Request(scope)


def _fake_redis(count: int) -> MagicMock:
    pipe = MagicMock()
    pipe.execute = AsyncMock(return_value=[count, True])
    redis = MagicMock()
    redis.pipeline.return_value = pipe
    return redis


@pytest.mark.asyncio
async def test_request_id_generated(client: AsyncClient) -> None:
    """Request ID is auto-generated when not provided."""
    response = await client.get("/health")
    assert len(response.headers["x-request-id"]) == 36  # UUID format


@pytest.mark.asyncio
async def test_request_id_preserved(client: AsyncClient) -> None:
    """Custom request ID is echoed back in response."""
    response = await client.get("/health", headers={"X-Request-Id": "test-abc-123"})
    assert response.headers["x-request-id"] == "test-abc-123"


class TestRateLimitSubject:
    def test_viewer_header_wins(self) -> None:
        assert rate_limit_subject(_request({"X-Viewer-Id": " viewer-1 "})) == "viewer:viewer-1"

    def test_blank_viewer_falls_back_to_ip(self) -> None:
        assert rate_limit_subject(_request({"X-Viewer-Id": "   "})) == "ip:10.0.0.7"

    def test_missing_client(self) -> None:
        assert rate_limit_subject(_request(client=None)) == "ip:unknown"


@pytest.mark.asyncio
async def test_rate_limit_passthrough_without_redis(client: AsyncClient) -> None:
    """Uninitialized Redis lets requests through without limit headers."""
    response = await client.get("/version")
    assert response.status_code == 200
    assert "x-ratelimit-limit" not in response.headers


@pytest.mark.asyncio
async def test_rate_limit_headers(client: AsyncClient) -> None:
    with patch("groovara.middleware.rate_limit.get_redis", return_value=_fake_redis(1)):
        response = await client.get("/version")
    assert response.headers["x-ratelimit-remaining"] == "99"
    assert response.headers["x-ratelimit-limit"] == "100"


@pytest.mark.asyncio
async def test_rate_limit_blocks_excess(client: AsyncClient) -> None:
    """101st request in a window returns 429 with Retry-After header."""
    redis = _fake_redis(101)
    with patch("groovara.middleware.rate_limit.get_redis", return_value=redis):
        response = await client.get("/version", headers={"X-Viewer-Id": "viewer-1"})
    assert response.status_code == 429
    assert response.headers["retry-after"] == "60"
    assert "detail" in response.json()
    key = redis.pipeline.return_value.incr.call_args.args[0]
    assert key.startswith("ratelimit:viewer:viewer-1:")


@pytest.mark.asyncio
async def test_health_exempt_from_rate_limit(client: AsyncClient) -> None:
    redis = _fake_redis(10_000)
    with patch("groovara.middleware.rate_limit.get_redis", return_value=redis):
        response = await client.get("/health")
    assert response.status_code == 200
    redis.pipeline.assert_not_called()


@pytest.mark.asyncio
async def test_cors_preflight_allows_viewer_header(client: AsyncClient) -> None:
    response = await client.options(
        "/api/v1/mixlists",
        headers={
            "Origin": "http://localhost:3000",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "X-Viewer-Id",
        },
    )
    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "http://localhost:3000"
    assert "x-viewer-id" in response.headers["access-control-allow-headers"].lower()


@pytest.mark.asyncio
async def test_404_returns_json(client: AsyncClient) -> None:
    """Unknown paths return 404 with JSON body."""
    response = await client.get("/nonexistent-path")
    assert response.status_code == 404
    assert response.headers["content-type"] == "application/json"
    assert response.json()["detail"] == "Not Found"


class TestServiceContext:
    def test_stamps_service_and_environment(self) -> None:
        add = service_context(Settings(environment="staging"))
        event = add(None, "info", {"event": "reveal_progress_save_failed"})
        assert event["service"] == "groovara"
        assert event["environment"] == "staging"

    def test_keeps_explicit_values(self) -> None:
        add = service_context(Settings(environment="staging"))
        event = add(None, "info", {"event": "x", "environment": "test"})
        assert event["environment"] == "test"


@pytest.mark.asyncio
async def test_init_redis_uses_configured_pool_size() -> None:
    pool = MagicMock()
    pool.aclose = AsyncMock()
    with patch("groovara.redis_client.redis.from_url", return_value=pool) as from_url:
        await redis_client.init_redis("redis://cache:6379/1", max_connections=7)
        try:
            assert redis_client.get_redis() is pool
            assert from_url.call_args.kwargs["max_connections"] == 7
        finally:
            await redis_client.close_redis()
    pool.aclose.assert_awaited_once()
    with pytest.raises(RuntimeError):
        redis_client.get_redis()
