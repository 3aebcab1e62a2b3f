"""Redis connection pool for rate limiting and readiness checks."""

import redis.asyncio as redis

_pool: redis.Redis | None = None


async def init_redis(url: str, *, max_connections: int = 20) -> None:
    """Open the shared pool. Reveal progress never goes through Redis, so the pool stays small."""
    global _pool  # noqa: PLW0603
    _pool = redis.from_url(  # type: ignore[no-untyped-call]
        url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=max_connections,
        health_check_interval=30,
    )


async def close_redis() -> None:
    global _pool  # noqa: PLW0603
    if _pool is not None:
        await _pool.aclose()
        _pool = None


def get_redis() -> redis.Redis:
    """Shared client; raises RuntimeError before init_redis() so callers can degrade."""
    if _pool is None:
        msg = "Redis not initialized. Call init_redis() first."
        raise RuntimeError(msg)
    return _pool
