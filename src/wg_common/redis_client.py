"""Shared Redis client for the wager rate limiter.

Only short-lived counters live in Redis. Balances, positions and settlement
state are PostgreSQL-only, so losing Redis never loses money.
"""

import redis.asyncio as aioredis

from config.settings import settings

_client: aioredis.Redis | None = None


async def get_redis() -> aioredis.Redis:
    """FastAPI dependency: the process-wide client, created on first use."""
    global _client  # noqa: PLW0603
    if _client is None:
        _client = aioredis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_timeout=settings.REDIS_SOCKET_TIMEOUT,
            socket_connect_timeout=settings.REDIS_SOCKET_TIMEOUT,
        )
    return _client


async def check_redis() -> None:
    """Raise if Redis is unreachable."""
    client = await get_redis()
    await client.ping()


async def close_redis() -> None:
    global _client  # noqa: PLW0603
    if _client is not None:
        await _client.aclose()
        _client = None
