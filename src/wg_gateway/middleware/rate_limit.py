"""Per-user fixed-window rate limiting for wager placement.

Key pattern: "ratelimit:{user_id}:{group}:{window}". The window index is
part of the key, so a counter that missed its EXPIRE still stops counting
once the minute rolls over.
"""

import logging
import time

import redis.asyncio as aioredis
from fastapi import Depends

from config.settings import settings
from src.wg_common.errors import RateLimitError
from src.wg_common.redis_client import get_redis
from src.wg_gateway.auth.dependencies import CurrentUser, get_current_user

logger = logging.getLogger(__name__)

_WINDOW_SECONDS = 60


async def hit(redis: aioredis.Redis, user_id: str, group: str, limit: int) -> int:
    """Count one request; raise RateLimitError once the window's limit is exceeded."""
    window = int(time.time()) // _WINDOW_SECONDS
    key = f"ratelimit:{user_id}:{group}:{window}"
    count = int(await redis.incr(key))
    if count == 1:
        await redis.expire(key, _WINDOW_SECONDS)
    if count > limit:
        logger.warning("Rate limit hit: user=%s group=%s count=%d", user_id, group, count)
        raise RateLimitError()
    return count


async def limit_wager_placement(
    current_user: CurrentUser = Depends(get_current_user),
    redis: aioredis.Redis = Depends(get_redis),
) -> CurrentUser:
    await hit(redis, current_user.id, "wagers", settings.WAGER_RATE_LIMIT_PER_MINUTE)
    return current_user
