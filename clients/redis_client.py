"""
Async Redis client for per-user quiz request rate limiting.
Fixed-window counter; any Redis failure lets the request through.
"""

import asyncio
import logging
import time
from typing import Optional, Tuple

from utils import settings

logger = logging.getLogger(__name__)

_redis_client = None
_redis_available = None
_redis_lock = asyncio.Lock()

RATE_KEY_PREFIX = "ratelimit:quiz"


async def _get_redis():
    """Lazy-init async Redis connection singleton with lock to prevent race conditions."""
    global _redis_client, _redis_available
    if _redis_available is False:
        return None
    if _redis_client is not None:
        return _redis_client
    async with _redis_lock:
        # Double-check after acquiring lock
        if _redis_client is not None:
            return _redis_client
        if _redis_available is False:
            return None
        try:
            import redis.asyncio as aioredis
            _redis_client = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
            await _redis_client.ping()
            _redis_available = True
            logger.info(f"Redis connected: {settings.REDIS_URL}")
            return _redis_client
        except Exception as e:
            logger.warning(f"Redis unavailable, quiz rate limiting disabled: {e}")
            _redis_available = False
            _redis_client = None
            return None


def _window_key(user_id: str, window_seconds: int, now: float) -> Tuple[str, int]:
    """Key for the current window and the seconds left in it."""
    window_start = int(now // window_seconds) * window_seconds
    remaining = window_start + window_seconds - int(now)
    return f"{RATE_KEY_PREFIX}:{user_id}:{window_start}", max(1, remaining)


async def check_rate_limit(
    user_id: str,
    max_requests: Optional[int] = None,
    window_seconds: Optional[int] = None,
) -> Tuple[bool, int]:
    """
    Count one quiz request for user_id in the current window.

    Returns:
        (allowed, retry_after_seconds). retry_after_seconds is 0 when allowed.
    """
    limit = max_requests if max_requests is not None else settings.QUIZ_RATE_LIMIT_MAX
    window = window_seconds if window_seconds is not None else settings.QUIZ_RATE_LIMIT_WINDOW
    try:
        r = await _get_redis()
        if r is None:
            return True, 0
        key, remaining = _window_key(user_id, window, time.time())
        pipe = r.pipeline()
        pipe.incr(key)
        pipe.expire(key, remaining)
        count, _ = await pipe.execute()
        if int(count) > limit:
            logger.info(f"🚦 Rate limit hit for user {user_id}: {count}/{limit} in window")
            return False, remaining
        return True, 0
    except Exception as e:
        logger.warning(f"Redis check_rate_limit failed, allowing request: {e}")
        return True, 0
