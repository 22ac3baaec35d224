"""
Throttling for the credential endpoints (login, register)

Attempts are counted per client IP in a fixed window. Counters live in
process memory and are pushed to Redis every few seconds so that other
workers (and restarts) pick up where this one left off.
"""

import logging
import os
import time
from dataclasses import dataclass
from threading import Lock
from typing import Optional

import redis
from fastapi import HTTPException, Request, status

from . import config

logger = logging.getLogger(__name__)

SYNC_INTERVAL_SECONDS = 10
CLEANUP_INTERVAL_SECONDS = 60

_redis: Optional[redis.Redis] = None


@dataclass
class WindowCounter:
    count: int
    resets_at: int
    synced_at: int = 0

    def remaining_seconds(self, now: int) -> int:
        return max(0, self.resets_at - now)


memory_cache: dict[str, WindowCounter] = {}
_cache_lock = Lock()
_last_cleanup = 0


def get_redis_client() -> redis.Redis:
    """Connect lazily; REDIS_URL wins over the discrete REDIS_* settings"""
    global _redis

    if _redis is not None:
        return _redis

    options = {
        "decode_responses": True,
        "socket_connect_timeout": 5,
        "socket_timeout": 5,
        "retry_on_timeout": True,
    }
    redis_url = os.getenv("REDIS_URL")
    if redis_url:
        client = redis.from_url(redis_url, **options)
    else:
        client = redis.Redis(
            host=os.getenv("REDIS_HOST", "localhost"),
            port=int(os.getenv("REDIS_PORT", "6379")),
            password=os.getenv("REDIS_PASSWORD"),
            db=int(os.getenv("REDIS_DB", "0")),
            ssl=os.getenv("REDIS_SSL", "false").lower() == "true",
            **options,
        )

    try:
        client.ping()
    except redis.RedisError as e:
        logger.error(f"❌ Redis unavailable for rate limiting: {e}")
        raise

    logger.info("🔌 Rate limiter connected to Redis")
    _redis = client
    return _redis


def _drop_expired(now: int) -> None:
    global _last_cleanup
    if now - _last_cleanup < CLEANUP_INTERVAL_SECONDS:
        return

    expired = [key for key, counter in memory_cache.items() if now >= counter.resets_at]
    for key in expired:
        del memory_cache[key]
    if expired:
        logger.debug(f"🧹 Dropped {len(expired)} expired rate limit counters")
    _last_cleanup = now


def _load_counter(key: str, window_seconds: int, client: redis.Redis, now: int) -> WindowCounter:
    """Resume a counter another worker already started, or open a new window"""
    try:
        stored = client.get(key)
        ttl = client.ttl(key)
    except Exception as e:
        logger.warning(f"⚠️ Could not read {key} from Redis, counting locally: {e}")
        return WindowCounter(count=0, resets_at=now + window_seconds, synced_at=now)

    if stored and ttl > 0:
        return WindowCounter(count=int(stored), resets_at=now + ttl, synced_at=now)
    return WindowCounter(count=0, resets_at=now + window_seconds)


def check_rate_limit(
    key: str, limit: int, window_seconds: int, redis_client: redis.Redis
) -> tuple[bool, int, int]:
    """
    Count one attempt against ``key``.

    Returns:
        (allowed, attempts in the current window, seconds until the window resets)
    """
    now = int(time.time())

    try:
        with _cache_lock:
            _drop_expired(now)

            counter = memory_cache.get(key)
            if counter is None:
                counter = memory_cache[key] = _load_counter(key, window_seconds, redis_client, now)
            elif now >= counter.resets_at:
                counter.count = 0
                counter.resets_at = now + window_seconds
                counter.synced_at = 0

            allowed = counter.count < limit
            if allowed:
                counter.count += 1

            if now - counter.synced_at >= SYNC_INTERVAL_SECONDS:
                try:
                    redis_client.set(key, counter.count, ex=max(1, counter.resets_at - now))
                    counter.synced_at = now
                except Exception as e:
                    logger.warning(f"⚠️ Could not push {key} to Redis: {e}")

            return allowed, counter.count, counter.remaining_seconds(now)
    except Exception as e:
        logger.error(f"❌ Rate limit check failed for {key}, denying: {e}")
        return False, limit, 0


def _client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def create_rate_limiter(
    limit: int, window_seconds: int, key_prefix: str = "rate_limit", use_ip: bool = True
):
    """
    Build a FastAPI dependency that throttles an endpoint.

    Example usage:
        rate_limit_login = create_rate_limiter(limit=20, window_seconds=900, key_prefix="login")

        @router.post("/login")
        async def login(data: LoginRequest, _: None = Depends(rate_limit_login)):
            ...
    """

    async def rate_limiter(request: Request):
        if not config.RATE_LIMIT_ENABLED:
            return

        key = f"{key_prefix}:{_client_ip(request) if use_ip else 'global'}"
        try:
            client = get_redis_client()
        except Exception as e:
            # Fail closed: credential endpoints stay shut while Redis is down
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Rate limiting service temporarily unavailable",
            ) from e

        allowed, attempts, retry_after = check_rate_limit(key, limit, window_seconds, client)
        if not allowed:
            logger.warning(f"🚫 Rate limit exceeded for {key} ({attempts}/{limit})")
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail=f"Too many attempts. Try again in {retry_after} seconds.",
                headers={"Retry-After": str(retry_after)},
            )

        request.state.rate_limit_remaining = limit - attempts

    return rate_limiter
