"""
Hybrid in-memory + Redis rate limiting
Counts live in process memory and are mirrored to Redis periodically, so a
restarted worker picks the current window back up.
"""

import logging
import os
import time
from threading import Lock
from typing import Optional

import redis
from fastapi import HTTPException, Request, status

logger = logging.getLogger(__name__)

redis_client: Optional[redis.Redis] = None

# {key: {"count": int, "reset_time": int, "last_redis_sync": int}}
memory_cache: dict[str, dict] = {}
cache_lock = Lock()

MEMORY_CACHE_SYNC_INTERVAL = 10
MEMORY_CACHE_CLEANUP_INTERVAL = 60
last_cleanup_time = 0


def get_redis_client() -> redis.Redis:
    """REDIS_URL wins over the individual REDIS_* variables, same as the worker"""
    global redis_client

    if redis_client is None:
        logger.info("🔄 Initializing Redis connection for rate limiting...")
        options = {
            "decode_responses": True,
            "socket_connect_timeout": 15,
            "socket_timeout": 30,
            "retry_on_timeout": True,
            "health_check_interval": 30,
        }
        redis_url = os.getenv("REDIS_URL")
        try:
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
            client.ping()
        except Exception as e:
            logger.error(f"❌ Failed to connect to Redis: {e}")
            raise
        logger.info("✅ Redis connected for rate limiting")
        redis_client = client

    return redis_client


def cleanup_expired_cache():
    """Remove expired entries from memory cache"""
    global last_cleanup_time
    current_time = int(time.time())

    if current_time - last_cleanup_time < MEMORY_CACHE_CLEANUP_INTERVAL:
        return

    with cache_lock:
        expired_keys = [
            key for key, entry in memory_cache.items() if current_time >= entry.get("reset_time", 0)
        ]
        for key in expired_keys:
            del memory_cache[key]

        if expired_keys:
            logger.debug(f"🧹 Cleaned up {len(expired_keys)} expired rate limit entries")

    last_cleanup_time = current_time


def _new_entry(current_time: int, window_seconds: int) -> dict:
    return {
        "count": 0,
        "reset_time": current_time + window_seconds,
        "last_redis_sync": current_time,
    }


def check_rate_limit(
    key: str, limit: int, window_seconds: int, client: redis.Redis
) -> tuple[bool, int, int]:
    """
    Fixed-window counter checked in memory; Redis is read once when a key is
    first seen and written at most every MEMORY_CACHE_SYNC_INTERVAL seconds.

    Returns (is_allowed, current_count, ttl_seconds). Any unexpected error
    denies the request.
    """
    try:
        current_time = int(time.time())
        cleanup_expired_cache()

        with cache_lock:
            if key not in memory_cache:
                try:
                    stored_count = client.get(key)
                    stored_ttl = client.ttl(key)
                    if stored_count and stored_ttl > 0:
                        memory_cache[key] = {
                            "count": int(stored_count),
                            "reset_time": current_time + stored_ttl,
                            "last_redis_sync": current_time,
                        }
                    else:
                        memory_cache[key] = _new_entry(current_time, window_seconds)
                except Exception as e:
                    logger.warning(f"⚠️ Failed to load {key} from Redis, using memory only: {e}")
                    memory_cache[key] = _new_entry(current_time, window_seconds)

            entry = memory_cache[key]

            if current_time >= entry["reset_time"]:
                entry["count"] = 0
                entry["reset_time"] = current_time + window_seconds
                entry["last_redis_sync"] = 0

            is_allowed = entry["count"] < limit
            if is_allowed:
                entry["count"] += 1

            if current_time - entry.get("last_redis_sync", 0) >= MEMORY_CACHE_SYNC_INTERVAL:
                try:
                    pipe = client.pipeline()
                    pipe.set(key, entry["count"], ex=window_seconds)
                    pipe.execute()
                    entry["last_redis_sync"] = current_time
                except Exception as e:
                    logger.warning(f"⚠️ Failed to sync {key} to Redis: {e}")

            ttl = entry["reset_time"] - current_time
            return is_allowed, entry["count"], max(0, ttl)

    except Exception as e:
        logger.error(f"❌ Rate limit check failed, denying request: {e}")
        return False, limit, 0


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


async def rate_limit_dependency(
    request: Request,
    limit: int,
    window_seconds: int,
    key_prefix: str = "rate_limit",
    use_ip: bool = True,
):
    """429 once the window is used up, 503 when the limiter itself is unavailable"""
    try:
        client = get_redis_client()
        key = f"{key_prefix}:{client_ip(request)}" if use_ip else f"{key_prefix}:global"

        is_allowed, current_count, ttl = check_rate_limit(key, limit, window_seconds, client)

        if not is_allowed:
            logger.warning(f"🚫 Rate limit exceeded for {key} ({current_count}/{limit})")
            raise HTTPException(
                status_code=429,
                detail={
                    "message": f"Rate limit exceeded. Maximum {limit} requests per {window_seconds} seconds.",
                    "retry_after": ttl,
                    "limit": limit,
                    "window_seconds": window_seconds,
                },
                headers={"Retry-After": str(ttl)},
            )

        request.state.rate_limit_remaining = limit - current_count

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"❌ Rate limiting error, denying request: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Rate limiting service temporarily unavailable",
        ) from e


def create_rate_limiter(
    limit: int, window_seconds: int, key_prefix: str = "rate_limit", use_ip: bool = True
):
    """
    Build a FastAPI dependency with fixed parameters

        rate_limit_login = create_rate_limiter(limit=10, window_seconds=900, key_prefix="login_code")

        @router.post("/login-code")
        async def login(data: LoginCodeRequest, _: None = Depends(rate_limit_login)):
            ...
    """

    async def rate_limiter(request: Request):
        return await rate_limit_dependency(request, limit, window_seconds, key_prefix, use_ip)

    return rate_limiter
