"""
Redis caching service for availability probes.

CACHING STRATEGY
================

What we cache:
  - Answers to GET /vehicles/{id}/availability (a boolean per vehicle+window)
  - Cache key pattern: "availability:{vehicle_id}:{start}:{end}"

Why:
  - The booking form probes availability on every date-picker change
  - Probes are advisory: create_booking re-checks under the vehicle lock,
    so a stale answer can cost the user a 409, never a double-booking

Invalidation strategy:
  - On create or on a range-releasing status change: delete every key of
    that vehicle ("availability:{vehicle_id}:*")
  - Short TTL as a safety net (AVAILABILITY_CACHE_TTL, 30s default)

Failure mode:
  - Redis disabled or unreachable -> every call degrades to a no-op and the
    caller falls through to the in-process availability index.
"""

from typing import Optional

import redis.asyncio as redis

from rental.core.config import get_settings
from rental.core.logging import get_logger
from rental.core.metrics import record_cache_operation, redis_connection_errors
from rental.domain.calendar_range import CalendarRange

logger = get_logger(__name__)

_redis_client: Optional[redis.Redis] = None


async def get_redis() -> Optional[redis.Redis]:
    """Get or create Redis connection. Returns None if Redis is disabled."""
    global _redis_client
    settings = get_settings()

    if not settings.REDIS_ENABLED:
        return None

    if _redis_client is None:
        try:
            _redis_client = redis.from_url(
                settings.REDIS_URL,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                retry_on_timeout=True,
            )
            await _redis_client.ping()
            logger.info("redis_connected", url=settings.REDIS_URL)
        except Exception as e:
            redis_connection_errors.inc()
            logger.error("redis_connection_failed", error=str(e))
            _redis_client = None
            return None

    return _redis_client


async def close_redis() -> None:
    """Close Redis connection on shutdown."""
    global _redis_client
    if _redis_client:
        await _redis_client.aclose()
        _redis_client = None


def _make_availability_key(vehicle_id: int, range_: CalendarRange) -> str:
    return f"availability:{vehicle_id}:{range_.start.isoformat()}:{range_.end.isoformat()}"


async def get_cached_availability(vehicle_id: int, range_: CalendarRange) -> Optional[bool]:
    client = await get_redis()
    if not client:
        return None

    key = _make_availability_key(vehicle_id, range_)
    try:
        data = await client.get(key)
        if data is not None:
            record_cache_operation("get", "hit")
            return data == "1"
        record_cache_operation("get", "miss")
    except Exception as e:
        record_cache_operation("get", "error")
        logger.error("cache_get_error", key=key, error=str(e))

    return None


async def set_cached_availability(vehicle_id: int, range_: CalendarRange, available: bool) -> None:
    client = await get_redis()
    if not client:
        return

    settings = get_settings()
    key = _make_availability_key(vehicle_id, range_)
    try:
        await client.setex(key, settings.AVAILABILITY_CACHE_TTL, "1" if available else "0")
        record_cache_operation("set", "ok")
    except Exception as e:
        record_cache_operation("set", "error")
        logger.error("cache_set_error", key=key, error=str(e))


async def invalidate_vehicle_availability(vehicle_id: int) -> None:
    """Drop every cached probe for one vehicle."""
    client = await get_redis()
    if not client:
        return

    try:
        deleted = 0
        async for key in client.scan_iter(match=f"availability:{vehicle_id}:*", count=100):
            await client.delete(key)
            deleted += 1
        record_cache_operation("invalidate", "ok")
        logger.debug("availability_cache_invalidated", vehicle_id=vehicle_id, keys_deleted=deleted)
    except Exception as e:
        record_cache_operation("invalidate", "error")
        logger.error("cache_invalidation_error", vehicle_id=vehicle_id, error=str(e))


async def get_cache_stats() -> dict:
    """Get Redis cache statistics for monitoring."""
    client = await get_redis()
    if not client:
        return {"status": "disabled"}

    try:
        info = await client.info("stats")
        hits = info.get("keyspace_hits", 0)
        misses = info.get("keyspace_misses", 0)
        return {
            "status": "connected",
            "hits": hits,
            "misses": misses,
            "hit_rate": round(hits / max(hits + misses, 1) * 100, 2),
        }
    except Exception as e:
        return {"status": "error", "error": str(e)}
