"""
Redis caching service for time slot listings.

CACHING STRATEGY
================

What we cache:
  - The per-day slot listing (JSON-serialized SlotListResponse)
  - Cache key pattern: "slots:list:date={YYYY-MM-DD}"

Why:
  - The booking form polls the day's slots every time the customer changes
    the date, and the listing barely changes between reservations

Invalidation strategy:
  - On reserve / release: delete the key for that slot's date
  - On slot creation: delete the key for the new slot's date
  - TTL-based expiry as safety net (REDIS_CACHE_TTL)

The cache is advisory only. The allocator never reads booked_count from
Redis; the guarded UPDATE in the database is the only capacity check.
Every Redis failure is logged and treated as a cache miss.
"""

import datetime as dt
import json
from typing import Optional

import redis.asyncio as redis

from autocare.core.config import get_settings
from autocare.core.logging import get_logger

logger = get_logger(__name__)
settings = get_settings()

SLOT_LIST_PREFIX = "slots:list:"

_redis_client: Optional[redis.Redis] = None


async def get_redis() -> Optional[redis.Redis]:
    """Get or create Redis connection. Returns None if Redis is disabled or unreachable."""
    global _redis_client

    if not settings.REDIS_ENABLED:
        return None

    if _redis_client is None:
        client = redis.from_url(
            settings.REDIS_URL,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
            retry_on_timeout=True,
        )
        try:
            await client.ping()
        except redis.RedisError as e:
            logger.error("redis_connection_failed", error=str(e))
            await client.aclose()
            return None
        _redis_client = client
        logger.info("redis_connected", url=settings.REDIS_URL)

    return _redis_client


async def close_redis() -> None:
    """Close Redis connection on shutdown."""
    global _redis_client
    if _redis_client:
        await _redis_client.aclose()
        _redis_client = None


def _make_slot_list_key(day: dt.date) -> str:
    return f"{SLOT_LIST_PREFIX}date={day.isoformat()}"


async def get_cached_slots(day: dt.date) -> Optional[dict]:
    client = await get_redis()
    if not client:
        return None

    key = _make_slot_list_key(day)
    try:
        data = await client.get(key)
        if data:
            logger.debug("cache_hit", key=key)
            return json.loads(data)
        logger.debug("cache_miss", key=key)
    except redis.RedisError as e:
        logger.error("cache_get_error", key=key, error=str(e))

    return None


async def set_cached_slots(day: dt.date, data: dict) -> None:
    client = await get_redis()
    if not client:
        return

    key = _make_slot_list_key(day)
    try:
        await client.setex(key, settings.REDIS_CACHE_TTL, json.dumps(data, default=str))
        logger.debug("cache_set", key=key, ttl=settings.REDIS_CACHE_TTL)
    except redis.RedisError as e:
        logger.error("cache_set_error", key=key, error=str(e))


async def invalidate_slot_cache(day: Optional[dt.date] = None) -> None:
    """
    Drop the cached listing for one day, or every cached listing when no
    day is given (SCAN over the key prefix).
    """
    client = await get_redis()
    if not client:
        return

    try:
        if day is not None:
            deleted = await client.delete(_make_slot_list_key(day))
        else:
            deleted = 0
            async for key in client.scan_iter(match=f"{SLOT_LIST_PREFIX}*", count=100):
                await client.delete(key)
                deleted += 1
        logger.info("cache_invalidated", keys_deleted=deleted, date=day.isoformat() if day else None)
    except redis.RedisError as e:
        logger.error("cache_invalidation_error", error=str(e))


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
    except redis.RedisError as e:
        return {"status": "error", "error": str(e)}
