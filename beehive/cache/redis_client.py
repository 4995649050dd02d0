"""
Redis client for the latest-reading cache.

Provides helpers for creating Redis connections and for invalidating the
per-(kind, hive) latest-reading entry after new readings are imported.
Cache use is best-effort: connection failures are logged but never
propagate, and everything is a no-op when no Redis URL is configured.

CHANGELOG:
- 2026-10-13: Make the cache optional (empty REDIS_URL disables it)
- 2026-10-12: Initial creation
"""

import logging
import os

import redis.asyncio as redis

logger = logging.getLogger(__name__)

# Set by configure_cache(); falls back to the REDIS_URL env var.
_redis_url: str | None = None


def configure_cache(url: str | None) -> None:
    """Set the Redis URL used by this module.

    Args:
        url: Redis URL, or an empty value to fall back to REDIS_URL.
    """
    global _redis_url  # noqa: PLW0603
    _redis_url = url or None


def _get_redis_url() -> str | None:
    return _redis_url or os.environ.get("REDIS_URL") or None


def cache_enabled() -> bool:
    """Return True when a Redis URL is configured."""
    return _get_redis_url() is not None


def latest_cache_key(kind: str, hive_id: int) -> str:
    """Return the cache key holding the latest reading of a hive."""
    return f"latest:{kind}:{hive_id}"


async def get_redis() -> redis.Redis:
    """Create and return an async Redis client.

    Returns:
        redis.Redis: Async Redis client.

    Raises:
        RuntimeError: If no Redis URL is configured.
    """
    url = _get_redis_url()
    if url is None:
        raise RuntimeError("REDIS_URL environment variable is required")
    return redis.from_url(url)


async def invalidate_latest_cache(kind: str, hive_id: int) -> None:
    """Delete the latest-reading cache key for a hive and kind.

    Best-effort operation: if Redis is unavailable or the delete fails,
    the error is logged but not raised, so imports are never blocked by
    cache infrastructure issues.

    Args:
        kind: Measurement kind value (e.g. ``"humidity"``).
        hive_id: The hive whose cache entry should be cleared.
    """
    if not cache_enabled():
        return
    try:
        client = await get_redis()
        try:
            await client.delete(latest_cache_key(kind, hive_id))
        finally:
            await client.aclose()
    except Exception:
        logger.warning(
            "Failed to invalidate %s cache for hive %s",
            kind,
            hive_id,
            exc_info=True,
        )
