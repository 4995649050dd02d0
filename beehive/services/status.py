"""
Hive status reads over the measurement tables.

Returns the most recent reading of a hive per measurement kind, readings
within a timeframe, and a combined status across all kinds. The latest
reading is cached in Redis with a short TTL (key ``latest:{kind}:{hive_id}``);
the importer invalidates the key whenever new readings are inserted. Cache
failures fall back to the database.

CHANGELOG:
- 2026-10-13: Initial creation
"""

import json
import logging
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from beehive.cache.redis_client import cache_enabled, get_redis, latest_cache_key
from beehive.db.models import Beehive, MeasurementMixin
from beehive.importer.kinds import DataKind, KindSpec, kind_spec

logger = logging.getLogger(__name__)

DEFAULT_CACHE_TTL_S = 5


def _measurement_to_dict(row: MeasurementMixin, spec: KindSpec) -> dict:
    """Serialise a measurement ORM instance to a JSON-compatible dict.

    Args:
        row: The ORM model instance to serialise.
        spec: Kind spec naming the value column.

    Returns:
        dict: ``{"hive_id", "date", <kind>}`` with an ISO 8601 date.
    """
    return {
        "hive_id": row.hive_id,
        "date": row.date.isoformat(),
        spec.column: getattr(row, spec.column),
    }


async def _cache_get(key: str) -> dict | None:
    if not cache_enabled():
        return None
    try:
        client = await get_redis()
        try:
            cached = await client.get(key)
        finally:
            await client.aclose()
    except Exception:
        logger.warning(
            "Redis read failed for key %s, falling back to DB",
            key,
            exc_info=True,
        )
        return None
    return json.loads(cached) if cached is not None else None


async def _cache_set(key: str, value: dict, ttl_s: int) -> None:
    if not cache_enabled():
        return
    try:
        client = await get_redis()
        try:
            await client.set(key, json.dumps(value), ex=ttl_s)
        finally:
            await client.aclose()
    except Exception:
        logger.warning("Redis write failed for key %s", key, exc_info=True)


async def latest_measurement(
    db: AsyncSession,
    kind: DataKind | str,
    hive_id: int,
    *,
    cache_ttl_s: int = DEFAULT_CACHE_TTL_S,
) -> dict | None:
    """Return the most recent reading of *kind* for a hive.

    Args:
        db: Async database session.
        kind: Measurement kind.
        hive_id: Hive identifier.
        cache_ttl_s: TTL for the cached reading.

    Returns:
        dict | None: ``{"hive_id", "date", <kind>}``, or None if the hive
        has no readings of this kind.

    Raises:
        ValueError: If *kind* is unknown.
    """
    spec = kind_spec(kind)
    key = latest_cache_key(spec.kind.value, hive_id)

    cached = await _cache_get(key)
    if cached is not None:
        return cached

    model = spec.model
    stmt = (
        select(model)
        .where(model.hive_id == hive_id)
        .order_by(model.date.desc())
        .limit(1)
    )
    result = await db.execute(stmt)
    row = result.scalar_one_or_none()
    if row is None:
        return None

    reading = _measurement_to_dict(row, spec)
    await _cache_set(key, reading, cache_ttl_s)
    return reading


async def measurements_between(
    db: AsyncSession,
    kind: DataKind | str,
    hive_id: int,
    start: datetime,
    end: datetime,
) -> list[dict]:
    """Return readings of *kind* for a hive with start <= date <= end.

    Results are ordered by date ascending.

    Raises:
        ValueError: If *kind* is unknown or *start* is after *end*.
    """
    if start > end:
        raise ValueError(f"start ({start.isoformat()}) is after end ({end.isoformat()})")

    spec = kind_spec(kind)
    model = spec.model
    stmt = (
        select(model)
        .where(model.hive_id == hive_id)
        .where(model.date >= start)
        .where(model.date <= end)
        .order_by(model.date.asc())
    )
    result = await db.execute(stmt)
    rows = result.scalars().all()

    logger.debug(
        "Timeframe query: kind=%s hive_id=%s rows=%d",
        spec.kind.value,
        hive_id,
        len(rows),
    )
    return [_measurement_to_dict(row, spec) for row in rows]


async def hive_status(
    db: AsyncSession,
    hive_id: int,
    *,
    cache_ttl_s: int = DEFAULT_CACHE_TTL_S,
) -> dict:
    """Return the latest value of every measurement kind for a hive.

    Keys for the hive location and for each kind are only present when
    the data exists.

    Returns:
        dict: e.g. ``{"hive_id": 1, "location": "Kalmar", "humidity": 61.2}``.
    """
    status: dict = {"hive_id": hive_id}

    hive = await db.get(Beehive, hive_id)
    if hive is not None:
        status["location"] = hive.location

    for kind in DataKind:
        reading = await latest_measurement(
            db, kind, hive_id, cache_ttl_s=cache_ttl_s
        )
        if reading is not None:
            status[kind.value] = reading[kind.value]

    return status
