"""
Ingestion service for batch-inserting hive measurements.

Handles idempotent insertion via ON CONFLICT (hive_id, date) DO NOTHING,
returning the count of actually inserted rows. Invalidates the Redis
latest-reading cache for the hive on successful insertion.

The whole batch goes out as a single multi-row INSERT. If the store
rejects any row (e.g. a CHECK constraint), the statement fails and the
caller decides what to do with the batch.

CHANGELOG:
- 2026-10-13: Choose the insert construct from the session's dialect
- 2026-10-12: Initial creation
"""

import logging

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from beehive.cache.redis_client import invalidate_latest_cache
from beehive.importer.kinds import DataKind, kind_spec

logger = logging.getLogger(__name__)


def _insert_for(db: AsyncSession):
    """Return the dialect-specific insert() supporting ON CONFLICT."""
    bind = db.bind
    if bind is not None and bind.dialect.name == "sqlite":
        return sqlite_insert
    return pg_insert


async def ingest_measurements(
    db: AsyncSession,
    kind: DataKind | str,
    hive_id: int,
    rows: list[dict],
) -> int:
    """Insert a batch of measurement rows with idempotent conflict handling.

    Duplicate readings (same hive + date) are silently skipped. After a
    successful insertion (inserted > 0), the latest-reading cache entry of
    the hive is invalidated.

    Args:
        db: Async SQLAlchemy session.
        kind: Measurement kind; selects the target table.
        hive_id: Hive the rows belong to (used for logging and the cache).
        rows: Flat row dicts ``{hive_id, date, <kind>: value}``.

    Returns:
        int: Number of rows actually inserted.

    Raises:
        sqlalchemy.exc.SQLAlchemyError: If the store rejects the statement.
    """
    if not rows:
        return 0

    spec = kind_spec(kind)
    insert = _insert_for(db)
    stmt = (
        insert(spec.model)
        .values(rows)
        .on_conflict_do_nothing(index_elements=["hive_id", "date"])
    )
    result = await db.execute(stmt)
    await db.commit()

    inserted = result.rowcount
    logger.info(
        "Ingested %d/%d %s readings for hive %s",
        inserted,
        len(rows),
        spec.kind.value,
        hive_id,
    )

    if inserted > 0:
        await invalidate_latest_cache(spec.kind.value, hive_id)

    return inserted
