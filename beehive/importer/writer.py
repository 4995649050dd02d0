"""
Batch writer: persists one batch of records and reports a typed outcome.

The writer is bound to a single (kind, hive) at construction, so every
batch of an import run, including the trailing partial one, lands in the
same table. A batch the store refuses is logged and discarded as a whole;
there is no retry and no per-record replay.

CHANGELOG:
- 2026-10-12: Initial creation
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from beehive.importer.kinds import DataKind, kind_spec
from beehive.importer.models import (
    BatchOutcome,
    Delivered,
    MeasurementRecord,
    Rejected,
)
from beehive.services.ingestion import ingest_measurements

logger = logging.getLogger(__name__)


class BatchWriter:
    """Async callable that bulk-inserts a batch into the kind's table.

    Opens one session per batch. Store errors are absorbed and returned
    as :class:`Rejected`; anything else propagates.

    Args:
        session_factory: Factory producing async sessions.
        kind: Measurement kind (selects the table).
        hive_id: Hive the batches belong to.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        kind: DataKind | str,
        hive_id: int,
    ) -> None:
        self._session_factory = session_factory
        self._kind = kind_spec(kind).kind
        self._hive_id = hive_id

    async def __call__(self, batch: list[MeasurementRecord]) -> BatchOutcome:
        """Insert *batch* and return its outcome."""
        rows = [record.to_row() for record in batch]
        logger.info(
            "Inserting batch of %d %s records for hive %s",
            len(rows),
            self._kind.value,
            self._hive_id,
        )
        async with self._session_factory() as session:
            try:
                inserted = await ingest_measurements(
                    session, self._kind, self._hive_id, rows
                )
            except SQLAlchemyError as exc:
                await session.rollback()
                reason = str(getattr(exc, "orig", None) or exc)
                logger.error(
                    "Error inserting batch of %d %s records, skipping batch: %s",
                    len(rows),
                    self._kind.value,
                    reason,
                )
                return Rejected(attempted=len(rows), reason=reason)
        return Delivered(attempted=len(rows), inserted=inserted)
