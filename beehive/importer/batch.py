"""
In-memory batch buffer that flushes records to a writer at a fixed size.

Records are flushed in arrival order; batch boundaries depend only on how
many records arrived. The buffer is emptied after every flush attempt,
whether the writer delivered, rejected, or raised.

CHANGELOG:
- 2026-10-12: Initial creation
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable

from beehive.importer.models import BatchOutcome, MeasurementRecord

FlushFn = Callable[[list[MeasurementRecord]], Awaitable[BatchOutcome]]


class BatchBuffer:
    """Accumulates records and awaits *flush* whenever *batch_size* is reached.

    The buffer is owned by a single import run. Callers must await
    :meth:`append` before appending the next record; the flush happens
    inside that await.

    Args:
        batch_size: Number of records per flush (>= 1).
        flush: Async callable receiving the batch and returning its outcome.

    Raises:
        ValueError: If *batch_size* < 1.
    """

    def __init__(self, batch_size: int, flush: FlushFn) -> None:
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1 (got {batch_size})")
        self._batch_size = batch_size
        self._flush = flush
        self._records: list[MeasurementRecord] = []
        self.outcomes: list[BatchOutcome] = []

    def __len__(self) -> int:
        return len(self._records)

    async def append(self, record: MeasurementRecord) -> BatchOutcome | None:
        """Buffer *record*, flushing if the batch is full.

        Returns:
            The flush outcome when this append triggered a flush, else None.
        """
        self._records.append(record)
        if len(self._records) >= self._batch_size:
            return await self._flush_buffered()
        return None

    async def flush_remainder(self) -> BatchOutcome | None:
        """Flush whatever is buffered. An empty buffer is a no-op."""
        if not self._records:
            return None
        return await self._flush_buffered()

    async def _flush_buffered(self) -> BatchOutcome:
        batch = self._records
        self._records = []
        outcome = await self._flush(batch)
        self.outcomes.append(outcome)
        return outcome
