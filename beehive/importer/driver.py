"""
Import driver: CSV file -> row transform -> batch buffer -> bulk insert.

Runs one import as a strictly sequential loop. Each row is transformed and
appended; when the buffer fills, the batch insert is awaited before the next
row is pulled from the source. At end of file the remaining partial batch is
flushed into the same table as every prior batch.

States:
    reading  -> draining -> done
    reading/draining -> failed (source error; the error propagates)

Row defects and rejected batches never fail the import. Only a source error
(missing file, unreadable or malformed CSV) reaches the caller. A set
cancel event stops reading, flushes what is buffered, and returns a report
marked cancelled.

CHANGELOG:
- 2026-10-14: Add cancel_event and run_imports for concurrent jobs
- 2026-10-12: Initial creation
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass
from pathlib import Path

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from beehive.importer.batch import BatchBuffer, FlushFn
from beehive.importer.kinds import DataKind, kind_spec
from beehive.importer.models import ImportReport, ImportState
from beehive.importer.source import stream_rows
from beehive.importer.transformer import RowTransformer
from beehive.importer.writer import BatchWriter

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 500


@dataclass(frozen=True)
class ImportJob:
    """One file to import.

    Attributes:
        path: CSV file path.
        hive_id: Hive the readings belong to.
        kind: Measurement kind held in the file.
    """

    path: Path
    hive_id: int
    kind: DataKind


async def import_csv(
    path: str | Path,
    hive_id: int,
    kind: DataKind | str,
    *,
    session_factory: async_sessionmaker[AsyncSession] | None = None,
    writer: FlushFn | None = None,
    batch_size: int = DEFAULT_BATCH_SIZE,
    skip_interval: int = 1,
    timestamp_column: str = "timestamp",
    chunk_rows: int = 1000,
    cancel_event: asyncio.Event | None = None,
) -> ImportReport:
    """Import one CSV file of readings for a hive.

    Args:
        path: CSV file path.
        hive_id: Hive identifier stamped on every record.
        kind: Measurement kind; names the value column and target table.
        session_factory: Used to build a :class:`BatchWriter` when *writer*
            is not given.
        writer: Async callable persisting one batch. Overrides
            *session_factory*.
        batch_size: Records per bulk insert.
        skip_interval: Only every Nth row is considered.
        timestamp_column: CSV column holding the timestamp.
        chunk_rows: Rows read from disk per worker-thread hop.
        cancel_event: When set, stop reading and flush what is buffered.

    Returns:
        ImportReport: Counters and per-batch outcomes of the run.

    Raises:
        ValueError: If *kind* is unknown, a size parameter is invalid, or
            neither *writer* nor *session_factory* is given.
        ImportSourceError: If the file cannot be opened or read.
    """
    spec = kind_spec(kind)
    if writer is None:
        if session_factory is None:
            raise ValueError("Either writer or session_factory is required")
        writer = BatchWriter(session_factory, spec.kind, hive_id)

    transformer = RowTransformer(
        hive_id,
        spec.kind,
        skip_interval=skip_interval,
        timestamp_column=timestamp_column,
    )
    buffer = BatchBuffer(batch_size, writer)
    report = ImportReport(path=Path(path), hive_id=hive_id, kind=spec.kind)

    logger.info(
        "Importing %s readings for hive %s from %s "
        "(batch_size=%d, skip_interval=%d)",
        spec.kind.value,
        hive_id,
        path,
        batch_size,
        skip_interval,
    )

    try:
        async with contextlib.aclosing(
            stream_rows(path, chunk_rows=chunk_rows)
        ) as rows:
            async for row in rows:
                if cancel_event is not None and cancel_event.is_set():
                    report.cancelled = True
                    logger.warning(
                        "Import of %s cancelled after %d rows",
                        path,
                        transformer.rows_seen,
                    )
                    break
                record = transformer.transform(row)
                if record is not None:
                    await buffer.append(record)

        report.state = ImportState.DRAINING
        await buffer.flush_remainder()
        report.state = ImportState.DONE
    except Exception:
        failed_in = report.state
        report.state = ImportState.FAILED
        logger.error(
            "Import of %s failed while %s; %d buffered records not delivered",
            path,
            failed_in.value,
            len(buffer),
        )
        raise
    finally:
        report.rows_read = transformer.rows_seen
        report.rows_skipped = transformer.rows_skipped
        report.rows_dropped = transformer.rows_dropped
        report.outcomes = list(buffer.outcomes)

    logger.info(
        "Imported %s: rows=%d skipped=%d dropped=%d batches=%d "
        "delivered=%d rejected=%d",
        path,
        report.rows_read,
        report.rows_skipped,
        report.rows_dropped,
        len(report.outcomes),
        report.delivered,
        report.rejected,
    )
    return report


async def run_imports(
    jobs: list[ImportJob],
    **options: object,
) -> list[ImportReport | BaseException]:
    """Run several independent imports concurrently.

    Each job gets its own transformer and buffer. A failing job does not
    stop the others.

    Args:
        jobs: Files to import.
        **options: Keyword arguments forwarded to :func:`import_csv`.

    Returns:
        One entry per job, in job order: the report, or the exception the
        job raised.
    """
    return await asyncio.gather(
        *(
            import_csv(job.path, job.hive_id, job.kind, **options)  # type: ignore[arg-type]
            for job in jobs
        ),
        return_exceptions=True,
    )
