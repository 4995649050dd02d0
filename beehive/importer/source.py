"""
Streaming CSV row source.

Reads a header-first CSV file in chunks on a worker thread and yields one
row mapping at a time. At most one chunk is read ahead of the consumer, so
a slow consumer (awaiting a batch insert) holds back further reads.

Any failure to open or read the file is raised as ImportSourceError, which
is the only error the import driver lets through to its caller.

CHANGELOG:
- 2026-10-12: Initial creation
"""

from __future__ import annotations

import asyncio
import csv
import itertools
from collections.abc import AsyncIterator
from pathlib import Path

_DEFAULT_CHUNK_ROWS = 1000


class ImportSourceError(RuntimeError):
    """Raised when the source file cannot be opened or read."""


def _read_chunk(reader: csv.DictReader, n: int) -> list[dict[str, str]]:
    return list(itertools.islice(reader, n))


async def stream_rows(
    path: str | Path,
    *,
    chunk_rows: int = _DEFAULT_CHUNK_ROWS,
) -> AsyncIterator[dict[str, str]]:
    """Yield rows of a CSV file as ``{column: value}`` mappings.

    The first line names the columns; blank lines are skipped.

    Args:
        path: Path of the CSV file.
        chunk_rows: Rows read per worker-thread hop.

    Yields:
        dict[str, str]: One mapping per data row.

    Raises:
        ImportSourceError: If the file cannot be opened, decoded or parsed.
    """
    path = Path(path)
    try:
        fh = await asyncio.to_thread(open, path, newline="", encoding="utf-8-sig")
    except OSError as exc:
        raise ImportSourceError(f"Cannot open {path}: {exc}") from exc

    try:
        reader = csv.DictReader(fh)
        while True:
            try:
                chunk = await asyncio.to_thread(_read_chunk, reader, chunk_rows)
            except (OSError, csv.Error, UnicodeDecodeError) as exc:
                raise ImportSourceError(f"Error reading {path}: {exc}") from exc
            if not chunk:
                return
            for row in chunk:
                yield row
    finally:
        fh.close()
