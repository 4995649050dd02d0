"""
Row transformer that converts raw CSV rows into MeasurementRecords.

Parses the timestamp and value columns, applies the kind's range check from
the kind registry, and downsamples dense files with a skip interval. A bad
row is never fatal: it is dropped and counted so the rest of a dirty sensor
file still loads.

CHANGELOG:
- 2026-10-16: Convert offset timestamps to UTC before storing
- 2026-10-13: Drop rows with unparseable timestamps and non-finite values
- 2026-10-12: Initial creation
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from datetime import UTC, datetime

from beehive.importer.kinds import DataKind, KindSpec, kind_spec
from beehive.importer.models import MeasurementRecord

logger = logging.getLogger(__name__)


def parse_timestamp(raw: str | None) -> datetime | None:
    """Parse an ISO-8601 timestamp and normalise it to UTC.

    Naive values are taken as UTC; values with an offset are converted.

    Returns:
        The parsed UTC datetime, or ``None`` if *raw* is empty or invalid.
    """
    if raw is None:
        return None
    raw = raw.strip()
    if not raw:
        return None
    try:
        ts = datetime.fromisoformat(raw)
    except ValueError:
        return None
    if ts.tzinfo is None:
        return ts.replace(tzinfo=UTC)
    return ts.astimezone(UTC)


def parse_value(raw: str | None) -> float | None:
    """Parse a finite float, or return ``None``."""
    if raw is None:
        return None
    try:
        value = float(raw)
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return value


class RowTransformer:
    """Stateful per-import row transformer.

    Holds the row counter used by the skip interval, so one instance must
    be used for exactly one import run.

    Args:
        hive_id: Hive identifier stamped on every record.
        kind: Measurement kind to read from each row.
        skip_interval: Only rows whose 1-based ordinal is divisible by this
            value are considered. 1 considers every row.
        timestamp_column: Name of the CSV column holding the timestamp.

    Raises:
        ValueError: If *kind* is unknown or *skip_interval* < 1.
    """

    def __init__(
        self,
        hive_id: int,
        kind: DataKind | str,
        *,
        skip_interval: int = 1,
        timestamp_column: str = "timestamp",
    ) -> None:
        if skip_interval < 1:
            raise ValueError(f"skip_interval must be >= 1 (got {skip_interval})")
        self._spec: KindSpec = kind_spec(kind)
        self._hive_id = hive_id
        self._skip_interval = skip_interval
        self._timestamp_column = timestamp_column
        self.rows_seen = 0
        self.rows_skipped = 0
        self.rows_dropped = 0

    @property
    def kind(self) -> DataKind:
        """Measurement kind read from each row."""
        return self._spec.kind

    def transform(self, row: Mapping[str, str | None]) -> MeasurementRecord | None:
        """Convert one CSV row into a record, or ``None`` if it is not kept.

        Args:
            row: Mapping of header column name to raw string value.

        Returns:
            A :class:`MeasurementRecord`, or ``None`` when the row is skipped
            by the interval or dropped by validation.
        """
        self.rows_seen += 1
        if self._skip_interval > 1 and self.rows_seen % self._skip_interval != 0:
            self.rows_skipped += 1
            return None

        column = self._spec.column
        value = parse_value(row.get(column))
        if value is None:
            return self._drop("unparseable %s value %r", column, row.get(column))

        if not self._spec.accepts(value):
            return self._drop("%s value %s out of range", column, value)

        ts = parse_timestamp(row.get(self._timestamp_column))
        if ts is None:
            return self._drop(
                "unparseable timestamp %r", row.get(self._timestamp_column)
            )

        return MeasurementRecord(
            hive_id=self._hive_id,
            date=ts,
            kind=self._spec.kind,
            value=value,
        )

    def _drop(self, msg: str, *args: object) -> None:
        self.rows_dropped += 1
        logger.debug("Dropping row %d: " + msg, self.rows_seen, *args)
        return None
