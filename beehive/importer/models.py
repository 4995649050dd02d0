"""
Models for imported measurement records and import results.

A MeasurementRecord carries an explicit ``kind`` discriminant and a single
``value``; the flat persisted shape ``{hive_id, date, <kind>: value}`` is
produced only at the storage boundary via :meth:`MeasurementRecord.to_row`.

Every batch flush yields a typed outcome (Delivered or Rejected) so callers
can inspect what happened without reading log output.

CHANGELOG:
- 2026-10-14: Add ImportReport.cancelled
- 2026-10-12: Initial creation
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from beehive.importer.kinds import DataKind


class MeasurementRecord(BaseModel):
    """A single validated reading from one CSV row.

    Attributes:
        hive_id: Identifier of the source hive.
        date: Reading timestamp (timezone-aware).
        kind: Measurement kind the value belongs to.
        value: The measured value.
    """

    model_config = ConfigDict(frozen=True)

    hive_id: int
    date: datetime
    kind: DataKind
    value: float

    def to_row(self) -> dict[str, object]:
        """Return the flat column mapping stored in the kind's table."""
        return {"hive_id": self.hive_id, "date": self.date, self.kind.value: self.value}


@dataclass(frozen=True)
class Delivered:
    """A batch the store accepted.

    Attributes:
        attempted: Records submitted in the bulk insert.
        inserted: Rows actually inserted (duplicates are skipped).
    """

    attempted: int
    inserted: int


@dataclass(frozen=True)
class Rejected:
    """A batch the store refused; all of its records were discarded."""

    attempted: int
    reason: str


BatchOutcome = Delivered | Rejected


class ImportState(StrEnum):
    """Import driver states."""

    READING = "reading"
    DRAINING = "draining"
    DONE = "done"
    FAILED = "failed"


@dataclass
class ImportReport:
    """Summary of a completed import run.

    Attributes:
        path: Source file path.
        hive_id: Hive the readings were tagged with.
        kind: Measurement kind imported.
        state: Final driver state.
        rows_read: Data rows read from the file.
        rows_skipped: Rows skipped by the skip interval.
        rows_dropped: Rows rejected by row validation.
        outcomes: Batch outcomes in flush order.
        cancelled: True if the run stopped early on a cancel request.
    """

    path: Path
    hive_id: int
    kind: DataKind
    state: ImportState = ImportState.READING
    rows_read: int = 0
    rows_skipped: int = 0
    rows_dropped: int = 0
    outcomes: list[BatchOutcome] = field(default_factory=list)
    cancelled: bool = False

    @property
    def delivered(self) -> int:
        """Records in batches the store accepted."""
        return sum(o.attempted for o in self.outcomes if isinstance(o, Delivered))

    @property
    def rejected(self) -> int:
        """Records lost to rejected batches."""
        return sum(o.attempted for o in self.outcomes if isinstance(o, Rejected))
