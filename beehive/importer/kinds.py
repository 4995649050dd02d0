"""
Measurement kind registry -- single source of truth.

Maps each measurement kind (flow, humidity, temperature, weight) to the ORM
model it is stored in, the value column name, and its valid value range.
The row transformer checks ranges against this registry before batching;
the database enforces the same ranges through CHECK constraints.

CHANGELOG:
- 2026-10-12: Initial creation
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from beehive.db.models import (
    BeehiveFlow,
    BeehiveHumidity,
    BeehiveTemperature,
    BeehiveWeight,
    MeasurementMixin,
)


class DataKind(StrEnum):
    """Measurement kind; the value doubles as CSV and table column name."""

    FLOW = "flow"
    HUMIDITY = "humidity"
    TEMPERATURE = "temperature"
    WEIGHT = "weight"


@dataclass(frozen=True, slots=True)
class KindSpec:
    """Storage and validation rules for one measurement kind.

    Attributes:
        kind: The measurement kind.
        model: ORM class of the table holding this kind.
        minimum: Inclusive lower bound, or ``None`` when unbounded.
        maximum: Inclusive upper bound, or ``None`` when unbounded.
    """

    kind: DataKind
    model: type[MeasurementMixin]
    minimum: float | None = None
    maximum: float | None = None

    @property
    def column(self) -> str:
        """Name of the value column in the kind's table."""
        return self.kind.value

    def accepts(self, value: float) -> bool:
        """Return True if *value* lies within this kind's bounds."""
        if self.minimum is not None and value < self.minimum:
            return False
        if self.maximum is not None and value > self.maximum:
            return False
        return True


KIND_SPECS: dict[DataKind, KindSpec] = {
    DataKind.FLOW: KindSpec(DataKind.FLOW, BeehiveFlow),
    DataKind.HUMIDITY: KindSpec(
        DataKind.HUMIDITY, BeehiveHumidity, minimum=0.0, maximum=100.0
    ),
    DataKind.TEMPERATURE: KindSpec(DataKind.TEMPERATURE, BeehiveTemperature),
    DataKind.WEIGHT: KindSpec(DataKind.WEIGHT, BeehiveWeight, minimum=0.0),
}


def kind_spec(kind: DataKind | str) -> KindSpec:
    """Look up the registry entry for a measurement kind.

    Args:
        kind: A :class:`DataKind` or its string value.

    Returns:
        The matching :class:`KindSpec`.

    Raises:
        ValueError: If *kind* is not a known measurement kind.
    """
    try:
        return KIND_SPECS[DataKind(kind)]
    except ValueError:
        raise ValueError(
            f"Unknown data type: {kind!r}. "
            f"Must be one of: {sorted(k.value for k in DataKind)}."
        ) from None
