"""
Unit tests for the row transformer.

Tests verify:
- Valid rows become MeasurementRecords tagged with hive and kind.
- Non-numeric, non-finite and missing values are dropped, not raised.
- Humidity outside [0, 100] and negative weight are dropped; boundaries kept.
- Unparseable timestamps are dropped; naive and offset timestamps become UTC.
- skip_interval keeps only rows whose 1-based ordinal divides evenly.

CHANGELOG:
- 2026-10-16: Offset timestamps are normalised to UTC
- 2026-10-12: Initial creation
"""

from datetime import UTC, datetime, timedelta

import pytest

from beehive.importer.kinds import DataKind
from beehive.importer.transformer import (
    RowTransformer,
    parse_timestamp,
    parse_value,
)


def _row(value: str, ts: str = "2017-04-01 12:00:00", kind: str = "humidity") -> dict:
    return {"timestamp": ts, kind: value}


class TestParseHelpers:
    def test_parse_value(self) -> None:
        assert parse_value("12.5") == 12.5
        assert parse_value(" -3 ") == -3.0
        assert parse_value("abc") is None
        assert parse_value("") is None
        assert parse_value(None) is None
        assert parse_value("nan") is None
        assert parse_value("inf") is None

    def test_parse_naive_timestamp_is_utc(self) -> None:
        ts = parse_timestamp("2017-04-01 12:00:00")
        assert ts == datetime(2017, 4, 1, 12, 0, tzinfo=UTC)

    def test_parse_offset_timestamp_converted_to_utc(self) -> None:
        ts = parse_timestamp("2017-04-01T12:00:00+02:00")
        assert ts is not None
        assert ts.utcoffset() == timedelta(0)
        assert (ts.hour, ts.minute) == (10, 0)

    def test_parse_negative_offset_crosses_midnight(self) -> None:
        ts = parse_timestamp("2017-04-01T22:30:00-05:00")
        assert ts is not None
        assert ts.utcoffset() == timedelta(0)
        assert ts.replace(tzinfo=None) == datetime(2017, 4, 2, 3, 30)

    def test_parse_zulu_timestamp(self) -> None:
        assert parse_timestamp("2017-04-01T12:00:00Z") == datetime(
            2017, 4, 1, 12, 0, tzinfo=UTC
        )

    @pytest.mark.parametrize("raw", [None, "", "   ", "yesterday", "2017-13-01"])
    def test_parse_bad_timestamp(self, raw) -> None:
        assert parse_timestamp(raw) is None


class TestRowTransformerValidRows:
    def test_builds_tagged_record(self) -> None:
        transformer = RowTransformer(2, "humidity")

        record = transformer.transform(_row("61.3"))

        assert record is not None
        assert record.hive_id == 2
        assert record.kind is DataKind.HUMIDITY
        assert record.value == 61.3
        assert record.date == datetime(2017, 4, 1, 12, 0, tzinfo=UTC)
        assert record.to_row() == {
            "hive_id": 2,
            "date": datetime(2017, 4, 1, 12, 0, tzinfo=UTC),
            "humidity": 61.3,
        }

    def test_custom_timestamp_column(self) -> None:
        transformer = RowTransformer(1, "flow", timestamp_column="time")
        record = transformer.transform({"time": "2017-04-01 00:00:00", "flow": "-4"})
        assert record is not None
        assert record.value == -4.0

    def test_extra_columns_ignored(self) -> None:
        transformer = RowTransformer(1, "temperature")
        record = transformer.transform(
            {"timestamp": "2017-04-01 00:00:00", "temperature": "35.2", "flow": "x"}
        )
        assert record is not None
        assert record.value == 35.2


class TestRowTransformerDropsBadRows:
    """Row defects are dropped silently and counted."""

    @pytest.mark.parametrize("value", ["abc", "", "NaN", "inf", "12,5"])
    def test_non_numeric_value_dropped(self, value: str) -> None:
        transformer = RowTransformer(1, "humidity")
        assert transformer.transform(_row(value)) is None
        assert transformer.rows_dropped == 1

    def test_missing_value_column_dropped(self) -> None:
        transformer = RowTransformer(1, "weight")
        assert transformer.transform({"timestamp": "2017-04-01 00:00:00"}) is None
        assert transformer.rows_dropped == 1

    def test_bad_timestamp_dropped(self) -> None:
        transformer = RowTransformer(1, "humidity")
        assert transformer.transform(_row("50", ts="not a date")) is None
        assert transformer.rows_dropped == 1

    @pytest.mark.parametrize(
        ("value", "kept"),
        [("-0.5", False), ("0", True), ("50", True), ("100", True), ("100.01", False)],
    )
    def test_humidity_range(self, value: str, kept: bool) -> None:
        transformer = RowTransformer(1, "humidity")
        assert (transformer.transform(_row(value)) is not None) is kept

    @pytest.mark.parametrize(("value", "kept"), [("-1", False), ("0", True), ("63.2", True)])
    def test_weight_non_negative(self, value: str, kept: bool) -> None:
        transformer = RowTransformer(1, "weight")
        assert (transformer.transform(_row(value, kind="weight")) is not None) is kept

    @pytest.mark.parametrize("kind", ["flow", "temperature"])
    def test_flow_and_temperature_unbounded(self, kind: str) -> None:
        transformer = RowTransformer(1, kind)
        assert transformer.transform(_row("-1000", kind=kind)) is not None
        assert transformer.transform(_row("1000", kind=kind)) is not None


class TestSkipInterval:
    """Only rows at ordinal positions divisible by skip_interval are kept."""

    def test_two_k_rows_yield_two_candidates(self) -> None:
        k = 5
        transformer = RowTransformer(1, "flow", skip_interval=k)

        kept = [
            transformer.transform(_row(str(i), kind="flow"))
            for i in range(1, 2 * k + 1)
        ]

        values = [r.value for r in kept if r is not None]
        assert values == [5.0, 10.0]
        assert transformer.rows_seen == 10
        assert transformer.rows_skipped == 8
        assert transformer.rows_dropped == 0

    def test_skipped_rows_not_validated(self) -> None:
        """A skipped bad row counts as skipped, not dropped."""
        transformer = RowTransformer(1, "flow", skip_interval=2)
        assert transformer.transform(_row("garbage", kind="flow")) is None
        assert transformer.rows_skipped == 1
        assert transformer.rows_dropped == 0

    def test_interval_one_keeps_everything(self) -> None:
        transformer = RowTransformer(1, "flow")
        for i in range(4):
            assert transformer.transform(_row(str(i), kind="flow")) is not None
        assert transformer.rows_skipped == 0

    def test_interval_below_one_raises(self) -> None:
        with pytest.raises(ValueError, match="skip_interval"):
            RowTransformer(1, "flow", skip_interval=0)

    def test_unknown_kind_raises(self) -> None:
        with pytest.raises(ValueError, match="Unknown data type"):
            RowTransformer(1, "pressure")
