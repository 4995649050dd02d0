"""
Tests for the hive status reads.

Tests verify:
- latest_measurement returns the newest reading, or None without data.
- The latest reading is served from Redis when cached and written back on miss.
- Redis failures fall back to the database.
- measurements_between is inclusive on both ends and sorted ascending.
- hive_status combines location and the latest value of each kind.

CHANGELOG:
- 2026-10-13: Initial creation
"""

import json
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, patch

import pytest

from beehive.cache.redis_client import configure_cache
from beehive.db.models import Beehive
from beehive.services.ingestion import ingest_measurements
from beehive.services.status import (
    hive_status,
    latest_measurement,
    measurements_between,
)

_T0 = datetime(2017, 4, 1, tzinfo=UTC)


async def _seed(session_factory, kind: str, hive_id: int, values: list[float]) -> None:
    rows = [
        {"hive_id": hive_id, "date": _T0 + timedelta(hours=i), kind: v}
        for i, v in enumerate(values)
    ]
    async with session_factory() as session:
        await ingest_measurements(session, kind, hive_id, rows)


class TestLatestMeasurement:
    @pytest.mark.asyncio
    async def test_returns_newest_reading(self, session_factory) -> None:
        await _seed(session_factory, "temperature", 1, [30.0, 31.0, 34.5])
        await _seed(session_factory, "temperature", 2, [99.0])

        async with session_factory() as session:
            reading = await latest_measurement(session, "temperature", 1)

        assert reading is not None
        assert reading["hive_id"] == 1
        assert reading["temperature"] == 34.5
        assert reading["date"].startswith("2017-04-01T02:00:00")

    @pytest.mark.asyncio
    async def test_no_readings_returns_none(self, session_factory) -> None:
        async with session_factory() as session:
            assert await latest_measurement(session, "flow", 1) is None

    @pytest.mark.asyncio
    async def test_unknown_kind_raises(self, session_factory) -> None:
        async with session_factory() as session:
            with pytest.raises(ValueError, match="Unknown data type"):
                await latest_measurement(session, "pressure", 1)


class TestLatestMeasurementCache:
    @pytest.mark.asyncio
    async def test_cache_hit_skips_db(self, mock_redis: AsyncMock) -> None:
        configure_cache("redis://localhost:6379/0")
        cached = {"hive_id": 1, "date": "2017-04-01T00:00:00+00:00", "flow": 2.0}
        mock_redis.get.return_value = json.dumps(cached).encode()
        db = AsyncMock()

        with patch(
            "beehive.services.status.get_redis",
            new_callable=AsyncMock,
            return_value=mock_redis,
        ):
            reading = await latest_measurement(db, "flow", 1)

        assert reading == cached
        mock_redis.get.assert_awaited_once_with("latest:flow:1")
        db.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_cache_miss_writes_back(
        self, session_factory, mock_redis: AsyncMock
    ) -> None:
        await _seed(session_factory, "weight", 3, [20.0, 21.0])
        configure_cache("redis://localhost:6379/0")

        with patch(
            "beehive.services.status.get_redis",
            new_callable=AsyncMock,
            return_value=mock_redis,
        ):
            async with session_factory() as session:
                reading = await latest_measurement(
                    session, "weight", 3, cache_ttl_s=30
                )

        assert reading is not None
        assert reading["weight"] == 21.0
        mock_redis.set.assert_awaited_once()
        key, payload = mock_redis.set.await_args.args
        assert key == "latest:weight:3"
        assert json.loads(payload) == reading
        assert mock_redis.set.await_args.kwargs["ex"] == 30

    @pytest.mark.asyncio
    async def test_redis_failure_falls_back_to_db(
        self, session_factory, caplog: pytest.LogCaptureFixture
    ) -> None:
        await _seed(session_factory, "flow", 1, [5.0])
        configure_cache("redis://localhost:6379/0")

        with (
            patch(
                "beehive.services.status.get_redis",
                new_callable=AsyncMock,
                side_effect=ConnectionError("redis down"),
            ),
            caplog.at_level("WARNING", logger="beehive.services.status"),
        ):
            async with session_factory() as session:
                reading = await latest_measurement(session, "flow", 1)

        assert reading is not None
        assert reading["flow"] == 5.0
        assert "falling back to DB" in caplog.text

    @pytest.mark.asyncio
    @patch("beehive.services.status.get_redis", new_callable=AsyncMock)
    async def test_cache_disabled_never_touches_redis(
        self, mock_get_redis: AsyncMock, session_factory
    ) -> None:
        await _seed(session_factory, "flow", 1, [5.0])

        async with session_factory() as session:
            await latest_measurement(session, "flow", 1)

        mock_get_redis.assert_not_awaited()


class TestMeasurementsBetween:
    @pytest.mark.asyncio
    async def test_inclusive_bounds_sorted_ascending(self, session_factory) -> None:
        await _seed(session_factory, "humidity", 1, [10.0, 20.0, 30.0, 40.0, 50.0])

        async with session_factory() as session:
            readings = await measurements_between(
                session,
                "humidity",
                1,
                _T0 + timedelta(hours=1),
                _T0 + timedelta(hours=3),
            )

        assert [r["humidity"] for r in readings] == [20.0, 30.0, 40.0]

    @pytest.mark.asyncio
    async def test_other_hives_excluded(self, session_factory) -> None:
        await _seed(session_factory, "flow", 1, [1.0])
        await _seed(session_factory, "flow", 2, [2.0])

        async with session_factory() as session:
            readings = await measurements_between(
                session, "flow", 2, _T0, _T0 + timedelta(days=1)
            )

        assert [r["hive_id"] for r in readings] == [2]

    @pytest.mark.asyncio
    async def test_empty_window(self, session_factory) -> None:
        await _seed(session_factory, "flow", 1, [1.0])

        async with session_factory() as session:
            readings = await measurements_between(
                session, "flow", 1, _T0 + timedelta(days=1), _T0 + timedelta(days=2)
            )

        assert readings == []

    @pytest.mark.asyncio
    async def test_start_after_end_raises(self) -> None:
        with pytest.raises(ValueError, match="after end"):
            await measurements_between(
                AsyncMock(), "flow", 1, _T0 + timedelta(hours=1), _T0
            )


class TestHiveStatus:
    @pytest.mark.asyncio
    async def test_combines_location_and_latest_values(self, session_factory) -> None:
        async with session_factory() as session:
            session.add(
                Beehive(hive_id=1, name="Juniper", location="Kalmar", registered_by_id="u1")
            )
            await session.commit()
        await _seed(session_factory, "humidity", 1, [55.0, 61.2])
        await _seed(session_factory, "weight", 1, [30.0])

        async with session_factory() as session:
            status = await hive_status(session, 1)

        assert status == {
            "hive_id": 1,
            "location": "Kalmar",
            "humidity": 61.2,
            "weight": 30.0,
        }

    @pytest.mark.asyncio
    async def test_unknown_hive_has_only_id(self, session_factory) -> None:
        async with session_factory() as session:
            assert await hive_status(session, 42) == {"hive_id": 42}
