"""
Shared test fixtures for beehive tests.

Cleans importer environment variables before each test, provides a real
SQLite database (via aiosqlite) with the full schema for store-level tests,
and a helper for writing CSV fixtures.

CHANGELOG:
- 2026-10-12: Initial creation
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Callable
from pathlib import Path
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from beehive.cache.redis_client import configure_cache
from beehive.db.models import Base

# All ImporterSettings environment variable names, used for cleanup.
_ALL_ENV_VARS = (
    "DATABASE_URL",
    "REDIS_URL",
    "BATCH_SIZE",
    "SKIP_INTERVAL",
    "TIMESTAMP_COLUMN",
    "READ_CHUNK_ROWS",
    "CACHE_TTL_S",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Remove importer env vars and isolate from .env files before each test.

    Changes working directory to tmp_path so no .env file is accidentally
    loaded by Pydantic BaseSettings, and resets the configured Redis URL.
    """
    for var in _ALL_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    configure_cache(None)


@pytest_asyncio.fixture()
async def engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    """SQLite database file with all tables created."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'beehive.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture()
def write_csv(tmp_path: Path) -> Callable[..., Path]:
    """Return a helper that writes CSV text to a file and returns its path."""

    def _write(text: str, name: str = "readings.csv") -> Path:
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@pytest.fixture()
def mock_redis() -> AsyncMock:
    """Create a mock async Redis client.

    Returns:
        AsyncMock: A mock that behaves like a redis.asyncio.Redis client.
    """
    client = AsyncMock()
    client.get = AsyncMock(return_value=None)
    client.set = AsyncMock()
    client.delete = AsyncMock()
    client.aclose = AsyncMock()
    return client
