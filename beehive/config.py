"""
Importer configuration loaded from environment variables.

Uses Pydantic BaseSettings for automatic env var loading and validation.
Connection strings come from the environment or a .env file; per-run
import parameters (batch size, skip interval) can be overridden on the
command line.

CHANGELOG:
- 2026-10-14: Add LOG_LEVEL and READ_CHUNK_ROWS
- 2026-10-12: Initial creation
"""

import logging

from pydantic import field_validator
from pydantic_settings import BaseSettings

_MAX_BATCH_SIZE = 10_000


class ImporterSettings(BaseSettings):
    """Configuration for the measurement importer and status reads.

    Attributes:
        database_url: SQLAlchemy async database URL (required).
        redis_url: Redis URL for the latest-reading cache. Empty disables
            the cache.
        batch_size: Records per bulk insert (default 500).
        skip_interval: Only every Nth row is considered (default 1 = all).
        timestamp_column: CSV column holding the reading timestamp.
        read_chunk_rows: Rows read from the file per worker-thread hop.
        cache_ttl_s: TTL of cached latest readings in seconds.
        log_level: Root log level name.
    """

    database_url: str
    redis_url: str = ""
    batch_size: int = 500
    skip_interval: int = 1
    timestamp_column: str = "timestamp"
    read_chunk_rows: int = 1000
    cache_ttl_s: int = 5
    log_level: str = "INFO"

    @field_validator("database_url")
    @classmethod
    def database_url_must_be_set(cls, v: str) -> str:
        """Reject an empty DATABASE_URL."""
        if not v.strip():
            raise ValueError("DATABASE_URL must not be empty")
        return v

    @field_validator("batch_size")
    @classmethod
    def batch_size_must_be_valid(cls, v: int) -> int:
        """Validate batch size is between 1 and 10000."""
        if v < 1 or v > _MAX_BATCH_SIZE:
            raise ValueError(f"BATCH_SIZE must be >= 1 and <= {_MAX_BATCH_SIZE}")
        return v

    @field_validator("skip_interval")
    @classmethod
    def skip_interval_must_be_positive(cls, v: int) -> int:
        """Validate skip interval is at least 1."""
        if v < 1:
            raise ValueError("SKIP_INTERVAL must be >= 1")
        return v

    @field_validator("timestamp_column")
    @classmethod
    def timestamp_column_must_be_set(cls, v: str) -> str:
        """Reject an empty TIMESTAMP_COLUMN."""
        if not v.strip():
            raise ValueError("TIMESTAMP_COLUMN must not be empty")
        return v

    @field_validator("read_chunk_rows", "cache_ttl_s")
    @classmethod
    def must_be_positive(cls, v: int) -> int:
        """Validate chunk size and cache TTL are at least 1."""
        if v < 1:
            raise ValueError("READ_CHUNK_ROWS and CACHE_TTL_S must be >= 1")
        return v

    @field_validator("log_level")
    @classmethod
    def log_level_must_be_known(cls, v: str) -> str:
        """Normalise LOG_LEVEL to an upper-case stdlib level name."""
        level = v.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"LOG_LEVEL '{v}' is not a logging level name")
        return level

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}
