"""
Async database engine and session factory.

Uses SQLAlchemy 2.x async engine; asyncpg for PostgreSQL in production,
aiosqlite for local runs and tests. The importer builds one engine per CLI
invocation and disposes it on exit.

CHANGELOG:
- 2026-10-12: Initial creation
"""

import os

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)


def _get_database_url() -> str:
    """Read DATABASE_URL from environment.

    Returns:
        str: The database connection URL.

    Raises:
        RuntimeError: If DATABASE_URL is not set.
    """
    url = os.environ.get("DATABASE_URL")
    if not url:
        raise RuntimeError("DATABASE_URL environment variable is required")
    return url


def create_engine(url: str | None = None) -> AsyncEngine:
    """Create an async SQLAlchemy engine.

    Args:
        url: Database URL. Falls back to the DATABASE_URL env var.

    Returns:
        AsyncEngine: Configured async engine.
    """
    return create_async_engine(url or _get_database_url(), echo=False)


def create_session_factory(
    engine: AsyncEngine | None = None,
) -> async_sessionmaker[AsyncSession]:
    """Create an async session factory.

    Args:
        engine: Optional async engine. If not provided, creates one from config.

    Returns:
        async_sessionmaker: Factory for creating AsyncSession instances.
    """
    if engine is None:
        engine = create_engine()
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
