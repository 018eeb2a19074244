"""Integration test fixtures for database operations.

These fixtures require external resources (PostgreSQL database, DATABASE_URL).
Uses polyfactory for type-safe test data generation.
"""

import asyncio
from collections.abc import AsyncGenerator

import pytest
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.pool import NullPool

from src.crew.core.config import get_settings
from src.crew.core.db import dispose_engine, run_migrations_sync
from src.crew.services import ProjectQueryService
from src.crew.store import SqlDocumentStore


def pytest_collection_modifyitems(config, items):
    """Skip integration tests when no database is configured."""
    if get_settings().database_url:
        return
    skip = pytest.mark.skip(reason="DATABASE_URL is not set")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip)


@pytest.fixture(scope="function")
async def engine() -> AsyncGenerator[AsyncEngine]:
    """Create test database engine and ensure migrations are applied."""
    await dispose_engine()

    settings = get_settings()
    test_engine = create_async_engine(settings.database_url, poolclass=NullPool)

    await asyncio.to_thread(run_migrations_sync)

    yield test_engine

    # Cleanup: tables are shared across tests
    async with test_engine.begin() as conn:
        await conn.execute(text("DELETE FROM project_tryouts"))
        await conn.execute(text("DELETE FROM project_members"))
        await conn.execute(text("DELETE FROM projects"))
    await test_engine.dispose()


@pytest.fixture
async def db_session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession]:
    """Provide an async session for database operations.

    The session does NOT auto-commit. Tests must call `await session.commit()`
    after adding rows so the store sees them.
    """
    async with AsyncSession(engine, expire_on_commit=False) as session:
        yield session


@pytest.fixture
def sql_service(db_session: AsyncSession) -> ProjectQueryService:
    """ProjectQueryService over the SQL store."""
    return ProjectQueryService(SqlDocumentStore(db_session))
