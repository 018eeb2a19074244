"""Root test fixtures shared across all test types.

This conftest contains fixtures that can be used by both unit and integration tests.
Database-specific fixtures are in tests/integration/conftest.py.
"""

import os

# Set APP_ENV to testing before any crew imports
os.environ.setdefault("APP_ENV", "testing")

# ruff: noqa: E402 - Imports must be after env var setup
import pytest

from src.crew.core.config import get_settings
from src.crew.services import ProjectQueryService
from src.crew.store import MemoryDocumentStore

# Clear settings cache to ensure test environment variables are picked up
get_settings.cache_clear()


# --- Store Fixtures (shared) ---


@pytest.fixture
def memory_store() -> MemoryDocumentStore:
    """Provides an empty in-memory document store.

    Evaluates the same pipelines as the SQL store, without a database.
    """
    return MemoryDocumentStore()


@pytest.fixture
def query_service(memory_store: MemoryDocumentStore) -> ProjectQueryService:
    """ProjectQueryService over memory_store with no query timeout."""
    return ProjectQueryService(memory_store)
