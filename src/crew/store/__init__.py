"""Pipeline executors behind the DocumentStore contract."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncEngine

from src.crew.core.db import get_session
from src.crew.store.base import DocumentStore, Row
from src.crew.store.memory import MemoryDocumentStore
from src.crew.store.sql import SqlDocumentStore, SqlPipelineCompiler


@asynccontextmanager
async def open_sql_store(engine: AsyncEngine | None = None) -> AsyncGenerator[SqlDocumentStore]:
    """Open a session and wrap it in a SqlDocumentStore for the duration of the block."""
    async with get_session(engine) as session:
        yield SqlDocumentStore(session)


__all__ = [
    "DocumentStore",
    "MemoryDocumentStore",
    "Row",
    "SqlDocumentStore",
    "SqlPipelineCompiler",
    "open_sql_store",
]
