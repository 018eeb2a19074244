"""Store contract consumed by the query service."""

from typing import Any, Protocol

from src.crew.query.pipeline import Pipeline

type Row = dict[str, Any]


class DocumentStore(Protocol):
    """Executes a pipeline against a named collection.

    Implementations run the whole pipeline in one round trip and return rows
    in pipeline order. Connectivity errors propagate to the caller unchanged.
    """

    async def aggregate(self, collection: str, pipeline: Pipeline) -> list[Row]: ...
