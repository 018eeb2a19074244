"""In-process document store.

Evaluates pipelines over dict documents held in memory. It runs the same
stage descriptors the SQL store compiles, which makes it the backend for
local runs without PostgreSQL and for hermetic tests.
"""

import asyncio
import copy
from typing import Any

from sqlmodel import SQLModel

from src.crew.core.logging import get_logger
from src.crew.models import Project, ProjectMember, ProjectTryout
from src.crew.models.enums import SortDirection
from src.crew.query.joins import coerce_identifier
from src.crew.query.pipeline import (
    PROJECT_COLLECTION,
    PROJECT_MEMBER_COLLECTION,
    PROJECT_TRYOUT_COLLECTION,
    Pipeline,
)
from src.crew.query.predicates import And, Contains, Equals, In, MatchAll, Or, Predicate
from src.crew.query.stages import (
    AddFields,
    ArraySize,
    Expression,
    Limit,
    Lookup,
    Match,
    ProjectFields,
    ReplaceRoot,
    Skip,
    Sort,
    Stage,
    ToIdentifier,
    Unwind,
)
from src.crew.store.base import Row

logger = get_logger(__name__)

COLLECTIONS: dict[type[SQLModel], str] = {
    Project: PROJECT_COLLECTION,
    ProjectMember: PROJECT_MEMBER_COLLECTION,
    ProjectTryout: PROJECT_TRYOUT_COLLECTION,
}

_MISSING = object()


def _resolve(value: Any, parts: list[str]) -> list[Any]:
    """All values reachable at a dotted path, fanning out across arrays."""
    if not parts:
        return [value]
    if isinstance(value, list):
        return [found for item in value for found in _resolve(item, parts)]
    if isinstance(value, dict) and parts[0] in value:
        return _resolve(value[parts[0]], parts[1:])
    return []


def _candidates(row: Row, path: str) -> list[Any]:
    """Values a predicate on ``path`` is tested against; array values also offer their elements."""
    found: list[Any] = []
    for value in _resolve(row, path.split(".")):
        found.append(value)
        if isinstance(value, list):
            found.extend(value)
    return found


def get_path(row: Row, path: str, default: Any = None) -> Any:
    """Single value at a dotted path through nested dicts."""
    value: Any = row
    for part in path.split("."):
        if not isinstance(value, dict):
            return default
        value = value.get(part, _MISSING)
        if value is _MISSING:
            return default
    return value


def matches(row: Row, predicate: Predicate) -> bool:
    """Evaluate a predicate against one row."""
    match predicate:
        case MatchAll():
            return True
        case Equals(field=field, value=value):
            found = _candidates(row, field)
            if not found:
                return value is None
            return any(candidate == value for candidate in found)
        case Contains(field=field, value=value):
            return any(
                isinstance(candidate, str) and value in candidate
                for candidate in _candidates(row, field)
            )
        case In(field=field, values=values):
            return any(candidate in values for candidate in _candidates(row, field))
        case And(operands=operands):
            return all(matches(row, op) for op in operands)
        case Or(operands=operands):
            return any(matches(row, op) for op in operands)
    raise TypeError(f"Unknown predicate: {predicate!r}")


def evaluate(row: Row, expression: Expression) -> Any:
    match expression:
        case ArraySize(path=path):
            value = get_path(row, path)
            return len(value) if isinstance(value, list) else 0
        case ToIdentifier(path=path):
            return coerce_identifier(get_path(row, path))
    raise TypeError(f"Unknown expression: {expression!r}")


def _sort_key(row: Row, field: str) -> tuple[bool, Any]:
    # Missing and null sort before any value, as in document stores
    value = get_path(row, field)
    return (value is not None, value if value is not None else 0)


class MemoryDocumentStore:
    """Document store held in process memory.

    Each aggregate call works on a snapshot of the collections taken when it
    starts, and returns copies, so callers never share rows.

    Args:
        latency: Seconds every aggregate call waits before returning,
            standing in for a network round trip.
    """

    def __init__(self, latency: float = 0.0):
        self.latency = latency
        self._collections: dict[str, list[Row]] = {}

    def insert(self, collection: str, document: Row) -> None:
        self._collections.setdefault(collection, []).append(copy.deepcopy(document))

    def save(self, entity: SQLModel) -> None:
        """Store an entity model in its collection."""
        self.insert(COLLECTIONS[type(entity)], entity.model_dump())

    def save_all(self, entities: list[SQLModel]) -> None:
        for entity in entities:
            self.save(entity)

    def clear(self) -> None:
        self._collections.clear()

    def count(self, collection: str) -> int:
        return len(self._collections.get(collection, []))

    async def aggregate(self, collection: str, pipeline: Pipeline) -> list[Row]:
        snapshot = {name: list(docs) for name, docs in self._collections.items()}
        rows = [copy.deepcopy(doc) for doc in snapshot.get(collection, [])]

        if self.latency:
            await asyncio.sleep(self.latency)

        for stage in pipeline:
            rows = self._apply(stage, rows, snapshot)

        logger.debug(
            "Memory pipeline evaluated",
            collection=collection,
            stages=pipeline.stage_names(),
            row_count=len(rows),
        )
        return rows

    def _apply(self, stage: Stage, rows: list[Row], snapshot: dict[str, list[Row]]) -> list[Row]:
        match stage:
            case Match(predicate=predicate):
                return [row for row in rows if matches(row, predicate)]
            case AddFields(fields=fields):
                for row in rows:
                    for name, expression in fields:
                        row[name] = evaluate(row, expression)
                return rows
            case Sort(field=field, direction=direction):
                return sorted(
                    rows,
                    key=lambda row: _sort_key(row, field),
                    reverse=direction is SortDirection.DESC,
                )
            case Skip(count=count):
                return rows[count:]
            case Limit(count=count):
                return rows[:count]
            case Lookup(
                from_collection=from_collection,
                local_field=local_field,
                foreign_field=foreign_field,
                as_field=as_field,
            ):
                foreign = snapshot.get(from_collection, [])
                for row in rows:
                    local = get_path(row, local_field)
                    row[as_field] = [
                        copy.deepcopy(doc)
                        for doc in foreign
                        if local is not None and get_path(doc, foreign_field) == local
                    ]
                return rows
            case Unwind(path=path):
                unwound: list[Row] = []
                for row in rows:
                    elements = row.get(path)
                    if not isinstance(elements, list):
                        continue
                    for element in elements:
                        unwound.append({**row, path: element})
                return unwound
            case ReplaceRoot(path=path):
                replaced: list[Row] = []
                for row in rows:
                    root = get_path(row, path)
                    if not isinstance(root, dict):
                        raise ValueError(f"ReplaceRoot path {path!r} is not a document")
                    replaced.append(root)
                return replaced
            case ProjectFields(fields=fields):
                return [{name: get_path(row, source) for name, source in fields} for row in rows]
        raise TypeError(f"Unknown stage: {stage!r}")
