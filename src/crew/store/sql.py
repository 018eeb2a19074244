"""PostgreSQL document store: pipelines compiled to a single SQLAlchemy SELECT.

Stage semantics follow the document model:

- Each stage sees the rows produced by the previous one. When a stage has to
  run on rows that were already skipped or limited (a filter, sort or join
  after pagination), everything so far becomes a subquery.
- Lookup + Unwind is an inner join; ReplaceRoot and ProjectFields only
  rename the selected columns.
- A path through a JSON array column (``recruitments.job_name``) matches if
  any element matches.
- Nulls sort first ascending and last descending.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import (
    JSON,
    ColumnElement,
    FromClause,
    Select,
    Table,
    Uuid,
    and_,
    case,
    cast,
    exists,
    false,
    func,
    literal,
    null,
    or_,
    select,
    true,
    type_coerce,
)
from sqlalchemy.ext.asyncio import AsyncSession

from src.crew.core.exceptions import UnsupportedStageError
from src.crew.core.logging import get_logger
from src.crew.models import Project, ProjectMember, ProjectTryout
from src.crew.models.enums import SortDirection
from src.crew.query.joins import UUID_PATTERN
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

TABLES: dict[str, Table] = {
    PROJECT_COLLECTION: Project.__table__,  # type: ignore[attr-defined]
    PROJECT_MEMBER_COLLECTION: ProjectMember.__table__,  # type: ignore[attr-defined]
    PROJECT_TRYOUT_COLLECTION: ProjectTryout.__table__,  # type: ignore[attr-defined]
}


@dataclass
class _QueryState:
    """The SELECT being assembled, as seen by the next stage."""

    source: FromClause
    columns: dict[str, ColumnElement[Any]]
    where: list[ColumnElement[bool]] = field(default_factory=list)
    order: list[tuple[ColumnElement[Any], SortDirection]] = field(default_factory=list)
    offset: int | None = None
    limit: int | None = None
    lookups: dict[str, Table | FromClause] = field(default_factory=dict)
    depth: int = 0

    @property
    def paginated(self) -> bool:
        return self.offset is not None or self.limit is not None

    def select(self, extra: Mapping[str, ColumnElement[Any]] | None = None) -> Select[Any]:
        labels = [col.label(name) for name, col in self.columns.items()]
        labels += [col.label(name) for name, col in (extra or {}).items()]
        stmt = select(*labels).select_from(self.source)
        if self.where:
            stmt = stmt.where(*self.where)
        if self.order:
            stmt = stmt.order_by(*(_ordered(col, direction) for col, direction in self.order))
        if self.offset:
            stmt = stmt.offset(self.offset)
        if self.limit is not None:
            stmt = stmt.limit(self.limit)
        return stmt

    def wrap(self) -> "_QueryState":
        """Turn the current query into a subquery and select from it.

        Sort expressions ride along as hidden columns so the order survives.
        """
        hidden = {f"_order_{i}": col for i, (col, _) in enumerate(self.order)}
        sub = self.select(hidden).subquery(f"stage_{self.depth}")
        return _QueryState(
            source=sub,
            columns={name: sub.c[name] for name in self.columns},
            order=[(sub.c[f"_order_{i}"], direction) for i, (_, direction) in enumerate(self.order)],
            depth=self.depth + 1,
        )


def _ordered(col: ColumnElement[Any], direction: SortDirection) -> ColumnElement[Any]:
    if direction is SortDirection.DESC:
        return col.desc().nulls_last()
    return col.asc().nulls_first()


class SqlPipelineCompiler:
    """Compiles a Pipeline into one SELECT statement."""

    def __init__(self, tables: Mapping[str, Table] | None = None):
        self.tables = dict(tables or TABLES)

    def compile(self, collection: str, pipeline: Pipeline) -> Select[Any]:
        table = self._table(collection)
        state = _QueryState(source=table, columns={c.name: c for c in table.c})
        for stage in pipeline:
            state = self._apply(state, stage)
        return state.select()

    def _table(self, collection: str) -> Table:
        try:
            return self.tables[collection]
        except KeyError:
            raise ValueError(f"Unknown collection: {collection}") from None

    def _apply(self, state: _QueryState, stage: Stage) -> _QueryState:
        match stage:
            case Match(predicate=predicate):
                if state.paginated:
                    state = state.wrap()
                state.where.append(self._predicate(state, predicate))
            case AddFields(fields=fields):
                derived = {name: self._expression(state, expr) for name, expr in fields}
                state.columns.update(derived)
            case Sort(field=name, direction=direction):
                if state.paginated:
                    state = state.wrap()
                state.order = [(self._column(state, name, stage), direction)]
            case Skip(count=count):
                if state.limit is not None:
                    state = state.wrap()
                state.offset = (state.offset or 0) + count
            case Limit(count=count):
                state.limit = count if state.limit is None else min(state.limit, count)
            case Lookup():
                if state.paginated:
                    state = state.wrap()
                self._lookup(state, stage)
            case Unwind(path=path):
                target = state.lookups.get(path)
                if target is None:
                    raise UnwindError(stage)
                # Lookup is an outer join; dropping rows without a match makes it inner
                state.where.append(_primary_key(target).is_not(None))
            case ReplaceRoot(path=path):
                prefix = f"{path}."
                embedded = {
                    name.removeprefix(prefix): col
                    for name, col in state.columns.items()
                    if name.startswith(prefix)
                }
                if not embedded:
                    raise UnsupportedStageError(stage, f"no embedded document at {path!r}")
                state.columns = embedded
            case ProjectFields(fields=fields):
                state.columns = {
                    name: state.columns.get(source, null()) for name, source in fields
                }
            case _:
                raise UnsupportedStageError(stage, "unknown stage")
        return state

    def _lookup(self, state: _QueryState, stage: Lookup) -> None:
        target = self._table(stage.from_collection).alias(stage.as_field)
        local = self._column(state, stage.local_field, stage)
        state.source = state.source.outerjoin(target, local == target.c[stage.foreign_field])
        state.lookups[stage.as_field] = target
        for col in target.c:
            state.columns[f"{stage.as_field}.{col.name}"] = col

    def _column(self, state: _QueryState, name: str, stage: object) -> ColumnElement[Any]:
        try:
            return state.columns[name]
        except KeyError:
            raise UnsupportedStageError(stage, f"unknown field {name!r}") from None

    def _expression(self, state: _QueryState, expression: Expression) -> ColumnElement[Any]:
        match expression:
            case ArraySize(path=path):
                col = self._column(state, path, expression)
                # json_typeof is NULL for SQL NULL and 'null' for JSON null: both count as 0
                return case(
                    (func.json_typeof(col) == "array", func.json_array_length(col)),
                    else_=0,
                )
            case ToIdentifier(path=path):
                col = self._column(state, path, expression)
                return case(
                    (col.regexp_match(UUID_PATTERN), cast(col, Uuid)),
                    else_=null(),
                )
        raise UnsupportedStageError(expression, "unknown expression")

    def _predicate(self, state: _QueryState, predicate: Predicate) -> ColumnElement[bool]:
        match predicate:
            case MatchAll():
                return true()
            case Equals(field=name, value=value):
                col = self._field(state, name, predicate)
                return col.is_(None) if value is None else col == value
            case Contains(field=name, value=value):
                if name in state.columns:
                    return state.columns[name].contains(value, autoescape=True)
                return self._array_contains(state, name, value, predicate)
            case In(field=name, values=values):
                if not values:
                    return false()
                return self._field(state, name, predicate).in_(values)
            case And(operands=operands):
                return and_(*(self._predicate(state, op) for op in operands))
            case Or(operands=operands):
                return or_(*(self._predicate(state, op) for op in operands))
        raise UnsupportedStageError(predicate, "unknown predicate")

    def _field(self, state: _QueryState, name: str, predicate: Predicate) -> ColumnElement[Any]:
        if name not in state.columns:
            raise UnsupportedStageError(predicate, f"unknown field {name!r}")
        return state.columns[name]

    def _array_contains(
        self, state: _QueryState, path: str, value: str, predicate: Predicate
    ) -> ColumnElement[bool]:
        """EXISTS over the elements of a JSON array column.

        Rows whose column is SQL NULL or a JSON scalar never match.
        """
        head, _, rest = path.partition(".")
        col = state.columns.get(head)
        if col is None or not rest or not isinstance(col.type, JSON):
            raise UnsupportedStageError(predicate, f"{path!r} is not a path into a JSON array")
        elements = func.json_array_elements(col).table_valued("value").alias(f"{head}_elements")
        element_field = type_coerce(elements.c.value, JSON)[rest].as_string()
        # json_array_elements raises on 'null' and other scalars, so CASE keeps it off them
        return case(
            (
                func.json_typeof(col) == "array",
                exists(
                    select(literal(1))
                    .select_from(elements)
                    .where(element_field.contains(value, autoescape=True))
                ),
            ),
            else_=false(),
        )


class UnwindError(UnsupportedStageError):
    def __init__(self, stage: Unwind):
        super().__init__(stage, f"{stage.path!r} was not produced by a lookup")


def _primary_key(target: Table | FromClause) -> ColumnElement[Any]:
    return next(iter(target.primary_key)) if target.primary_key else next(iter(target.c))


def _nest(row: Mapping[str, Any]) -> Row:
    """Turn dotted column labels back into embedded documents."""
    nested: Row = {}
    for key, value in row.items():
        parts = key.split(".")
        target = nested
        for part in parts[:-1]:
            target = target.setdefault(part, {})
        target[parts[-1]] = value
    return nested


class SqlDocumentStore:
    """Document store backed by the SQL tables.

    Data access only: the session is never committed here.
    """

    def __init__(self, session: AsyncSession, compiler: SqlPipelineCompiler | None = None):
        self.session = session
        self.compiler = compiler or SqlPipelineCompiler()

    async def aggregate(self, collection: str, pipeline: Pipeline) -> list[Row]:
        stmt = self.compiler.compile(collection, pipeline)
        logger.debug("Executing SQL pipeline", collection=collection, stages=pipeline.stage_names())
        result = await self.session.execute(stmt)
        return [_nest(row) for row in result.mappings().all()]
