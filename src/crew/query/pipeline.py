"""Pipeline value object, its builder, and the single-collection project pipelines."""

from collections.abc import Iterator
from dataclasses import dataclass

from src.crew.models.enums import ProjectSortProperty, SortDirection
from src.crew.query.criteria import CREATOR_FIELD
from src.crew.query.pagination import PageRequest, SortOrder
from src.crew.query.predicates import Equals, Predicate, and_
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
    Unwind,
)

PROJECT_COLLECTION = "project"
PROJECT_MEMBER_COLLECTION = "project_member"
PROJECT_TRYOUT_COLLECTION = "project_tryout"

BOOKMARKERS_FIELD = ProjectSortProperty.BOOKMARK_COUNT.value
BOOKMARKERS_SIZE_FIELD = "bookmarkers_size"
COMPLETED_FIELD = "is_completed"
CREATED_AT_FIELD = ProjectSortProperty.CREATED_AT.value


@dataclass(frozen=True)
class Pipeline:
    """An ordered, immutable list of stages."""

    stages: tuple[Stage, ...] = ()

    def __iter__(self) -> Iterator[Stage]:
        return iter(self.stages)

    def __len__(self) -> int:
        return len(self.stages)

    def stage_names(self) -> list[str]:
        """Stage type names in order, for logs and assertions."""
        return [type(stage).__name__ for stage in self.stages]


class PipelineBuilder:
    """Fluent builder for Pipeline.

    Example:
        PipelineBuilder().match(pred).sort("created_at", SortDirection.DESC).paginate(page).build()
    """

    def __init__(self) -> None:
        self._stages: list[Stage] = []

    def match(self, predicate: Predicate) -> "PipelineBuilder":
        self._stages.append(Match(predicate))
        return self

    def add_fields(self, **fields: Expression) -> "PipelineBuilder":
        self._stages.append(AddFields(tuple(fields.items())))
        return self

    def sort(self, field: str, direction: SortDirection) -> "PipelineBuilder":
        self._stages.append(Sort(field, direction))
        return self

    def skip(self, count: int) -> "PipelineBuilder":
        self._stages.append(Skip(count))
        return self

    def limit(self, count: int) -> "PipelineBuilder":
        self._stages.append(Limit(count))
        return self

    def paginate(self, page: PageRequest) -> "PipelineBuilder":
        """Skip to the page and fetch one extra row. Must come after filtering and sorting."""
        return self.skip(page.offset).limit(page.fetch_size)

    def lookup(
        self, from_collection: str, local_field: str, foreign_field: str, as_field: str
    ) -> "PipelineBuilder":
        self._stages.append(Lookup(from_collection, local_field, foreign_field, as_field))
        return self

    def unwind(self, path: str) -> "PipelineBuilder":
        self._stages.append(Unwind(path))
        return self

    def replace_root(self, path: str) -> "PipelineBuilder":
        self._stages.append(ReplaceRoot(path))
        return self

    def project(self, **fields: str) -> "PipelineBuilder":
        self._stages.append(ProjectFields(tuple(fields.items())))
        return self

    def build(self) -> Pipeline:
        return Pipeline(tuple(self._stages))


def resolve_sort(sort: SortOrder | None) -> Sort:
    """Sort stage for a project search.

    Sorting by bookmarks sorts by the derived bookmark count; every other key
    sorts on its own field. Unsorted requests fall back to newest first.
    """
    if sort is None:
        return Sort(CREATED_AT_FIELD, SortDirection.DESC)
    if sort.property is ProjectSortProperty.BOOKMARK_COUNT:
        return Sort(BOOKMARKERS_SIZE_FIELD, sort.direction)
    return Sort(sort.property.value, sort.direction)


def compose_search_pipeline(is_completed: bool, predicate: Predicate, page: PageRequest) -> Pipeline:
    """Pipeline for a project search.

    Stages: match (completion AND predicate), derive bookmarkers_size, sort,
    skip, limit page_size + 1.
    """
    sort = resolve_sort(page.sort)
    return (
        PipelineBuilder()
        .match(and_(Equals(COMPLETED_FIELD, is_completed), predicate))
        .add_fields(**{BOOKMARKERS_SIZE_FIELD: ArraySize(BOOKMARKERS_FIELD)})
        .sort(sort.field, sort.direction)
        .paginate(page)
        .build()
    )


def compose_owned_pipeline(requester_id: str, page: PageRequest) -> Pipeline:
    """Projects created by the requester, newest first."""
    return (
        PipelineBuilder()
        .match(Equals(CREATOR_FIELD, requester_id))
        .sort(CREATED_AT_FIELD, SortDirection.DESC)
        .paginate(page)
        .build()
    )
