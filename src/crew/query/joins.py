"""Cross-collection pipelines: project joined from member and tryout rows.

Children hold their project's id as a string. Both joins parse it into a
UUID before the lookup, and a child whose key does not parse, or whose
project is gone, simply produces no row.

Filters on child fields run before the join and the completion filter runs
after it, because completion lives on the project.
"""

import re
from typing import Any
from uuid import UUID

from src.crew.models.enums import ProjectSortProperty, SortDirection, TryoutStatus
from src.crew.query.pagination import PageRequest
from src.crew.query.pipeline import (
    COMPLETED_FIELD,
    CREATED_AT_FIELD,
    PROJECT_COLLECTION,
    Pipeline,
    PipelineBuilder,
)
from src.crew.query.predicates import Equals, In, and_
from src.crew.query.stages import ToIdentifier

PROJECT_ID_FIELD = "project_id"
JOINED_PROJECT_FIELD = "project"

# Canonical hyphenated UUID text; the same pattern guards the SQL cast
UUID_PATTERN = r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"
_UUID_RE = re.compile(UUID_PATTERN)

# Flat row shape of ProjectWithProjectTryout: output field -> source path
TRYOUT_PROJECTION: dict[str, str] = {
    "id": "project.id",
    "project_created_by": "project.user_id",
    "title": "project.title",
    "thumbnail_url": "project.thumbnail_url",
    "description": "project.description",
    "is_completed": "project.is_completed",
    "resume_id": "resume_id",
    "user_id": "user_id",
    "user_name": "user_name",
    "user_self_description": "user_self_description",
    "user_profile_image_url": "user_profile_image_url",
    "position_name": "position_name",
    "tryout_status": "tryout_status",
}


def coerce_identifier(value: Any) -> UUID | None:
    """Parse a stored foreign key into a project id.

    Returns None for anything that is not a canonical UUID string (or a UUID).
    """
    if isinstance(value, UUID):
        return value
    if not isinstance(value, str) or not _UUID_RE.fullmatch(value):
        return None
    return UUID(value)


def _join_project(builder: PipelineBuilder) -> PipelineBuilder:
    return (
        builder.add_fields(**{PROJECT_ID_FIELD: ToIdentifier(PROJECT_ID_FIELD)})
        .lookup(PROJECT_COLLECTION, PROJECT_ID_FIELD, "id", JOINED_PROJECT_FIELD)
        .unwind(JOINED_PROJECT_FIELD)
    )


def membership_join_pipeline(
    user_id: str,
    is_completed: bool,
    page: PageRequest,
    sort_property: ProjectSortProperty = ProjectSortProperty.CREATED_AT,
    direction: SortDirection = SortDirection.DESC,
) -> Pipeline:
    """Projects the user is a member of, run against the member collection.

    CREATED_AT sorts and pages on the membership's created_at before the join.
    COMPLETED_AT is a project field, so the join and completion filter run
    first and the project rows are sorted and paged afterwards.
    """
    builder = PipelineBuilder().match(Equals("user_id", user_id))

    if sort_property is ProjectSortProperty.CREATED_AT:
        builder = builder.sort(CREATED_AT_FIELD, direction).paginate(page)
        builder = _join_project(builder).replace_root(JOINED_PROJECT_FIELD)
        return builder.match(Equals(COMPLETED_FIELD, is_completed)).build()

    if sort_property is ProjectSortProperty.COMPLETED_AT:
        builder = _join_project(builder).replace_root(JOINED_PROJECT_FIELD)
        builder = builder.match(Equals(COMPLETED_FIELD, is_completed))
        return builder.sort(ProjectSortProperty.COMPLETED_AT.value, direction).paginate(page).build()

    raise ValueError(f"Membership queries cannot sort by {sort_property.name}")


def application_join_pipeline(
    user_id: str,
    tryout_status: TryoutStatus,
    is_completed: bool,
    page: PageRequest,
    direction: SortDirection = SortDirection.DESC,
) -> Pipeline:
    """Projects the user applied to with the given status, run against the tryout collection.

    Rows are flattened to the ProjectWithProjectTryout shape instead of
    being replaced by the project.
    """
    builder = (
        PipelineBuilder()
        .match(and_(Equals("user_id", user_id), Equals("tryout_status", tryout_status.value)))
        .sort(CREATED_AT_FIELD, direction)
        .paginate(page)
    )
    builder = _join_project(builder).project(**TRYOUT_PROJECTION)
    return builder.match(Equals(COMPLETED_FIELD, is_completed)).build()


def members_of_projects_pipeline(project_ids: list[UUID] | list[str]) -> Pipeline:
    """Members of the given projects, oldest membership first."""
    keys = tuple(str(project_id) for project_id in project_ids)
    return (
        PipelineBuilder()
        .match(In(PROJECT_ID_FIELD, keys))
        .sort(CREATED_AT_FIELD, SortDirection.ASC)
        .build()
    )
