"""Read-model projection.

Pure functions from entities and joined rows to the flat read models.
Optional values that are missing stay None.
"""

from collections.abc import Iterable, Mapping
from typing import Any

from src.crew.models import Project, ProjectMember
from src.crew.schemas.project import (
    InReviewProjectRead,
    MemberProjectRead,
    OwnedProjectRead,
    ProjectMemberInfo,
    ProjectWithProjectTryout,
    RecruitmentRead,
    SearchProjectRead,
)


def to_project_with_tryout(row: Mapping[str, Any]) -> ProjectWithProjectTryout:
    """Validate a flat application-join row."""
    return ProjectWithProjectTryout.model_validate(dict(row))


def to_search_project_read(project: Project, requester_id: str) -> SearchProjectRead:
    return SearchProjectRead(
        id=project.id,
        user_id=project.user_id,
        title=project.title,
        thumbnail_url=project.thumbnail_url,
        tech_stacks=list(project.tech_stacks),
        recruitments=[RecruitmentRead.model_validate(r) for r in project.recruitments],
        description=project.description,
        is_completed=project.is_completed,
        bookmark_count=project.bookmark_count,
        is_my_bookmark=project.is_bookmarked_by(requester_id),
        created_at=project.created_at,
    )


def to_owned_project_read(project: Project) -> OwnedProjectRead:
    return OwnedProjectRead(
        id=project.id,
        title=project.title,
        start_date=project.start_date,
        thumbnail_url=project.thumbnail_url,
        description=project.description,
        is_completed=project.is_completed,
        created_at=project.created_at,
    )


def to_member_info(member: ProjectMember) -> ProjectMemberInfo:
    return ProjectMemberInfo(
        user_id=member.user_id,
        user_name=member.user_name,
        profile_image_url=member.user_thumbnail,
    )


def to_member_project_read(
    project: Project,
    requester_id: str,
    members: Iterable[ProjectMember],
) -> MemberProjectRead:
    """Summarize a project for one of its members.

    Args:
        project: The project
        requester_id: The member the summary is for; their position is reported
        members: Membership records; records of other projects are ignored
    """
    own_members = [m for m in members if m.project_id == str(project.id)]
    position_name = next(
        (m.position_name for m in own_members if m.user_id == requester_id),
        None,
    )
    return MemberProjectRead(
        id=project.id,
        title=project.title,
        description=project.description,
        thumbnail_url=project.thumbnail_url,
        position_name=position_name,
        is_completed=project.is_completed,
        completed_at=project.completed_at,
        user_infos=[to_member_info(m) for m in own_members],
    )


def to_in_review_project_read(row: ProjectWithProjectTryout) -> InReviewProjectRead:
    return InReviewProjectRead(
        id=row.id,
        title=row.title,
        description=row.description,
        thumbnail_url=row.thumbnail_url,
        position_name=row.position_name,
        tryout_status=row.tryout_status,
    )
