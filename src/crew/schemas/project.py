"""Project read models: flat records built from joined pipeline rows."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from src.crew.models.enums import TryoutStatus


class ProjectWithProjectTryout(BaseModel):
    """A project joined with one of the requester's tryouts for it.

    Produced by the application join; never stored.
    """

    id: UUID
    project_created_by: str
    title: str
    thumbnail_url: str | None = None
    description: str
    is_completed: bool = False
    resume_id: str
    user_id: str
    user_name: str
    user_self_description: str | None = None
    user_profile_image_url: str | None = None
    position_name: str
    tryout_status: TryoutStatus


class RecruitmentRead(BaseModel):
    job_name: str
    number_of_recruitment: int


class SearchProjectRead(BaseModel):
    """A project in search results, as seen by the requester."""

    id: UUID
    user_id: str
    title: str
    thumbnail_url: str | None
    tech_stacks: list[str]
    recruitments: list[RecruitmentRead]
    description: str
    is_completed: bool
    bookmark_count: int
    is_my_bookmark: bool
    created_at: datetime


class OwnedProjectRead(BaseModel):
    """A project the requester created."""

    id: UUID
    title: str
    start_date: datetime
    thumbnail_url: str | None
    description: str
    is_completed: bool
    created_at: datetime


class ProjectMemberInfo(BaseModel):
    user_id: str
    user_name: str
    profile_image_url: str | None = None


class MemberProjectRead(BaseModel):
    """A project the requester is a member of, with its member list.

    Used for both in-progress and completed listings.
    """

    id: UUID
    title: str
    description: str
    thumbnail_url: str | None
    position_name: str | None = Field(
        default=None,
        description="The requester's position on the project, if one was assigned.",
    )
    is_completed: bool
    completed_at: datetime | None = None
    user_infos: list[ProjectMemberInfo] = Field(default_factory=list)


class InReviewProjectRead(BaseModel):
    """A project the requester applied to, with the applied position."""

    id: UUID
    title: str
    description: str
    thumbnail_url: str | None
    position_name: str | None
    tryout_status: TryoutStatus
