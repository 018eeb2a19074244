"""ProjectMember model - denormalized membership record."""

from datetime import datetime

from sqlmodel import Field

from src.crew.models.base import EntityBase, utc_now


class ProjectMember(EntityBase, table=True):
    """A user accepted onto a project.

    Note: project_id is the owning project's id as a plain string, not a
    foreign key constraint. Joins coerce it to a UUID; rows whose project_id
    does not parse never join.
    """

    __tablename__ = "project_members"

    tryout_id: str | None = Field(default=None)
    resume_id: str | None = Field(default=None)
    user_id: str = Field(index=True)
    user_name: str
    user_thumbnail: str | None = Field(default=None)
    user_self_description: str | None = Field(default=None)
    position_name: str | None = Field(default=None)
    project_id: str = Field(index=True)
    created_at: datetime = Field(default_factory=utc_now)
