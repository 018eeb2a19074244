"""Project model - root entity of the project collection."""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, CheckConstraint, Column
from sqlmodel import Field, SQLModel

from src.crew.models.base import EntityBase, utc_now


class Recruitment(SQLModel):
    """A recruitment slot: the job being hired for and how many people."""

    job_name: str = Field(max_length=100)
    number_of_recruitment: int = Field(ge=1)


class ProjectBookmark(SQLModel):
    """A user's bookmark on a project."""

    user_id: str
    added_at: datetime = Field(default_factory=utc_now)


class Project(EntityBase, table=True):
    """Project entity.

    Recruitments, tech stacks and bookmarkers are embedded JSON arrays, the
    same shape the document pipelines address with dotted paths
    (``recruitments.job_name``). Bookmarker entries are stored as plain dicts;
    ``bookmarkers`` may be NULL for rows written before any bookmark existed.
    """

    __tablename__ = "projects"
    __table_args__ = (
        CheckConstraint(
            "(is_completed AND completed_at IS NOT NULL) "
            "OR (NOT is_completed AND completed_at IS NULL)",
            name="ck_projects_completed_at",
        ),
    )

    user_id: str = Field(index=True)
    title: str = Field(max_length=200)
    description: str = Field(default="")
    start_date: datetime
    end_date: datetime
    thumbnail_url: str | None = Field(default=None)
    tech_stacks: list[str] = Field(default_factory=list, sa_column=Column(JSON))
    recruitments: list[dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON))
    bookmarkers: list[dict[str, Any]] | None = Field(
        default_factory=list, sa_column=Column(JSON(none_as_null=True), nullable=True)
    )
    is_completed: bool = Field(default=False, index=True)
    completed_at: datetime | None = Field(default=None)
    created_at: datetime = Field(default_factory=utc_now, index=True)
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def bookmark_count(self) -> int:
        """Number of bookmarks, treating a missing collection as empty."""
        return len(self.bookmarkers or [])

    def is_bookmarked_by(self, user_id: str) -> bool:
        return any(b["user_id"] == user_id for b in self.bookmarkers or [])

    def add_bookmark(self, user_id: str) -> None:
        """Bookmark the project for a user. A second bookmark is a no-op."""
        if self.is_bookmarked_by(user_id):
            return
        bookmark = ProjectBookmark(user_id=user_id)
        # Reassign so SQLAlchemy sees the JSON column change
        self.bookmarkers = [
            *(self.bookmarkers or []),
            {"user_id": bookmark.user_id, "added_at": bookmark.added_at.isoformat()},
        ]

    def delete_bookmark(self, user_id: str) -> None:
        self.bookmarkers = [b for b in self.bookmarkers or [] if b["user_id"] != user_id]

    def complete(self) -> None:
        """Mark the project completed. completed_at is set together with the flag."""
        if self.is_completed:
            return
        now = utc_now()
        self.is_completed = True
        self.completed_at = now
        self.updated_at = now

    def update(
        self,
        *,
        title: str,
        start_date: datetime,
        end_date: datetime,
        thumbnail_url: str | None,
        tech_stacks: list[str],
        recruitments: list[Recruitment],
        description: str,
    ) -> None:
        """Replace the owner-editable fields."""
        self.title = title
        self.start_date = start_date
        self.end_date = end_date
        self.thumbnail_url = thumbnail_url
        self.tech_stacks = list(tech_stacks)
        self.recruitments = [r.model_dump() for r in recruitments]
        self.description = description
        self.updated_at = utc_now()
