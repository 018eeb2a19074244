"""ProjectTryout model - a user's application to a project position."""

from datetime import datetime

from sqlmodel import Field

from src.crew.core.exceptions import ErrorCode, ForbiddenOperationError
from src.crew.models.base import EntityBase, utc_now
from src.crew.models.enums import TryoutStatus
from src.crew.models.member import ProjectMember


class ProjectTryout(EntityBase, table=True):
    """Application record.

    Status starts at IN_REVIEW and moves exactly once, to ACCEPTED or REJECTED.
    """

    __tablename__ = "project_tryouts"

    resume_id: str
    user_id: str = Field(index=True)
    user_name: str
    user_self_description: str = Field(default="")
    user_profile_image_url: str | None = Field(default=None)
    position_name: str
    tryout_status: str = Field(default=TryoutStatus.IN_REVIEW.value, index=True)
    project_id: str = Field(index=True)
    created_at: datetime = Field(default_factory=utc_now)

    @property
    def status_enum(self) -> TryoutStatus:
        """Get status as TryoutStatus enum."""
        return TryoutStatus(self.tryout_status)

    def update_status(self, tryout_status: TryoutStatus) -> None:
        """Move the tryout out of review.

        Raises:
            ForbiddenOperationError: If the tryout is no longer IN_REVIEW.
                The current status is left unchanged.
            ValueError: If the target status is IN_REVIEW itself
        """
        if tryout_status is TryoutStatus.IN_REVIEW:
            raise ValueError("Tryout status can only move to ACCEPTED or REJECTED")
        if self.status_enum is not TryoutStatus.IN_REVIEW:
            raise ForbiddenOperationError(
                ErrorCode.PROJECT_TRYOUT_STATUS_UPDATE_FAIL,
                f"Tryout {self.id} is already {self.tryout_status}",
            )
        self.tryout_status = tryout_status.value

    def create_project_member(self) -> ProjectMember:
        """Build the membership record for this (accepted) tryout."""
        return ProjectMember(
            tryout_id=str(self.id),
            resume_id=self.resume_id,
            user_id=self.user_id,
            user_name=self.user_name,
            user_thumbnail=self.user_profile_image_url,
            user_self_description=self.user_self_description,
            position_name=self.position_name,
            project_id=self.project_id,
            created_at=utc_now(),
        )
