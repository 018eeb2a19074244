"""Entity models.

Import from here so every table is registered on SQLModel.metadata.
"""

from src.crew.models.base import EntityBase, utc_now
from src.crew.models.enums import (
    ProjectFilterType,
    ProjectSortProperty,
    SortDirection,
    TryoutStatus,
)
from src.crew.models.member import ProjectMember
from src.crew.models.project import Project, ProjectBookmark, Recruitment
from src.crew.models.tryout import ProjectTryout

__all__ = [
    # Base
    "EntityBase",
    "utc_now",
    # Enums
    "ProjectFilterType",
    "ProjectSortProperty",
    "SortDirection",
    "TryoutStatus",
    # Entities
    "Project",
    "ProjectBookmark",
    "ProjectMember",
    "ProjectTryout",
    "Recruitment",
]
