from src.crew.schemas.project import (
    InReviewProjectRead,
    MemberProjectRead,
    OwnedProjectRead,
    ProjectMemberInfo,
    ProjectWithProjectTryout,
    RecruitmentRead,
    SearchProjectRead,
)

__all__ = [
    # Joined rows
    "ProjectWithProjectTryout",
    # Read models
    "InReviewProjectRead",
    "MemberProjectRead",
    "OwnedProjectRead",
    "ProjectMemberInfo",
    "RecruitmentRead",
    "SearchProjectRead",
]
