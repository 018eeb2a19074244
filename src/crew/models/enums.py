"""Shared enums for models and queries."""

from enum import Enum


class TryoutStatus(str, Enum):
    """Project tryout (application) review status."""

    IN_REVIEW = "IN_REVIEW"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"


class ProjectFilterType(str, Enum):
    """Which project fields a search filter value is matched against."""

    ALL = "ALL"
    TITLE = "TITLE"
    JOB_NAME = "JOB_NAME"


class ProjectSortProperty(str, Enum):
    """Sort keys accepted by project searches.

    The value is the document property the key sorts on. BOOKMARK_COUNT names
    the bookmark collection itself; the pipeline sorts by its derived size.
    """

    BOOKMARK_COUNT = "bookmarkers"
    CREATED_AT = "created_at"
    UPDATED_AT = "updated_at"
    COMPLETED_AT = "completed_at"


class SortDirection(str, Enum):
    """Sort direction."""

    ASC = "ASC"
    DESC = "DESC"
