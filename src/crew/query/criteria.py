"""Search criteria for project listings."""

from src.crew.models.enums import ProjectFilterType
from src.crew.query.predicates import MATCH_ALL, Contains, Equals, Predicate, and_, or_

TITLE_FIELD = "title"
JOB_NAME_FIELD = "recruitments.job_name"
CREATOR_FIELD = "user_id"


def build_criteria(
    filter_type: ProjectFilterType | None,
    filter_value: str | None,
    requester_id: str,
    scope_to_own_projects: bool,
) -> Predicate:
    """Build the project search predicate.

    Args:
        filter_type: Which fields the filter value is matched against
        filter_value: Substring to look for
        requester_id: Id of the user running the search
        scope_to_own_projects: Restrict results to projects the requester created

    Returns:
        Predicate tree. A missing filter type or value matches every project;
        the ownership scope is always ANDed on top of the filter.
    """
    base: Predicate
    if filter_type is None or filter_value is None:
        base = MATCH_ALL
    else:
        title = Contains(TITLE_FIELD, filter_value)
        job_name = Contains(JOB_NAME_FIELD, filter_value)
        match filter_type:
            case ProjectFilterType.ALL:
                base = or_(title, job_name)
            case ProjectFilterType.TITLE:
                base = title
            case ProjectFilterType.JOB_NAME:
                base = job_name
            case _:
                base = MATCH_ALL

    if scope_to_own_projects:
        return and_(base, Equals(CREATOR_FIELD, requester_id))
    return base
