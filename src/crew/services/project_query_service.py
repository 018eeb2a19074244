"""Project query service: searches and listings returned as slices."""

import asyncio
from uuid import UUID

from src.crew.core.config import get_settings
from src.crew.core.logging import get_logger
from src.crew.models import Project, ProjectMember
from src.crew.models.enums import (
    ProjectFilterType,
    ProjectSortProperty,
    SortDirection,
    TryoutStatus,
)
from src.crew.query.criteria import build_criteria
from src.crew.query.joins import (
    application_join_pipeline,
    members_of_projects_pipeline,
    membership_join_pipeline,
)
from src.crew.query.pagination import PageRequest, Slice, SortOrder, to_slice
from src.crew.query.pipeline import (
    PROJECT_COLLECTION,
    PROJECT_MEMBER_COLLECTION,
    PROJECT_TRYOUT_COLLECTION,
    Pipeline,
    compose_owned_pipeline,
    compose_search_pipeline,
)
from src.crew.schemas.project import (
    InReviewProjectRead,
    MemberProjectRead,
    OwnedProjectRead,
    ProjectWithProjectTryout,
    SearchProjectRead,
)
from src.crew.services import projector
from src.crew.store.base import DocumentStore, Row

logger = get_logger(__name__)

MEMBERSHIP_SORT_KEYS = frozenset({ProjectSortProperty.CREATED_AT, ProjectSortProperty.COMPLETED_AT})


class ProjectQueryService:
    """Read-only project queries.

    Every listing is one pipeline executed in one store round trip, fetching
    a page plus one row. Nothing is shared between calls, so concurrent
    queries need no coordination.

    Args:
        store: Pipeline executor
        query_timeout_seconds: Per round trip limit; None waits indefinitely.
            Cancelling the calling task cancels the round trip either way.
    """

    def __init__(self, store: DocumentStore, query_timeout_seconds: float | None = None):
        self.store = store
        self.query_timeout_seconds = query_timeout_seconds

    @classmethod
    def from_settings(cls, store: DocumentStore) -> "ProjectQueryService":
        return cls(store, query_timeout_seconds=get_settings().query_timeout_seconds)

    async def _aggregate(self, collection: str, pipeline: Pipeline) -> list[Row]:
        logger.debug(
            "Executing pipeline",
            collection=collection,
            stages=pipeline.stage_names(),
        )
        async with asyncio.timeout(self.query_timeout_seconds):
            return await self.store.aggregate(collection, pipeline)

    async def search_projects(
        self,
        requester_id: str,
        *,
        is_completed: bool = False,
        filter_type: ProjectFilterType | None = None,
        filter_value: str | None = None,
        scope_to_own_projects: bool = False,
        page_number: int = 0,
        page_size: int = 8,
        sort_key: ProjectSortProperty = ProjectSortProperty.BOOKMARK_COUNT,
        sort_direction: SortDirection = SortDirection.DESC,
    ) -> Slice[Project]:
        """Search projects by completion state and an optional title/job filter.

        Args:
            requester_id: Id of the user searching
            is_completed: Completion state to list
            filter_type: Fields to match filter_value against; None disables filtering
            filter_value: Substring to match; None disables filtering
            scope_to_own_projects: Only list projects the requester created
            page_number: 0-indexed page
            page_size: Page size
            sort_key: Sort key; BOOKMARK_COUNT sorts by number of bookmarks
            sort_direction: Sort direction

        Returns:
            Slice of projects
        """
        page = PageRequest(page_number, page_size, SortOrder(sort_key, sort_direction))
        predicate = build_criteria(filter_type, filter_value, requester_id, scope_to_own_projects)
        pipeline = compose_search_pipeline(is_completed, predicate, page)

        rows = await self._aggregate(PROJECT_COLLECTION, pipeline)
        result = to_slice([Project.model_validate(row) for row in rows], page_size, page_number)

        logger.info(
            "Projects searched",
            requester_id=requester_id,
            filter_type=filter_type.value if filter_type else None,
            is_completed=is_completed,
            sort_key=sort_key.name,
            page_number=page_number,
            returned=result.number_of_elements,
            has_next=result.has_next,
        )
        return result

    async def get_owned_projects(
        self,
        requester_id: str,
        page_number: int = 0,
        page_size: int = 6,
    ) -> Slice[Project]:
        """Projects created by the requester, newest first."""
        page = PageRequest(page_number, page_size)
        rows = await self._aggregate(PROJECT_COLLECTION, compose_owned_pipeline(requester_id, page))
        return to_slice([Project.model_validate(row) for row in rows], page_size, page_number)

    async def get_projects_by_membership(
        self,
        requester_id: str,
        is_completed: bool,
        page_number: int = 0,
        page_size: int = 6,
        sort_key: ProjectSortProperty = ProjectSortProperty.CREATED_AT,
    ) -> Slice[Project]:
        """Projects the requester is a member of, newest first by sort_key.

        CREATED_AT orders by when the requester joined; COMPLETED_AT by when
        the project was completed.

        Raises:
            ValueError: If sort_key is not CREATED_AT or COMPLETED_AT
        """
        if sort_key not in MEMBERSHIP_SORT_KEYS:
            raise ValueError(f"Membership listings cannot sort by {sort_key.name}")

        page = PageRequest(page_number, page_size)
        pipeline = membership_join_pipeline(
            requester_id, is_completed, page, sort_key, SortDirection.DESC
        )
        rows = await self._aggregate(PROJECT_MEMBER_COLLECTION, pipeline)
        return to_slice([Project.model_validate(row) for row in rows], page_size, page_number)

    async def get_projects_by_application_status(
        self,
        requester_id: str,
        is_completed: bool,
        status: TryoutStatus,
        page_number: int = 0,
        page_size: int = 6,
    ) -> Slice[ProjectWithProjectTryout]:
        """Projects the requester applied to with the given tryout status, latest application first."""
        page = PageRequest(page_number, page_size)
        pipeline = application_join_pipeline(requester_id, status, is_completed, page)
        rows = await self._aggregate(PROJECT_TRYOUT_COLLECTION, pipeline)
        return to_slice([projector.to_project_with_tryout(row) for row in rows], page_size, page_number)

    async def get_members_of_projects(self, project_ids: list[UUID]) -> list[ProjectMember]:
        """Membership records of the given projects, oldest first."""
        if not project_ids:
            return []
        rows = await self._aggregate(
            PROJECT_MEMBER_COLLECTION, members_of_projects_pipeline(project_ids)
        )
        return [ProjectMember.model_validate(row) for row in rows]

    async def search_project_reads(
        self,
        requester_id: str,
        *,
        is_completed: bool = False,
        filter_type: ProjectFilterType | None = None,
        filter_value: str | None = None,
        scope_to_own_projects: bool = False,
        page_number: int = 0,
        page_size: int = 8,
        sort_key: ProjectSortProperty = ProjectSortProperty.BOOKMARK_COUNT,
        sort_direction: SortDirection = SortDirection.DESC,
    ) -> Slice[SearchProjectRead]:
        """search_projects projected for display to the requester."""
        result = await self.search_projects(
            requester_id,
            is_completed=is_completed,
            filter_type=filter_type,
            filter_value=filter_value,
            scope_to_own_projects=scope_to_own_projects,
            page_number=page_number,
            page_size=page_size,
            sort_key=sort_key,
            sort_direction=sort_direction,
        )
        return result.map(lambda p: projector.to_search_project_read(p, requester_id))

    async def get_owned_project_reads(
        self, requester_id: str, page_number: int = 0, page_size: int = 6
    ) -> Slice[OwnedProjectRead]:
        result = await self.get_owned_projects(requester_id, page_number, page_size)
        return result.map(projector.to_owned_project_read)

    async def get_member_project_reads(
        self,
        requester_id: str,
        is_completed: bool,
        page_number: int = 0,
        page_size: int = 6,
        sort_key: ProjectSortProperty = ProjectSortProperty.CREATED_AT,
    ) -> Slice[MemberProjectRead]:
        """Member project listing with each project's member list.

        Two round trips: the page of projects, then the members of those projects.
        """
        result = await self.get_projects_by_membership(
            requester_id, is_completed, page_number, page_size, sort_key
        )
        members = await self.get_members_of_projects([p.id for p in result.content])
        return result.map(lambda p: projector.to_member_project_read(p, requester_id, members))

    async def get_in_review_project_reads(
        self,
        requester_id: str,
        is_completed: bool = False,
        page_number: int = 0,
        page_size: int = 6,
    ) -> Slice[InReviewProjectRead]:
        result = await self.get_projects_by_application_status(
            requester_id, is_completed, TryoutStatus.IN_REVIEW, page_number, page_size
        )
        return result.map(projector.to_in_review_project_read)
