"""Tests for the in-memory pipeline evaluator."""

from datetime import timedelta
from uuid import uuid4

import pytest

from src.crew.models.enums import ProjectFilterType, SortDirection
from src.crew.query.criteria import build_criteria
from src.crew.query.pagination import PageRequest
from src.crew.query.pipeline import (
    PROJECT_COLLECTION,
    PROJECT_MEMBER_COLLECTION,
    PipelineBuilder,
    compose_search_pipeline,
)
from src.crew.query.predicates import Contains, Equals, In
from src.crew.query.stages import ArraySize, ToIdentifier
from src.crew.store import MemoryDocumentStore
from src.crew.store.memory import get_path, matches
from tests.factories import ProjectFactory, ProjectMemberFactory, utc_now

pytestmark = pytest.mark.unit


def titles(rows):
    return [row["title"] for row in rows]


class TestMatches:
    """Predicate evaluation against single documents."""

    def test_contains_is_case_sensitive_substring(self):
        row = {"title": "Backend Study"}
        assert matches(row, Contains("title", "end St"))
        assert not matches(row, Contains("title", "backend"))

    def test_contains_treats_regex_characters_literally(self):
        assert matches({"title": "C++ (beginner)"}, Contains("title", "C++ ("))
        assert not matches({"title": "Cabc"}, Contains("title", "C.*"))

    def test_array_path_matches_any_element(self):
        row = {"recruitments": [{"job_name": "designer"}, {"job_name": "backend"}]}
        assert matches(row, Contains("recruitments.job_name", "back"))
        assert not matches(row, Contains("recruitments.job_name", "frontend"))

    def test_array_path_on_empty_or_missing_array(self):
        assert not matches({"recruitments": []}, Contains("recruitments.job_name", ""))
        assert not matches({}, Contains("recruitments.job_name", "x"))

    def test_equals_none_matches_missing_field(self):
        assert matches({}, Equals("completed_at", None))
        assert matches({"completed_at": None}, Equals("completed_at", None))

    def test_in(self):
        assert matches({"project_id": "a"}, In("project_id", ("a", "b")))
        assert not matches({"project_id": "c"}, In("project_id", ("a", "b")))
        assert not matches({"project_id": "a"}, In("project_id", ()))

    def test_get_path_through_embedded_document(self):
        assert get_path({"project": {"user_id": "u"}}, "project.user_id") == "u"
        assert get_path({"project": None}, "project.user_id") is None


class TestSearchSemantics:
    """Search pipelines evaluated over stored projects."""

    @pytest.fixture
    def projects(self, memory_store: MemoryDocumentStore):
        base = utc_now()
        rows = [
            ProjectFactory.build(
                title="backend study",
                recruitments=[{"job_name": "designer", "number_of_recruitment": 1}],
                user_id="owner_a",
                created_at=base,
            ),
            ProjectFactory.build(
                title="design system",
                recruitments=[{"job_name": "backend", "number_of_recruitment": 2}],
                user_id="owner_b",
                created_at=base + timedelta(minutes=1),
            ),
            ProjectFactory.build(
                title="mobile app",
                recruitments=[{"job_name": "ios", "number_of_recruitment": 1}],
                user_id="owner_a",
                created_at=base + timedelta(minutes=2),
            ),
            ProjectFactory.completed(
                title="backend finished",
                recruitments=[{"job_name": "backend", "number_of_recruitment": 1}],
                user_id="owner_a",
                created_at=base + timedelta(minutes=3),
            ),
        ]
        memory_store.save_all(rows)
        return rows

    async def _search(self, store, filter_type, value, requester="owner_a", scoped=False):
        predicate = build_criteria(filter_type, value, requester, scoped)
        pipeline = compose_search_pipeline(False, predicate, PageRequest(0, 10))
        return await store.aggregate(PROJECT_COLLECTION, pipeline)

    async def test_all_is_union_of_title_and_job_name(self, memory_store, projects):
        all_rows = await self._search(memory_store, ProjectFilterType.ALL, "back")
        title_rows = await self._search(memory_store, ProjectFilterType.TITLE, "back")
        job_rows = await self._search(memory_store, ProjectFilterType.JOB_NAME, "back")

        assert set(titles(all_rows)) == set(titles(title_rows)) | set(titles(job_rows))
        assert set(titles(all_rows)) == {"backend study", "design system"}

    async def test_completion_filter_excludes_completed(self, memory_store, projects):
        rows = await self._search(memory_store, ProjectFilterType.TITLE, "backend")
        assert titles(rows) == ["backend study"]

    async def test_scope_restricts_to_requester(self, memory_store, projects):
        rows = await self._search(memory_store, ProjectFilterType.ALL, "back", scoped=True)
        assert titles(rows) == ["backend study"]
        assert all(row["user_id"] == "owner_a" for row in rows)

    async def test_scope_without_filter(self, memory_store, projects):
        rows = await self._search(memory_store, None, None, scoped=True)
        assert set(titles(rows)) == {"backend study", "mobile app"}

    async def test_no_match_is_empty(self, memory_store, projects):
        assert await self._search(memory_store, ProjectFilterType.TITLE, "zzz") == []


class TestStages:
    """Individual stage behavior."""

    async def test_missing_and_null_bookmarkers_count_as_zero(self, memory_store):
        memory_store.insert(PROJECT_COLLECTION, {"title": "missing"})
        memory_store.insert(PROJECT_COLLECTION, {"title": "null", "bookmarkers": None})
        memory_store.insert(PROJECT_COLLECTION, {"title": "two", "bookmarkers": [{}, {}]})

        pipeline = (
            PipelineBuilder()
            .add_fields(size=ArraySize("bookmarkers"))
            .sort("size", SortDirection.DESC)
            .build()
        )
        rows = await memory_store.aggregate(PROJECT_COLLECTION, pipeline)
        assert [(row["title"], row["size"]) for row in rows] == [
            ("two", 2),
            ("missing", 0),
            ("null", 0),
        ]

    async def test_nulls_sort_first_ascending_last_descending(self, memory_store):
        for title, completed_at in [("a", utc_now()), ("b", None)]:
            memory_store.insert(PROJECT_COLLECTION, {"title": title, "completed_at": completed_at})

        ascending = PipelineBuilder().sort("completed_at", SortDirection.ASC).build()
        descending = PipelineBuilder().sort("completed_at", SortDirection.DESC).build()
        assert titles(await memory_store.aggregate(PROJECT_COLLECTION, ascending)) == ["b", "a"]
        assert titles(await memory_store.aggregate(PROJECT_COLLECTION, descending)) == ["a", "b"]

    async def test_skip_and_limit(self, memory_store):
        for i in range(5):
            memory_store.insert(PROJECT_COLLECTION, {"title": str(i), "n": i})
        pipeline = PipelineBuilder().sort("n", SortDirection.ASC).skip(1).limit(2).build()
        assert titles(await memory_store.aggregate(PROJECT_COLLECTION, pipeline)) == ["1", "2"]

    async def test_to_identifier_parses_or_nulls(self, memory_store):
        project_id = uuid4()
        memory_store.insert(PROJECT_MEMBER_COLLECTION, {"project_id": str(project_id)})
        memory_store.insert(PROJECT_MEMBER_COLLECTION, {"project_id": "not-a-uuid"})

        pipeline = PipelineBuilder().add_fields(project_id=ToIdentifier("project_id")).build()
        rows = await memory_store.aggregate(PROJECT_MEMBER_COLLECTION, pipeline)
        assert [row["project_id"] for row in rows] == [project_id, None]

    async def test_lookup_unwind_drops_unmatched_and_malformed(self, memory_store):
        project = ProjectFactory.build(title="joined")
        memory_store.save(project)
        memory_store.save_all(
            [
                ProjectMemberFactory.build(user_id="u", project_id=str(project.id)),
                ProjectMemberFactory.build(user_id="u", project_id=str(uuid4())),
                ProjectMemberFactory.build(user_id="u", project_id="garbage"),
            ]
        )

        pipeline = (
            PipelineBuilder()
            .add_fields(project_id=ToIdentifier("project_id"))
            .lookup(PROJECT_COLLECTION, "project_id", "id", "project")
            .unwind("project")
            .replace_root("project")
            .build()
        )
        rows = await memory_store.aggregate(PROJECT_MEMBER_COLLECTION, pipeline)
        assert titles(rows) == ["joined"]
        assert rows[0]["id"] == project.id

    async def test_project_fields_reshapes_rows(self, memory_store):
        memory_store.insert(PROJECT_COLLECTION, {"title": "t", "nested": {"a": 1}, "drop": True})
        pipeline = PipelineBuilder().project(title="title", a="nested.a", gone="missing").build()
        rows = await memory_store.aggregate(PROJECT_COLLECTION, pipeline)
        assert rows == [{"title": "t", "a": 1, "gone": None}]

    async def test_replace_root_requires_document(self, memory_store):
        memory_store.insert(PROJECT_COLLECTION, {"title": "t"})
        pipeline = PipelineBuilder().replace_root("title").build()
        with pytest.raises(ValueError, match="not a document"):
            await memory_store.aggregate(PROJECT_COLLECTION, pipeline)

    async def test_unknown_collection_is_empty(self, memory_store):
        assert await memory_store.aggregate("nothing", PipelineBuilder().build()) == []


class TestIsolation:
    """Aggregations never hand out stored documents."""

    async def test_returned_rows_are_copies(self, memory_store):
        memory_store.insert(PROJECT_COLLECTION, {"title": "original", "tags": ["a"]})
        rows = await memory_store.aggregate(PROJECT_COLLECTION, PipelineBuilder().build())
        rows[0]["title"] = "changed"
        rows[0]["tags"].append("b")

        again = await memory_store.aggregate(PROJECT_COLLECTION, PipelineBuilder().build())
        assert again == [{"title": "original", "tags": ["a"]}]

    async def test_insert_copies_document(self, memory_store):
        document = {"title": "original"}
        memory_store.insert(PROJECT_COLLECTION, document)
        document["title"] = "changed"
        rows = await memory_store.aggregate(PROJECT_COLLECTION, PipelineBuilder().build())
        assert titles(rows) == ["original"]

    def test_count_and_clear(self, memory_store):
        memory_store.save_all(ProjectFactory.batch(3))
        assert memory_store.count(PROJECT_COLLECTION) == 3
        memory_store.clear()
        assert memory_store.count(PROJECT_COLLECTION) == 0
