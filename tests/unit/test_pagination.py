"""Tests for slice pagination."""

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from src.crew.query.pagination import PageRequest, Slice, to_slice

pytestmark = pytest.mark.unit


class TestPageRequest:
    """Tests for PageRequest validation and derived values."""

    def test_offset_and_fetch_size(self):
        page = PageRequest(3, 10)
        assert page.offset == 30
        assert page.fetch_size == 11

    def test_negative_page_number_rejected(self):
        with pytest.raises(ValueError, match="page_number"):
            PageRequest(-1, 10)

    @pytest.mark.parametrize("size", [0, -5])
    def test_non_positive_page_size_rejected(self, size):
        with pytest.raises(ValueError, match="page_size"):
            PageRequest(0, size)


class TestToSlice:
    """Tests for to_slice."""

    def test_peek_row_sets_has_next_and_is_dropped(self):
        result = to_slice(list(range(11)), page_size=10, page_number=0)
        assert result.has_next is True
        assert result.content == list(range(10))
        assert result.number_of_elements == 10
        assert result.is_first is True
        assert result.is_last is False

    def test_exact_page_has_no_next(self):
        result = to_slice(list(range(10)), page_size=10, page_number=2)
        assert result.has_next is False
        assert result.content == list(range(10))
        assert result.is_first is False
        assert result.is_last is True

    def test_empty(self):
        result = to_slice([], page_size=6, page_number=0)
        assert result.content == []
        assert result.has_next is False
        assert result.number_of_elements == 0

    def test_serializes_computed_flags(self):
        dumped = to_slice(["a", "b"], page_size=1, page_number=0).model_dump()
        assert dumped == {
            "content": ["a"],
            "number": 0,
            "size": 1,
            "has_next": True,
            "is_first": True,
            "is_last": False,
            "number_of_elements": 1,
        }

    def test_map_keeps_position(self):
        result = to_slice([1, 2, 3], page_size=2, page_number=4).map(str)
        assert isinstance(result, Slice)
        assert result.content == ["1", "2"]
        assert result.number == 4
        assert result.size == 2
        assert result.has_next is True


@given(
    fetched=st.lists(st.integers(), max_size=30),
    page_size=st.integers(min_value=1, max_value=20),
)
@settings(max_examples=100)
def test_slice_content_is_prefix_of_fetched(fetched: list[int], page_size: int):
    """Content keeps fetch order and never exceeds the page size."""
    result = to_slice(fetched, page_size, 0)
    assert len(result.content) <= page_size
    assert result.content == fetched[: len(result.content)]
    assert result.has_next == (len(fetched) > page_size)


@given(
    total=st.integers(min_value=0, max_value=60),
    page_size=st.integers(min_value=1, max_value=15),
)
def test_paging_through_visits_every_row_once(total: int, page_size: int):
    """Walking pages until has_next is false yields every row exactly once."""
    rows = list(range(total))
    seen: list[int] = []
    page_number = 0
    while True:
        page = PageRequest(page_number, page_size)
        fetched = rows[page.offset : page.offset + page.fetch_size]
        result = to_slice(fetched, page_size, page_number)
        seen.extend(result.content)
        if not result.has_next:
            break
        page_number += 1
    assert seen == rows
