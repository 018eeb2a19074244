"""Slice pagination: pages with a has-next flag and no total count.

Queries fetch one row more than the page size. If that extra row comes back
there is a next page; it is then dropped from the page content.
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar

from pydantic import BaseModel, Field, computed_field

from src.crew.models.enums import ProjectSortProperty, SortDirection

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True)
class SortOrder:
    property: ProjectSortProperty
    direction: SortDirection = SortDirection.DESC


@dataclass(frozen=True)
class PageRequest:
    """A 0-indexed page request.

    No upper bound is applied to page_size here; request validation caps it.
    """

    page_number: int
    page_size: int
    sort: SortOrder | None = None

    def __post_init__(self) -> None:
        if self.page_number < 0:
            raise ValueError("page_number must be >= 0")
        if self.page_size < 1:
            raise ValueError("page_size must be >= 1")

    @property
    def offset(self) -> int:
        return self.page_number * self.page_size

    @property
    def fetch_size(self) -> int:
        """Rows to fetch: the page plus one row to detect a next page."""
        return self.page_size + 1


class Slice(BaseModel, Generic[T]):
    """A page of results and whether another page follows."""

    content: list[T]
    number: int = Field(description="0-indexed page number.")
    size: int = Field(description="Requested page size.")
    has_next: bool = Field(
        default=False,
        description="Whether there are more items after this page.",
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_first(self) -> bool:
        return self.number == 0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_last(self) -> bool:
        return not self.has_next

    @computed_field  # type: ignore[prop-decorator]
    @property
    def number_of_elements(self) -> int:
        return len(self.content)

    def map(self, fn: Callable[[T], U]) -> "Slice[U]":
        """Convert each content item, keeping the page position and flags."""
        return Slice[U](
            content=[fn(item) for item in self.content],
            number=self.number,
            size=self.size,
            has_next=self.has_next,
        )


def to_slice(fetched: Sequence[T], page_size: int, page_number: int) -> Slice[T]:
    """Build a slice from rows fetched with a limit of page_size + 1.

    Args:
        fetched: Rows in pipeline order
        page_size: Requested page size
        page_number: 0-indexed page number

    Returns:
        Slice whose content is the first page_size rows, in the order given
    """
    has_next = len(fetched) > page_size
    content = list(fetched[:page_size]) if has_next else list(fetched)
    return Slice[T](
        content=content,
        number=page_number,
        size=page_size,
        has_next=has_next,
    )
