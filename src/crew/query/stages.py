"""Pipeline stage descriptors.

Each stage is an immutable value. A pipeline is an ordered tuple of stages
that a store executes top to bottom against one collection.
"""

from dataclasses import dataclass, field

from src.crew.models.enums import SortDirection
from src.crew.query.predicates import Predicate


@dataclass(frozen=True)
class ArraySize:
    """Length of an array field; a missing or null array has length 0."""

    path: str


@dataclass(frozen=True)
class ToIdentifier:
    """The string at ``path`` parsed as a native identifier, or null if it does not parse."""

    path: str


type Expression = ArraySize | ToIdentifier


@dataclass(frozen=True)
class Match:
    predicate: Predicate


@dataclass(frozen=True)
class AddFields:
    """Derive fields from expressions. An existing field of the same name is replaced."""

    fields: tuple[tuple[str, Expression], ...]


@dataclass(frozen=True)
class Sort:
    field: str
    direction: SortDirection = SortDirection.ASC


@dataclass(frozen=True)
class Skip:
    count: int


@dataclass(frozen=True)
class Limit:
    count: int


@dataclass(frozen=True)
class Lookup:
    """Join rows of ``from_collection`` whose ``foreign_field`` equals ``local_field``.

    Matches are placed in an array at ``as_field``. Pair with Unwind to get
    inner-join rows.
    """

    from_collection: str
    local_field: str
    foreign_field: str
    as_field: str


@dataclass(frozen=True)
class Unwind:
    """One output row per element of the array at ``path``; rows with no elements are dropped."""

    path: str


@dataclass(frozen=True)
class ReplaceRoot:
    """Replace each row with the embedded document at ``path``."""

    path: str


@dataclass(frozen=True)
class ProjectFields:
    """Reshape rows to exactly ``fields``: (output name, source path) pairs."""

    fields: tuple[tuple[str, str], ...] = field(default_factory=tuple)


type Stage = Match | AddFields | Sort | Skip | Limit | Lookup | Unwind | ReplaceRoot | ProjectFields
