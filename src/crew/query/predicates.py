"""Predicate tree for pipeline filter stages.

Predicates are plain values. Stores translate them into their own query
language; nothing here knows about SQL or documents.

Field names are dotted paths. A path that crosses an array (for example
``recruitments.job_name``) matches when any element matches.
"""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class MatchAll:
    """Matches every row."""


@dataclass(frozen=True)
class Equals:
    field: str
    value: Any


@dataclass(frozen=True)
class Contains:
    """Case-sensitive literal substring match on a string field."""

    field: str
    value: str


@dataclass(frozen=True)
class In:
    field: str
    values: tuple[Any, ...]


@dataclass(frozen=True)
class And:
    operands: tuple["Predicate", ...]


@dataclass(frozen=True)
class Or:
    operands: tuple["Predicate", ...]


type Predicate = MatchAll | Equals | Contains | In | And | Or

MATCH_ALL = MatchAll()


def and_(*operands: Predicate) -> Predicate:
    """AND the operands together, dropping MatchAll terms.

    Returns MATCH_ALL when nothing is left and the single operand when only
    one is.
    """
    terms = tuple(op for op in operands if not isinstance(op, MatchAll))
    if not terms:
        return MATCH_ALL
    if len(terms) == 1:
        return terms[0]
    return And(terms)


def or_(*operands: Predicate) -> Predicate:
    """OR the operands together. Any MatchAll operand makes the whole OR match all."""
    if not operands or any(isinstance(op, MatchAll) for op in operands):
        return MATCH_ALL
    if len(operands) == 1:
        return operands[0]
    return Or(tuple(operands))
