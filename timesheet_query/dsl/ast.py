"""
Query AST
=========

Clause nodes produced by the parser and consumed by the interpreter.

A query is a sequence of clauses, each tagged by its node type:

    WhereClause   -> conjunction of PredicateNode
    ShowClause    -> ColumnNode list
    ViewClause / ChartClause / PeriodClause / SizeClause -> one value

Nodes are frozen and keep the source position of their first token so
the interpreter can report semantic errors at the right place.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union


class LiteralKind(Enum):
    NUMBER = "number"
    STRING = "string"
    DATE = "date"


@dataclass(frozen=True)
class Literal:
    kind: LiteralKind
    raw: str
    line: int
    column: int


@dataclass(frozen=True)
class PredicateNode:
    """`field op value` or `field BETWEEN value AND upper`."""
    field: str
    operator: str
    value: Literal
    upper: Optional[Literal]
    line: int
    column: int

    @property
    def is_range(self) -> bool:
        return self.operator == "BETWEEN"


@dataclass(frozen=True)
class ColumnNode:
    """SHOW column; field is None when an alias was written without a column."""
    field: Optional[str]
    format: Optional[str]
    alias: Optional[str]
    line: int
    column: int


@dataclass(frozen=True)
class WhereClause:
    predicates: Tuple[PredicateNode, ...]
    line: int
    column: int


@dataclass(frozen=True)
class ShowClause:
    columns: Tuple[ColumnNode, ...]
    line: int
    column: int


@dataclass(frozen=True)
class ViewClause:
    value: str
    line: int
    column: int


@dataclass(frozen=True)
class ChartClause:
    value: str
    line: int
    column: int


@dataclass(frozen=True)
class PeriodClause:
    value: str
    line: int
    column: int


@dataclass(frozen=True)
class SizeClause:
    value: str
    line: int
    column: int


Clause = Union[WhereClause, ShowClause, ViewClause, ChartClause, PeriodClause, SizeClause]


@dataclass(frozen=True)
class QueryAST:
    clauses: Tuple[Clause, ...] = ()
