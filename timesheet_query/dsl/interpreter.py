"""
Query Interpreter
=================

Walks the AST and produces the normalized, immutable Query.

Responsibilities:
- Fold repeated clauses: last VIEW/CHART/PERIOD/SIZE/SHOW wins, WHERE
  clauses concatenate (everything is ANDed, order preserved)
- Apply defaults for omitted clauses (summary / monthly / current-year / normal)
- Normalize literals: numbers to int/float, YYYY-MM-DD strings to dates
- Enforce meaning the grammar cannot: operator support per field, range
  order, SHOW columns, CHART only alongside VIEW chart/full

Raises SemanticError (positioned at the offending node).
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Set, Tuple

from timesheet_query.dsl.ast import (
    ChartClause,
    ColumnNode,
    Literal,
    LiteralKind,
    PeriodClause,
    PredicateNode,
    QueryAST,
    ShowClause,
    SizeClause,
    ViewClause,
    WhereClause,
)
from timesheet_query.dsl.columns import COLUMN_CATALOG
from timesheet_query.dsl.errors import ErrorCode, SemanticError, UnknownFieldError
from timesheet_query.dsl.registry import FieldHandler, FieldRegistry, ValueKind, default_registry
from timesheet_query.dsl.schema import (
    CHART_VIEWS,
    ChartType,
    ColumnSpec,
    FormatKind,
    PeriodType,
    Predicate,
    Query,
    SizeType,
    ViewType,
)
from timesheet_query.utils.dates import parse_iso_date

logger = logging.getLogger(__name__)


class QueryInterpreter:
    """
    AST -> Query.

    Usage:
        query = QueryInterpreter(registry).interpret(ast)
    """

    def __init__(self, registry: Optional[FieldRegistry] = None):
        self.registry = registry if registry is not None else default_registry()

    def interpret(self, ast: QueryAST) -> Query:
        where: List[Predicate] = []
        show: Tuple[ColumnSpec, ...] = ()
        settings: Dict[str, Any] = {}
        explicit: Set[str] = set()

        for clause in ast.clauses:
            if isinstance(clause, WhereClause):
                where.extend(self._predicate(node) for node in clause.predicates)
                explicit.add("where")
            elif isinstance(clause, ShowClause):
                show = tuple(self._column(node) for node in clause.columns)
                explicit.add("show")
            elif isinstance(clause, ViewClause):
                settings["view"] = (ViewType(clause.value), clause)
            elif isinstance(clause, ChartClause):
                settings["chart"] = (ChartType(clause.value), clause)
            elif isinstance(clause, PeriodClause):
                settings["period"] = (PeriodType(clause.value), clause)
            elif isinstance(clause, SizeClause):
                settings["size"] = (SizeType(clause.value), clause)
            else:
                raise SemanticError(f"Unknown clause type: {type(clause).__name__}")

        explicit.update(settings)
        self._check_chart_view(settings)

        query = Query(
            where=tuple(where),
            show=show,
            explicit=frozenset(explicit),
            **{name: value for name, (value, _) in settings.items()},
        )
        logger.debug(f"[INTERPRETER] {query.to_dict()}")
        return query

    # ------------------------------------------------------------------
    # WHERE
    # ------------------------------------------------------------------

    def _predicate(self, node: PredicateNode) -> Predicate:
        handler = self.registry.get(node.field)
        if handler is None:
            # Registry changed between parse and interpret
            raise UnknownFieldError(
                f"Unknown field '{node.field}'. Valid fields: {', '.join(self.registry.names())}",
                node.line, node.column,
            )

        if not handler.accepts(node.operator):
            if node.is_range:
                message = f"BETWEEN is not supported for field '{handler.name}'"
            else:
                message = f"Operator '{node.operator}' is not supported for field '{handler.name}'"
            raise SemanticError(
                message, node.line, node.column,
                code=ErrorCode.INVALID_OPERATOR,
                suggestion=f"Allowed operators: {', '.join(handler.allowed_operators())}",
            )

        value = self._normalize(handler, node.value)
        upper = self._normalize(handler, node.upper) if node.is_range else None
        if upper is not None and value > upper:
            raise SemanticError(
                f"Range for '{handler.name}' is reversed: {node.value.raw} is after {node.upper.raw}",
                node.line, node.column, code=ErrorCode.INVALID_VALUE,
            )
        return Predicate(field=handler.name, operator=node.operator, value=value, upper=upper)

    def _normalize(self, handler: FieldHandler, literal: Literal):
        if handler.value_kind is ValueKind.NUMBER:
            if literal.kind is not LiteralKind.NUMBER:
                raise self._value_error(handler, literal, "expects a number")
            value = float(literal.raw) if "." in literal.raw else int(literal.raw)
        elif handler.value_kind is ValueKind.DATE:
            if literal.kind is not LiteralKind.DATE:
                raise self._value_error(handler, literal, "expects a date literal (\"YYYY-MM-DD\")")
            try:
                value = parse_iso_date(literal.raw)
            except ValueError:
                raise self._value_error(handler, literal, "got an invalid calendar date")
        else:
            value = literal.raw

        if handler.validate is not None:
            try:
                value = handler.validate(value)
            except ValueError as e:
                raise SemanticError(str(e), literal.line, literal.column, code=ErrorCode.INVALID_VALUE)
        return value

    @staticmethod
    def _value_error(handler: FieldHandler, literal: Literal, problem: str) -> SemanticError:
        return SemanticError(
            f"Field '{handler.name}' {problem}: {literal.raw!r}",
            literal.line, literal.column, code=ErrorCode.INVALID_VALUE,
        )

    # ------------------------------------------------------------------
    # SHOW / composition
    # ------------------------------------------------------------------

    def _column(self, node: ColumnNode) -> ColumnSpec:
        if node.field is None:
            raise SemanticError(
                f"Alias \"{node.alias}\" has no column to name",
                node.line, node.column, code=ErrorCode.INVALID_COMPOSITION,
            )
        if node.field not in COLUMN_CATALOG:
            raise SemanticError(
                f"Unknown SHOW column '{node.field}'. Valid columns: {', '.join(COLUMN_CATALOG)}",
                node.line, node.column, code=ErrorCode.UNKNOWN_COLUMN,
            )
        return ColumnSpec(
            field=node.field,
            alias=node.alias,
            format=FormatKind(node.format) if node.format else None,
        )

    @staticmethod
    def _check_chart_view(settings: Dict[str, Any]) -> None:
        if "chart" not in settings or "view" not in settings:
            return
        view, _ = settings["view"]
        if view not in CHART_VIEWS:
            _, chart_clause = settings["chart"]
            raise SemanticError(
                "CHART clause can only be used with VIEW chart or VIEW full",
                chart_clause.line, chart_clause.column, code=ErrorCode.INVALID_COMPOSITION,
            )


def interpret(ast: QueryAST, registry: Optional[FieldRegistry] = None) -> Query:
    """Interpret a parsed query with the given (or default) registry."""
    return QueryInterpreter(registry).interpret(ast)
