"""
Timesheet Query Language
========================

Lexer, parser, interpreter, planner and executor for the clause-oriented
query language:

    WHERE year = 2024 AND project = "acme"
    SHOW date AS "Date", hours, invoiced FORMAT MONEY
    VIEW table
    SIZE compact

COMPONENTS
----------
- lexer.py: text -> tokens (never fails; bad input becomes INVALID tokens)
- parser.py: tokens -> QueryAST (QuerySyntaxError on malformed input)
- registry.py: WHERE field handlers (pushdown vs residual)
- extensions.py: optional `client` / `hours` fields
- interpreter.py: QueryAST -> Query (defaults, folding, SemanticError)
- planner.py: Query -> RetrievalPlan (data source options + residual filters)
- executor.py: RetrievalPlan -> ProcessedData (monthly, trend, summaries)
- columns.py: SHOW column catalog and table projection
- schema.py: Query and result types
- errors.py: QueryError taxonomy
"""

from timesheet_query.dsl.errors import (
    ErrorCategory,
    ErrorCode,
    ExecutionError,
    InterpreterError,
    QueryError,
    QuerySyntaxError,
    SemanticError,
    UnknownFieldError,
)
from timesheet_query.dsl.lexer import Token, TokenKind, tokenize
from timesheet_query.dsl.parser import QueryParser, parse, parse_query
from timesheet_query.dsl.registry import FieldHandler, FieldRegistry, FilterTarget, ValueKind, default_registry
from timesheet_query.dsl.interpreter import QueryInterpreter, interpret
from timesheet_query.dsl.planner import RetrievalPlan, build_retrieval_plan, explain_plan
from timesheet_query.dsl.executor import QueryExecutor
from timesheet_query.dsl.columns import COLUMN_CATALOG, Table, build_table
from timesheet_query.dsl.schema import (
    ChartType,
    ColumnSpec,
    FormatKind,
    MonthlyDataPoint,
    PeriodType,
    Predicate,
    ProcessedData,
    Query,
    SizeType,
    SummaryData,
    TrendData,
    ViewType,
)

__all__ = [
    "COLUMN_CATALOG",
    "ChartType",
    "ColumnSpec",
    "ErrorCategory",
    "ErrorCode",
    "ExecutionError",
    "FieldHandler",
    "FieldRegistry",
    "FilterTarget",
    "FormatKind",
    "InterpreterError",
    "MonthlyDataPoint",
    "PeriodType",
    "Predicate",
    "ProcessedData",
    "Query",
    "QueryError",
    "QueryExecutor",
    "QueryInterpreter",
    "QueryParser",
    "QuerySyntaxError",
    "RetrievalPlan",
    "SemanticError",
    "SizeType",
    "SummaryData",
    "Table",
    "Token",
    "TokenKind",
    "TrendData",
    "UnknownFieldError",
    "ValueKind",
    "ViewType",
    "build_retrieval_plan",
    "build_table",
    "default_registry",
    "explain_plan",
    "interpret",
    "parse",
    "parse_query",
    "tokenize",
]
