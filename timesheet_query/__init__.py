"""
Timesheet Query
===============

A small query language over time-tracking entries and the engine that
turns a query into monthly, trend and summary statistics (hours,
invoiced amount, utilization, budget progress).

ARCHITECTURE OVERVIEW
---------------------
```
Query text
    |
    v
Lexer (dsl/lexer.py)            -> tokens
    |
    v
Parser (dsl/parser.py)          -> QueryAST      [FieldRegistry resolves WHERE fields]
    |
    v
Interpreter (dsl/interpreter.py)-> Query         [defaults + semantic checks]
    |
    v
Planner (dsl/planner.py)        -> RetrievalPlan [pushdown vs residual, PERIOD window]
    |
    v
Executor (dsl/executor.py)      -> ProcessedData [awaits TimesheetDataSource.query()]
```

EXTERNAL COLLABORATORS
----------------------
- TimesheetDataSource (datasource/types.py): async query(options), clear_cache()
- Settings (settings.py): currency symbol, hours per workday, project budget

USAGE
-----
```python
from timesheet_query import InMemoryDataSource, Settings, run_query

source = InMemoryDataSource.from_records([
    {"date": "2024-01-02", "hours": 8, "rate": 75},
    {"date": "2024-01-03", "hours": 7.5, "rate": 75},
])
data = await run_query(
    'WHERE date BETWEEN "2024-01-01" AND "2024-01-31" VIEW table',
    source,
    Settings(),
)
data.monthly_data[0].hours  # 15.5
```
"""

from timesheet_query.datasource import InMemoryDataSource, QueryOptions, TimeEntry, TimesheetDataSource
from timesheet_query.dsl import (
    ExecutionError,
    ProcessedData,
    Query,
    QueryError,
    QueryExecutor,
    QuerySyntaxError,
    SemanticError,
)
from timesheet_query.service import compile_query, compile_with_fallback, is_valid, run_query, validate_query
from timesheet_query.settings import ProjectSettings, ProjectType, Settings

__all__ = [
    "ExecutionError",
    "InMemoryDataSource",
    "ProcessedData",
    "ProjectSettings",
    "ProjectType",
    "Query",
    "QueryError",
    "QueryExecutor",
    "QueryOptions",
    "QuerySyntaxError",
    "SemanticError",
    "Settings",
    "TimeEntry",
    "TimesheetDataSource",
    "compile_query",
    "compile_with_fallback",
    "is_valid",
    "run_query",
    "validate_query",
]
