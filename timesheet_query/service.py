"""
Query Service
=============

High-level façade over the query pipeline.

Related files:
- timesheet_query/dsl/lexer.py + parser.py: text -> AST
- timesheet_query/dsl/interpreter.py: AST -> Query
- timesheet_query/dsl/executor.py: Query -> ProcessedData

Design:
- Clean pipeline: text -> tokens -> AST -> Query -> ProcessedData
- Parse/interpret errors always reach the caller; the only recovery
  policy (substituting a fallback query) is opt-in via compile_with_fallback()
- Timing logged per stage, like any other pipeline milestone

Usage:
    query = compile_query('WHERE year = 2024 VIEW table')
    data = await run_query(text, source, settings)
    errors = validate_query(text)  # [] when valid
"""

from __future__ import annotations

import logging
import time
from datetime import date
from typing import Callable, List, Optional, Tuple

from timesheet_query.datasource.types import TimesheetDataSource
from timesheet_query.dsl.errors import QueryError
from timesheet_query.dsl.executor import QueryExecutor
from timesheet_query.dsl.interpreter import interpret
from timesheet_query.dsl.parser import parse_query
from timesheet_query.dsl.registry import FieldRegistry
from timesheet_query.dsl.schema import ProcessedData, Query
from timesheet_query.settings import Settings

logger = logging.getLogger(__name__)


def compile_query(text: str, registry: Optional[FieldRegistry] = None) -> Query:
    """
    Tokenize, parse and interpret query text.

    Raises:
        QuerySyntaxError: malformed text
        SemanticError: well-formed text with invalid meaning
    """
    started = time.perf_counter()
    query = interpret(parse_query(text, registry), registry)
    latency_ms = int((time.perf_counter() - started) * 1000)
    logger.info(
        f"[QUERY_PIPELINE] Compiled query in {latency_ms}ms: view={query.view.value} "
        f"chart={query.chart.value} period={query.period.value} size={query.size.value} "
        f"predicates={len(query.where)}"
    )
    return query


async def run_query(
    text: str,
    data_source: TimesheetDataSource,
    settings: Optional[Settings] = None,
    registry: Optional[FieldRegistry] = None,
    clock: Callable[[], date] = date.today,
) -> ProcessedData:
    """Compile and execute in one call. Errors propagate unchanged."""
    query = compile_query(text, registry)
    executor = QueryExecutor(data_source, settings=settings, registry=registry, clock=clock)
    return await executor.execute(query)


def validate_query(text: str, registry: Optional[FieldRegistry] = None) -> List[QueryError]:
    """
    Errors for editor feedback; empty when the query compiles.

    Parsing stops at the first error, so at most one is reported.
    """
    try:
        compile_query(text, registry)
    except QueryError as e:
        logger.debug(f"[QUERY_PIPELINE] Validation failed: {e}")
        return [e]
    return []


def is_valid(text: str, registry: Optional[FieldRegistry] = None) -> bool:
    return not validate_query(text, registry)


def compile_with_fallback(
    text: str,
    fallback_text: str,
    registry: Optional[FieldRegistry] = None,
) -> Tuple[Query, Optional[QueryError]]:
    """
    Editor recovery: compile `text`, or the fallback when it does not compile.

    Returns (query, error) where error is the failure of `text` or None.
    A broken fallback raises; there is no second level of recovery.

    Example:
        query, error = compile_with_fallback(user_text, "VIEW summary")
        if error:
            show_inline(error.user_message())
    """
    try:
        return compile_query(text, registry), None
    except QueryError as e:
        logger.warning(f"[QUERY_PIPELINE] Query failed ({e}); using fallback query")
        return compile_query(fallback_text, registry), e
