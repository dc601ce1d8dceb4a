"""Tests for the query interpreter.

WHAT: Defaults, clause folding, literal normalization and semantic errors
WHY: The executor assumes every Query field is set and every predicate
     value already has its canonical type
"""

from datetime import date

import pytest

from timesheet_query.dsl.errors import ErrorCode, InterpreterError, SemanticError
from timesheet_query.dsl.extensions import register_entry_fields
from timesheet_query.dsl.registry import default_registry
from timesheet_query.dsl.schema import (
    ChartType,
    ColumnSpec,
    FormatKind,
    PeriodType,
    Predicate,
    SizeType,
    ViewType,
)
from timesheet_query.service import compile_query


def test_defaults_for_empty_query():
    query = compile_query("")

    assert query.view is ViewType.SUMMARY
    assert query.chart is ChartType.MONTHLY
    assert query.period is PeriodType.CURRENT_YEAR
    assert query.size is SizeType.NORMAL
    assert query.where == ()
    assert query.show == ()
    assert query.explicit == frozenset()


def test_last_clause_wins_and_is_recorded_explicit():
    query = compile_query("VIEW table\nSIZE detailed\nVIEW chart\nCHART budget")

    assert query.view is ViewType.CHART
    assert query.size is SizeType.DETAILED
    assert query.chart is ChartType.BUDGET
    assert query.is_explicit("view")
    assert query.is_explicit("CHART")
    assert not query.is_explicit("period")


def test_where_clauses_concatenate_in_order():
    query = compile_query("WHERE year = 2024\nVIEW table\nWHERE project = 'acme' AND month = 3")

    assert query.where == (
        Predicate("year", "=", 2024),
        Predicate("project", "=", "acme"),
        Predicate("month", "=", 3),
    )


def test_show_clause_last_wins():
    query = compile_query('SHOW date\nSHOW hours AS "H", invoiced FORMAT CURRENCY')

    assert query.show == (
        ColumnSpec("hours", alias="H"),
        ColumnSpec("invoiced", format=FormatKind.CURRENCY),
    )


def test_date_and_number_literals_are_normalized():
    query = compile_query(
        'WHERE date BETWEEN "2024-01-01" AND "2024-01-31" AND utilization >= 0.8 AND value = 75'
    )

    dates, utilization, value = query.where
    assert (dates.value, dates.upper) == (date(2024, 1, 1), date(2024, 1, 31))
    assert dates.is_range
    assert utilization.value == 0.8 and isinstance(utilization.value, float)
    assert value.value == 75 and isinstance(value.value, int)


def test_single_date_equality():
    query = compile_query('WHERE date = "2024-02-29"')

    assert query.where[0].value == date(2024, 2, 29)
    assert query.where[0].upper is None


@pytest.mark.parametrize(
    "text, message",
    [
        ("WHERE year BETWEEN 2023 AND 2024", "BETWEEN is not supported for field 'year'"),
        ('WHERE project != "acme"', "Operator '!=' is not supported for field 'project'"),
        ("WHERE month = 13", "month must be between 1 and 12"),
        ("WHERE year = 2024.5", "year must be a whole number"),
        ('WHERE year = "2024"', "Field 'year' expects a number"),
        ('WHERE date = "yesterday"', "expects a date literal"),
        ('WHERE date = "2024-02-30"', "invalid calendar date"),
        ('WHERE date BETWEEN "2024-02-01" AND "2024-01-01"', "reversed"),
        ("WHERE utilization BETWEEN 0.9 AND 0.5", "reversed"),
        ('WHERE service = "  "', "service cannot be empty"),
        ("WHERE value >= 0 AND year = 0", "year must be between 1 and 9999"),
    ],
)
def test_semantic_errors(text, message):
    with pytest.raises(SemanticError, match=message) as exc_info:
        compile_query(text)

    assert exc_info.value.has_position


def test_unknown_show_column():
    with pytest.raises(SemanticError, match="Unknown SHOW column 'budget'") as exc_info:
        compile_query("SHOW date, budget")

    assert exc_info.value.code is ErrorCode.UNKNOWN_COLUMN
    assert (exc_info.value.line, exc_info.value.column) == (1, 12)


def test_alias_without_field():
    with pytest.raises(SemanticError, match="has no column") as exc_info:
        compile_query('SHOW AS "Orphan"')

    assert exc_info.value.code is ErrorCode.INVALID_COMPOSITION


def test_chart_requires_chart_or_full_view():
    with pytest.raises(SemanticError, match="CHART clause can only be used") as exc_info:
        compile_query("VIEW table\nCHART trend")

    assert exc_info.value.line == 2


@pytest.mark.parametrize("view", ["chart", "full"])
def test_chart_allowed_with_chart_views(view):
    query = compile_query(f"VIEW {view}\nCHART trend")

    assert query.chart is ChartType.TREND


def test_chart_without_view_keeps_default_view():
    query = compile_query("CHART budget")

    assert query.view is ViewType.SUMMARY
    assert query.chart is ChartType.BUDGET


def test_interpreter_error_is_semantic_error():
    assert InterpreterError is SemanticError


def test_threshold_operators_on_extension_fields():
    registry = register_entry_fields(default_registry())

    query = compile_query('WHERE client = "acme" AND hours BETWEEN 4 AND 8', registry=registry)

    assert query.where == (
        Predicate("client", "=", "acme"),
        Predicate("hours", "BETWEEN", 4, 8),
    )


VALID_QUERIES = [
    "",
    "VIEW full",
    "WHERE year = 2024 AND month = 12\nSHOW date AS \"Date\", hours\nVIEW table\nSIZE compact",
    'WHERE date BETWEEN "2024-01-01" AND "2024-06-30"\nVIEW chart\nCHART trend\nPERIOD last-6-months',
    "WHERE service = 'dev' AND category = 'meetings' AND utilization > 1 AND value <= 100",
    "PERIOD all-time\nSIZE detailed\nVIEW full\nCHART budget",
    "period LAST-12-MONTHS // rolling year",
]


@pytest.mark.parametrize("text", VALID_QUERIES)
def test_interpretation_is_total_for_valid_queries(text):
    query = compile_query(text)

    assert query.view in set(ViewType)
    assert query.chart in set(ChartType)
    assert query.period in set(PeriodType)
    assert query.size in set(SizeType)


def test_to_dict_is_json_friendly():
    query = compile_query('WHERE date BETWEEN "2024-01-01" AND "2024-01-31"\nVIEW table')

    assert query.to_dict() == {
        "where": [{"field": "date", "operator": "BETWEEN", "value": "2024-01-01", "upper": "2024-01-31"}],
        "show": [],
        "view": "table",
        "chart": "monthly",
        "period": "current-year",
        "size": "normal",
        "explicit": ["view", "where"],
    }
