"""Tests for the query parser.

WHAT: Grammar coverage and the literal parse-error scenarios
WHY: Every malformed query must fail loudly with a positioned
     QuerySyntaxError instead of defaulting silently
"""

import pytest

from timesheet_query.dsl.ast import (
    ChartClause,
    LiteralKind,
    PeriodClause,
    ShowClause,
    SizeClause,
    ViewClause,
    WhereClause,
)
from timesheet_query.dsl.errors import (
    ErrorCode,
    QuerySyntaxError,
    SemanticError,
    UnknownFieldError,
)
from timesheet_query.dsl.parser import parse_query


# ============================================================================
# Error scenarios
# ============================================================================

@pytest.mark.parametrize(
    "text, pattern, code",
    [
        ("INVALID year = 2024", r"(?i)unknown keyword", ErrorCode.UNKNOWN_KEYWORD),
        ("WHERE year 2024", r"(?i)expected operator", ErrorCode.EXPECTED_OPERATOR),
        ("VIEW invalid_view", r"(?i)invalid view type", ErrorCode.INVALID_ENUM_VALUE),
        ('WHERE project = "unterminated', r"(?i)unterminated string", ErrorCode.UNTERMINATED_STRING),
        ("WHERE year =", r"(?i)expected value", ErrorCode.EXPECTED_VALUE),
    ],
)
def test_parse_error_scenarios(text, pattern, code):
    with pytest.raises(QuerySyntaxError, match=pattern) as exc_info:
        parse_query(text)

    assert exc_info.value.code is code
    assert exc_info.value.has_position


def test_error_position_points_at_offending_token():
    with pytest.raises(QuerySyntaxError) as exc_info:
        parse_query("WHERE year = 2024\nVIEW sideways")

    error = exc_info.value
    assert (error.line, error.column) == (2, 6)
    assert "line 2, column 6" in str(error)


def test_unknown_field_is_syntax_and_semantic():
    with pytest.raises(UnknownFieldError) as exc_info:
        parse_query('WHERE projct = "acme"')

    error = exc_info.value
    assert isinstance(error, QuerySyntaxError)
    assert isinstance(error, SemanticError)
    assert error.code is ErrorCode.UNKNOWN_FIELD
    assert error.suggestion == "Did you mean 'project'?"


def test_or_is_rejected():
    with pytest.raises(QuerySyntaxError, match="OR is not supported"):
        parse_query("WHERE year = 2023 OR year = 2024")


def test_trailing_garbage_after_predicate():
    with pytest.raises(QuerySyntaxError, match="Expected AND or a new clause"):
        parse_query("WHERE year = 2024 LIMIT 5")


def test_between_requires_and():
    with pytest.raises(QuerySyntaxError, match="Expected AND in BETWEEN"):
        parse_query('WHERE date BETWEEN "2024-01-01" "2024-01-31"')


def test_enum_clause_without_value():
    with pytest.raises(QuerySyntaxError, match="Expected size after SIZE"):
        parse_query("SIZE\nVIEW table")


def test_invalid_format_directive():
    with pytest.raises(QuerySyntaxError, match="Invalid format"):
        parse_query("SHOW invoiced FORMAT DOLLARS")


def test_alias_must_be_quoted():
    with pytest.raises(QuerySyntaxError, match="Expected quoted alias"):
        parse_query("SHOW date AS Date")


# ============================================================================
# Grammar
# ============================================================================

def test_empty_query_has_no_clauses():
    assert parse_query("").clauses == ()
    assert parse_query("// nothing here").clauses == ()


def test_canonical_table_query():
    ast = parse_query(
        'WHERE year = 2024 AND month = 12\n'
        'SHOW date AS "Date", project AS "Work Order", hours AS "Hours"\n'
        'VIEW table\n'
        'SIZE compact'
    )

    where, show, view, size = ast.clauses
    assert isinstance(where, WhereClause)
    assert [(p.field, p.operator, p.value.raw) for p in where.predicates] == [
        ("year", "=", "2024"),
        ("month", "=", "12"),
    ]
    assert isinstance(show, ShowClause)
    assert [(c.field, c.alias) for c in show.columns] == [
        ("date", "Date"),
        ("project", "Work Order"),
        ("hours", "Hours"),
    ]
    assert isinstance(view, ViewClause) and view.value == "table"
    assert isinstance(size, SizeClause) and size.value == "compact"


def test_between_with_date_literals():
    ast = parse_query(
        'WHERE date BETWEEN "2024-01-01" AND "2024-06-30"\n'
        'VIEW chart\n'
        'CHART trend\n'
        'PERIOD last-6-months'
    )

    where, view, chart, period = ast.clauses
    predicate = where.predicates[0]
    assert predicate.is_range
    assert predicate.value.kind is LiteralKind.DATE
    assert predicate.upper.raw == "2024-06-30"
    assert isinstance(chart, ChartClause) and chart.value == "trend"
    assert isinstance(period, PeriodClause) and period.value == "last-6-months"


def test_view_chart_is_a_value_not_a_clause():
    """The word chart lexes as the CHART keyword but is still a valid VIEW value."""
    (view,) = parse_query("VIEW chart").clauses
    assert isinstance(view, ViewClause)
    assert (view.value, view.line, view.column) == ("chart", 1, 1)

    view, chart = parse_query("VIEW chart CHART budget").clauses
    assert view.value == "chart"
    assert isinstance(chart, ChartClause) and chart.value == "budget"


def test_view_followed_by_other_clause_keyword():
    with pytest.raises(QuerySyntaxError, match="Expected view type after VIEW") as exc_info:
        parse_query("VIEW\nPERIOD all-time")
    assert exc_info.value.code is ErrorCode.EXPECTED_VALUE


def test_predicates_may_continue_on_following_lines():
    ast = parse_query(
        "WHERE year = 2024\n"
        "  AND project = 'acme'   // client work only\n"
        "  AND utilization >= 0.5\n"
        "VIEW summary"
    )

    where = ast.clauses[0]
    assert [p.field for p in where.predicates] == ["year", "project", "utilization"]
    assert where.predicates[2].operator == ">="


def test_case_insensitive_keywords_and_values():
    ast = parse_query("where Year = 2024 view TABLE chart Monthly")

    assert ast.clauses[0].predicates[0].field == "year"
    assert ast.clauses[1].value == "table"
    assert ast.clauses[2].value == "monthly"


def test_show_format_and_alias():
    ast = parse_query('SHOW invoiced FORMAT MONEY AS "Billed", utilization FORMAT percent')

    billed, utilization = ast.clauses[0].columns
    assert (billed.field, billed.format, billed.alias) == ("invoiced", "money", "Billed")
    assert (utilization.format, utilization.alias) == ("percent", None)


def test_alias_without_field_parses():
    ast = parse_query('SHOW AS "Orphan"')

    column = ast.clauses[0].columns[0]
    assert column.field is None
    assert column.alias == "Orphan"


def test_string_literal_that_is_not_a_date():
    ast = parse_query('WHERE project = "2024 retainer"')

    assert ast.clauses[0].predicates[0].value.kind is LiteralKind.STRING
