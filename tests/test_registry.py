"""Tests for the WHERE field registry and optional extensions.

WHAT: Registration rules, handler contracts, threshold matching and the
      bundled client/hours extension
WHY: Extensions add predicates without touching the grammar, so the
     registry is the only thing standing between a query and its fields
"""

from datetime import date

import pytest

from timesheet_query.datasource.types import DateRange, TimeEntry
from timesheet_query.dsl.errors import UnknownFieldError
from timesheet_query.dsl.extensions import CLIENT_FIELD, HOURS_FIELD, register_entry_fields
from timesheet_query.dsl.registry import (
    BUILTIN_HANDLERS,
    FieldHandler,
    FieldRegistry,
    FilterTarget,
    ValueKind,
    contains_text,
    default_registry,
    threshold_check,
)
from timesheet_query.dsl.schema import Predicate
from timesheet_query.service import compile_query
from timesheet_query.settings import Settings


def test_default_registry_has_builtin_fields():
    registry = default_registry()

    assert registry.names() == [
        "category", "date", "month", "project", "service", "utilization", "value", "year",
    ]
    assert len(registry) == len(BUILTIN_HANDLERS)
    assert "YEAR" in registry
    assert registry["Year"].target is FilterTarget.PUSHDOWN
    assert registry.get("category").target is FilterTarget.RESIDUAL


def test_duplicate_registration_requires_replace():
    registry = default_registry()
    replacement = FieldHandler(
        name="service",
        value_kind=ValueKind.STRING,
        target=FilterTarget.RESIDUAL,
        build_matcher=lambda p, s: lambda e: True,
    )

    with pytest.raises(ValueError, match="already registered"):
        registry.register(replacement)

    registry.register(replacement, replace=True)
    assert registry["service"] is replacement


def test_unregister_and_copy_are_independent():
    registry = default_registry()
    clone = registry.copy()

    registry.unregister("value")

    assert "value" not in registry
    assert "value" in clone
    with pytest.raises(KeyError):
        registry["value"]


def test_pushdown_handler_needs_applier():
    with pytest.raises(ValueError, match="needs apply_pushdown"):
        FieldHandler(
            name="week",
            value_kind=ValueKind.NUMBER,
            target=FilterTarget.PUSHDOWN,
            build_matcher=lambda p, s: lambda e: True,
        )


def test_allowed_operators():
    registry = default_registry()

    assert registry["year"].allowed_operators() == ["="]
    assert registry["date"].allowed_operators() == ["=", "BETWEEN"]
    assert registry["utilization"].allowed_operators() == ["<", "<=", "=", ">", ">=", "BETWEEN"]
    assert not registry["project"].accepts("BETWEEN")


@pytest.mark.parametrize(
    "operator, upper, expected",
    [
        ("=", None, [False, True, True]),
        (">=", None, [False, True, True]),
        (">", None, [False, False, True]),
        ("<", None, [True, False, False]),
        ("<=", None, [True, True, False]),
        ("BETWEEN", 0.9, [False, True, False]),
    ],
)
def test_threshold_check(operator, upper, expected):
    check = threshold_check(Predicate("utilization", operator, 0.5, upper))

    assert [check(v) for v in (0.25, 0.5, 1.0)] == expected


def test_contains_text_is_case_insensitive_and_skips_missing():
    assert contains_text("acme", None, "Project ACME-42")
    assert not contains_text("acme", None, "")


def test_pushdown_conflict_is_reported():
    handler = default_registry()["year"]
    options = {}

    assert handler.apply_pushdown(Predicate("year", "=", 2024), options)
    assert handler.apply_pushdown(Predicate("year", "=", 2024), options)
    assert not handler.apply_pushdown(Predicate("year", "=", 2023), options)
    assert options == {"year": 2024}


def test_date_pushdown_builds_inclusive_range():
    handler = default_registry()["date"]
    options = {}

    handler.apply_pushdown(Predicate("date", "BETWEEN", date(2024, 1, 1), date(2024, 1, 31)), options)

    assert options["date_range"] == DateRange(start=date(2024, 1, 1), end=date(2024, 1, 31))


class TestResidualMatchers:
    """In-memory matchers for the residual built-in fields."""

    settings = Settings()

    def match(self, field, operator, value, entry):
        predicate = Predicate(field, operator, value)
        return default_registry()[field].build_matcher(predicate, self.settings)(entry)

    def test_service_matches_project_or_notes(self):
        entry = TimeEntry(date=date(2024, 1, 2), hours=1, project="Website", notes="SEO audit")

        assert self.match("service", "=", "website", entry)
        assert self.match("service", "=", "seo", entry)
        assert not self.match("service", "=", "hosting", entry)

    def test_category_matches_category_or_notes(self):
        entry = TimeEntry(date=date(2024, 1, 2), hours=1, project="Acme", category="Meetings", notes="Sprint review")

        assert self.match("category", "=", "MEET", entry)
        assert self.match("category", "=", "sprint", entry)
        assert not self.match("category", "=", "acme", entry)

    def test_utilization_uses_hours_per_workday(self):
        entry = TimeEntry(date=date(2024, 1, 2), hours=6)

        assert self.match("utilization", ">=", 0.75, entry)
        assert not self.match("utilization", ">", 0.75, entry)

    def test_value_compares_rate_missing_rate_is_zero(self):
        assert self.match("value", "=", 75, TimeEntry(date=date(2024, 1, 2), hours=1, rate=90))
        assert not self.match("value", "=", 75, TimeEntry(date=date(2024, 1, 2), hours=1))


class TestEntryFieldExtension:
    """Optional client/hours fields."""

    def test_default_registry_rejects_extension_fields(self):
        with pytest.raises(UnknownFieldError):
            compile_query('WHERE client = "acme"')

    def test_register_entry_fields(self):
        registry = register_entry_fields(default_registry())

        assert registry["client"] is CLIENT_FIELD
        assert registry["hours"] is HOURS_FIELD
        with pytest.raises(ValueError):
            register_entry_fields(registry)
        register_entry_fields(registry, replace=True)

    def test_extension_matchers(self):
        entry = TimeEntry(date=date(2024, 1, 2), hours=6, client="Acme Corp")
        settings = Settings()

        assert CLIENT_FIELD.build_matcher(Predicate("client", "=", "acme"), settings)(entry)
        assert HOURS_FIELD.build_matcher(Predicate("hours", ">=", 6), settings)(entry)
        assert not HOURS_FIELD.build_matcher(Predicate("hours", "BETWEEN", 7, 8), settings)(entry)

    def test_registry_built_from_handlers(self):
        registry = FieldRegistry([CLIENT_FIELD])

        assert registry.names() == ["client"]
