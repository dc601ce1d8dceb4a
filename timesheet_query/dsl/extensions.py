"""
Optional WHERE fields that are not part of the core language.

    registry = default_registry()
    register_entry_fields(registry)
    compile_query('WHERE client = "acme" AND hours >= 6', registry=registry)
"""

from __future__ import annotations

from timesheet_query.dsl.registry import (
    THRESHOLD_OPERATORS,
    FieldHandler,
    FieldRegistry,
    FilterTarget,
    ValueKind,
    contains_text,
    threshold_check,
)


def _match_client(predicate, settings):
    return lambda entry: contains_text(predicate.value, entry.client)


def _match_hours(predicate, settings):
    check = threshold_check(predicate)
    return lambda entry: check(entry.hours)


CLIENT_FIELD = FieldHandler(
    name="client",
    value_kind=ValueKind.STRING,
    target=FilterTarget.RESIDUAL,
    build_matcher=_match_client,
    description="Substring of the client name",
)

HOURS_FIELD = FieldHandler(
    name="hours",
    value_kind=ValueKind.NUMBER,
    target=FilterTarget.RESIDUAL,
    build_matcher=_match_hours,
    operators=THRESHOLD_OPERATORS,
    range_capable=True,
    description="Hours booked on the entry",
)


def register_entry_fields(registry: FieldRegistry, replace: bool = False) -> FieldRegistry:
    """Add the `client` and `hours` fields; returns the registry for chaining."""
    registry.register(CLIENT_FIELD, replace=replace)
    registry.register(HOURS_FIELD, replace=replace)
    return registry
