"""
Field Handler Registry
======================

Maps WHERE field names to handlers. The grammar never hard-codes field
names: the parser resolves each predicate field here, the interpreter
asks the handler how to normalize/validate the value, and the planner
asks it whether the predicate can be pushed down to the data source.

HANDLER VARIANTS
----------------
    PUSHDOWN  year, month, project, date
              Written into QueryOptions; the data source evaluates them.
              If a second predicate conflicts with one already pushed
              down it is evaluated in memory instead.
    RESIDUAL  service, category, utilization, value
              Evaluated in memory after retrieval.

Every handler can build an in-memory matcher, so any predicate can fall
back to residual evaluation.

EXTENDING
---------
    registry = default_registry()
    registry.register(FieldHandler(
        name="client",
        value_kind=ValueKind.STRING,
        target=FilterTarget.RESIDUAL,
        build_matcher=lambda p, s: lambda e: ...,
    ))
    parse(tokens, registry=registry)

See timesheet_query/dsl/extensions.py for bundled optional handlers.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, FrozenSet, Iterable, Iterator, List, Optional

from timesheet_query.datasource.types import DateRange, TimeEntry
from timesheet_query.dsl.schema import Predicate
from timesheet_query.metrics.formulas import daily_utilization
from timesheet_query.settings import Settings

logger = logging.getLogger(__name__)


class ValueKind(Enum):
    NUMBER = "number"
    STRING = "string"
    DATE = "date"


class FilterTarget(Enum):
    PUSHDOWN = "pushdown"
    RESIDUAL = "residual"


EQUALITY = frozenset({"="})
THRESHOLD_OPERATORS = frozenset({"=", ">", ">=", "<", "<="})

EntryMatcher = Callable[[TimeEntry], bool]
MatcherFactory = Callable[[Predicate, Settings], EntryMatcher]
# Writes the predicate into the options dict; returns False on conflict
PushdownApplier = Callable[[Predicate, Dict[str, Any]], bool]
ValueValidator = Callable[[Any], Any]


@dataclass(frozen=True)
class FieldHandler:
    """
    How one WHERE field is validated and evaluated.

    ATTRIBUTES:
        name: Field name as written in queries (case-insensitive)
        value_kind: Literal type the field expects
        target: PUSHDOWN (data source) or RESIDUAL (in memory)
        build_matcher: Factory for the in-memory predicate
        operators: Accepted comparison operators
        range_capable: Whether BETWEEN ... AND ... is allowed
        validate: Optional value check; returns the canonical value or
            raises ValueError with a user-facing message
        apply_pushdown: Required for PUSHDOWN handlers
        temporal: Restricts time; suppresses the PERIOD window when present
    """
    name: str
    value_kind: ValueKind
    target: FilterTarget
    build_matcher: MatcherFactory
    operators: FrozenSet[str] = EQUALITY
    range_capable: bool = False
    validate: Optional[ValueValidator] = None
    apply_pushdown: Optional[PushdownApplier] = None
    temporal: bool = False
    description: str = ""

    def __post_init__(self):
        if self.target is FilterTarget.PUSHDOWN and self.apply_pushdown is None:
            raise ValueError(f"Pushdown handler '{self.name}' needs apply_pushdown")

    def accepts(self, operator: str) -> bool:
        if operator == "BETWEEN":
            return self.range_capable
        return operator in self.operators

    def allowed_operators(self) -> List[str]:
        allowed = sorted(self.operators)
        if self.range_capable:
            allowed.append("BETWEEN")
        return allowed


class FieldRegistry:
    """Name -> FieldHandler mapping supplied to the parser and interpreter."""

    def __init__(self, handlers: Iterable[FieldHandler] = ()):
        self._handlers: Dict[str, FieldHandler] = {}
        for handler in handlers:
            self.register(handler)

    def register(self, handler: FieldHandler, replace: bool = False) -> None:
        key = handler.name.lower()
        if key in self._handlers and not replace:
            raise ValueError(f"Handler for field '{key}' already registered")
        self._handlers[key] = handler
        logger.debug(f"[REGISTRY] Registered {handler.target.value} field '{key}'")

    def unregister(self, name: str) -> None:
        self._handlers.pop(name.lower(), None)

    def get(self, name: str) -> Optional[FieldHandler]:
        return self._handlers.get(name.lower())

    def __getitem__(self, name: str) -> FieldHandler:
        handler = self.get(name)
        if handler is None:
            raise KeyError(name)
        return handler

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._handlers

    def __iter__(self) -> Iterator[FieldHandler]:
        return iter(self._handlers.values())

    def __len__(self) -> int:
        return len(self._handlers)

    def names(self) -> List[str]:
        return sorted(self._handlers)

    def copy(self) -> "FieldRegistry":
        return FieldRegistry(self._handlers.values())


# =====================================================================
# Shared helpers
# =====================================================================

def threshold_check(predicate: Predicate) -> Callable[[float], bool]:
    """
    Numeric comparison for threshold fields.

    "=" means "at least", matching how thresholds read in queries
    (`utilization = 0.8` keeps days at or above 80%).
    """
    low = predicate.value
    op = predicate.operator
    if op == "BETWEEN":
        high = predicate.upper
        return lambda actual: low <= actual <= high
    if op in ("=", ">="):
        return lambda actual: actual >= low
    if op == ">":
        return lambda actual: actual > low
    if op == "<":
        return lambda actual: actual < low
    if op == "<=":
        return lambda actual: actual <= low
    raise ValueError(f"Unsupported threshold operator '{op}'")


def contains_text(needle: str, *haystacks: Optional[str]) -> bool:
    """Case-insensitive substring match against any non-empty haystack."""
    lowered = needle.lower()
    return any(h and lowered in h.lower() for h in haystacks)


def _integer_between(low: int, high: int, label: str) -> ValueValidator:
    def check(value):
        if isinstance(value, float):
            if not value.is_integer():
                raise ValueError(f"{label} must be a whole number, got {value}")
            value = int(value)
        if not low <= value <= high:
            raise ValueError(f"{label} must be between {low} and {high}, got {value}")
        return value
    return check


def _non_negative(label: str) -> ValueValidator:
    def check(value):
        if value < 0:
            raise ValueError(f"{label} cannot be negative, got {value}")
        return value
    return check


def _non_empty(label: str) -> ValueValidator:
    def check(value):
        if not value.strip():
            raise ValueError(f"{label} cannot be empty")
        return value
    return check


def _set_once(options: Dict[str, Any], key: str, value: Any) -> bool:
    if key in options and options[key] != value:
        return False
    options[key] = value
    return True


# =====================================================================
# Built-in handlers
# =====================================================================

def _push_year(predicate: Predicate, options: Dict[str, Any]) -> bool:
    return _set_once(options, "year", predicate.value)


def _push_month(predicate: Predicate, options: Dict[str, Any]) -> bool:
    return _set_once(options, "month", predicate.value)


def _push_project(predicate: Predicate, options: Dict[str, Any]) -> bool:
    return _set_once(options, "project_filter", predicate.value)


def _push_date(predicate: Predicate, options: Dict[str, Any]) -> bool:
    end = predicate.upper if predicate.is_range else predicate.value
    return _set_once(options, "date_range", DateRange(start=predicate.value, end=end))


def _match_year(predicate: Predicate, settings: Settings) -> EntryMatcher:
    return lambda entry: entry.date.year == predicate.value


def _match_month(predicate: Predicate, settings: Settings) -> EntryMatcher:
    return lambda entry: entry.date.month == predicate.value


def _match_project(predicate: Predicate, settings: Settings) -> EntryMatcher:
    return lambda entry: contains_text(predicate.value, entry.project)


def _match_date(predicate: Predicate, settings: Settings) -> EntryMatcher:
    start = predicate.value
    end = predicate.upper if predicate.is_range else predicate.value
    return lambda entry: start <= entry.date <= end


def _match_service(predicate: Predicate, settings: Settings) -> EntryMatcher:
    return lambda entry: contains_text(predicate.value, entry.project, entry.notes)


def _match_category(predicate: Predicate, settings: Settings) -> EntryMatcher:
    return lambda entry: contains_text(predicate.value, entry.category, entry.notes)


def _match_utilization(predicate: Predicate, settings: Settings) -> EntryMatcher:
    check = threshold_check(predicate)
    hours_per_workday = settings.hours_per_workday
    return lambda entry: check(daily_utilization(entry.hours, hours_per_workday))


def _match_value(predicate: Predicate, settings: Settings) -> EntryMatcher:
    check = threshold_check(predicate)
    return lambda entry: check(entry.rate or 0.0)


BUILTIN_HANDLERS = (
    FieldHandler(
        name="year",
        value_kind=ValueKind.NUMBER,
        target=FilterTarget.PUSHDOWN,
        build_matcher=_match_year,
        validate=_integer_between(1, 9999, "year"),
        apply_pushdown=_push_year,
        temporal=True,
        description="Calendar year of the entry",
    ),
    FieldHandler(
        name="month",
        value_kind=ValueKind.NUMBER,
        target=FilterTarget.PUSHDOWN,
        build_matcher=_match_month,
        validate=_integer_between(1, 12, "month"),
        apply_pushdown=_push_month,
        temporal=True,
        description="Calendar month (1-12) of the entry",
    ),
    FieldHandler(
        name="project",
        value_kind=ValueKind.STRING,
        target=FilterTarget.PUSHDOWN,
        build_matcher=_match_project,
        validate=_non_empty("project"),
        apply_pushdown=_push_project,
        description="Case-insensitive substring of the project / work order",
    ),
    FieldHandler(
        name="date",
        value_kind=ValueKind.DATE,
        target=FilterTarget.PUSHDOWN,
        build_matcher=_match_date,
        range_capable=True,
        apply_pushdown=_push_date,
        temporal=True,
        description="Entry date, a single day or an inclusive range",
    ),
    FieldHandler(
        name="service",
        value_kind=ValueKind.STRING,
        target=FilterTarget.RESIDUAL,
        build_matcher=_match_service,
        validate=_non_empty("service"),
        description="Substring of the project or notes",
    ),
    FieldHandler(
        name="category",
        value_kind=ValueKind.STRING,
        target=FilterTarget.RESIDUAL,
        build_matcher=_match_category,
        validate=_non_empty("category"),
        description="Substring of the category or notes",
    ),
    FieldHandler(
        name="utilization",
        value_kind=ValueKind.NUMBER,
        target=FilterTarget.RESIDUAL,
        build_matcher=_match_utilization,
        operators=THRESHOLD_OPERATORS,
        range_capable=True,
        validate=_non_negative("utilization"),
        description="Entry hours divided by hours per workday",
    ),
    FieldHandler(
        name="value",
        value_kind=ValueKind.NUMBER,
        target=FilterTarget.RESIDUAL,
        build_matcher=_match_value,
        operators=THRESHOLD_OPERATORS,
        range_capable=True,
        validate=_non_negative("value"),
        description="Hourly rate of the entry",
    ),
)


def default_registry() -> FieldRegistry:
    """Fresh registry holding the eight built-in fields."""
    return FieldRegistry(BUILTIN_HANDLERS)
