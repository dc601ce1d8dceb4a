"""
Query Schema
============

The normalized, immutable query the interpreter produces and the
planner/executor consume.

WHAT:
    - Enumerations for VIEW/CHART/PERIOD/SIZE and SHOW formats
    - Predicate: one normalized WHERE condition
    - ColumnSpec: one SHOW column
    - Query: every field mandatory after interpretation (defaults applied)
    - MonthlyDataPoint / SummaryData / TrendData / ProcessedData: executor output

WHY:
    Nothing downstream should ever check "was VIEW given?". Defaults are
    filled in once; whether a clause was explicit lives in the separate
    `explicit` provenance set.

Examples:
    Query()  # summary / monthly / current-year / normal, no predicates
    Query(view=ViewType.TABLE, size=SizeType.COMPACT,
          where=(Predicate("year", "=", 2024),))

Related:
- timesheet_query/dsl/interpreter.py: builds Query from the AST
- timesheet_query/dsl/planner.py: turns Query into data source options
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import FrozenSet, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from timesheet_query.datasource.types import TimeEntry


class ViewType(str, Enum):
    SUMMARY = "summary"
    CHART = "chart"
    TABLE = "table"
    FULL = "full"


class ChartType(str, Enum):
    MONTHLY = "monthly"
    TREND = "trend"
    BUDGET = "budget"


class PeriodType(str, Enum):
    """
    Named time window.

    - CURRENT_YEAR: calendar year of "now" (default)
    - ALL_TIME: no time restriction
    - LAST_6_MONTHS / LAST_12_MONTHS: rolling window ending "now";
      also truncates the trend series to 6/12 points
    """
    CURRENT_YEAR = "current-year"
    ALL_TIME = "all-time"
    LAST_6_MONTHS = "last-6-months"
    LAST_12_MONTHS = "last-12-months"


class SizeType(str, Enum):
    COMPACT = "compact"
    NORMAL = "normal"
    DETAILED = "detailed"


class FormatKind(str, Enum):
    CURRENCY = "currency"
    MONEY = "money"
    PERCENT = "percent"


# Views that may carry a CHART clause
CHART_VIEWS = frozenset({ViewType.CHART, ViewType.FULL})

# Months kept in the trend series for rolling periods
PERIOD_TREND_POINTS = {
    PeriodType.LAST_6_MONTHS: 6,
    PeriodType.LAST_12_MONTHS: 12,
}
COMPACT_TREND_POINTS = 6

PredicateValue = Union[int, float, str, date]


@dataclass(frozen=True)
class Predicate:
    """
    Normalized WHERE condition.

    value holds an int/float, a str or a date depending on the field;
    upper is set only for BETWEEN.
    """
    field: str
    operator: str
    value: PredicateValue
    upper: Optional[PredicateValue] = None

    @property
    def is_range(self) -> bool:
        return self.operator == "BETWEEN"

    def describe(self) -> str:
        if self.is_range:
            return f"{self.field} BETWEEN {self.value} AND {self.upper}"
        return f"{self.field} {self.operator} {self.value}"


@dataclass(frozen=True)
class ColumnSpec:
    field: str
    alias: Optional[str] = None
    format: Optional[FormatKind] = None


@dataclass(frozen=True)
class Query:
    where: Tuple[Predicate, ...] = ()
    show: Tuple[ColumnSpec, ...] = ()
    view: ViewType = ViewType.SUMMARY
    chart: ChartType = ChartType.MONTHLY
    period: PeriodType = PeriodType.CURRENT_YEAR
    size: SizeType = SizeType.NORMAL
    explicit: FrozenSet[str] = field(default_factory=frozenset)

    def is_explicit(self, clause: str) -> bool:
        """Whether a clause ("view", "period", ...) was written rather than defaulted."""
        return clause.lower() in self.explicit

    def to_dict(self) -> dict:
        """JSON-friendly representation (dates as ISO strings)."""
        def _plain(value):
            return value.isoformat() if isinstance(value, date) else value

        return {
            "where": [
                {
                    "field": p.field,
                    "operator": p.operator,
                    "value": _plain(p.value),
                    **({"upper": _plain(p.upper)} if p.is_range else {}),
                }
                for p in self.where
            ],
            "show": [
                {
                    "field": c.field,
                    "alias": c.alias,
                    "format": c.format.value if c.format else None,
                }
                for c in self.show
            ],
            "view": self.view.value,
            "chart": self.chart.value,
            "period": self.period.value,
            "size": self.size.value,
            "explicit": sorted(self.explicit),
        }


# =====================================================================
# RESULTS
# =====================================================================

class MonthlyDataPoint(BaseModel):
    """
    Aggregate for one (year, month) bucket.

    Budget fields are present only when a budget applies (see Settings.budget_hours).

    Example:
        {
            "year": 2024, "month": 1, "label": "January 2024",
            "hours": 15.5, "invoiced": 1162.5, "rate": 75.0,
            "utilization": 0.0842, "cumulative_hours": 15.5,
            "budget_hours": None, "budget_progress": None,
            "budget_remaining": None
        }
    """
    model_config = ConfigDict(frozen=True)

    year: int
    month: int = Field(ge=1, le=12)
    label: str
    hours: float
    invoiced: float
    utilization: float = Field(description="hours / target hours; 0 when target is 0")
    rate: float = Field(description="invoiced / hours; 0 when hours is 0")
    cumulative_hours: float = Field(description="Running total in chronological order")
    budget_hours: Optional[float] = None
    budget_progress: Optional[float] = None
    budget_remaining: Optional[float] = None


class SummaryData(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_hours: float = 0.0
    total_invoiced: float = 0.0
    utilization: float = 0.0
    budget_hours: Optional[float] = None
    budget_progress: Optional[float] = None
    budget_remaining: Optional[float] = None


class TrendData(BaseModel):
    """Parallel arrays, one element per month, oldest first."""
    model_config = ConfigDict(frozen=True)

    labels: List[str] = Field(default_factory=list)
    hours: List[float] = Field(default_factory=list)
    utilization: List[float] = Field(default_factory=list)
    invoiced: List[float] = Field(default_factory=list)


class ProcessedData(BaseModel):
    """
    Everything one execution produces.

    entries: filtered entries in deterministic order
    monthly_data: ascending by (year, month)
    summary: the requested (filtered) set
    year_summary: the subset falling in the current calendar year
    all_time_summary: every filtered entry regardless of year
    """
    model_config = ConfigDict(frozen=True)

    entries: List[TimeEntry] = Field(default_factory=list)
    monthly_data: List[MonthlyDataPoint] = Field(default_factory=list)
    trend_data: TrendData = Field(default_factory=TrendData)
    summary: SummaryData = Field(default_factory=SummaryData)
    year_summary: SummaryData = Field(default_factory=SummaryData)
    all_time_summary: SummaryData = Field(default_factory=SummaryData)
