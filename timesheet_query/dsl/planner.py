"""
Retrieval Planner
=================

Converts a normalized Query into what the executor needs to fetch and
filter entries.

WHY a planner?
- Separates WHAT (query intent) from HOW (data source options + in-memory filters)
- Makes pushdown decisions testable without a data source
- Resolves relative PERIOD windows against an explicit "today"

Design:
- Pure function: (Query, registry, today) -> RetrievalPlan
- PUSHDOWN predicates go into QueryOptions; a predicate that conflicts
  with one already pushed down (e.g. two different years) stays residual
- PERIOD becomes a coarse filter only when WHERE has no temporal
  predicate (year/month/date); explicit temporal predicates win
- Trend truncation is decided here too, so the executor only slices

Related:
- timesheet_query/dsl/schema.py: input type (Query)
- timesheet_query/dsl/executor.py: consumes RetrievalPlan
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from timesheet_query.datasource.types import DateRange, QueryOptions
from timesheet_query.dsl.registry import FieldRegistry, FilterTarget, default_registry
from timesheet_query.dsl.schema import (
    COMPACT_TREND_POINTS,
    PERIOD_TREND_POINTS,
    PeriodType,
    Predicate,
    Query,
    SizeType,
)
from timesheet_query.utils.dates import add_months

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetrievalPlan:
    """
    How one Query is resolved against a data source.

    Attributes:
        options: Coarse filter passed to TimesheetDataSource.query()
        residual: Predicates evaluated in memory, in query order
        period_window: Date range the PERIOD clause contributed, if any
        period_year: Year the PERIOD clause contributed (current-year), if any
        trend_points: Number of trailing months kept in the trend, None = all
        today: The "now" every relative window was resolved against

    Example:
        RetrievalPlan(
            options=QueryOptions(year=2024, project_filter="acme"),
            residual=(Predicate("utilization", ">=", 0.8),),
            period_window=None,
            period_year=None,
            trend_points=None,
            today=date(2024, 8, 31),
        )
    """
    options: QueryOptions
    residual: Tuple[Predicate, ...]
    period_window: Optional[DateRange]
    period_year: Optional[int]
    trend_points: Optional[int]
    today: date


def resolve_period(period: PeriodType, today: date) -> Dict[str, Any]:
    """
    Translate a PERIOD into QueryOptions fields.

    Examples:
        current-year   -> {"year": 2024}
        last-6-months  -> {"date_range": DateRange(2024-02-29, 2024-08-31)}  # today = 2024-08-31
        all-time       -> {}
    """
    if period is PeriodType.CURRENT_YEAR:
        return {"year": today.year}
    months = PERIOD_TREND_POINTS.get(period)
    if months is not None:
        return {"date_range": DateRange(start=add_months(today, -months), end=today)}
    return {}


def trend_points_for(query: Query) -> Optional[int]:
    """Rolling periods truncate first; SIZE compact applies only otherwise."""
    if query.period in PERIOD_TREND_POINTS:
        return PERIOD_TREND_POINTS[query.period]
    if query.size is SizeType.COMPACT:
        return COMPACT_TREND_POINTS
    return None


def build_retrieval_plan(
    query: Query,
    registry: Optional[FieldRegistry] = None,
    today: Optional[date] = None,
) -> RetrievalPlan:
    registry = registry if registry is not None else default_registry()
    today = today or date.today()

    options: Dict[str, Any] = {}
    residual: List[Predicate] = []
    has_temporal = False

    for predicate in query.where:
        handler = registry[predicate.field]
        has_temporal = has_temporal or handler.temporal
        if handler.target is FilterTarget.PUSHDOWN and handler.apply_pushdown(predicate, options):
            continue
        if handler.target is FilterTarget.PUSHDOWN:
            logger.debug(f"[PLANNER] '{predicate.describe()}' conflicts with pushed-down filter, evaluating in memory")
        residual.append(predicate)

    period_window = None
    period_year = None
    if not has_temporal:
        contribution = resolve_period(query.period, today)
        options.update(contribution)
        period_window = contribution.get("date_range")
        period_year = contribution.get("year")

    plan = RetrievalPlan(
        options=QueryOptions(**options),
        residual=tuple(residual),
        period_window=period_window,
        period_year=period_year,
        trend_points=trend_points_for(query),
        today=today,
    )
    logger.debug(f"[PLANNER] {explain_plan(plan)}")
    return plan


def explain_plan(plan: RetrievalPlan) -> str:
    """
    One-line, human-readable description of a plan.

    Example:
        "pushdown: year=2024, project_filter=acme | residual: utilization >= 0.8 | trend: last 6"
    """
    pushed = [
        f"{name}={value}"
        for name, value in plan.options.model_dump(exclude_none=True, exclude={"date_range"}).items()
    ]
    if plan.options.date_range is not None:
        pushed.append(f"date_range={plan.options.date_range.start}..{plan.options.date_range.end}")

    parts = [
        f"pushdown: {', '.join(pushed) or 'none'}",
        f"residual: {', '.join(p.describe() for p in plan.residual) or 'none'}",
        f"trend: {'last ' + str(plan.trend_points) if plan.trend_points else 'all'}",
    ]
    return " | ".join(parts)
