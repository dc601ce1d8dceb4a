"""
Query Executor
==============

Resolves a Query against a TimesheetDataSource and aggregates the result.

Pipeline (one call to execute()):
    1. Coarse retrieval   plan.options -> data_source.query()   (only await)
    2. Residual filtering predicates the source could not evaluate
    3. Monthly buckets    hours, invoiced, rate, utilization, cumulative, budget
    4. Trend              ascending months, truncated per PERIOD/SIZE
    5. Summaries          requested set, current year, all time

Steps 2-5 are pure functions of (entries, query, settings, today); running
the same query twice over the same entries yields identical output.

Failure semantics:
    Data source exceptions are logged and re-raised as ExecutionError with
    the original as __cause__. No retries. Empty results are not errors.

Related:
- timesheet_query/dsl/planner.py: builds the RetrievalPlan
- timesheet_query/metrics/formulas.py: utilization / budget formulas
- timesheet_query/dsl/schema.py: ProcessedData and friends
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from timesheet_query.datasource.types import QueryOptions, TimeEntry, TimesheetDataSource
from timesheet_query.dsl.errors import ErrorCode, ExecutionError
from timesheet_query.dsl.planner import RetrievalPlan, build_retrieval_plan
from timesheet_query.dsl.registry import EntryMatcher, FieldRegistry, default_registry
from timesheet_query.dsl.schema import (
    MonthlyDataPoint,
    Predicate,
    ProcessedData,
    Query,
    SummaryData,
    TrendData,
)
from timesheet_query.metrics.formulas import (
    budget_figures,
    safe_ratio,
    target_hours_for_month,
    target_hours_for_months,
)
from timesheet_query.settings import Settings
from timesheet_query.utils.dates import month_label

logger = logging.getLogger(__name__)

Clock = Callable[[], date]


# =====================================================================
# Pure aggregation
# =====================================================================

def apply_residual(
    entries: Iterable[TimeEntry],
    predicates: Sequence[Predicate],
    registry: FieldRegistry,
    settings: Settings,
) -> List[TimeEntry]:
    """Keep entries that satisfy every residual predicate (AND, left to right)."""
    matchers: List[EntryMatcher] = [
        registry[p.field].build_matcher(p, settings) for p in predicates
    ]
    return [entry for entry in entries if all(match(entry) for match in matchers)]


def group_by_month(entries: Iterable[TimeEntry]) -> Dict[Tuple[int, int], List[TimeEntry]]:
    buckets: Dict[Tuple[int, int], List[TimeEntry]] = defaultdict(list)
    for entry in entries:
        buckets[(entry.date.year, entry.date.month)].append(entry)
    return buckets


def build_monthly_data(entries: Sequence[TimeEntry], settings: Settings) -> List[MonthlyDataPoint]:
    """
    One point per (year, month), ascending.

    cumulative_hours is a running sum in chronological order; budget
    fields compare that running sum against the configured budget.
    """
    budget = settings.budget_hours
    points: List[MonthlyDataPoint] = []
    cumulative = 0.0

    for (year, month), bucket in sorted(group_by_month(entries).items()):
        hours = sum(e.hours for e in bucket)
        invoiced = sum(e.invoiced for e in bucket)
        target = target_hours_for_month(year, month, settings.hours_per_workday)
        cumulative += hours
        progress, remaining = budget_figures(cumulative, budget)

        point = MonthlyDataPoint(
            year=year,
            month=month,
            label=month_label(year, month),
            hours=hours,
            invoiced=invoiced,
            utilization=safe_ratio(hours, target),
            rate=safe_ratio(invoiced, hours),
            cumulative_hours=cumulative,
            budget_hours=budget,
            budget_progress=progress,
            budget_remaining=remaining,
        )
        logger.debug(
            f"[EXECUTOR] {point.label}: hours={hours} target={target} "
            f"utilization={point.utilization:.3f}"
        )
        points.append(point)

    return points


def build_trend(points: Sequence[MonthlyDataPoint], limit: Optional[int] = None) -> TrendData:
    """Chronological trend series, keeping the last `limit` months when given."""
    ordered = sorted(points, key=lambda p: (p.year, p.month))
    if limit:
        ordered = ordered[-limit:]
    return TrendData(
        labels=[p.label for p in ordered],
        hours=[p.hours for p in ordered],
        utilization=[p.utilization for p in ordered],
        invoiced=[p.invoiced for p in ordered],
    )


def build_summary(entries: Sequence[TimeEntry], settings: Settings) -> SummaryData:
    """
    Rollup over a whole entry set.

    Target hours are summed over every distinct month represented, so a
    set spanning January and March does not count February.
    """
    total_hours = sum(e.hours for e in entries)
    total_invoiced = sum(e.invoiced for e in entries)
    target = target_hours_for_months(
        ((e.date.year, e.date.month) for e in entries),
        settings.hours_per_workday,
    )
    budget = settings.budget_hours
    progress, remaining = budget_figures(total_hours, budget)

    return SummaryData(
        total_hours=total_hours,
        total_invoiced=total_invoiced,
        utilization=safe_ratio(total_hours, target),
        budget_hours=budget,
        budget_progress=progress,
        budget_remaining=remaining,
    )


def aggregate(
    entries: Iterable[TimeEntry],
    plan: RetrievalPlan,
    settings: Settings,
) -> ProcessedData:
    """Steps 3-5 over already filtered entries."""
    ordered = sorted(entries, key=TimeEntry.sort_key)
    monthly = build_monthly_data(ordered, settings)
    this_year = [e for e in ordered if e.date.year == plan.today.year]

    return ProcessedData(
        entries=ordered,
        monthly_data=monthly,
        trend_data=build_trend(monthly, plan.trend_points),
        summary=build_summary(ordered, settings),
        year_summary=build_summary(this_year, settings),
        all_time_summary=build_summary(ordered, settings),
    )


# =====================================================================
# Executor
# =====================================================================

class QueryExecutor:
    """
    Runs Queries against one data source.

    Usage:
        executor = QueryExecutor(source, settings)
        data = await executor.execute(query)

    One in-flight execute() per instance; the executor holds no state
    between calls apart from its collaborators.
    """

    def __init__(
        self,
        data_source: TimesheetDataSource,
        settings: Optional[Settings] = None,
        registry: Optional[FieldRegistry] = None,
        clock: Clock = date.today,
    ):
        self.data_source = data_source
        self.settings = settings or Settings()
        self.registry = registry if registry is not None else default_registry()
        self.clock = clock

    async def execute(self, query: Query) -> ProcessedData:
        plan = build_retrieval_plan(query, self.registry, self.clock())
        logger.info(
            f"[EXECUTOR] Executing view={query.view.value} period={query.period.value} "
            f"with {len(query.where)} predicate(s), {len(plan.residual)} residual"
        )

        entries = await self._fetch(plan.options)
        filtered = apply_residual(entries, plan.residual, self.registry, self.settings)
        result = aggregate(filtered, plan, self.settings)

        logger.info(
            f"[EXECUTOR] Completed: {len(entries)} retrieved, {len(filtered)} kept, "
            f"{len(result.monthly_data)} month(s)"
        )
        return result

    async def get_available_months(self) -> List[MonthlyDataPoint]:
        """Monthly points over every entry the source knows about."""
        entries = await self._fetch(QueryOptions())
        return build_monthly_data(sorted(entries, key=TimeEntry.sort_key), self.settings)

    def clear_cache(self) -> None:
        self.data_source.clear_cache()
        logger.info("[EXECUTOR] Data source cache cleared")

    async def _fetch(self, options: QueryOptions) -> List[TimeEntry]:
        try:
            entries = await self.data_source.query(options)
        except Exception as e:
            logger.exception(f"[EXECUTOR] Data source query failed for {options.cache_key()}")
            raise ExecutionError(
                f"Data source query failed: {e}",
                code=ErrorCode.DATA_SOURCE_ERROR,
            ) from e
        return list(entries)
