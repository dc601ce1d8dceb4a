"""
Timesheet Formulas
==================

Pure functions for the derived numbers the executor reports.

Every ratio goes through a divide-by-zero guard: an empty month, a month
with no working days or a zero budget yields 0 (or no budget fields),
never NaN or infinity.

Used by:
- timesheet_query/dsl/executor.py (monthly points and summaries)
- timesheet_query/dsl/registry.py (per-entry utilization threshold)
- timesheet_query/datasource/types.py (TimeEntry.invoiced)
"""

from __future__ import annotations

from typing import Iterable, Optional, Tuple

from timesheet_query.utils.dates import working_days_in_month


def safe_ratio(numerator: float, denominator: float) -> float:
    return numerator / denominator if denominator > 0 else 0.0


def target_hours_for_month(year: int, month: int, hours_per_workday: float) -> float:
    """Working days (Mon-Fri) in the month times the configured workday length."""
    return working_days_in_month(year, month) * hours_per_workday


def target_hours_for_months(months: Iterable[Tuple[int, int]], hours_per_workday: float) -> float:
    """Sum of target hours over each distinct (year, month) pair."""
    return sum(
        target_hours_for_month(year, month, hours_per_workday)
        for year, month in set(months)
    )


def entry_invoiced(hours: float, rate: Optional[float]) -> float:
    return hours * (rate or 0.0)


def daily_utilization(hours: float, hours_per_workday: float) -> float:
    """Utilization of a single entry against one workday."""
    return safe_ratio(hours, hours_per_workday)


def budget_figures(used_hours: float, budget_hours: Optional[float]) -> Tuple[Optional[float], Optional[float]]:
    """
    Progress and remaining hours against a fixed budget.

    Returns (None, None) unless budget_hours > 0. Values are not clamped:
    an overrun gives progress above 1 and negative remaining hours.

    Examples:
        >>> budget_figures(78.5, 120)
        (0.6541666666666667, 41.5)
    """
    if not budget_hours or budget_hours <= 0:
        return None, None
    return used_hours / budget_hours, budget_hours - used_hours
