"""
Data Source Contract
====================

The narrow interface the query engine consumes to get time entries.

WHAT:
    - TimeEntry: one tracked record (read-only to the engine)
    - QueryOptions: the coarse filter a source can evaluate itself
    - TimesheetDataSource: async query() plus clear_cache()

WHY:
    How entries are extracted (daily notes, frontmatter, tables) is the
    host application's business. The executor only needs entries that
    satisfy the coarse filter and have non-negative hours.

Related:
- timesheet_query/datasource/memory.py: in-memory reference implementation
- timesheet_query/dsl/planner.py: builds QueryOptions from a Query
"""

from __future__ import annotations

from abc import ABC, abstractmethod
import datetime as dt
from typing import Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, model_validator

from timesheet_query.metrics.formulas import entry_invoiced


class TimeEntry(BaseModel):
    """
    One time-tracked record.

    Examples:
        TimeEntry(date=dt.date(2024, 1, 2), hours=8, rate=75, project="ACME-42")
        TimeEntry(date="2024-01-03", hours=7.5)  # no rate: invoices 0
    """
    model_config = ConfigDict(frozen=True)

    date: dt.date
    hours: float = Field(ge=0, description="Hours worked (never negative)")
    rate: Optional[float] = Field(default=None, description="Currency units per hour")
    project: Optional[str] = None
    client: Optional[str] = None
    category: Optional[str] = None
    notes: Optional[str] = None

    @property
    def invoiced(self) -> float:
        return entry_invoiced(self.hours, self.rate)

    def sort_key(self):
        """Total ordering so repeated executions produce identical output."""
        return (
            self.date,
            self.project or "",
            self.client or "",
            self.category or "",
            self.notes or "",
            self.hours,
            self.rate or 0.0,
        )


class DateRange(BaseModel):
    """Inclusive calendar range."""
    model_config = ConfigDict(frozen=True)

    start: dt.date
    end: dt.date

    @model_validator(mode="after")
    def _check_order(self):
        if self.end < self.start:
            raise ValueError("end date must be >= start date")
        return self

    def contains(self, value: dt.date) -> bool:
        return self.start <= value <= self.end


class QueryOptions(BaseModel):
    """
    Coarse filter pushed down to the data source.

    All set fields are ANDed. project_filter is a case-insensitive
    substring match on the entry project.
    """
    model_config = ConfigDict(frozen=True)

    year: Optional[int] = None
    month: Optional[int] = Field(default=None, ge=1, le=12)
    project_filter: Optional[str] = None
    date_range: Optional[DateRange] = None

    def cache_key(self) -> str:
        return self.model_dump_json()


class TimesheetDataSource(ABC):
    """
    Abstract source of time entries.

    Methods:
        query(): Return entries believed to satisfy the options (unordered)
        clear_cache(): Drop any cached results; safe to call at any time
    """

    @abstractmethod
    async def query(self, options: Optional[QueryOptions] = None) -> Sequence[TimeEntry]:
        pass

    @abstractmethod
    def clear_cache(self) -> None:
        pass
