"""
Query Engine Settings
=====================

Read-only configuration consumed by the executor.

Fields:
- currency_symbol: Symbol used by FORMAT CURRENCY/MONEY columns (default "€")
- hours_per_workday: Length of a working day in hours (default 8)
- project.type: "hourly", "fixed-hours" or "retainer"
- project.budget_hours: Hour budget; enables budget fields for the
  fixed-hours and retainer project types

Examples:
    Settings()  # € / 8h / hourly, no budget
    Settings(project={"type": "fixed-hours", "budget_hours": 120})
    Settings.from_env()  # TIMESHEET_* variables, .env supported

Related:
- timesheet_query/dsl/executor.py: consumes hours_per_workday and budget
- timesheet_query/dsl/columns.py: consumes currency_symbol
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from timesheet_query.utils.env import load_env_file, optional_env


class ProjectType(str, Enum):
    """
    How the tracked work is billed.

    - HOURLY: Open-ended time and materials, no budget tracking
    - FIXED_HOURS: Fixed hour budget, progress tracked against it
    - RETAINER: Recurring hour allotment, tracked like a budget
    """
    HOURLY = "hourly"
    FIXED_HOURS = "fixed-hours"
    RETAINER = "retainer"


BUDGET_PROJECT_TYPES = {ProjectType.FIXED_HOURS, ProjectType.RETAINER}


class ProjectSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: ProjectType = ProjectType.HOURLY
    budget_hours: Optional[float] = Field(
        default=None,
        ge=0,
        description="Total hour budget (fixed-hours/retainer projects only)"
    )


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    currency_symbol: str = Field(default="€", min_length=1)
    hours_per_workday: float = Field(default=8.0, gt=0)
    project: ProjectSettings = Field(default_factory=ProjectSettings)

    @property
    def budget_hours(self) -> Optional[float]:
        """
        Budget that applies to aggregation, or None.

        Only budget-tracking project types with a positive budget qualify.
        """
        if self.project.type not in BUDGET_PROJECT_TYPES:
            return None
        if not self.project.budget_hours or self.project.budget_hours <= 0:
            return None
        return self.project.budget_hours

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Build settings from TIMESHEET_* environment variables.

        A local .env file is loaded first without overriding variables the
        host already set. Unset variables keep their defaults; malformed
        ones raise pydantic.ValidationError.
        """
        load_env_file()

        values = {}
        currency = optional_env("TIMESHEET_CURRENCY_SYMBOL")
        if currency is not None:
            values["currency_symbol"] = currency
        hours = optional_env("TIMESHEET_HOURS_PER_WORKDAY")
        if hours is not None:
            values["hours_per_workday"] = hours

        project = {}
        project_type = optional_env("TIMESHEET_PROJECT_TYPE")
        if project_type is not None:
            project["type"] = project_type.lower()
        budget = optional_env("TIMESHEET_BUDGET_HOURS")
        if budget is not None:
            project["budget_hours"] = budget
        if project:
            values["project"] = project

        return cls.model_validate(values)
