"""Tests for engine settings.

WHAT: Defaults, budget applicability and TIMESHEET_* environment loading
WHY: Budget fields appear only for budget-tracking project types; a
     malformed environment must fail fast rather than default silently
"""

import pytest
from pydantic import ValidationError

from timesheet_query.settings import ProjectType, Settings


def test_defaults():
    settings = Settings()

    assert settings.currency_symbol == "€"
    assert settings.hours_per_workday == 8.0
    assert settings.project.type is ProjectType.HOURLY
    assert settings.budget_hours is None


@pytest.mark.parametrize(
    "project, expected",
    [
        ({"type": "fixed-hours", "budget_hours": 120}, 120),
        ({"type": "retainer", "budget_hours": 40}, 40),
        ({"type": "fixed-hours", "budget_hours": 0}, None),
        ({"type": "fixed-hours"}, None),
        ({"type": "hourly", "budget_hours": 120}, None),
    ],
)
def test_budget_hours_applicability(project, expected):
    assert Settings(project=project).budget_hours == expected


def test_validation():
    with pytest.raises(ValidationError):
        Settings(hours_per_workday=0)
    with pytest.raises(ValidationError):
        Settings(project={"type": "fixed-hours", "budget_hours": -1})
    with pytest.raises(ValidationError):
        Settings(project={"type": "weekly"})


def test_settings_are_frozen():
    settings = Settings()

    with pytest.raises(ValidationError):
        settings.currency_symbol = "$"


def test_from_env_defaults(clean_env):
    assert Settings.from_env() == Settings()


def test_from_env_reads_variables(clean_env):
    clean_env.setenv("TIMESHEET_CURRENCY_SYMBOL", "$")
    clean_env.setenv("TIMESHEET_HOURS_PER_WORKDAY", "7.5")
    clean_env.setenv("TIMESHEET_PROJECT_TYPE", "Fixed-Hours")
    clean_env.setenv("TIMESHEET_BUDGET_HOURS", "120")

    settings = Settings.from_env()

    assert settings.currency_symbol == "$"
    assert settings.hours_per_workday == 7.5
    assert settings.project.type is ProjectType.FIXED_HOURS
    assert settings.budget_hours == 120


def test_from_env_ignores_blank_values(clean_env):
    clean_env.setenv("TIMESHEET_CURRENCY_SYMBOL", "   ")

    assert Settings.from_env().currency_symbol == "€"


def test_from_env_rejects_malformed_values(clean_env):
    clean_env.setenv("TIMESHEET_HOURS_PER_WORKDAY", "eight")

    with pytest.raises(ValidationError):
        Settings.from_env()
