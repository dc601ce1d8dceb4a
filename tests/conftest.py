"""Pytest configuration for timesheet query tests

WHAT: Shared fixtures for settings, a fixed clock, entry construction and
      an in-memory data source
WHY: Every execution test needs a deterministic "today" and entries that
     are cheap to build; keeping them here keeps the tests about behaviour
REFERENCES:
    - timesheet_query/settings.py: Settings
    - timesheet_query/datasource/memory.py: InMemoryDataSource
    - timesheet_query/dsl/executor.py: QueryExecutor (clock injection)
"""

import asyncio
from datetime import date

import pytest

from timesheet_query.datasource import InMemoryDataSource, TimeEntry
from timesheet_query.dsl.executor import QueryExecutor
from timesheet_query.service import compile_query
from timesheet_query.settings import Settings

TODAY = date(2024, 8, 31)

TIMESHEET_ENV_VARS = (
    "TIMESHEET_CURRENCY_SYMBOL",
    "TIMESHEET_HOURS_PER_WORKDAY",
    "TIMESHEET_PROJECT_TYPE",
    "TIMESHEET_BUDGET_HOURS",
)


# ============================================================================
# Configuration Fixtures
# ============================================================================

@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def budget_settings() -> Settings:
    """Fixed-hours project with a 120h budget."""
    return Settings(project={"type": "fixed-hours", "budget_hours": 120})


@pytest.fixture
def clean_env(monkeypatch):
    """Remove TIMESHEET_* variables so host configuration cannot leak in."""
    for name in TIMESHEET_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def clock():
    return lambda: TODAY


# ============================================================================
# Entry / Data Source Fixtures
# ============================================================================

@pytest.fixture
def make_entry():
    """Factory: make_entry("2024-01-02", 8, rate=75, project="ACME-42")."""
    def _make(day, hours, **fields):
        return TimeEntry(date=day, hours=hours, **fields)
    return _make


@pytest.fixture
def sample_entries(make_entry):
    return [
        make_entry("2023-11-06", 6, rate=70, project="ACME-1", category="Development"),
        make_entry("2024-01-02", 8, rate=75, project="ACME-42", client="Acme", category="Development"),
        make_entry("2024-01-03", 7.5, rate=75, project="ACME-42", client="Acme", notes="API review"),
        make_entry("2024-02-05", 4, rate=90, project="Globex Audit", client="Globex", category="Consulting"),
        make_entry("2024-03-11", 8, project="Internal", category="Admin", notes="Planning"),
    ]


@pytest.fixture
def source(sample_entries) -> InMemoryDataSource:
    return InMemoryDataSource(sample_entries)


@pytest.fixture
def execute(clock):
    """Run query text through compile + execute synchronously."""
    def _execute(text, data_source, settings=None, registry=None):
        query = compile_query(text, registry)
        executor = QueryExecutor(data_source, settings=settings, registry=registry, clock=clock)
        return asyncio.run(executor.execute(query))
    return _execute
