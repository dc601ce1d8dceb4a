"""
SHOW Columns
============

Catalog of columns a SHOW clause may name, and projection of entries into
display rows honoring aliases and FORMAT directives.

    SHOW date AS "Date", project AS "Work Order", hours, invoiced FORMAT MONEY

Rendering the rows (HTML, Markdown) belongs to the host application;
this module stops at header + string cells.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from timesheet_query.datasource.types import TimeEntry
from timesheet_query.dsl.schema import ColumnSpec, FormatKind
from timesheet_query.formatters import fmt_currency, fmt_hours, fmt_number, fmt_percent
from timesheet_query.metrics.formulas import daily_utilization
from timesheet_query.settings import Settings


class ColumnKind(Enum):
    DATE = "date"
    TEXT = "text"
    HOURS = "hours"
    CURRENCY = "currency"
    PERCENT = "percent"


@dataclass(frozen=True)
class ColumnDefinition:
    key: str
    label: str
    kind: ColumnKind
    getter: Callable[[TimeEntry, Settings], Any]
    description: str = ""


COLUMN_CATALOG: Dict[str, ColumnDefinition] = {
    column.key: column
    for column in (
        ColumnDefinition("date", "Date", ColumnKind.DATE, lambda e, s: e.date, "Entry date"),
        ColumnDefinition("project", "Project", ColumnKind.TEXT, lambda e, s: e.project, "Project / work order"),
        ColumnDefinition("client", "Client", ColumnKind.TEXT, lambda e, s: e.client, "Client name"),
        ColumnDefinition("category", "Category", ColumnKind.TEXT, lambda e, s: e.category, "Service category"),
        ColumnDefinition("notes", "Notes", ColumnKind.TEXT, lambda e, s: e.notes, "Free-form notes"),
        ColumnDefinition("hours", "Hours", ColumnKind.HOURS, lambda e, s: e.hours, "Hours worked"),
        ColumnDefinition("rate", "Rate", ColumnKind.CURRENCY, lambda e, s: e.rate, "Hourly rate"),
        ColumnDefinition("invoiced", "Invoiced", ColumnKind.CURRENCY, lambda e, s: e.invoiced, "Hours x rate"),
        ColumnDefinition(
            "utilization", "Utilization", ColumnKind.PERCENT,
            lambda e, s: daily_utilization(e.hours, s.hours_per_workday),
            "Hours divided by hours per workday",
        ),
    )
}

DEFAULT_TABLE_COLUMNS = (
    ColumnSpec("date"),
    ColumnSpec("project"),
    ColumnSpec("hours"),
    ColumnSpec("invoiced"),
)


@dataclass(frozen=True)
class Table:
    headers: List[str]
    rows: List[List[str]]


def format_cell(value: Any, kind: ColumnKind, fmt: Optional[FormatKind], settings: Settings) -> str:
    """Format one value; an explicit FORMAT wins over the column's own kind."""
    if value is None:
        return ""
    if fmt in (FormatKind.CURRENCY, FormatKind.MONEY):
        return fmt_currency(value, settings.currency_symbol)
    if fmt is FormatKind.PERCENT:
        return fmt_percent(value)

    if kind is ColumnKind.DATE:
        return value.isoformat()
    if kind is ColumnKind.HOURS:
        return fmt_hours(value)
    if kind is ColumnKind.CURRENCY:
        return fmt_currency(value, settings.currency_symbol)
    if kind is ColumnKind.PERCENT:
        return fmt_percent(value)
    if isinstance(value, float):
        return fmt_number(value)
    return str(value)


def build_table(
    entries: Iterable[TimeEntry],
    columns: Sequence[ColumnSpec],
    settings: Settings,
) -> Table:
    """
    Project entries onto SHOW columns.

    Empty `columns` falls back to date / project / hours / invoiced.
    Headers use the alias when given, else the column's default label.
    """
    specs = list(columns) or list(DEFAULT_TABLE_COLUMNS)
    definitions = [COLUMN_CATALOG[spec.field] for spec in specs]

    headers = [spec.alias or definition.label for spec, definition in zip(specs, definitions)]
    rows = [
        [
            format_cell(definition.getter(entry, settings), definition.kind, spec.format, settings)
            for spec, definition in zip(specs, definitions)
        ]
        for entry in entries
    ]
    return Table(headers=headers, rows=rows)
