from timesheet_query.datasource.memory import InMemoryDataSource, matches_options
from timesheet_query.datasource.types import DateRange, QueryOptions, TimeEntry, TimesheetDataSource

__all__ = [
    "DateRange",
    "InMemoryDataSource",
    "QueryOptions",
    "TimeEntry",
    "TimesheetDataSource",
    "matches_options",
]
