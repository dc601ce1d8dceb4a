from __future__ import annotations

import re
from calendar import month_name, monthrange
from datetime import date, datetime

ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def working_days_in_month(year: int, month: int) -> int:
    """
    Count Monday-Friday days in a month.

    No holiday calendar: every weekday counts as a working day.
    """
    days_in_month = monthrange(year, month)[1]
    return sum(
        1
        for day in range(1, days_in_month + 1)
        if date(year, month, day).weekday() < 5
    )


def month_label(year: int, month: int) -> str:
    """Display label for a month bucket, e.g. "January 2024"."""
    return f"{month_name[month]} {year}"


def add_months(value: date, months: int) -> date:
    """
    Shift a date by whole months, clamping the day to the target month.

    Examples:
        >>> add_months(date(2024, 8, 31), -6)
        datetime.date(2024, 2, 29)
    """
    index = value.year * 12 + (value.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    day = min(value.day, monthrange(year, month)[1])
    return date(year, month, day)


def looks_like_iso_date(text: str) -> bool:
    return bool(ISO_DATE_RE.match(text))


def parse_iso_date(text: str) -> date:
    """
    Parse a strict YYYY-MM-DD literal.

    Raises:
        ValueError: when the text is not shaped like YYYY-MM-DD or names
            an impossible calendar day (e.g. 2024-02-30).
    """
    if not looks_like_iso_date(text):
        raise ValueError(f"'{text}' is not a YYYY-MM-DD date")
    return datetime.strptime(text, "%Y-%m-%d").date()
