"""
Value Formatters
================

Single source of truth for display formatting of query values.

WHY:
- SHOW columns with FORMAT CURRENCY/MONEY/PERCENT must render the same
  way wherever a table is built
- Ratios are stored as decimals (0.75 = 75%); only formatting multiplies
- None renders as "N/A", never "None"

Used by:
- timesheet_query/dsl/columns.py (SHOW column projection)
"""

from typing import Optional


# =====================================================================
# FORMATTING FUNCTIONS
# =====================================================================

def fmt_currency(v: Optional[float], symbol: str = "€") -> str:
    """
    Format numeric as currency with 2 decimals and thousands separators.

    Examples:
        >>> fmt_currency(1162.5)
        "€1,162.50"

        >>> fmt_currency(75, "$")
        "$75.00"

        >>> fmt_currency(None)
        "N/A"
    """
    if v is None:
        return "N/A"
    return f"{symbol}{v:,.2f}"


def fmt_percent(v: Optional[float]) -> str:
    """
    Format a decimal ratio as a percentage with 1 decimal.

    Examples:
        >>> fmt_percent(0.654)
        "65.4%"

        >>> fmt_percent(1.1)
        "110.0%"  # overtime is legal
    """
    if v is None:
        return "N/A"
    return f"{(v * 100):.1f}%"


def fmt_hours(v: Optional[float]) -> str:
    """Hours with up to 2 decimals, trailing zeros dropped: 7.5 -> "7.5", 8.0 -> "8"."""
    if v is None:
        return "N/A"
    return f"{v:,.2f}".rstrip("0").rstrip(".")


def fmt_number(v: Optional[float]) -> str:
    if v is None:
        return "N/A"
    return f"{v:,.2f}"
