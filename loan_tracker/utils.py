"""Utility functions for the loan tracker.

This module provides helpers for parsing user input into Python data types and
for calendar arithmetic on payment dates. Month offsets follow the usual
calendar-library semantics: adding months keeps the day of the month unless
the target month is shorter, in which case the day is clamped to the last
valid day.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal, InvalidOperation, getcontext
import calendar
from typing import Optional, Union

getcontext().prec = 28  # increase decimal precision to avoid rounding errors

DateLike = Union[date, datetime, str]


def parse_date(value: str) -> date:
    """Parse an ISO ``YYYY-MM-DD`` string into a ``date``.

    A bare ``YYYY-MM`` is accepted as well and maps to the first day of that
    month. Timestamps such as ``2024-01-15T00:00:00`` are truncated to the
    date part.

    Raises
    ------
    ValueError
        If the string is not a valid date.
    """
    text = value.strip()
    try:
        if "T" in text:
            text = text.split("T", 1)[0]
        parts = text.split("-")
        if len(parts) == 2:
            return date(int(parts[0]), int(parts[1]), 1)
        if len(parts) != 3:
            raise ValueError
        return date(int(parts[0]), int(parts[1]), int(parts[2]))
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid date string: {value}") from exc


def to_date(value: Optional[DateLike]) -> Optional[date]:
    """Coerce ``value`` to a ``date`` (``None`` passes through)."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return parse_date(str(value))


def add_months(dt: date, months: int) -> date:
    """Return a new date a number of months after ``dt``.

    The day of the month is clamped to the last valid day if needed (e.g.,
    adding one month to Jan 31 yields Feb 28 or 29).
    """
    year = dt.year + (dt.month - 1 + months) // 12
    month = (dt.month - 1 + months) % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def months_between(start: date, end: date) -> int:
    """Whole calendar months from ``start`` to ``end``.

    Only the year and month components are compared, so 2024-01-31 to
    2024-02-01 counts as one month.
    """
    return (end.year - start.year) * 12 + (end.month - start.month)


def decimal_from_str(value: Union[str, int, float, Decimal]) -> Decimal:
    """Convert a numeric value into a ``Decimal``.

    Strings may contain thousands separators (commas) and a leading ``$``.
    Floats go through ``str`` so that ``0.1`` becomes ``Decimal("0.1")``.
    Raises ``ValueError`` if conversion fails.
    """
    if isinstance(value, Decimal):
        return value
    try:
        cleaned = str(value).strip().replace(",", "").lstrip("$")
        return Decimal(cleaned)
    except (InvalidOperation, ValueError) as exc:
        raise ValueError(f"Invalid numeric value: {value}") from exc


def format_money(value: Decimal) -> str:
    """Format a monetary value the way the dashboard shows it (``$1234.56``)."""
    return f"${value:.2f}"
