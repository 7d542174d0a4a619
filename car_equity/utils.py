"""Utility functions for the equity calculator.

This module provides helpers for turning user input into ``Decimal`` values,
for rounding currency the way the dashboards display it and for handling
dates: adding months, counting whole months between two dates and parsing
``YYYY-MM`` strings into ``datetime.date`` instances.
"""

from __future__ import annotations

import calendar
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, getcontext
from typing import Union

getcontext().prec = 28  # increase decimal precision to avoid rounding errors

Number = Union[int, float, str, Decimal]


def parse_year_month(ym: str) -> date:
    """Parse a YYYY-MM string into a ``date`` object (first day of month).

    Parameters
    ----------
    ym: str
        A string in the form ``"YYYY-MM"``. The day component, if present,
        will be ignored.

    Returns
    -------
    date
        A date object representing the first day of the specified month.

    Raises
    ------
    ValueError
        If the string is not a valid year-month.
    """
    try:
        parts = ym.split("-")
        if len(parts) < 2:
            raise ValueError
        return date(int(parts[0]), int(parts[1]), 1)
    except Exception as exc:
        raise ValueError(f"Invalid year-month string: {ym}") from exc


def add_months(dt: date, months: int) -> date:
    """Return a new date a number of months after ``dt``.

    The day of the month is clamped to the last valid day if needed (e.g.,
    adding one month to Jan 31 yields Feb 28 or 29). Negative offsets move
    backwards.
    """
    year = dt.year + (dt.month - 1 + months) // 12
    month = (dt.month - 1 + months) % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def months_between(start: date, end: date) -> int:
    """Whole months from ``start`` to ``end``.

    A month only counts once the day of month has been reached, so
    2024-01-31 to 2024-02-29 is zero months. Never negative.
    """
    months = (end.year - start.year) * 12 + (end.month - start.month)
    if end.day < start.day:
        months -= 1
    return max(0, months)


def to_decimal(value: Number) -> Decimal:
    """Convert a number into ``Decimal`` without inheriting float noise.

    Floats go through ``str`` so ``0.1`` becomes ``Decimal("0.1")``.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, int):
        return Decimal(value)
    return decimal_from_str(value)


def decimal_from_str(value: str) -> Decimal:
    """Convert a numeric string into a ``Decimal``.

    The function strips any commas and currency symbols and handles both
    integer and float-like strings. It raises ``ValueError`` if conversion
    fails.
    """
    try:
        cleaned = value.replace(",", "").replace("£", "").replace("$", "").strip()
        result = Decimal(cleaned)
    except Exception as exc:
        raise ValueError(f"Invalid numeric value: {value}") from exc
    if not result.is_finite():
        raise ValueError(f"Invalid numeric value: {value}")
    return result


def parse_amount(value: str) -> Decimal:
    """Parse a money amount with optional ``k``/``m`` suffix ("28k" -> 28000)."""
    text = value.strip().lower()
    factor = Decimal(1)
    if text.endswith("k"):
        factor = Decimal(1_000)
        text = text[:-1]
    elif text.endswith("m"):
        factor = Decimal(1_000_000)
        text = text[:-1]
    return decimal_from_str(text) * factor


def round_currency(value: Decimal) -> Decimal:
    """Round half-up to whole currency units."""
    return value.quantize(Decimal(1), rounding=ROUND_HALF_UP)


def money(value: Decimal, show_sign: bool = False) -> str:
    """Format a currency amount as ``£12,345``; ``show_sign`` adds +/-."""
    formatted = f"£{abs(round_currency(value)):,}"
    if show_sign:
        if value > 0:
            return f"+{formatted}"
        if value < 0:
            return f"-{formatted}"
    elif value < 0:
        return f"-{formatted}"
    return formatted
