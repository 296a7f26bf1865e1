"""
Paywise Payroll Engine - Money & Period Helpers

Decimal conversion/rounding and parsing of the month labels found in
source records ("1", "01", "January", "2024-01", "January 2024").
"""

import calendar
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Any, Optional, Tuple

ZERO = Decimal("0")
CENT = Decimal("0.01")
UNIT = Decimal("1")
HUNDRED = Decimal("100")

MONTH_NAMES = {name.lower(): index for index, name in enumerate(calendar.month_name) if name}
MONTH_ABBREVIATIONS = {name.lower(): index for index, name in enumerate(calendar.month_abbr) if name}


def to_decimal(value: Any) -> Decimal:
    """Convert a DB/JSON value to Decimal; None and garbage become zero."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        # Go through str so 0.1 stays 0.1
        value = str(value)
    try:
        return Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        return ZERO


def round_money(value: Decimal) -> Decimal:
    """Round to cents (ROUND_HALF_UP)."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def round_whole(value: Decimal) -> Decimal:
    """Round to whole currency units (ROUND_HALF_UP)."""
    return to_decimal(value).quantize(UNIT, rounding=ROUND_HALF_UP)


def percent_of(amount: Decimal, percentage: Any) -> Decimal:
    return to_decimal(amount) * to_decimal(percentage) / HUNDRED


def parse_month(value: Any) -> Optional[int]:
    """
    Parse a month stored as a number or name.

    >>> parse_month("01"), parse_month(3), parse_month("March"), parse_month("sep")
    (1, 3, 3, 9)
    """
    if value is None:
        return None
    if isinstance(value, int):
        return value if 1 <= value <= 12 else None

    text = str(value).strip().lower()
    if not text:
        return None
    if text.isdigit():
        month = int(text)
        return month if 1 <= month <= 12 else None
    return MONTH_NAMES.get(text) or MONTH_ABBREVIATIONS.get(text)


def parse_year(value: Any) -> Optional[int]:
    if value is None:
        return None
    text = str(value).strip()
    return int(text) if text.isdigit() else None


def period_label(year: int, month: int) -> str:
    """Format a period as YYYY-MM."""
    return f"{year:04d}-{month:02d}"


def parse_period_label(label: Any) -> Optional[Tuple[int, int]]:
    """
    Parse "YYYY-MM" or "<Month name> YYYY" into (year, month).

    Returns None for anything else.
    """
    if not label:
        return None
    text = " ".join(str(label).split())

    if "-" in text:
        year_part, _, month_part = text.partition("-")
        year = parse_year(year_part)
        month = parse_month(month_part)
        if year is None or month is None or len(year_part.strip()) != 4:
            return None
        return year, month

    parts = text.split(" ")
    if len(parts) == 2:
        month = parse_month(parts[0])
        year = parse_year(parts[1])
        if month is not None and year is not None and not parts[0].isdigit():
            return year, month
    return None
