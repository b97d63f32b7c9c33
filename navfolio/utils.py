"""General utilities for navfolio

Contents
--------
- Validation helpers (positive amounts, finite numbers)
- Rounding (round half away from zero)
- Date helpers (datetime coercion, year fractions)
- Formatting helpers (currency, percent)
"""

from __future__ import annotations

import math
from datetime import date, datetime, time
from numbers import Real

import numpy as np

from .constants import DAYS_PER_YEAR
from .exceptions import ValidationError

__all__ = [
    # Validation
    "is_number",
    "check_positive",
    # Rounding
    "round_half_away",
    # Dates
    "as_datetime",
    "year_fraction",
    # Formatting
    "format_currency",
    "format_percent",
]

# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------

def is_number(value: object) -> bool:
    """True for finite real numbers, excluding bools."""
    if isinstance(value, bool) or not isinstance(value, (Real, np.number)):
        return False
    return math.isfinite(float(value))


def check_positive(name: str, value: object) -> float:
    """Return *value* as float, raising ValidationError unless finite and > 0."""
    if not is_number(value) or float(value) <= 0:
        raise ValidationError(f"{name} must be a positive number (got {value!r}).")
    return float(value)


# ---------------------------------------------------------------------------
# Rounding
# ---------------------------------------------------------------------------

def round_half_away(value: float, decimals: int) -> float:
    """Round *value* to *decimals* places, halves away from zero.

    Works on ``value * 10**decimals`` like the reporting layer expects, so
    ``round_half_away(2.5, 0) == 3.0`` and ``round_half_away(-2.5, 0) == -3.0``
    (Python's built-in ``round`` would give 2.0 and -2.0).
    """
    multiplier = 10.0 ** decimals
    scaled = math.floor(abs(float(value)) * multiplier + 0.5) / multiplier
    return math.copysign(scaled, value) if scaled != 0 else 0.0


# ---------------------------------------------------------------------------
# Date helpers
# ---------------------------------------------------------------------------

def as_datetime(value: date) -> datetime:
    """Promote a date to midnight datetime; datetimes pass through."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time())
    raise ValidationError(f"Expected a date, got {type(value).__name__}: {value!r}")


def year_fraction(start: date, end: date) -> float:
    """Years from *start* to *end* on a 365.25-day year (signed)."""
    delta = as_datetime(end) - as_datetime(start)
    return delta.total_seconds() / (DAYS_PER_YEAR * 86_400.0)


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------

def format_currency(value: float, decimals: int = 2, symbol: str = "₹") -> str:
    """
    Format a currency amount with thousands separators.

    Examples
    --------
    >>> format_currency(120000)
    '₹120,000.00'
    >>> format_currency(-2500.5, symbol="$")
    '-$2,500.50'
    """
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{abs(value):,.{decimals}f}"


def format_percent(value: float | None, decimals: int = 2) -> str:
    """Format a percentage value (already in percent); None renders as 'n/a'."""
    if value is None:
        return "n/a"
    return f"{value:+.{decimals}f}%"
