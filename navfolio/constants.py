"""
Global constants for navfolio.

Purpose
-------
Centralizes default values and magic numbers used throughout the navfolio
codebase. Using constants instead of hardcoded values improves maintainability,
ensures consistency, and makes configuration intentions explicit.

Usage
-----
>>> from navfolio.constants import DAYS_PER_YEAR, TRAILING_WINDOWS
>>>
>>> years = (end - start).days / DAYS_PER_YEAR

Categories
----------
- Time: Month key bounds, year length
- Precision: Decimal places for units, NAVs, currency and percentages
- XIRR: Newton-Raphson defaults and rate bounds
- Returns: Trailing windows, risk-free rate, sentinels
"""

from typing import Tuple

__all__ = [
    # Time
    "MIN_YEAR",
    "MAX_YEAR",
    "MONTHS_PER_YEAR",
    "DAYS_PER_YEAR",
    # Precision
    "UNITS_DECIMALS",
    "NAV_DECIMALS",
    "CURRENCY_DECIMALS",
    "PERCENT_DECIMALS",
    # XIRR
    "DEFAULT_XIRR_GUESS",
    "DEFAULT_XIRR_TOLERANCE",
    "DEFAULT_XIRR_MAX_ITERATIONS",
    "XIRR_RATE_LOWER_BOUND",
    "XIRR_RATE_UPPER_BOUND",
    "XIRR_MIN_DERIVATIVE",
    # Returns
    "TRAILING_WINDOWS",
    "DEFAULT_RISK_FREE_RATE",
    "TOTAL_LOSS_PERCENT",
]


# =============================================================================
# Time
# =============================================================================

MIN_YEAR: int = 1900
"""Earliest year accepted in a month key."""

MAX_YEAR: int = 2100
"""Latest year accepted in a month key."""

MONTHS_PER_YEAR: int = 12
"""Number of months in a year (used for CAGR periods and key arithmetic)."""

DAYS_PER_YEAR: float = 365.25
"""Year length in days for XIRR time offsets."""


# =============================================================================
# Precision
# =============================================================================

UNITS_DECIMALS: int = 4
"""Decimal places for fund unit counts."""

NAV_DECIMALS: int = 4
"""Decimal places for NAV prices reported in results."""

CURRENCY_DECIMALS: int = 2
"""Decimal places for currency amounts."""

PERCENT_DECIMALS: int = 2
"""Decimal places for percentages and ratios."""


# =============================================================================
# XIRR Defaults
# =============================================================================

DEFAULT_XIRR_GUESS: float = 0.1
"""Initial annual rate for Newton-Raphson (10%)."""

DEFAULT_XIRR_TOLERANCE: float = 1e-4
"""Stop when |NPV| falls below this amount (currency units)."""

DEFAULT_XIRR_MAX_ITERATIONS: int = 100
"""Newton-Raphson iteration budget."""

XIRR_RATE_LOWER_BOUND: float = -0.99
"""Lower clamp for proposed rates. Steps beyond it average with the bound."""

XIRR_RATE_UPPER_BOUND: float = 10.0
"""Upper clamp for proposed rates (1000% annual)."""

XIRR_MIN_DERIVATIVE: float = 1e-10
"""NPV slopes smaller than this abort the solver (flat derivative)."""


# =============================================================================
# Returns
# =============================================================================

TRAILING_WINDOWS: Tuple[Tuple[str, int], ...] = (
    ("1M", 1),
    ("3M", 3),
    ("6M", 6),
    ("1Y", 12),
)
"""Trailing-return windows as (label, months)."""

DEFAULT_RISK_FREE_RATE: float = 6.0
"""Annual risk-free rate in percent used by the Sharpe ratio."""

TOTAL_LOSS_PERCENT: float = -100.0
"""Return reported when the final value is zero or negative."""
