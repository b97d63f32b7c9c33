"""
Month keys and month arithmetic for navfolio.

Purpose
-------
All NAV calculations run on a monthly time axis. A month is identified by
a "YYYY-MM" key; this module validates keys and provides the arithmetic
the rest of the engine uses (ranges, offsets, distances).

Key components
--------------
- MonthKey:
    Validated ``str`` subtype. Constructing one from a malformed token or an
    out-of-range year/month raises MonthKeyError, so a MonthKey in hand is
    always well-formed. It hashes and compares exactly like the raw string,
    so dictionaries keyed by plain "YYYY-MM" strings accept MonthKeys and
    vice versa.

- Conversions:
    date_to_key / key_to_date, month_year_to_key / parse_key.

- Arithmetic:
    months_between, years_between, add_months, generate_month_range,
    get_last_n_months, compare_keys, is_key_in_range.

- Clock seam:
    get_current_month_key(clock) is the only function that depends on the
    wall clock. The clock is injectable so callers and tests stay
    deterministic.

Design principles
-----------------
- Integer month counts: rollover uses floor division on
  ``year * 12 + month - 1``, never calendar-library mutation
- Fixed width: lexicographic order of zero-padded keys is chronological
- Stateless: every function is pure

Example
-------
>>> from navfolio.month_key import MonthKey, add_months, generate_month_range
>>> MonthKey("2024-12").shift(1)
MonthKey('2025-01')
>>> add_months("2024-01", -2)
MonthKey('2023-11')
>>> generate_month_range("2024-11", "2025-02")
[MonthKey('2024-11'), MonthKey('2024-12'), MonthKey('2025-01'), MonthKey('2025-02')]
"""

from __future__ import annotations

import re
from datetime import date
from typing import List, Optional, Tuple

from .constants import MAX_YEAR, MIN_YEAR, MONTHS_PER_YEAR
from .exceptions import MonthKeyError, ValidationError
from .types import Clock, DateLike

__all__ = [
    "MonthKey",
    "date_to_key",
    "key_to_date",
    "month_year_to_key",
    "parse_key",
    "months_between",
    "generate_month_range",
    "add_months",
    "get_last_n_months",
    "years_between",
    "is_key_in_range",
    "compare_keys",
    "get_current_month_key",
]

_KEY_PATTERN = re.compile(r"[0-9]{4}-[0-9]{2}")


def _check_year_month(year: object, month: object) -> Tuple[int, int]:
    if isinstance(year, bool) or not isinstance(year, int) or not MIN_YEAR <= year <= MAX_YEAR:
        raise MonthKeyError(
            f"Invalid year: {year!r}. Must be an integer in [{MIN_YEAR}, {MAX_YEAR}]."
        )
    if isinstance(month, bool) or not isinstance(month, int) or not 1 <= month <= 12:
        raise MonthKeyError(f"Invalid month: {month!r}. Must be 1-12.")
    return year, month


class MonthKey(str):
    """
    Validated "YYYY-MM" month token.

    Parameters
    ----------
    value : str
        Key in "YYYY-MM" format. Year must be in [1900, 2100] and month in
        [1, 12].

    Raises
    ------
    MonthKeyError
        If the key is not a string, is malformed, or is out of range.

    Notes
    -----
    - Immutable (str subtype)
    - ``MonthKey("2024-03") == "2024-03"`` and both hash identically
    - Ordering is lexicographic, which is chronological at fixed width

    Examples
    --------
    >>> key = MonthKey("2024-03")
    >>> key.year, key.month
    (2024, 3)
    >>> key.to_date()
    datetime.date(2024, 3, 1)
    >>> MonthKey("2024-13")
    Traceback (most recent call last):
        ...
    navfolio.exceptions.MonthKeyError: Invalid month: 13. Must be 1-12.
    """

    __slots__ = ()

    def __new__(cls, value: str) -> "MonthKey":
        if isinstance(value, MonthKey):
            return value
        if not isinstance(value, str) or not _KEY_PATTERN.fullmatch(value):
            raise MonthKeyError(f'Invalid key format: {value!r}. Expected "YYYY-MM".')
        _check_year_month(int(value[:4]), int(value[5:7]))
        return super().__new__(cls, value)

    @classmethod
    def from_year_month(cls, year: int, month: int) -> "MonthKey":
        """Build a key from integer year and month (1-12)."""
        year, month = _check_year_month(year, month)
        return cls(f"{year:04d}-{month:02d}")

    @classmethod
    def from_date(cls, value: date) -> "MonthKey":
        """Key of the calendar month containing *value*."""
        if not isinstance(value, date):
            raise ValidationError(f"Invalid date provided: {value!r}")
        return cls.from_year_month(value.year, value.month)

    @property
    def year(self) -> int:
        return int(self[:4])

    @property
    def month(self) -> int:
        return int(self[5:7])

    @property
    def ordinal(self) -> int:
        """Total month count, ``year * 12 + month - 1``."""
        return self.year * MONTHS_PER_YEAR + self.month - 1

    def to_date(self) -> date:
        """First day of the month."""
        return date(self.year, self.month, 1)

    def shift(self, months: int) -> "MonthKey":
        """Key *months* later (earlier if negative)."""
        total = self.ordinal + int(months)
        return MonthKey.from_year_month(total // MONTHS_PER_YEAR, total % MONTHS_PER_YEAR + 1)

    def __repr__(self) -> str:
        return f"MonthKey({str.__repr__(self)})"


def _as_key(value: DateLike) -> MonthKey:
    """Coerce a key string or a date to MonthKey."""
    if isinstance(value, date):
        return MonthKey.from_date(value)
    return MonthKey(value)


# ---------------------------------------------------------------------------
# Conversions
# ---------------------------------------------------------------------------

def date_to_key(value: date) -> MonthKey:
    """
    Convert a date to its "YYYY-MM" key.

    Examples
    --------
    >>> date_to_key(date(2024, 12, 15))
    MonthKey('2024-12')
    """
    return MonthKey.from_date(value)


def key_to_date(key: str) -> date:
    """
    Convert a "YYYY-MM" key to the first day of that month.

    Examples
    --------
    >>> key_to_date("2024-12")
    datetime.date(2024, 12, 1)
    """
    return MonthKey(key).to_date()


def month_year_to_key(year: int, month: int) -> MonthKey:
    """Build a key from year and month (1-12) with range checks."""
    return MonthKey.from_year_month(year, month)


def parse_key(key: str) -> Tuple[int, int]:
    """Split a key into ``(year, month)``."""
    k = MonthKey(key)
    return k.year, k.month


# ---------------------------------------------------------------------------
# Arithmetic
# ---------------------------------------------------------------------------

def months_between(start: DateLike, end: DateLike) -> int:
    """
    Signed number of months from *start* to *end*.

    ``months_between(a, b) == -months_between(b, a)``.

    Examples
    --------
    >>> months_between("2024-01", "2024-12")
    11
    >>> months_between("2024-06", "2024-01")
    -5
    """
    return _as_key(end).ordinal - _as_key(start).ordinal


def years_between(start: DateLike, end: DateLike) -> float:
    """Months between the keys expressed in (decimal) years, for CAGR."""
    return months_between(start, end) / MONTHS_PER_YEAR


def add_months(key: str, months: int) -> MonthKey:
    """
    Offset a key by *months* (may be negative).

    Examples
    --------
    >>> add_months("2024-06", 3)
    MonthKey('2024-09')
    >>> add_months("2024-01", -2)
    MonthKey('2023-11')
    """
    return MonthKey(key).shift(months)


def generate_month_range(start: str, end: str) -> List[MonthKey]:
    """
    Inclusive, ascending list of keys from *start* to *end*.

    Raises
    ------
    ValidationError
        If *end* is before *start*.
    """
    first = MonthKey(start)
    span = months_between(first, end)
    if span < 0:
        raise ValidationError(
            f"Start month {start} must be before or equal to end month {end}."
        )
    return [first.shift(i) for i in range(span + 1)]


def get_last_n_months(end: str, n: int) -> List[MonthKey]:
    """
    The *n* months ending at *end* (inclusive), oldest first.

    Examples
    --------
    >>> get_last_n_months("2024-12", 3)
    [MonthKey('2024-10'), MonthKey('2024-11'), MonthKey('2024-12')]
    """
    if n < 1:
        raise ValidationError(f"n must be at least 1 (got {n}).")
    return generate_month_range(add_months(end, -(n - 1)), end)


def compare_keys(a: str, b: str) -> int:
    """-1, 0 or 1 by lexicographic order of the keys."""
    a, b = MonthKey(a), MonthKey(b)
    if a < b:
        return -1
    if a > b:
        return 1
    return 0


def is_key_in_range(key: str, start: str, end: str) -> bool:
    """True if ``start <= key <= end`` (inclusive)."""
    return MonthKey(start) <= MonthKey(key) <= MonthKey(end)


# ---------------------------------------------------------------------------
# Clock seam
# ---------------------------------------------------------------------------

def get_current_month_key(clock: Optional[Clock] = None) -> MonthKey:
    """
    Key of the current month according to *clock*.

    Parameters
    ----------
    clock : callable, optional
        Zero-argument callable returning a date. Defaults to ``date.today``.

    Examples
    --------
    >>> get_current_month_key(lambda: date(2025, 3, 9))
    MonthKey('2025-03')
    """
    today = (clock or date.today)()
    return date_to_key(today)
