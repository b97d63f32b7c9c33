"""
Monthly NAV series handling for navfolio.

Purpose
-------
Validates, normalizes and gap-fills a fund's sparse monthly NAV history.
A NAV history is a mapping ``{"YYYY-MM": nav}``; every operation here
returns a new dict and never mutates its input.

Gap-filling policy
------------------
fill_missing_nav_data() resolves every month in a required range:

- exact month present      -> its NAV
- before earliest month    -> earliest NAV (backward fill)
- after latest month       -> latest NAV (forward fill)
- strictly between two known months -> linear interpolation by month index:

      nav = nav_before + (nav_after - nav_before) * (t - t_before) / (t_after - t_before)

  where t is the month ordinal (year * 12 + month - 1). Distances are in
  whole months, not calendar days, since the series is month-granular.

Key components
--------------
- normalize_nav_data: validation + ascending ordering
- get_nav_range / get_latest_nav / get_earliest_nav: span of a history
- fill_missing_nav_data: gap filling as above
- extract_months / get_nav_for_month: read-only lookups
  (get_nav_for_month returns None for a missing month)
- validate_nav_coverage: non-fatal coverage diagnostic
- merge_nav_data: later histories override earlier ones
- to_series / from_series: pandas interoperability (PeriodIndex, freq "M")

Example
-------
>>> from navfolio.nav_series import fill_missing_nav_data
>>> fill_missing_nav_data({"2024-01": 100, "2024-03": 110}, "2024-01", "2024-03")
{MonthKey('2024-01'): 100.0, MonthKey('2024-02'): 105.0, MonthKey('2024-03'): 110.0}
"""

from __future__ import annotations

import bisect
from collections.abc import Mapping
from typing import Dict, Iterable, List, Optional

import pandas as pd

from .constants import PERCENT_DECIMALS
from .exceptions import DataAvailabilityError, MonthKeyError, ValidationError
from .month_key import MonthKey, generate_month_range
from .types import CoverageDict, NavData, NavEntryDict, NavRangeDict
from .utils import is_number, round_half_away

__all__ = [
    "normalize_nav_data",
    "nav_to_sorted_list",
    "get_nav_range",
    "fill_missing_nav_data",
    "extract_months",
    "get_nav_for_month",
    "get_latest_nav",
    "get_earliest_nav",
    "validate_nav_coverage",
    "merge_nav_data",
    "to_series",
    "from_series",
]


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------

def normalize_nav_data(nav_data: NavData) -> Dict[MonthKey, float]:
    """
    Validate a NAV history and return it sorted by month.

    Parameters
    ----------
    nav_data : Mapping[str, float]
        Raw history ``{"YYYY-MM": nav}``. Values may be ints or floats.

    Returns
    -------
    dict
        New dict keyed by MonthKey, ascending, with float values.
        An empty mapping normalizes to ``{}``.

    Raises
    ------
    ValidationError
        If *nav_data* is not a mapping, a key is not a valid month key, or a
        value is not a finite positive number. The message names the
        offending key and value.

    Examples
    --------
    >>> normalize_nav_data({"2024-02": 150, "2024-01": 145})
    {MonthKey('2024-01'): 145.0, MonthKey('2024-02'): 150.0}
    """
    if not isinstance(nav_data, Mapping):
        raise ValidationError(
            f"NAV data must be a mapping of month keys to NAVs, "
            f"got {type(nav_data).__name__}."
        )

    normalized: Dict[MonthKey, float] = {}
    for key, value in nav_data.items():
        try:
            month = MonthKey(key)
        except MonthKeyError as exc:
            raise MonthKeyError(f"Invalid NAV key {key!r}: {exc}") from None
        if not is_number(value) or float(value) <= 0:
            raise ValidationError(
                f"Invalid NAV value for {key}: {value!r}. Must be a positive number."
            )
        normalized[month] = float(value)

    return {month: normalized[month] for month in sorted(normalized)}


def nav_to_sorted_list(nav_data: NavData) -> List[NavEntryDict]:
    """Normalized history as ``[{"key": ..., "nav": ...}, ...]``, ascending."""
    return [{"key": k, "nav": v} for k, v in normalize_nav_data(nav_data).items()]


# ---------------------------------------------------------------------------
# Range helpers
# ---------------------------------------------------------------------------

def get_nav_range(nav_data: NavData) -> NavRangeDict:
    """
    Earliest and latest months of a history and how many months carry a NAV.

    Raises
    ------
    DataAvailabilityError
        If the history is empty.
    """
    keys = list(normalize_nav_data(nav_data))
    if not keys:
        raise DataAvailabilityError("NAV data is empty.")
    return {"start": keys[0], "end": keys[-1], "months": len(keys)}


def get_latest_nav(nav_data: NavData) -> NavEntryDict:
    """Most recent ``{"key", "nav"}`` entry."""
    normalized = normalize_nav_data(nav_data)
    if not normalized:
        raise DataAvailabilityError("NAV data is empty.")
    key = next(reversed(normalized))
    return {"key": key, "nav": normalized[key]}


def get_earliest_nav(nav_data: NavData) -> NavEntryDict:
    """Oldest ``{"key", "nav"}`` entry."""
    normalized = normalize_nav_data(nav_data)
    if not normalized:
        raise DataAvailabilityError("NAV data is empty.")
    key = next(iter(normalized))
    return {"key": key, "nav": normalized[key]}


# ---------------------------------------------------------------------------
# Gap filling
# ---------------------------------------------------------------------------

def _interpolate(normalized: Dict[MonthKey, float], keys: List[MonthKey], target: MonthKey) -> float:
    """Linear interpolation of *target* between its known neighbours."""
    pos = bisect.bisect_left(keys, target)
    if pos == 0 or pos >= len(keys):
        raise DataAvailabilityError(
            f"Cannot interpolate NAV for {target}: missing surrounding data "
            f"(known range {keys[0] if keys else None} to {keys[-1] if keys else None})."
        )
    before, after = keys[pos - 1], keys[pos]
    ratio = (target.ordinal - before.ordinal) / (after.ordinal - before.ordinal)
    return normalized[before] + (normalized[after] - normalized[before]) * ratio


def fill_missing_nav_data(nav_data: NavData, start: str, end: str) -> Dict[MonthKey, float]:
    """
    Resolve a NAV for every month in ``[start, end]``.

    Parameters
    ----------
    nav_data : Mapping[str, float]
        History, possibly with gaps.
    start, end : str
        Required range (inclusive).

    Returns
    -------
    dict
        ``{month: nav}`` for every month in the range, ascending.

    Raises
    ------
    DataAvailabilityError
        If the history is empty.
    ValidationError
        If *end* is before *start*.

    Notes
    -----
    Interpolated values always lie between the two bounding known values.

    Examples
    --------
    >>> fill_missing_nav_data({"2024-02": 100, "2024-05": 130}, "2024-01", "2024-06")
    {MonthKey('2024-01'): 100.0, MonthKey('2024-02'): 100.0,
     MonthKey('2024-03'): 110.0, MonthKey('2024-04'): 120.0,
     MonthKey('2024-05'): 130.0, MonthKey('2024-06'): 130.0}
    """
    normalized = normalize_nav_data(nav_data)
    required = generate_month_range(start, end)
    if not normalized:
        raise DataAvailabilityError(
            f"Cannot fill NAV data for {start} to {end}: NAV data is empty."
        )

    keys = list(normalized)
    first, last = keys[0], keys[-1]

    filled: Dict[MonthKey, float] = {}
    for month in required:
        if month in normalized:
            filled[month] = normalized[month]
        elif month < first:
            filled[month] = normalized[first]
        elif month > last:
            filled[month] = normalized[last]
        else:
            filled[month] = _interpolate(normalized, keys, month)
    return filled


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------

def extract_months(nav_data: NavData, months: Iterable[str]) -> Dict[MonthKey, float]:
    """Subset of the history for *months*; months without a NAV are skipped."""
    normalized = normalize_nav_data(nav_data)
    wanted = {MonthKey(m) for m in months}
    return {k: v for k, v in normalized.items() if k in wanted}


def get_nav_for_month(nav_data: NavData, month: str) -> Optional[float]:
    """
    NAV for *month*, or None when the history has no value for it.

    Exploratory lookup: a missing month is not an error. Use
    fill_missing_nav_data() when a value must be resolved.
    """
    return normalize_nav_data(nav_data).get(MonthKey(month))


# ---------------------------------------------------------------------------
# Diagnostics and merging
# ---------------------------------------------------------------------------

def validate_nav_coverage(nav_data: NavData, start: str, end: str) -> CoverageDict:
    """
    Report which months of ``[start, end]`` lack a NAV.

    Examples
    --------
    >>> validate_nav_coverage({"2024-01": 100, "2024-03": 110}, "2024-01", "2024-04")
    {'is_valid': False, 'missing': [MonthKey('2024-02'), MonthKey('2024-04')], 'coverage_percent': 50.0}
    """
    normalized = normalize_nav_data(nav_data)
    required = generate_month_range(start, end)
    missing = [m for m in required if m not in normalized]
    coverage = (len(required) - len(missing)) / len(required) * 100
    return {
        "is_valid": not missing,
        "missing": missing,
        "coverage_percent": round_half_away(coverage, PERCENT_DECIMALS),
    }


def merge_nav_data(*nav_sets: Optional[NavData]) -> Dict[MonthKey, float]:
    """
    Merge histories; on key collision the later set wins.

    ``None`` entries are skipped. The result is normalized.
    """
    merged: Dict[MonthKey, float] = {}
    for nav_data in nav_sets:
        if nav_data is None:
            continue
        merged.update(normalize_nav_data(nav_data))
    return normalize_nav_data(merged)


# ---------------------------------------------------------------------------
# pandas interoperability
# ---------------------------------------------------------------------------

def to_series(nav_data: NavData, *, name: str = "nav") -> pd.Series:
    """
    Normalized history as a float Series on a monthly PeriodIndex.

    Examples
    --------
    >>> to_series({"2024-01": 100, "2024-02": 105})
    2024-01    100.0
    2024-02    105.0
    Freq: M, Name: nav, dtype: float64
    """
    normalized = normalize_nav_data(nav_data)
    index = pd.PeriodIndex([str(k) for k in normalized], freq="M", name="month")
    return pd.Series(list(normalized.values()), index=index, name=name, dtype=float)


def from_series(series: pd.Series) -> Dict[MonthKey, float]:
    """
    Build a normalized history from a Series indexed by months.

    The index may hold Periods, Timestamps or "YYYY-MM" strings. NaN values
    are dropped.
    """
    if not isinstance(series, pd.Series):
        raise ValidationError(f"Expected a pandas Series, got {type(series).__name__}.")
    clean = series.dropna()
    raw: Dict[str, float] = {}
    for label, value in clean.items():
        if isinstance(label, (pd.Period, pd.Timestamp)):
            label = f"{label.year:04d}-{label.month:02d}"
        raw[str(label)] = float(value)
    return normalize_nav_data(raw)
