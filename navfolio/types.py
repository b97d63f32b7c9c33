"""
Type definitions for navfolio.

Purpose
-------
Provides type aliases and TypedDict definitions for the dictionary-shaped
values used throughout navfolio. Using TypedDicts improves type safety,
enables IDE autocompletion, and documents expected dictionary structures.

Usage
-----
>>> from navfolio.types import NavData, NavRangeDict
>>>
>>> nav: NavData = {"2024-01": 100.0, "2024-02": 104.5}
>>> rng: NavRangeDict = {"start": "2024-01", "end": "2024-02", "months": 2}

Type Definitions
----------------
NavData
    Monthly NAV history: {"YYYY-MM": nav}

NavEntryDict
    Single NAV observation: {"key", "nav"}

NavRangeDict
    Span of a NAV history: {"start", "end", "months"}

CoverageDict
    Coverage diagnostic: {"is_valid", "missing", "coverage_percent"}

Clock
    Zero-argument callable returning today's date
"""

from datetime import date
from typing import Callable, List, Mapping, Union

from typing_extensions import TypedDict

__all__ = [
    "NavData",
    "DateLike",
    "Clock",
    "NavEntryDict",
    "NavRangeDict",
    "CoverageDict",
]


NavData = Mapping[str, float]
"""Monthly NAV history keyed by "YYYY-MM"."""

DateLike = Union[str, date]
"""Anything the month arithmetic accepts: a key or a calendar date."""

Clock = Callable[[], date]
"""Source of "today" for the wall-clock-dependent month key."""


class NavEntryDict(TypedDict):
    """
    Single NAV observation.

    Attributes
    ----------
    key : str
        Month key ("YYYY-MM").
    nav : float
        NAV for that month.

    Examples
    --------
    >>> latest: NavEntryDict = get_latest_nav(nav_data)
    >>> latest["key"], latest["nav"]
    (MonthKey('2024-12'), 120.0)
    """

    key: str
    nav: float


class NavRangeDict(TypedDict):
    """
    Span of a NAV history.

    Attributes
    ----------
    start : str
        Earliest month with a NAV.
    end : str
        Latest month with a NAV.
    months : int
        Number of months that actually carry a NAV (not the span length).
    """

    start: str
    end: str
    months: int


class CoverageDict(TypedDict):
    """
    NAV coverage diagnostic from validate_nav_coverage().

    Attributes
    ----------
    is_valid : bool
        True when every required month has a NAV.
    missing : list of str
        Required months without a NAV, ascending.
    coverage_percent : float
        Share of required months present, in percent (2 dp).
    """

    is_valid: bool
    missing: List[str]
    coverage_percent: float
