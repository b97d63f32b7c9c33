"""
Custom exceptions for navfolio.

Purpose
-------
Provides a unified exception hierarchy for consistent error handling
across all navfolio modules. All exceptions inherit from NavFolioError,
enabling catch-all handling when needed.

Exception Hierarchy
-------------------
NavFolioError (base)
├── ValidationError - Malformed input (amounts, NAVs, ranges, collections)
│   └── MonthKeyError - Malformed or out-of-range "YYYY-MM" keys
├── DataAvailabilityError - NAV history empty or a required NAV missing
└── ConfigurationError - Invalid settings or configuration files

Numeric degeneracies (zero volatility, total loss, XIRR non-convergence)
are not exceptions: they return defined fallbacks. Non-convergence is
signalled with XirrConvergenceWarning.

Usage
-----
>>> from navfolio.exceptions import ValidationError, DataAvailabilityError
>>>
>>> # Raise specific exception
>>> raise ValidationError("amount must be positive, got -1")
>>>
>>> # Catch all navfolio exceptions
>>> try:
...     result = calculate_sip_value(5_000, "2024-01", nav_data)
>>> except NavFolioError as e:
...     print(f"navfolio error: {e}")
"""


class NavFolioError(Exception):
    """
    Base exception for all navfolio errors.

    All navfolio-specific exceptions inherit from this class,
    enabling unified error handling when needed.

    Examples
    --------
    >>> try:
    ...     analyze_portfolio(holdings, nav_map)
    ... except NavFolioError as e:
    ...     logger.error(f"Analysis failed: {e}")
    """
    pass


class ValidationError(NavFolioError):
    """
    Input validation failures.

    Raised when caller-supplied data fails validation checks, such as:
    - Non-positive investment amounts or NAV values
    - Inverted month ranges (end before start)
    - Empty collections where at least one entry is required
    - Cash flows without both signs (XIRR)

    Always fatal; never retried internally.

    Examples
    --------
    >>> raise ValidationError(
    ...     f"Investment amount must be positive, got {amount}."
    ... )
    """
    pass


class MonthKeyError(ValidationError):
    """
    Month key errors.

    Raised when a month key or year/month pair is invalid:
    - Key not in "YYYY-MM" format
    - Year outside [1900, 2100]
    - Month outside [1, 12]

    Examples
    --------
    >>> raise MonthKeyError(
    ...     f"Invalid key format: {key!r}. Expected \"YYYY-MM\"."
    ... )
    """
    pass


class DataAvailabilityError(NavFolioError):
    """
    Required NAV data is not available.

    Raised when:
    - The NAV history is empty
    - A NAV required for a calculation cannot be resolved, even after
      gap filling (e.g. an installment after the latest NAV month)

    Fatal for the specific calculation. Callers may retry with a broader
    NAV history.

    Examples
    --------
    >>> raise DataAvailabilityError(
    ...     f"NAV not available for month {month} "
    ...     f"(latest available: {latest})."
    ... )
    """
    pass


class ConfigurationError(NavFolioError):
    """
    Invalid configuration or settings.

    Raised when configuration files or settings are invalid, such as:
    - Malformed JSON portfolio or NAV files
    - Portfolio entries that fail schema validation

    Examples
    --------
    >>> raise ConfigurationError(
    ...     f"Portfolio file {path} is not valid JSON: {exc}"
    ... )
    """
    pass


class XirrConvergenceWarning(UserWarning):
    """
    XIRR solver stopped without converging.

    Emitted when Newton-Raphson exhausts its iteration budget or hits a
    flat derivative. The returned XirrResult holds the best estimate with
    ``converged=False``.
    """
    pass
