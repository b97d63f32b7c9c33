"""
Return metrics on NAV histories and cash flows.

Mathematical Model
------------------
Absolute return (percent):
    R_abs = (V_final - V_initial) / V_initial · 100

Compound annual growth rate over ``years``:
    CAGR = ((V_final / V_initial)^(1/years) - 1) · 100

with V_final <= 0 mapped to exactly -100 (total loss); a fractional power
of a negative ratio has no real value and is never attempted.

XIRR is the annual rate r solving

    f(r) = Σ_i a_i / (1 + r)^{y_i} = 0

where y_i is the offset of flow i from the earliest flow in years of
365.25 days. It is found by Newton-Raphson with

    f'(r) = Σ_i -y_i · a_i / (1 + r)^{y_i + 1}

A step leaving the admissible interval (default (-0.99, 10)) is replaced
by the midpoint between the current rate and the violated bound, so the
solver keeps approaching the bound instead of freezing there.

Design principles
-----------------
- Per-call solver settings: XirrConfig travels with each call
- Explicit convergence: XirrResult.converged, never a silent best guess
- Degenerate inputs have defined fallbacks (0, -100), not exceptions
- Calendar arithmetic for trailing windows via pandas DateOffset
"""

from __future__ import annotations

import logging
import warnings
from collections.abc import Mapping
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence, Union

import numpy as np
import pandas as pd

from .constants import (
    DEFAULT_RISK_FREE_RATE,
    MONTHS_PER_YEAR,
    NAV_DECIMALS,
    PERCENT_DECIMALS,
    TOTAL_LOSS_PERCENT,
    TRAILING_WINDOWS,
    XIRR_MIN_DERIVATIVE,
)
from .exceptions import DataAvailabilityError, ValidationError, XirrConvergenceWarning
from .month_key import MonthKey, years_between
from .nav_series import normalize_nav_data
from .types import NavData
from .utils import as_datetime, check_positive, is_number, round_half_away, year_fraction

if TYPE_CHECKING:
    from .config import XirrConfig

logger = logging.getLogger(__name__)

__all__ = [
    "TrailingReturn",
    "XirrResult",
    "RollingReturn",
    "ReturnStatistics",
    "InvestmentSnapshot",
    "RankedInvestment",
    "calculate_absolute_return",
    "calculate_cagr",
    "calculate_nav_cagr",
    "calculate_trailing_returns",
    "calculate_xirr",
    "approximate_sip_xirr",
    "calculate_rolling_returns",
    "calculate_return_statistics",
    "calculate_sharpe_ratio",
    "compare_investments",
]


def _pct(value: float) -> float:
    return round_half_away(value, PERCENT_DECIMALS)


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TrailingReturn:
    """Return over a fixed window ending at the latest NAV month."""
    start_month: MonthKey
    start_nav: float
    end_month: MonthKey
    end_nav: float
    absolute_return: float
    annualized_return: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class XirrResult:
    """
    Outcome of the XIRR solver.

    Attributes
    ----------
    rate : float
        Annual rate in percent (2 dp). When ``converged`` is False this is
        the last iterate, an approximation.
    converged : bool
        True iff |NPV| dropped below the tolerance.
    iterations : int
        Newton-Raphson iterations evaluated.
    status : str
        "converged", "flat_derivative" or "max_iterations".
    npv : float
        NPV at the returned rate.
    """
    rate: float
    converged: bool
    iterations: int
    status: str
    npv: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class RollingReturn:
    start_month: MonthKey
    end_month: MonthKey
    absolute_return: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ReturnStatistics:
    count: int
    min: float
    max: float
    mean: float
    median: float
    std_dev: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class InvestmentSnapshot:
    """Input to compare_investments: start and end value over ``years``."""
    name: str
    initial_value: float
    final_value: float
    years: float

    @classmethod
    def coerce(cls, value: Union["InvestmentSnapshot", Mapping]) -> "InvestmentSnapshot":
        if isinstance(value, InvestmentSnapshot):
            return value
        if isinstance(value, Mapping):
            try:
                return cls(
                    name=str(value["name"]),
                    initial_value=value["initial_value"],
                    final_value=value["final_value"],
                    years=value["years"],
                )
            except KeyError as exc:
                raise ValidationError(f"Investment entry is missing {exc.args[0]!r}.") from None
        raise ValidationError(f"Unsupported investment entry: {value!r}")


@dataclass(frozen=True)
class RankedInvestment:
    name: str
    initial_value: float
    final_value: float
    absolute_return: float
    cagr: float
    years: float
    rank: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ---------------------------------------------------------------------------
# Point-to-point returns
# ---------------------------------------------------------------------------

def calculate_absolute_return(initial_value: float, final_value: float) -> float:
    """
    Absolute return in percent.

    Examples
    --------
    >>> calculate_absolute_return(100_000, 120_000)
    20.0
    """
    initial_value = check_positive("Initial value", initial_value)
    if not is_number(final_value):
        raise ValidationError(f"Final value must be a finite number (got {final_value!r}).")
    return _pct((final_value - initial_value) / initial_value * 100)


def calculate_cagr(initial_value: float, final_value: float, years: float) -> float:
    """
    Compound annual growth rate in percent.

    Parameters
    ----------
    initial_value : float
        Starting value (> 0).
    final_value : float
        Ending value. Zero or negative means total loss: returns -100.
    years : float
        Holding period in years (> 0, may be fractional).

    Examples
    --------
    >>> calculate_cagr(100_000, 161_051, 5)
    10.0
    >>> calculate_cagr(100_000, 0, 3)
    -100.0
    """
    initial_value = check_positive("Initial value", initial_value)
    years = check_positive("Investment period in years", years)
    if not is_number(final_value):
        raise ValidationError(f"Final value must be a finite number (got {final_value!r}).")
    if final_value <= 0:
        return TOTAL_LOSS_PERCENT
    return _pct(((final_value / initial_value) ** (1.0 / years) - 1.0) * 100)


def calculate_nav_cagr(nav_data: NavData, start_month: str, end_month: str) -> float:
    """
    CAGR between the NAVs of two months of a history.

    Both months must carry a NAV (no gap filling). Returns 0 when
    *end_month* is not after *start_month*.

    Raises
    ------
    DataAvailabilityError
        If either month has no NAV.
    """
    normalized = normalize_nav_data(nav_data)
    start, end = MonthKey(start_month), MonthKey(end_month)
    if start not in normalized:
        raise DataAvailabilityError(f"NAV not available for start month {start}.")
    if end not in normalized:
        raise DataAvailabilityError(f"NAV not available for end month {end}.")

    years = years_between(start, end)
    if years <= 0:
        return 0.0
    return calculate_cagr(normalized[start], normalized[end], years)


def calculate_trailing_returns(nav_data: NavData) -> Dict[str, Optional[TrailingReturn]]:
    """
    1M, 3M, 6M and 1Y returns ending at the latest NAV month.

    The window start is the latest month's first day minus N calendar
    months (pandas DateOffset); its NAV is looked up exactly and the window
    is None when absent. Sub-year windows are annualized with CAGR; the 1Y
    window reports its absolute return as the annualized figure.

    Raises
    ------
    DataAvailabilityError
        If the history is empty.

    Examples
    --------
    >>> nav = {"2024-09": 100, "2024-11": 104, "2024-12": 110}
    >>> returns = calculate_trailing_returns(nav)
    >>> returns["3M"].absolute_return, returns["1Y"]
    (10.0, None)
    """
    normalized = normalize_nav_data(nav_data)
    if not normalized:
        raise DataAvailabilityError("Cannot compute trailing returns: NAV data is empty.")
    end_month = next(reversed(normalized))
    end_nav = normalized[end_month]
    anchor = pd.Timestamp(end_month.to_date())

    result: Dict[str, Optional[TrailingReturn]] = {}
    for label, months in TRAILING_WINDOWS:
        start_month = MonthKey.from_date((anchor - pd.DateOffset(months=months)).date())
        start_nav = normalized.get(start_month)
        if start_nav is None:
            logger.debug("Trailing %s: no NAV for window start %s", label, start_month)
            result[label] = None
            continue

        absolute = calculate_absolute_return(start_nav, end_nav)
        years = months / MONTHS_PER_YEAR
        annualized = calculate_cagr(start_nav, end_nav, years) if years < 1 else absolute
        result[label] = TrailingReturn(
            start_month=start_month,
            start_nav=round_half_away(start_nav, NAV_DECIMALS),
            end_month=end_month,
            end_nav=round_half_away(end_nav, NAV_DECIMALS),
            absolute_return=absolute,
            annualized_return=_pct(annualized),
        )
    return result


# ---------------------------------------------------------------------------
# XIRR
# ---------------------------------------------------------------------------

def _flow_parts(flow: Any) -> tuple:
    if isinstance(flow, Mapping):
        return flow.get("date"), flow.get("amount")
    return getattr(flow, "date", None), getattr(flow, "amount", None)


def calculate_xirr(cash_flows: Sequence[Any], config: Optional["XirrConfig"] = None) -> XirrResult:
    """
    Annualized internal rate of return of dated cash flows.

    Parameters
    ----------
    cash_flows : sequence
        CashFlow objects (or mappings with ``date`` and ``amount``).
        Negative amounts are outflows, positive are inflows. At least two
        flows, with at least one strictly negative and one strictly positive.
    config : XirrConfig, optional
        Solver settings; defaults to ``XirrConfig()``.

    Returns
    -------
    XirrResult
        Rate in percent. If the solver stops without |NPV| < tolerance, an
        XirrConvergenceWarning is emitted and ``converged`` is False.

    Raises
    ------
    ValidationError
        Fewer than two flows, malformed flows, or no sign change.

    Examples
    --------
    >>> from datetime import datetime, timedelta
    >>> t0 = datetime(2023, 1, 1)
    >>> calculate_xirr([
    ...     {"date": t0, "amount": -100_000},
    ...     {"date": t0 + timedelta(days=365.25), "amount": 120_000},
    ... ]).rate
    20.0
    """
    from .config import XirrConfig

    config = config or XirrConfig()

    if cash_flows is None or len(cash_flows) < 2:
        raise ValidationError("XIRR requires at least 2 cash flows.")

    parsed = []
    for flow in cash_flows:
        when, amount = _flow_parts(flow)
        if not is_number(amount):
            raise ValidationError(f"Cash flow amount must be a finite number (got {amount!r}).")
        parsed.append((as_datetime(when), float(amount)))

    if not any(a > 0 for _, a in parsed) or not any(a < 0 for _, a in parsed):
        raise ValidationError("XIRR requires both positive and negative cash flows.")

    parsed.sort(key=lambda item: item[0])
    base = parsed[0][0]
    years = np.array([year_fraction(base, when) for when, _ in parsed])
    amounts = np.array([a for _, a in parsed])

    rate = config.guess
    npv = float("nan")
    status = "max_iterations"
    iterations = 0
    for iterations in range(1, config.max_iterations + 1):
        growth = (1.0 + rate) ** years
        npv = float(np.sum(amounts / growth))
        if abs(npv) < config.tolerance:
            status = "converged"
            break

        derivative = float(np.sum(-years * amounts / (growth * (1.0 + rate))))
        if abs(derivative) < XIRR_MIN_DERIVATIVE:
            status = "flat_derivative"
            break

        proposed = rate - npv / derivative
        if proposed < config.lower_bound:
            rate = (rate + config.lower_bound) / 2
        elif proposed > config.upper_bound:
            rate = (rate + config.upper_bound) / 2
        else:
            rate = proposed
    else:
        npv = float(np.sum(amounts / (1.0 + rate) ** years))

    converged = status == "converged"
    result = XirrResult(
        rate=_pct(rate * 100),
        converged=converged,
        iterations=iterations,
        status=status,
        npv=npv,
    )

    if converged:
        logger.debug("XIRR converged to %.4f after %d iterations", rate, iterations)
    else:
        message = (
            f"XIRR did not converge ({status}) after {iterations} iterations; "
            f"returning approximate rate {result.rate}% (|NPV| = {abs(npv):.6g})."
        )
        logger.warning(message)
        warnings.warn(message, XirrConvergenceWarning, stacklevel=2)
    return result


def approximate_sip_xirr(monthly_amount: float, total_months: int, current_value: float) -> float:
    """
    Closed-form SIP return estimate.

    Treats the whole invested amount as held for the average SIP holding
    period ``(total_months + 1) / 24`` years and applies CAGR.

    Examples
    --------
    >>> approximate_sip_xirr(10_000, 12, 130_000)
    15.92
    """
    monthly_amount = check_positive("Monthly amount", monthly_amount)
    if isinstance(total_months, bool) or not is_number(total_months) or total_months <= 0:
        raise ValidationError(f"Total months must be a positive number (got {total_months!r}).")
    if not is_number(current_value):
        raise ValidationError(f"Current value must be a finite number (got {current_value!r}).")
    if current_value <= 0:
        return TOTAL_LOSS_PERCENT

    total_invested = monthly_amount * total_months
    average_years = (total_months + 1) / (2 * MONTHS_PER_YEAR)
    return calculate_cagr(total_invested, current_value, average_years)


# ---------------------------------------------------------------------------
# Series statistics
# ---------------------------------------------------------------------------

def calculate_rolling_returns(nav_data: NavData, window_months: int) -> List[RollingReturn]:
    """
    Absolute returns over every full window of *window_months* entries.

    The window slides over the sorted months of the history by position,
    so gaps in the history widen the calendar span of a window.

    Raises
    ------
    ValidationError
        If *window_months* is not a positive integer.
    """
    if isinstance(window_months, bool) or not isinstance(window_months, int) or window_months < 1:
        raise ValidationError(f"Rolling window must be a positive integer (got {window_months!r}).")

    normalized = normalize_nav_data(nav_data)
    months = list(normalized)
    return [
        RollingReturn(
            start_month=months[i - window_months],
            end_month=months[i],
            absolute_return=calculate_absolute_return(
                normalized[months[i - window_months]], normalized[months[i]]
            ),
        )
        for i in range(window_months, len(months))
    ]


def calculate_return_statistics(returns: Sequence[float]) -> ReturnStatistics:
    """
    Summary statistics of a set of returns (population std-dev).

    Examples
    --------
    >>> calculate_return_statistics([2, 4, 4, 4, 5, 5, 7, 9]).std_dev
    2.0
    """
    if returns is None or len(returns) == 0:
        raise ValidationError("Returns must be a non-empty sequence.")
    if not all(is_number(r) for r in returns):
        raise ValidationError("Returns must contain only finite numbers.")

    values = np.asarray(returns, dtype=float)
    return ReturnStatistics(
        count=int(values.size),
        min=_pct(float(values.min())),
        max=_pct(float(values.max())),
        mean=_pct(float(values.mean())),
        median=_pct(float(np.median(values))),
        std_dev=_pct(float(values.std(ddof=0))),
    )


def calculate_sharpe_ratio(
    return_percent: float,
    std_dev: float,
    risk_free_rate: float = DEFAULT_RISK_FREE_RATE,
) -> float:
    """
    Sharpe ratio ``(return - risk_free) / std_dev``; 0 when ``std_dev <= 0``.
    """
    if std_dev <= 0:
        return 0.0
    return _pct((return_percent - risk_free_rate) / std_dev)


def compare_investments(
    investments: Sequence[Union[InvestmentSnapshot, Mapping]],
) -> List[RankedInvestment]:
    """
    Rank investments by CAGR, best first.

    Ranks are dense: equal CAGRs share a rank and the next distinct CAGR
    gets the following integer. Ties are not broken by position, so two
    investments with the same CAGR both report rank 1 rather than 1 and 2.

    Examples
    --------
    >>> ranked = compare_investments([
    ...     {"name": "A", "initial_value": 100, "final_value": 121, "years": 2},
    ...     {"name": "B", "initial_value": 100, "final_value": 150, "years": 2},
    ... ])
    >>> [(r.name, r.rank) for r in ranked]
    [('B', 1), ('A', 2)]
    """
    if not investments:
        raise ValidationError("Investments must be a non-empty sequence.")

    rows = []
    for item in investments:
        snap = InvestmentSnapshot.coerce(item)
        rows.append(
            (
                snap,
                calculate_absolute_return(snap.initial_value, snap.final_value),
                calculate_cagr(snap.initial_value, snap.final_value, snap.years),
            )
        )
    rows.sort(key=lambda row: row[2], reverse=True)

    ranked: List[RankedInvestment] = []
    rank = 0
    previous: Optional[float] = None
    for snap, absolute, cagr in rows:
        if cagr != previous:
            rank += 1
            previous = cagr
        ranked.append(
            RankedInvestment(
                name=snap.name,
                initial_value=_pct(snap.initial_value),
                final_value=_pct(snap.final_value),
                absolute_return=absolute,
                cagr=cagr,
                years=_pct(snap.years),
                rank=rank,
            )
        )
    return ranked
