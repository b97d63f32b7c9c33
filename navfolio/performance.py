"""
Fund and portfolio performance analysis.

Purpose
-------
Aggregates the valuation engine over a portfolio: each fund holds any
number of SIP streams and lumpsums, is valued at its own latest NAV month,
and contributes its dated cash flows to a portfolio-level XIRR.

Model
-----
For fund f with installments/lumpsums i:

    units_f        = Σ_i units_i
    current_value_f = units_f · NAV_f(latest_f)

Portfolio totals sum over funds. The portfolio XIRR solves over every
fund's outflows plus one terminal inflow per fund (its current value,
dated at its own latest month). A simple CAGR compares total invested to
total current value over the span from the earliest outflow to the latest
valuation date.

Design principles
-----------------
- Each SIP is an independent cash-flow stream
- Partial results: a fund that cannot be valued is skipped and reported
  in ``warnings`` instead of aborting the analysis
- No fixed cutoff month: every fund is valued at its own latest NAV

Example
-------
>>> from navfolio.valuation import Lumpsum, SipPlan
>>> nav = {"2024-01": 100, "2024-02": 105, "2024-03": 110}
>>> holding = FundHolding(
...     name="Index Fund",
...     sips=(SipPlan(10_000, "2024-01"),),
...     lumpsums=(Lumpsum(50_000, "2024-02"),),
... )
>>> report = analyze_portfolio([holding], {"Index Fund": nav})
>>> report.total_invested, report.xirr.converged
(80000.0, True)
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence, Tuple

from .constants import CURRENCY_DECIMALS, NAV_DECIMALS, PERCENT_DECIMALS, UNITS_DECIMALS
from .exceptions import DataAvailabilityError, NavFolioError, ValidationError
from .month_key import MonthKey
from .nav_series import normalize_nav_data
from .returns import XirrResult, calculate_absolute_return, calculate_cagr, calculate_xirr
from .types import NavData
from .utils import round_half_away, year_fraction
from .valuation import (
    CashFlow,
    Lumpsum,
    MultiLumpsumValuation,
    SipPlan,
    SipValuation,
    calculate_multiple_lumpsums,
    calculate_sip_value,
)

if TYPE_CHECKING:
    from .config import XirrConfig

logger = logging.getLogger(__name__)

__all__ = [
    "FundHolding",
    "FundPerformance",
    "PortfolioPerformance",
    "analyze_fund",
    "analyze_portfolio",
]


# ---------------------------------------------------------------------------
# Data types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FundHolding:
    """
    Investments held in one fund.

    Parameters
    ----------
    name : str
        Fund name; looked up in the NAV map by analyze_portfolio().
    sips : tuple of SipPlan
        Independent SIP streams.
    lumpsums : tuple of Lumpsum
        One-time investments.
    asset_type : str
        Free-form category carried into the report.
    """
    name: str
    sips: Tuple[SipPlan, ...] = ()
    lumpsums: Tuple[Lumpsum, ...] = ()
    asset_type: str = ""

    def __post_init__(self):
        if not isinstance(self.name, str) or not self.name.strip():
            raise ValidationError(f"Fund name must be a non-empty string (got {self.name!r}).")
        object.__setattr__(self, "sips", tuple(SipPlan.coerce(s) for s in self.sips))
        object.__setattr__(self, "lumpsums", tuple(Lumpsum.coerce(lump) for lump in self.lumpsums))


@dataclass(frozen=True)
class FundPerformance:
    """Valuation, XIRR and cash flows of one fund."""
    name: str
    asset_type: str
    total_invested: float
    total_units: float
    current_month: MonthKey
    current_nav: float
    current_value: float
    absolute_return: float
    absolute_return_percent: float
    xirr: Optional[XirrResult]
    sips: Tuple[SipValuation, ...]
    lumpsums: Optional[MultiLumpsumValuation]
    cash_flows: Tuple[CashFlow, ...]

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["cash_flows"] = [cf.to_dict() for cf in self.cash_flows]
        return data


@dataclass(frozen=True)
class PortfolioPerformance:
    """
    Portfolio-level totals and per-fund breakdown.

    ``xirr`` and ``cagr`` are None when nothing could be valued.
    ``warnings`` lists skipped funds and non-converged XIRR solves.
    """
    name: str
    total_invested: float
    current_value: float
    absolute_return: float
    absolute_return_percent: float
    xirr: Optional[XirrResult]
    cagr: Optional[float]
    valuation_month: Optional[MonthKey]
    funds: Tuple[FundPerformance, ...]
    warnings: Tuple[str, ...]

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["funds"] = [fund.to_dict() for fund in self.funds]
        data["warnings"] = list(self.warnings)
        return data


# ---------------------------------------------------------------------------
# Fund analysis
# ---------------------------------------------------------------------------

def analyze_fund(
    holding: FundHolding,
    nav_data: NavData,
    xirr_config: Optional["XirrConfig"] = None,
) -> FundPerformance:
    """
    Value every SIP and lumpsum of *holding* and solve the fund XIRR.

    Raises
    ------
    ValidationError
        If the holding has no investments.
    DataAvailabilityError
        If the NAV history is empty or an investment falls after it.
    """
    if not holding.sips and not holding.lumpsums:
        raise ValidationError(f"Fund {holding.name!r} has no SIPs or lumpsums.")

    normalized = normalize_nav_data(nav_data)
    if not normalized:
        raise DataAvailabilityError(f"NAV data for {holding.name!r} is empty.")
    current_month = next(reversed(normalized))
    current_nav = normalized[current_month]

    flows: List[CashFlow] = []
    total_invested = 0.0
    total_units = 0.0

    sip_results = []
    for plan in holding.sips:
        result = calculate_sip_value(plan.monthly_amount, plan.start_month, normalized, plan.end_month)
        sip_results.append(result)
        total_invested += result.total_invested
        total_units += result.total_units
        flows.extend(
            CashFlow(inst.month.to_date(), -inst.amount, "sip") for inst in result.installments
        )

    lumpsum_result = None
    if holding.lumpsums:
        lumpsum_result = calculate_multiple_lumpsums(holding.lumpsums, normalized)
        total_invested += lumpsum_result.total_invested
        total_units += lumpsum_result.total_units
        flows.extend(
            CashFlow(inv.month.to_date(), -inv.amount, "lumpsum") for inv in lumpsum_result.investments
        )

    current_value = round_half_away(total_units * current_nav, CURRENCY_DECIMALS)
    flows.append(CashFlow(current_month.to_date(), current_value, "valuation"))
    flows.sort(key=lambda cf: cf.date)

    xirr = calculate_xirr(flows, xirr_config)
    absolute_return = current_value - total_invested
    logger.debug(
        "Fund %s: invested %.2f, value %.2f, XIRR %.2f%%",
        holding.name, total_invested, current_value, xirr.rate,
    )

    return FundPerformance(
        name=holding.name,
        asset_type=holding.asset_type,
        total_invested=round_half_away(total_invested, CURRENCY_DECIMALS),
        total_units=round_half_away(total_units, UNITS_DECIMALS),
        current_month=current_month,
        current_nav=round_half_away(current_nav, NAV_DECIMALS),
        current_value=current_value,
        absolute_return=round_half_away(absolute_return, CURRENCY_DECIMALS),
        absolute_return_percent=round_half_away(
            absolute_return / total_invested * 100, PERCENT_DECIMALS
        ),
        xirr=xirr,
        sips=tuple(sip_results),
        lumpsums=lumpsum_result,
        cash_flows=tuple(flows),
    )


# ---------------------------------------------------------------------------
# Portfolio analysis
# ---------------------------------------------------------------------------

def analyze_portfolio(
    holdings: Sequence[FundHolding],
    nav_map: Mapping[str, NavData],
    xirr_config: Optional["XirrConfig"] = None,
    name: str = "Portfolio",
) -> PortfolioPerformance:
    """
    Analyze every fund of a portfolio and aggregate the results.

    Parameters
    ----------
    holdings : sequence of FundHolding
        Portfolio funds.
    nav_map : Mapping[str, Mapping[str, float]]
        NAV history per fund name.
    xirr_config : XirrConfig, optional
        Solver settings shared by fund and portfolio XIRR.
    name : str
        Report title.

    Returns
    -------
    PortfolioPerformance
        Funds without NAV data, or whose valuation fails, are left out of
        the totals and named in ``warnings``.
    """
    notes: List[str] = []
    funds: List[FundPerformance] = []

    for holding in holdings:
        nav_data = nav_map.get(holding.name)
        if not nav_data:
            message = f"NAV data not available for: {holding.name}"
            logger.warning(message)
            notes.append(message)
            continue
        try:
            performance = analyze_fund(holding, nav_data, xirr_config)
        except NavFolioError as exc:
            message = f"Skipped {holding.name}: {exc}"
            logger.warning(message)
            notes.append(message)
            continue
        if performance.xirr is not None and not performance.xirr.converged:
            notes.append(
                f"XIRR for {holding.name} did not converge ({performance.xirr.status}); "
                f"{performance.xirr.rate}% is approximate."
            )
        funds.append(performance)

    total_invested = sum(f.total_invested for f in funds)
    current_value = sum(f.current_value for f in funds)

    xirr: Optional[XirrResult] = None
    cagr: Optional[float] = None
    valuation_month: Optional[MonthKey] = max((f.current_month for f in funds), default=None)
    absolute_return = current_value - total_invested
    absolute_return_percent = 0.0

    if total_invested > 0:
        absolute_return_percent = calculate_absolute_return(total_invested, current_value)

        flows = sorted((cf for f in funds for cf in f.cash_flows), key=lambda cf: cf.date)
        xirr = calculate_xirr(flows, xirr_config)
        if not xirr.converged:
            notes.append(
                f"Portfolio XIRR did not converge ({xirr.status}); {xirr.rate}% is approximate."
            )

        earliest = min(cf.date for cf in flows if cf.amount < 0)
        years = year_fraction(earliest, valuation_month.to_date())
        if years > 0:
            cagr = calculate_cagr(total_invested, current_value, years)

    return PortfolioPerformance(
        name=name,
        total_invested=round_half_away(total_invested, CURRENCY_DECIMALS),
        current_value=round_half_away(current_value, CURRENCY_DECIMALS),
        absolute_return=round_half_away(absolute_return, CURRENCY_DECIMALS),
        absolute_return_percent=absolute_return_percent,
        xirr=xirr,
        cagr=cagr,
        valuation_month=valuation_month,
        funds=tuple(funds),
        warnings=tuple(notes),
    )
