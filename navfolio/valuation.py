"""
Investment valuation on monthly NAV histories.

Purpose
-------
Values lumpsum and SIP (systematic investment plan) holdings in a fund from
its monthly NAV history, and produces the dated cash flows that XIRR
consumes.

Valuation Model
---------------
Every purchase happens on the first day of its month at that month's NAV:

    units_i = amount_i / NAV(month_i)

and the holding is valued at the latest month of the NAV history itself:

    current_value = Σ units_i · NAV(latest)

The valuation date is the series' own latest month, never the wall-clock
today. Purchase months missing from the history are resolved with
nav_series.fill_missing_nav_data (interpolation / edge fills). A purchase
after the latest NAV month cannot be resolved and raises
DataAvailabilityError.

The average NAV reported for SIPs and multiple lumpsums is the cost basis:

    average_nav = total_invested / total_units

which is not the arithmetic mean of the installment NAVs.

Key components
--------------
- Lumpsum, SipPlan:
    Validated, immutable investment instructions.
- calculate_lumpsum_value / calculate_sip_value /
  calculate_multiple_lumpsums / calculate_combined_value:
    Rounded valuation results (units 4 dp, currency and percent 2 dp).
- generate_cash_flows:
    Negative flow per SIP installment and per lumpsum plus one terminal
    positive flow with the combined current value, sorted by date.

Example
-------
>>> nav = {"2024-01": 100, "2024-12": 120}
>>> result = calculate_lumpsum_value(100_000, "2024-01", nav)
>>> result.units_purchased, result.current_value, result.absolute_return_percent
(1000.0, 120000.0, 20.0)
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import asdict, dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from .constants import CURRENCY_DECIMALS, NAV_DECIMALS, PERCENT_DECIMALS, UNITS_DECIMALS
from .exceptions import DataAvailabilityError, ValidationError
from .month_key import MonthKey, generate_month_range
from .nav_series import fill_missing_nav_data, normalize_nav_data
from .types import NavData
from .utils import check_positive, is_number, round_half_away

logger = logging.getLogger(__name__)

__all__ = [
    "Lumpsum",
    "SipPlan",
    "CashFlow",
    "LumpsumValuation",
    "Installment",
    "SipValuation",
    "LumpsumHolding",
    "MultiLumpsumValuation",
    "HoldingSummary",
    "CombinedValuation",
    "calculate_lumpsum_value",
    "calculate_sip_value",
    "calculate_multiple_lumpsums",
    "calculate_combined_value",
    "generate_cash_flows",
]


# ---------------------------------------------------------------------------
# Investment instructions
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Lumpsum:
    """
    Single one-time investment.

    Parameters
    ----------
    amount : float
        Invested amount (must be positive).
    purchase_month : str
        Purchase month ("YYYY-MM"); stored as MonthKey.

    Examples
    --------
    >>> Lumpsum(50_000, "2024-03")
    Lumpsum(amount=50000.0, purchase_month=MonthKey('2024-03'))
    """
    amount: float
    purchase_month: MonthKey

    def __post_init__(self):
        object.__setattr__(self, "amount", check_positive("Investment amount", self.amount))
        object.__setattr__(self, "purchase_month", MonthKey(self.purchase_month))

    @classmethod
    def coerce(cls, value: Union["Lumpsum", Mapping]) -> "Lumpsum":
        """Accept a Lumpsum or a mapping with ``amount`` and ``month``/``purchase_month``."""
        if isinstance(value, Lumpsum):
            return value
        if isinstance(value, Mapping):
            month = value.get("purchase_month", value.get("month"))
            if "amount" not in value or month is None:
                raise ValidationError(
                    f"Lumpsum entries need 'amount' and 'month' fields, got {dict(value)!r}."
                )
            return cls(value["amount"], month)
        raise ValidationError(f"Unsupported lumpsum entry: {value!r}")


@dataclass(frozen=True)
class SipPlan:
    """
    Systematic investment plan: a fixed amount invested every month.

    Parameters
    ----------
    monthly_amount : float
        Installment amount (must be positive).
    start_month : str
        First installment month.
    end_month : str, optional
        Last installment month. None means "through the latest NAV month".
    """
    monthly_amount: float
    start_month: MonthKey
    end_month: Optional[MonthKey] = None

    def __post_init__(self):
        object.__setattr__(
            self, "monthly_amount", check_positive("Monthly SIP amount", self.monthly_amount)
        )
        object.__setattr__(self, "start_month", MonthKey(self.start_month))
        if self.end_month is not None:
            object.__setattr__(self, "end_month", MonthKey(self.end_month))
            if self.end_month < self.start_month:
                raise ValidationError(
                    f"SIP end month {self.end_month} cannot be before "
                    f"start month {self.start_month}."
                )

    @classmethod
    def coerce(cls, value: Union["SipPlan", Mapping]) -> "SipPlan":
        """Accept a SipPlan or a mapping with ``monthly_amount``, ``start_month``, ``end_month``."""
        if isinstance(value, SipPlan):
            return value
        if isinstance(value, Mapping):
            try:
                return cls(
                    value["monthly_amount"],
                    value["start_month"],
                    value.get("end_month"),
                )
            except KeyError as exc:
                raise ValidationError(f"SIP configuration is missing {exc.args[0]!r}.") from None
        raise ValidationError(f"Unsupported SIP configuration: {value!r}")


@dataclass(frozen=True)
class CashFlow:
    """
    Dated, signed cash flow.

    Negative amounts are investments (outflows), positive amounts are
    valuations or redemptions (inflows). ``source`` records the origin:
    "sip", "lumpsum" or "valuation".
    """
    date: date
    amount: float
    source: str = ""

    def __post_init__(self):
        if not isinstance(self.date, date):
            raise ValidationError(f"Cash flow date must be a date, got {self.date!r}.")
        if not is_number(self.amount):
            raise ValidationError(f"Cash flow amount must be a finite number, got {self.amount!r}.")
        object.__setattr__(self, "amount", float(self.amount))

    def to_dict(self) -> Dict[str, Any]:
        return {"date": self.date.isoformat(), "amount": self.amount, "source": self.source}


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

class _ResultMixin:
    def to_dict(self) -> Dict[str, Any]:
        """JSON-serializable dict (nested results become dicts)."""
        return asdict(self)


@dataclass(frozen=True)
class LumpsumValuation(_ResultMixin):
    invested_amount: float
    units_purchased: float
    purchase_month: MonthKey
    purchase_nav: float
    current_month: MonthKey
    current_nav: float
    current_value: float
    absolute_return: float
    absolute_return_percent: float


@dataclass(frozen=True)
class Installment(_ResultMixin):
    month: MonthKey
    amount: float
    nav: float
    units: float


@dataclass(frozen=True)
class SipValuation(_ResultMixin):
    """SIP valuation with per-installment detail for auditing."""
    monthly_amount: float
    start_month: MonthKey
    end_month: MonthKey
    installment_count: int
    total_invested: float
    total_units: float
    average_nav: float
    current_month: MonthKey
    current_nav: float
    current_value: float
    absolute_return: float
    absolute_return_percent: float
    installments: Tuple[Installment, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class LumpsumHolding(_ResultMixin):
    amount: float
    month: MonthKey
    nav: float
    units: float


@dataclass(frozen=True)
class MultiLumpsumValuation(_ResultMixin):
    investment_count: int
    total_invested: float
    total_units: float
    average_nav: float
    current_month: MonthKey
    current_nav: float
    current_value: float
    absolute_return: float
    absolute_return_percent: float
    investments: Tuple[LumpsumHolding, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class HoldingSummary(_ResultMixin):
    total_invested: float
    total_units: float
    current_month: MonthKey
    current_nav: float
    current_value: float
    absolute_return: float
    absolute_return_percent: float


@dataclass(frozen=True)
class CombinedValuation(_ResultMixin):
    """SIP and lumpsum results side by side plus their combined totals."""
    sip: Optional[SipValuation]
    lumpsums: Optional[MultiLumpsumValuation]
    combined: HoldingSummary


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _latest_entry(normalized: Dict[MonthKey, float]) -> Tuple[MonthKey, float]:
    if not normalized:
        raise DataAvailabilityError("NAV data is empty.")
    month = next(reversed(normalized))
    return month, normalized[month]


def _currency(value: float) -> float:
    return round_half_away(value, CURRENCY_DECIMALS)


def _percent(value: float) -> float:
    return round_half_away(value, PERCENT_DECIMALS)


def _units(value: float) -> float:
    return round_half_away(value, UNITS_DECIMALS)


def _nav(value: float) -> float:
    return round_half_away(value, NAV_DECIMALS)


# ---------------------------------------------------------------------------
# Lumpsum
# ---------------------------------------------------------------------------

def calculate_lumpsum_value(amount: float, purchase_month: str, nav_data: NavData) -> LumpsumValuation:
    """
    Value a single lumpsum investment.

    Parameters
    ----------
    amount : float
        Invested amount (> 0).
    purchase_month : str
        Purchase month ("YYYY-MM").
    nav_data : Mapping[str, float]
        Fund NAV history.

    Returns
    -------
    LumpsumValuation
        Units and NAVs to 4 dp, currency and percent to 2 dp.

    Raises
    ------
    ValidationError
        Non-positive amount or malformed month.
    DataAvailabilityError
        Empty history, or purchase month after the latest NAV month.

    Examples
    --------
    >>> calculate_lumpsum_value(100_000, "2024-01", {"2024-01": 100, "2024-12": 120})
    LumpsumValuation(invested_amount=100000.0, units_purchased=1000.0, ...,
                     current_value=120000.0, absolute_return=20000.0,
                     absolute_return_percent=20.0)
    """
    amount = check_positive("Investment amount", amount)
    purchase_month = MonthKey(purchase_month)

    normalized = normalize_nav_data(nav_data)
    current_month, current_nav = _latest_entry(normalized)

    purchase_nav = normalized.get(purchase_month)
    if purchase_nav is None:
        if purchase_month > current_month:
            raise DataAvailabilityError(
                f"NAV not available for purchase month {purchase_month}: "
                f"latest NAV month is {current_month}."
            )
        logger.debug("No NAV for purchase month %s; filling gaps up to %s", purchase_month, current_month)
        purchase_nav = fill_missing_nav_data(normalized, purchase_month, current_month).get(purchase_month)
        if purchase_nav is None:
            raise DataAvailabilityError(f"NAV not available for purchase month {purchase_month}.")

    units = amount / purchase_nav
    current_value = units * current_nav
    absolute_return = current_value - amount

    return LumpsumValuation(
        invested_amount=amount,
        units_purchased=_units(units),
        purchase_month=purchase_month,
        purchase_nav=_nav(purchase_nav),
        current_month=current_month,
        current_nav=_nav(current_nav),
        current_value=_currency(current_value),
        absolute_return=_currency(absolute_return),
        absolute_return_percent=_percent(absolute_return / amount * 100),
    )


# ---------------------------------------------------------------------------
# SIP
# ---------------------------------------------------------------------------

def calculate_sip_value(
    monthly_amount: float,
    start_month: str,
    nav_data: NavData,
    end_month: Optional[str] = None,
) -> SipValuation:
    """
    Value a SIP: one installment per month from *start_month* to *end_month*.

    Each installment buys ``monthly_amount / NAV(month)`` units. Gaps are
    filled once over ``[start_month, latest]``; months before the history
    start take the earliest NAV.

    Parameters
    ----------
    monthly_amount : float
        Installment amount (> 0).
    start_month : str
        First installment month.
    nav_data : Mapping[str, float]
        Fund NAV history.
    end_month : str, optional
        Last installment month; defaults to the latest NAV month.

    Returns
    -------
    SipValuation
        ``total_invested == monthly_amount * installment_count`` exactly;
        ``average_nav`` is the cost basis ``total_invested / total_units``.

    Raises
    ------
    ValidationError
        Non-positive amount, malformed months, or end before start.
    DataAvailabilityError
        Empty history, or an installment month after the latest NAV month.
    """
    plan = SipPlan(monthly_amount, start_month, end_month)

    normalized = normalize_nav_data(nav_data)
    latest_month, current_nav = _latest_entry(normalized)
    sip_end = plan.end_month or latest_month
    if sip_end < plan.start_month:
        raise ValidationError(
            f"SIP end month {sip_end} cannot be before start month {plan.start_month}."
        )

    months = generate_month_range(plan.start_month, sip_end)
    filled = (
        fill_missing_nav_data(normalized, plan.start_month, latest_month)
        if plan.start_month <= latest_month
        else {}
    )

    installments: List[Installment] = []
    total_units = 0.0
    for month in months:
        nav = filled.get(month)
        if nav is None:
            raise DataAvailabilityError(
                f"NAV not available for SIP installment month {month} "
                f"(latest NAV month is {latest_month})."
            )
        units = plan.monthly_amount / nav
        total_units += units
        installments.append(
            Installment(month=month, amount=plan.monthly_amount, nav=_nav(nav), units=_units(units))
        )

    total_invested = plan.monthly_amount * len(months)
    current_value = total_units * current_nav
    absolute_return = current_value - total_invested

    return SipValuation(
        monthly_amount=plan.monthly_amount,
        start_month=plan.start_month,
        end_month=sip_end,
        installment_count=len(months),
        total_invested=_currency(total_invested),
        total_units=_units(total_units),
        average_nav=_nav(total_invested / total_units),
        current_month=latest_month,
        current_nav=_nav(current_nav),
        current_value=_currency(current_value),
        absolute_return=_currency(absolute_return),
        absolute_return_percent=_percent(absolute_return / total_invested * 100),
        installments=tuple(installments),
    )


# ---------------------------------------------------------------------------
# Multiple lumpsums
# ---------------------------------------------------------------------------

def calculate_multiple_lumpsums(
    lumpsums: Sequence[Union[Lumpsum, Mapping]],
    nav_data: NavData,
) -> MultiLumpsumValuation:
    """
    Value several lumpsums in the same fund.

    Each entry is valued with calculate_lumpsum_value (resolving its own
    purchase NAV); totals use the rounded per-entry unit counts.

    Raises
    ------
    ValidationError
        If *lumpsums* is empty or an entry is invalid.
    """
    if not lumpsums:
        raise ValidationError("Lumpsums must be a non-empty sequence.")
    entries = [Lumpsum.coerce(item) for item in lumpsums]

    normalized = normalize_nav_data(nav_data)
    current_month, current_nav = _latest_entry(normalized)

    holdings: List[LumpsumHolding] = []
    total_invested = 0.0
    total_units = 0.0
    for entry in entries:
        result = calculate_lumpsum_value(entry.amount, entry.purchase_month, normalized)
        total_invested += entry.amount
        total_units += result.units_purchased
        holdings.append(
            LumpsumHolding(
                amount=entry.amount,
                month=entry.purchase_month,
                nav=result.purchase_nav,
                units=result.units_purchased,
            )
        )

    current_value = total_units * current_nav
    absolute_return = current_value - total_invested

    return MultiLumpsumValuation(
        investment_count=len(entries),
        total_invested=_currency(total_invested),
        total_units=_units(total_units),
        average_nav=_nav(total_invested / total_units),
        current_month=current_month,
        current_nav=_nav(current_nav),
        current_value=_currency(current_value),
        absolute_return=_currency(absolute_return),
        absolute_return_percent=_percent(absolute_return / total_invested * 100),
        investments=tuple(holdings),
    )


# ---------------------------------------------------------------------------
# Combined
# ---------------------------------------------------------------------------

def calculate_combined_value(
    sip: Optional[Union[SipPlan, Mapping]],
    lumpsums: Optional[Sequence[Union[Lumpsum, Mapping]]],
    nav_data: NavData,
) -> CombinedValuation:
    """
    Value a SIP and lumpsums held in the same fund together.

    Either part may be None/empty. With nothing invested the totals are zero
    and the return percent is 0 (not NaN).

    Examples
    --------
    >>> nav = {"2024-01": 100, "2024-02": 105, "2024-03": 110}
    >>> result = calculate_combined_value(
    ...     SipPlan(10_000, "2024-01"), [Lumpsum(50_000, "2024-02")], nav
    ... )
    >>> result.combined.total_invested
    80000.0
    """
    normalized = normalize_nav_data(nav_data)
    current_month, current_nav = _latest_entry(normalized)

    sip_result: Optional[SipValuation] = None
    lumpsum_result: Optional[MultiLumpsumValuation] = None
    total_invested = 0.0
    total_units = 0.0

    if sip is not None:
        plan = SipPlan.coerce(sip)
        sip_result = calculate_sip_value(plan.monthly_amount, plan.start_month, normalized, plan.end_month)
        total_invested += sip_result.total_invested
        total_units += sip_result.total_units

    if lumpsums:
        lumpsum_result = calculate_multiple_lumpsums(lumpsums, normalized)
        total_invested += lumpsum_result.total_invested
        total_units += lumpsum_result.total_units

    current_value = total_units * current_nav
    absolute_return = current_value - total_invested
    percent = absolute_return / total_invested * 100 if total_invested > 0 else 0.0

    return CombinedValuation(
        sip=sip_result,
        lumpsums=lumpsum_result,
        combined=HoldingSummary(
            total_invested=_currency(total_invested),
            total_units=_units(total_units),
            current_month=current_month,
            current_nav=_nav(current_nav),
            current_value=_currency(current_value),
            absolute_return=_currency(absolute_return),
            absolute_return_percent=_percent(percent),
        ),
    )


# ---------------------------------------------------------------------------
# Cash flows
# ---------------------------------------------------------------------------

def generate_cash_flows(
    sip: Optional[Union[SipPlan, Mapping]],
    lumpsums: Optional[Sequence[Union[Lumpsum, Mapping]]],
    nav_data: NavData,
) -> List[CashFlow]:
    """
    Cash flows for XIRR.

    Emits a negative flow on the first of each SIP installment month, a
    negative flow per lumpsum, and exactly one positive terminal flow equal
    to the combined current value, dated the first of the latest NAV month.
    Sorted ascending by date; the sort is stable so the terminal flow comes
    after outflows on the same date.

    Raises
    ------
    ValidationError
        If neither a SIP nor any lumpsum is given.
    """
    plan = SipPlan.coerce(sip) if sip is not None else None
    entries = [Lumpsum.coerce(item) for item in (lumpsums or [])]
    if plan is None and not entries:
        raise ValidationError("Cash flows need a SIP or at least one lumpsum.")

    normalized = normalize_nav_data(nav_data)
    latest_month, _ = _latest_entry(normalized)
    valuation = calculate_combined_value(plan, entries, normalized)

    flows: List[CashFlow] = []
    if plan is not None:
        for month in generate_month_range(plan.start_month, plan.end_month or latest_month):
            flows.append(CashFlow(month.to_date(), -plan.monthly_amount, "sip"))
    for entry in entries:
        flows.append(CashFlow(entry.purchase_month.to_date(), -entry.amount, "lumpsum"))
    flows.append(CashFlow(latest_month.to_date(), valuation.combined.current_value, "valuation"))

    flows.sort(key=lambda cf: cf.date)
    return flows
