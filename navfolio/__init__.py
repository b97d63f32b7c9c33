"""
navfolio: NAV-based investment valuation

A pure computational library for valuing mutual-fund investments from
monthly NAV histories and measuring their returns.

Modules
-------
- month_key    : "YYYY-MM" month keys and month arithmetic
- nav_series   : NAV history normalization and gap filling
- valuation    : Lumpsum / SIP valuation and cash-flow generation
- returns      : Absolute return, CAGR, XIRR, trailing/rolling returns
- performance  : Fund and portfolio performance reports
- config       : Pydantic configs and application settings
- serialization: JSON persistence
- cli          : Command-line interface
"""

__version__ = "0.1.0"

from .exceptions import (
    NavFolioError,
    ValidationError,
    MonthKeyError,
    DataAvailabilityError,
    ConfigurationError,
    XirrConvergenceWarning,
)
from .month_key import MonthKey
from .valuation import (
    Lumpsum,
    SipPlan,
    CashFlow,
    calculate_lumpsum_value,
    calculate_sip_value,
    calculate_multiple_lumpsums,
    calculate_combined_value,
    generate_cash_flows,
)
from .returns import (
    calculate_absolute_return,
    calculate_cagr,
    calculate_xirr,
)
from .performance import FundHolding, analyze_fund, analyze_portfolio
from .config import XirrConfig
from . import month_key, nav_series, utils

__all__ = [
    "__version__",
    "NavFolioError",
    "ValidationError",
    "MonthKeyError",
    "DataAvailabilityError",
    "ConfigurationError",
    "XirrConvergenceWarning",
    "MonthKey",
    "Lumpsum",
    "SipPlan",
    "CashFlow",
    "calculate_lumpsum_value",
    "calculate_sip_value",
    "calculate_multiple_lumpsums",
    "calculate_combined_value",
    "generate_cash_flows",
    "calculate_absolute_return",
    "calculate_cagr",
    "calculate_xirr",
    "FundHolding",
    "analyze_fund",
    "analyze_portfolio",
    "XirrConfig",
]
