"""
Configuration management module for navfolio.

Purpose
-------
Centralized configuration using Pydantic models for type-safe parameter management,
validation, and serialization. Supports environment variables, JSON configs,
and programmatic defaults.

Design Principles
-----------------
- Type-safe: Pydantic enforces types and validates ranges
- Immutable: Frozen models prevent accidental mutation
- Per-call: solver settings travel with each call instead of living in
  module-level globals
- Serializable: Easy conversion to/from JSON for portfolio files
- Environment-aware: Supports .env files for application settings

Example
-------
>>> from navfolio.config import XirrConfig, PortfolioConfig
>>> xirr_config = XirrConfig(tolerance=1e-6, max_iterations=200)
>>>
>>> # Serialize to dict/JSON
>>> config_dict = xirr_config.model_dump()
>>> json_str = xirr_config.model_dump_json()
>>>
>>> # Load from dict/JSON
>>> loaded = XirrConfig.model_validate(config_dict)
"""

from __future__ import annotations
from typing import Optional, Literal, List, TYPE_CHECKING
import re

from pydantic import BaseModel, Field, field_validator, model_validator, ConfigDict
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import (
    DEFAULT_RISK_FREE_RATE,
    DEFAULT_XIRR_GUESS,
    DEFAULT_XIRR_MAX_ITERATIONS,
    DEFAULT_XIRR_TOLERANCE,
    XIRR_RATE_LOWER_BOUND,
    XIRR_RATE_UPPER_BOUND,
)

if TYPE_CHECKING:
    from .performance import FundHolding
    from .valuation import Lumpsum, SipPlan

__all__ = [
    "XirrConfig",
    "LumpsumConfig",
    "SipConfig",
    "FundConfig",
    "PortfolioConfig",
    "AppSettings",
]

_MONTH_PATTERN = re.compile(r"[0-9]{4}-(0[1-9]|1[0-2])")


def _check_month(v: Optional[str]) -> Optional[str]:
    if v is not None and not _MONTH_PATTERN.fullmatch(v):
        raise ValueError(f'month must be in "YYYY-MM" format, got {v!r}')
    return v


# ---------------------------------------------------------------------------
# XIRR Solver Configuration
# ---------------------------------------------------------------------------

class XirrConfig(BaseModel):
    """
    Newton-Raphson settings for XIRR.

    Attributes
    ----------
    guess : float
        Starting annual rate (0.1 = 10%).
    tolerance : float
        Convergence threshold on |NPV|, in currency units.
    max_iterations : int
        Iteration budget before giving up with a best estimate.
    lower_bound, upper_bound : float
        Rate clamp. A step that would leave the interval moves halfway to
        the bound instead.

    Examples
    --------
    >>> config = XirrConfig(guess=0.05, max_iterations=200)
    >>> config.tolerance
    0.0001
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    guess: float = Field(
        default=DEFAULT_XIRR_GUESS,
        description="Initial annual rate guess"
    )
    tolerance: float = Field(
        default=DEFAULT_XIRR_TOLERANCE,
        gt=0,
        le=1.0,
        description="Convergence tolerance on |NPV|"
    )
    max_iterations: int = Field(
        default=DEFAULT_XIRR_MAX_ITERATIONS,
        ge=1,
        le=10_000,
        description="Maximum Newton-Raphson iterations"
    )
    lower_bound: float = Field(
        default=XIRR_RATE_LOWER_BOUND,
        gt=-1.0,
        description="Lowest admissible rate"
    )
    upper_bound: float = Field(
        default=XIRR_RATE_UPPER_BOUND,
        description="Highest admissible rate"
    )

    @model_validator(mode="after")
    def validate_bounds(self):
        """Ensure lower_bound < guess < upper_bound."""
        if not self.lower_bound < self.upper_bound:
            raise ValueError(
                f"lower_bound ({self.lower_bound}) must be < upper_bound ({self.upper_bound})"
            )
        if not self.lower_bound < self.guess < self.upper_bound:
            raise ValueError(
                f"guess ({self.guess}) must lie strictly between "
                f"{self.lower_bound} and {self.upper_bound}"
            )
        return self


# ---------------------------------------------------------------------------
# Investment Configuration
# ---------------------------------------------------------------------------

class LumpsumConfig(BaseModel):
    """
    One-time investment as stored in portfolio files.

    Examples
    --------
    >>> LumpsumConfig(amount=100_000, month="2024-01").to_domain()
    Lumpsum(amount=100000.0, purchase_month=MonthKey('2024-01'))
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    amount: float = Field(
        gt=0,
        description="Invested amount"
    )
    month: str = Field(
        description='Purchase month ("YYYY-MM")'
    )

    @field_validator("month")
    @classmethod
    def validate_month(cls, v):
        return _check_month(v)

    def to_domain(self) -> "Lumpsum":
        from .valuation import Lumpsum
        return Lumpsum(amount=self.amount, purchase_month=self.month)


class SipConfig(BaseModel):
    """
    Systematic investment plan as stored in portfolio files.

    ``end_month=None`` means the plan runs through the latest NAV month.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    monthly_amount: float = Field(
        gt=0,
        description="Amount invested every month"
    )
    start_month: str = Field(
        description='First installment month ("YYYY-MM")'
    )
    end_month: Optional[str] = Field(
        default=None,
        description='Last installment month ("YYYY-MM"); None = ongoing'
    )

    @field_validator("start_month", "end_month")
    @classmethod
    def validate_months(cls, v):
        return _check_month(v)

    @model_validator(mode="after")
    def validate_order(self):
        """Ensure end_month >= start_month when given."""
        if self.end_month is not None and self.end_month < self.start_month:
            raise ValueError(
                f"end_month ({self.end_month}) must be >= start_month ({self.start_month})"
            )
        return self

    def to_domain(self) -> "SipPlan":
        from .valuation import SipPlan
        return SipPlan(
            monthly_amount=self.monthly_amount,
            start_month=self.start_month,
            end_month=self.end_month,
        )


class FundConfig(BaseModel):
    """
    Holdings in a single fund.

    Attributes
    ----------
    name : str
        Fund name; must match a key of the NAV map.
    asset_type : str
        Free-form category (e.g. "equity", "debt").
    sips : List[SipConfig]
        Independent SIP streams.
    lumpsums : List[LumpsumConfig]
        One-time investments.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(
        min_length=1,
        max_length=200,
        description="Fund name"
    )
    asset_type: str = Field(
        default="",
        max_length=50,
        description="Asset category"
    )
    sips: List[SipConfig] = Field(
        default_factory=list,
        description="SIP streams"
    )
    lumpsums: List[LumpsumConfig] = Field(
        default_factory=list,
        description="Lumpsum investments"
    )

    def to_domain(self) -> "FundHolding":
        from .performance import FundHolding
        return FundHolding(
            name=self.name,
            asset_type=self.asset_type,
            sips=tuple(s.to_domain() for s in self.sips),
            lumpsums=tuple(lump.to_domain() for lump in self.lumpsums),
        )


class PortfolioConfig(BaseModel):
    """
    A named collection of fund holdings.

    Examples
    --------
    >>> portfolio = PortfolioConfig(
    ...     name="Family",
    ...     funds=[
    ...         FundConfig(
    ...             name="Index Fund",
    ...             sips=[SipConfig(monthly_amount=5_000, start_month="2024-01")],
    ...         )
    ...     ],
    ... )
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(
        default="Portfolio",
        min_length=1,
        max_length=100,
        description="Portfolio name"
    )
    schema_version: Optional[str] = Field(
        default=None,
        description="Schema version of the file this was loaded from"
    )
    funds: List[FundConfig] = Field(
        default_factory=list,
        description="Fund holdings"
    )

    def holdings(self) -> List["FundHolding"]:
        """Domain holdings for analyze_portfolio()."""
        return [fund.to_domain() for fund in self.funds]


# ---------------------------------------------------------------------------
# Application Settings (Environment Variables)
# ---------------------------------------------------------------------------

class AppSettings(BaseSettings):
    """
    Global application settings loaded from environment variables.

    Supports .env files for local development. Environment variables
    should be prefixed with NAVFOLIO_ (e.g., NAVFOLIO_LOG_LEVEL=DEBUG).

    Attributes
    ----------
    debug : bool
        Enable debug mode (forces DEBUG logging)
    log_level : str
        Logging level: "DEBUG", "INFO", "WARNING", "ERROR"
    risk_free_rate : float
        Annual risk-free rate in percent for Sharpe ratios

    Examples
    --------
    >>> settings = AppSettings()
    >>> settings.log_level
    'WARNING'
    """

    model_config = SettingsConfigDict(
        env_prefix="NAVFOLIO_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    debug: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING",
        description="Logging level"
    )
    risk_free_rate: float = Field(
        default=DEFAULT_RISK_FREE_RATE,
        ge=-50,
        le=100,
        description="Risk-free rate (percent) for Sharpe ratios"
    )

    @property
    def effective_log_level(self) -> str:
        return "DEBUG" if self.debug else self.log_level
