"""
Unit tests for config.py Pydantic models.

Tests validation, defaults, domain conversion and serialization of
configuration classes.
"""

import pytest

from navfolio.config import (
    AppSettings,
    FundConfig,
    LumpsumConfig,
    PortfolioConfig,
    SipConfig,
    XirrConfig,
)
from navfolio.performance import FundHolding
from navfolio.valuation import Lumpsum, SipPlan


class TestXirrConfig:
    """Tests for XirrConfig validation."""

    def test_defaults(self):
        """Test default values."""
        config = XirrConfig()

        assert config.guess == 0.1
        assert config.tolerance == 1e-4
        assert config.max_iterations == 100
        assert config.lower_bound == -0.99
        assert config.upper_bound == 10.0

    def test_custom_values(self):
        config = XirrConfig(guess=0.05, tolerance=1e-6, max_iterations=500)
        assert config.max_iterations == 500

    @pytest.mark.parametrize("kwargs", [
        {"tolerance": 0},
        {"max_iterations": 0},
        {"lower_bound": -1.0},
        {"lower_bound": 0.5, "upper_bound": 0.2},
        {"guess": 20.0},
        {"guess": -0.995},
    ])
    def test_invalid(self, kwargs):
        with pytest.raises(ValueError):
            XirrConfig(**kwargs)

    def test_extra_fields_forbidden(self):
        with pytest.raises(ValueError):
            XirrConfig(method="bisection")

    def test_immutable(self):
        """Test that config is frozen (immutable)."""
        config = XirrConfig()

        with pytest.raises(Exception):  # Pydantic raises ValidationError
            config.guess = 0.2

    def test_serialization(self):
        config = XirrConfig(tolerance=1e-6)
        restored = XirrConfig.model_validate(config.model_dump())
        assert restored == config


class TestInvestmentConfigs:
    """Tests for LumpsumConfig / SipConfig / FundConfig."""

    def test_lumpsum_to_domain(self):
        assert LumpsumConfig(amount=100_000, month="2024-01").to_domain() == Lumpsum(100_000, "2024-01")

    @pytest.mark.parametrize("month", ["2024-13", "2024-1", "January", "2024-01\n", "２０２４-０１"])
    def test_lumpsum_month_format(self, month):
        with pytest.raises(ValueError):
            LumpsumConfig(amount=1, month=month)

    def test_lumpsum_amount_positive(self):
        with pytest.raises(ValueError):
            LumpsumConfig(amount=0, month="2024-01")

    def test_sip_to_domain(self):
        sip = SipConfig(monthly_amount=5_000, start_month="2024-01", end_month="2024-06")
        assert sip.to_domain() == SipPlan(5_000, "2024-01", "2024-06")

    def test_sip_open_ended(self):
        assert SipConfig(monthly_amount=5_000, start_month="2024-01").to_domain().end_month is None

    def test_sip_order(self):
        with pytest.raises(ValueError):
            SipConfig(monthly_amount=5_000, start_month="2024-06", end_month="2024-01")

    def test_fund_to_domain(self):
        fund = FundConfig(
            name="Index Fund",
            asset_type="equity",
            sips=[SipConfig(monthly_amount=5_000, start_month="2024-01")],
            lumpsums=[LumpsumConfig(amount=10_000, month="2024-03")],
        )
        holding = fund.to_domain()

        assert isinstance(holding, FundHolding)
        assert holding.name == "Index Fund"
        assert holding.asset_type == "equity"
        assert holding.sips == (SipPlan(5_000, "2024-01"),)
        assert holding.lumpsums == (Lumpsum(10_000, "2024-03"),)

    def test_fund_name_required(self):
        with pytest.raises(ValueError):
            FundConfig(name="")


class TestPortfolioConfig:
    """Tests for PortfolioConfig."""

    def test_from_dict(self, portfolio_data):
        portfolio = PortfolioConfig.model_validate(portfolio_data)

        assert portfolio.name == "Family"
        assert len(portfolio.funds) == 3
        assert [h.name for h in portfolio.holdings()] == ["Growth Fund", "Short Fund", "Unknown Fund"]

    def test_defaults(self):
        portfolio = PortfolioConfig()
        assert portfolio.name == "Portfolio"
        assert portfolio.holdings() == []

    def test_unknown_field(self):
        with pytest.raises(ValueError):
            PortfolioConfig(owner="me")


class TestAppSettings:
    """Tests for AppSettings environment loading."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("NAVFOLIO_LOG_LEVEL", raising=False)
        monkeypatch.delenv("NAVFOLIO_DEBUG", raising=False)
        monkeypatch.delenv("NAVFOLIO_RISK_FREE_RATE", raising=False)
        settings = AppSettings(_env_file=None)

        assert settings.debug is False
        assert settings.log_level == "WARNING"
        assert settings.risk_free_rate == 6.0

    def test_from_environment(self, monkeypatch):
        monkeypatch.setenv("NAVFOLIO_LOG_LEVEL", "INFO")
        monkeypatch.setenv("NAVFOLIO_RISK_FREE_RATE", "7.25")
        settings = AppSettings(_env_file=None)

        assert settings.log_level == "INFO"
        assert settings.risk_free_rate == 7.25

    def test_debug_overrides_level(self, monkeypatch):
        monkeypatch.setenv("NAVFOLIO_DEBUG", "true")
        monkeypatch.setenv("NAVFOLIO_LOG_LEVEL", "ERROR")
        assert AppSettings(_env_file=None).effective_log_level == "DEBUG"

    def test_invalid_level(self, monkeypatch):
        monkeypatch.setenv("NAVFOLIO_LOG_LEVEL", "LOUD")
        with pytest.raises(ValueError):
            AppSettings(_env_file=None)
