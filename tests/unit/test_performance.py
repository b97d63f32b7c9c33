"""
Unit tests for performance.py.

Tests fund-level and portfolio-level performance aggregation.
"""

import json
import warnings
from datetime import date

import pytest

from navfolio.config import XirrConfig
from navfolio.exceptions import DataAvailabilityError, ValidationError, XirrConvergenceWarning
from navfolio.performance import FundHolding, analyze_fund, analyze_portfolio
from navfolio.valuation import Lumpsum, SipPlan, calculate_combined_value


# ============================================================================
# FundHolding
# ============================================================================

class TestFundHolding:
    """Tests for FundHolding construction."""

    def test_coerces_mappings(self):
        holding = FundHolding(
            name="Fund",
            sips=({"monthly_amount": 1_000, "start_month": "2024-01"},),
            lumpsums=[{"amount": 5_000, "month": "2024-02"}],
        )
        assert holding.sips == (SipPlan(1_000, "2024-01"),)
        assert holding.lumpsums == (Lumpsum(5_000, "2024-02"),)

    @pytest.mark.parametrize("name", ["", "   ", None])
    def test_requires_name(self, name):
        with pytest.raises(ValidationError):
            FundHolding(name=name)


# ============================================================================
# analyze_fund
# ============================================================================

class TestAnalyzeFund:
    """Tests for analyze_fund."""

    def test_matches_combined_valuation(self, nav_quarter, quarter_sip, quarter_lumpsums):
        holding = FundHolding("Fund", sips=(quarter_sip,), lumpsums=tuple(quarter_lumpsums))
        result = analyze_fund(holding, nav_quarter)
        combined = calculate_combined_value(quarter_sip, quarter_lumpsums, nav_quarter).combined

        assert result.total_invested == combined.total_invested
        assert result.total_units == combined.total_units
        assert result.current_value == combined.current_value
        assert result.absolute_return_percent == combined.absolute_return_percent
        assert result.current_month == "2024-03"
        assert result.xirr.converged

    def test_independent_sip_streams(self, nav_two_years):
        holding = FundHolding(
            "Fund",
            sips=(SipPlan(1_000, "2023-01", "2023-12"), SipPlan(2_000, "2024-01")),
        )
        result = analyze_fund(holding, nav_two_years)

        assert len(result.sips) == 2
        assert result.total_invested == 12 * 1_000 + 12 * 2_000
        assert sum(1 for cf in result.cash_flows if cf.source == "sip") == 24

    def test_cash_flows(self, nav_two_points):
        holding = FundHolding("Fund", lumpsums=(Lumpsum(100_000, "2024-01"),))
        result = analyze_fund(holding, nav_two_points)

        assert [(cf.date, cf.amount, cf.source) for cf in result.cash_flows] == [
            (date(2024, 1, 1), -100_000.0, "lumpsum"),
            (date(2024, 12, 1), 120_000.0, "valuation"),
        ]
        # 11 months of 20% growth annualizes above 20%
        assert result.xirr.rate > 20

    def test_no_investments(self, nav_quarter):
        with pytest.raises(ValidationError):
            analyze_fund(FundHolding("Empty"), nav_quarter)

    def test_empty_history(self):
        holding = FundHolding("Fund", lumpsums=(Lumpsum(1_000, "2024-01"),))
        with pytest.raises(DataAvailabilityError):
            analyze_fund(holding, {})

    def test_to_dict_is_json_serializable(self, nav_quarter, quarter_sip):
        data = analyze_fund(FundHolding("Fund", sips=(quarter_sip,)), nav_quarter).to_dict()
        restored = json.loads(json.dumps(data))
        assert restored["cash_flows"][0] == {"date": "2024-01-01", "amount": -10_000.0, "source": "sip"}


# ============================================================================
# analyze_portfolio
# ============================================================================

class TestAnalyzePortfolio:
    """Tests for analyze_portfolio."""

    @pytest.fixture
    def holdings(self):
        return [
            FundHolding(
                "Growth Fund",
                sips=(SipPlan(5_000, "2024-01"),),
                lumpsums=(Lumpsum(100_000, "2023-06"),),
                asset_type="equity",
            ),
            FundHolding("Short Fund", sips=(SipPlan(10_000, "2024-01", "2024-03"),)),
        ]

    @pytest.fixture
    def nav_map(self, nav_two_years, nav_quarter):
        return {"Growth Fund": nav_two_years, "Short Fund": nav_quarter}

    def test_totals(self, holdings, nav_map):
        report = analyze_portfolio(holdings, nav_map, name="Family")

        assert report.name == "Family"
        assert len(report.funds) == 2
        assert report.total_invested == 100_000 + 12 * 5_000 + 30_000
        assert report.current_value == pytest.approx(sum(f.current_value for f in report.funds))
        assert report.absolute_return == pytest.approx(report.current_value - report.total_invested, abs=0.01)
        assert report.valuation_month == "2024-12"
        assert report.warnings == ()

    def test_portfolio_xirr_and_cagr(self, holdings, nav_map):
        report = analyze_portfolio(holdings, nav_map)

        assert report.xirr is not None and report.xirr.converged
        assert report.cagr is not None
        # Every fund gains, so the portfolio does too
        assert report.xirr.rate > 0
        assert report.cagr > 0

    def test_each_fund_valued_at_own_latest_month(self, holdings, nav_map):
        report = analyze_portfolio(holdings, nav_map)
        months = {f.name: f.current_month for f in report.funds}
        assert months == {"Growth Fund": "2024-12", "Short Fund": "2024-03"}

        terminal = [cf for f in report.funds for cf in f.cash_flows if cf.source == "valuation"]
        assert sorted(cf.date for cf in terminal) == [date(2024, 3, 1), date(2024, 12, 1)]

    def test_missing_nav_data_is_skipped(self, holdings, nav_map):
        holdings = holdings + [FundHolding("Unknown", lumpsums=(Lumpsum(1_000, "2024-01"),))]
        report = analyze_portfolio(holdings, nav_map)

        assert [f.name for f in report.funds] == ["Growth Fund", "Short Fund"]
        assert any("Unknown" in w for w in report.warnings)

    def test_failed_valuation_is_skipped(self, nav_map):
        holdings = [
            FundHolding("Short Fund", lumpsums=(Lumpsum(1_000, "2025-01"),)),
            FundHolding("Growth Fund", lumpsums=(Lumpsum(1_000, "2024-01"),)),
        ]
        report = analyze_portfolio(holdings, nav_map)

        assert [f.name for f in report.funds] == ["Growth Fund"]
        assert len(report.warnings) == 1
        assert "Short Fund" in report.warnings[0]

    def test_nothing_valued(self):
        report = analyze_portfolio([FundHolding("A", lumpsums=(Lumpsum(1, "2024-01"),))], {})

        assert report.funds == ()
        assert report.total_invested == 0
        assert report.xirr is None
        assert report.cagr is None
        assert report.valuation_month is None

    def test_non_converged_xirr_reported(self):
        """A one-iteration budget cannot converge on a 100% gain."""
        holdings = [FundHolding("Fund", lumpsums=(Lumpsum(1_000, "2024-01"),))]
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", XirrConvergenceWarning)
            report = analyze_portfolio(
                holdings,
                {"Fund": {"2024-01": 10, "2024-12": 20}},
                xirr_config=XirrConfig(max_iterations=1),
            )

        assert report.funds[0].xirr.converged is False
        assert report.xirr.converged is False
        assert sum("did not converge" in w for w in report.warnings) == 2

    def test_to_dict(self, holdings, nav_map):
        data = json.loads(json.dumps(analyze_portfolio(holdings, nav_map).to_dict()))
        assert data["valuation_month"] == "2024-12"
        assert len(data["funds"]) == 2
