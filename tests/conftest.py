"""
Pytest configuration and fixtures for the navfolio test suite.

This module provides reusable NAV histories, investment instructions and
JSON files for testing all navfolio components.
"""

import json
from datetime import date
from typing import Dict

import pytest

from navfolio.month_key import generate_month_range
from navfolio.valuation import Lumpsum, SipPlan


# ---------------------------------------------------------------------------
# NAV History Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def nav_two_points() -> Dict[str, float]:
    """Start and end of 2024 only: 100 -> 120."""
    return {"2024-01": 100, "2024-12": 120}


@pytest.fixture
def nav_quarter() -> Dict[str, float]:
    """Three consecutive months: 100, 105, 110."""
    return {"2024-01": 100, "2024-02": 105, "2024-03": 110}


@pytest.fixture
def nav_with_gaps() -> Dict[str, float]:
    """
    Sparse history with an interior gap.

    2024-02 -> 100, 2024-05 -> 130 (03 and 04 missing).
    """
    return {"2024-02": 100, "2024-05": 130}


@pytest.fixture
def nav_two_years() -> Dict[str, float]:
    """
    24 monthly NAVs, 2023-01 .. 2024-12, growing 1% per month.

    NAV(i) = 100 * 1.01^i
    """
    months = generate_month_range("2023-01", "2024-12")
    return {str(m): round(100 * 1.01 ** i, 4) for i, m in enumerate(months)}


@pytest.fixture
def valuation_date() -> date:
    """First day of the latest month of the standard histories."""
    return date(2024, 12, 1)


# ---------------------------------------------------------------------------
# Investment Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def quarter_sip() -> SipPlan:
    """10,000 per month over 2024-01 .. 2024-03."""
    return SipPlan(10_000, "2024-01", "2024-03")


@pytest.fixture
def quarter_lumpsums():
    """Two lumpsums inside the quarter."""
    return [Lumpsum(50_000, "2024-02"), Lumpsum(20_000, "2024-03")]


# ---------------------------------------------------------------------------
# File Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def nav_file(tmp_path, nav_two_years):
    """NAV history written as a bare month -> NAV object."""
    path = tmp_path / "nav.json"
    path.write_text(json.dumps(nav_two_years))
    return path


@pytest.fixture
def nav_map_file(tmp_path, nav_two_years, nav_quarter):
    """NAV histories for two funds."""
    path = tmp_path / "navs.json"
    path.write_text(json.dumps({
        "Growth Fund": nav_two_years,
        "Short Fund": nav_quarter,
    }))
    return path


@pytest.fixture
def portfolio_data():
    """Portfolio with two valued funds and one without NAV data."""
    return {
        "name": "Family",
        "funds": [
            {
                "name": "Growth Fund",
                "asset_type": "equity",
                "sips": [{"monthly_amount": 5_000, "start_month": "2024-01"}],
                "lumpsums": [{"amount": 100_000, "month": "2023-06"}],
            },
            {
                "name": "Short Fund",
                "asset_type": "debt",
                "sips": [
                    {"monthly_amount": 10_000, "start_month": "2024-01", "end_month": "2024-03"}
                ],
            },
            {
                "name": "Unknown Fund",
                "lumpsums": [{"amount": 10_000, "month": "2024-01"}],
            },
        ],
    }


@pytest.fixture
def portfolio_file(tmp_path, portfolio_data):
    """portfolio_data written to JSON."""
    path = tmp_path / "portfolio.json"
    path.write_text(json.dumps(portfolio_data))
    return path
