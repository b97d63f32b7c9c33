"""
Unit tests for CLI module.

Tests command-line interface functionality using Click's testing utilities.
"""

import json

import pytest
from click.testing import CliRunner

from navfolio import __version__
from navfolio.cli import main


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def runner():
    """Create CLI test runner."""
    return CliRunner()


@pytest.fixture
def quarter_nav_file(tmp_path, nav_quarter):
    """NAV file for the three-month history."""
    path = tmp_path / "quarter.json"
    path.write_text(json.dumps(nav_quarter))
    return path


# ============================================================================
# GROUP
# ============================================================================

class TestMain:
    """Tests for the command group."""

    def test_version(self, runner):
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help(self, runner):
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        for command in ("value", "returns", "analyze", "info"):
            assert command in result.output

    def test_info(self, runner):
        result = runner.invoke(main, ["--quiet", "info"])
        assert result.exit_code == 0
        assert f"navfolio Version: {__version__}" in result.output
        assert "pandas" in result.output

    def test_info_rich(self, runner):
        result = runner.invoke(main, ["info"])
        assert result.exit_code == 0
        assert "System Information" in result.output


# ============================================================================
# VALUE
# ============================================================================

class TestValueCommand:
    """Tests for `navfolio value`."""

    def test_sip_and_lumpsum(self, runner, quarter_nav_file):
        result = runner.invoke(main, [
            "--quiet", "value",
            "--nav", str(quarter_nav_file),
            "--sip-amount", "10000", "--sip-start", "2024-01",
            "--lumpsum", "50000@2024-02",
        ])
        assert result.exit_code == 0, result.output
        assert "Total invested: ₹80,000.00" in result.output
        assert "SIP installments: 3" in result.output
        assert "XIRR:" in result.output

    def test_rich_table(self, runner, quarter_nav_file):
        result = runner.invoke(main, ["value", "--nav", str(quarter_nav_file), "-l", "10000@2024-01"])
        assert result.exit_code == 0, result.output
        assert "Valuation" in result.output

    def test_output_file(self, runner, quarter_nav_file, tmp_path):
        out = tmp_path / "out" / "value.json"
        result = runner.invoke(main, [
            "--quiet", "value",
            "--nav", str(quarter_nav_file),
            "--lumpsum", "10000@2024-01",
            "--output", str(out),
        ])
        assert result.exit_code == 0, result.output

        data = json.loads(out.read_text())
        assert data["valuation"]["combined"]["current_value"] == 11_000
        assert data["cash_flows"][-1]["source"] == "valuation"
        assert data["xirr"]["converged"] is True

    def test_requires_investment(self, runner, quarter_nav_file):
        result = runner.invoke(main, ["value", "--nav", str(quarter_nav_file)])
        assert result.exit_code == 2
        assert "--lumpsum" in result.output

    def test_sip_needs_start(self, runner, quarter_nav_file):
        result = runner.invoke(main, ["value", "--nav", str(quarter_nav_file), "--sip-amount", "100"])
        assert result.exit_code == 2

    def test_bad_lumpsum_format(self, runner, quarter_nav_file):
        result = runner.invoke(main, ["value", "--nav", str(quarter_nav_file), "--lumpsum", "50000"])
        assert result.exit_code == 2
        assert "AMOUNT@YYYY-MM" in result.output

    def test_engine_error_exit_code(self, runner, quarter_nav_file):
        result = runner.invoke(main, [
            "value", "--nav", str(quarter_nav_file), "--lumpsum", "1000@2025-01",
        ])
        assert result.exit_code == 1
        assert "2025-01" in result.output

    def test_missing_nav_file(self, runner, tmp_path):
        result = runner.invoke(main, ["value", "--nav", str(tmp_path / "none.json"), "-l", "1@2024-01"])
        assert result.exit_code == 2


# ============================================================================
# RETURNS
# ============================================================================

class TestReturnsCommand:
    """Tests for `navfolio returns`."""

    def test_plain_output(self, runner, nav_file):
        result = runner.invoke(main, ["--quiet", "returns", "--nav", str(nav_file), "--window", "6"])
        assert result.exit_code == 0, result.output
        assert "1Y:" in result.output
        assert "CAGR:" in result.output
        assert "Rolling 6 windows: 18" in result.output
        assert "Sharpe" in result.output

    def test_rich_output(self, runner, nav_file):
        result = runner.invoke(main, ["returns", "--nav", str(nav_file)])
        assert result.exit_code == 0, result.output
        assert "Trailing Returns" in result.output

    def test_window_longer_than_history(self, runner, nav_file):
        result = runner.invoke(main, ["--quiet", "returns", "--nav", str(nav_file), "--window", "50"])
        assert result.exit_code == 0
        assert "Rolling 50 windows: 0" in result.output

    def test_invalid_window(self, runner, nav_file):
        result = runner.invoke(main, ["returns", "--nav", str(nav_file), "--window", "0"])
        assert result.exit_code == 1


# ============================================================================
# ANALYZE
# ============================================================================

class TestAnalyzeCommand:
    """Tests for `navfolio analyze`."""

    def test_report(self, runner, portfolio_file, nav_map_file, tmp_path):
        out = tmp_path / "report.json"
        result = runner.invoke(main, [
            "--quiet", "analyze",
            "--portfolio", str(portfolio_file),
            "--nav-map", str(nav_map_file),
            "--output", str(out),
        ])
        assert result.exit_code == 0, result.output
        assert "Funds analyzed: 2" in result.output
        assert "Unknown Fund" in result.output

        data = json.loads(out.read_text())
        assert data["name"] == "Family"
        assert len(data["funds"]) == 2

    def test_rich_report(self, runner, portfolio_file, nav_map_file):
        result = runner.invoke(main, [
            "analyze", "-p", str(portfolio_file), "-m", str(nav_map_file),
        ])
        assert result.exit_code == 0, result.output
        assert "Family" in result.output

    def test_invalid_portfolio(self, runner, tmp_path, nav_map_file):
        bad = tmp_path / "bad.json"
        bad.write_text(json.dumps({"funds": [{"name": ""}]}))
        result = runner.invoke(main, ["analyze", "-p", str(bad), "-m", str(nav_map_file)])
        assert result.exit_code == 1
        assert "Error" in result.output
