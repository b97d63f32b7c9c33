"""
Command-Line Interface for navfolio.

Purpose
-------
Values investments and reports returns from JSON NAV histories and
portfolio files without writing Python code.

Commands
--------
- value: Value a SIP and/or lumpsums in one fund, with XIRR
- returns: Trailing, CAGR and rolling-return statistics of a NAV history
- analyze: Portfolio performance report over several funds
- info: Version and dependency information

Example Usage
-------------
    # SIP plus a lumpsum in one fund
    $ navfolio value --nav nav.json --sip-amount 10000 --sip-start 2024-01 \\
        --lumpsum 50000@2024-02 --output out/value.json

    # Return metrics with a 6-month rolling window
    $ navfolio returns --nav nav.json --window 6

    # Portfolio report
    $ navfolio analyze --portfolio portfolio.json --nav-map navs.json

    # Show version
    $ navfolio --version
"""

from __future__ import annotations

import logging
import sys
import warnings
from pathlib import Path
from typing import List, Optional, Tuple

import click

from . import __version__
from .exceptions import NavFolioError, XirrConvergenceWarning


# Lazy imports for performance
def _get_console():
    """Lazy import Rich for better startup time."""
    from rich.console import Console
    return Console()


def _configure_logging(level: str) -> None:
    """Attach a RichHandler to the package logger (once)."""
    from rich.console import Console
    from rich.logging import RichHandler

    logger = logging.getLogger("navfolio")
    logger.setLevel(level)
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(console=Console(stderr=True), show_path=False)
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)


def _fail(message: str) -> None:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


def _parse_lumpsums(ctx, param, values: Tuple[str, ...]) -> List[Tuple[float, str]]:
    """Parse repeated ``AMOUNT@YYYY-MM`` options."""
    parsed = []
    for value in values:
        amount, sep, month = value.partition("@")
        try:
            if not sep:
                raise ValueError
            parsed.append((float(amount.replace(",", "")), month.strip()))
        except ValueError:
            raise click.BadParameter(
                f"{value!r} is not of the form AMOUNT@YYYY-MM (e.g. 50000@2024-02)"
            ) from None
    return parsed


def _fmt_xirr(xirr) -> str:
    from .utils import format_percent
    if xirr is None:
        return "n/a"
    text = format_percent(xirr.rate)
    return text if xirr.converged else f"{text} (approx., {xirr.status})"


@click.group()
@click.version_option(version=__version__, prog_name="navfolio")
@click.option("--quiet", "-q", is_flag=True, help="Plain output without tables")
@click.pass_context
def main(ctx: click.Context, quiet: bool) -> None:
    """
    navfolio - NAV-based investment valuation and returns.

    Values SIP and lumpsum investments in mutual funds from monthly NAV
    histories and reports absolute return, CAGR and XIRR.

    Use 'navfolio COMMAND --help' for command-specific help.
    """
    from pydantic import ValidationError as PydanticValidationError
    from .config import AppSettings

    try:
        settings = AppSettings()
    except PydanticValidationError as e:
        _fail(f"invalid NAVFOLIO_* settings: {e}")

    _configure_logging(settings.effective_log_level)

    ctx.ensure_object(dict)
    ctx.obj["quiet"] = quiet
    ctx.obj["settings"] = settings
    ctx.obj["console"] = None if quiet else _get_console()


# ---------------------------------------------------------------------------
# value
# ---------------------------------------------------------------------------

@main.command()
@click.option(
    "--nav", "-n", "nav_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    required=True,
    help="NAV history file (JSON)"
)
@click.option(
    "--sip-amount",
    type=float,
    default=None,
    help="Monthly SIP amount"
)
@click.option(
    "--sip-start",
    type=str,
    default=None,
    help="First SIP month (YYYY-MM)"
)
@click.option(
    "--sip-end",
    type=str,
    default=None,
    help="Last SIP month (YYYY-MM, default: latest NAV month)"
)
@click.option(
    "--lumpsum", "-l", "lumpsums",
    multiple=True,
    callback=_parse_lumpsums,
    help="Lumpsum as AMOUNT@YYYY-MM (repeatable)"
)
@click.option(
    "--output", "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write the valuation to this JSON file"
)
@click.pass_context
def value(
    ctx: click.Context,
    nav_path: Path,
    sip_amount: Optional[float],
    sip_start: Optional[str],
    sip_end: Optional[str],
    lumpsums: List[Tuple[float, str]],
    output: Optional[Path],
) -> None:
    """
    Value a SIP and/or lumpsums held in one fund.

    Example:
        navfolio value --nav nav.json --sip-amount 10000 --sip-start 2024-01
    """
    console = ctx.obj.get("console")

    if (sip_amount is None) != (sip_start is None):
        raise click.UsageError("--sip-amount and --sip-start must be given together.")
    if sip_amount is None and sip_end is not None:
        raise click.UsageError("--sip-end needs --sip-amount and --sip-start.")
    if sip_amount is None and not lumpsums:
        raise click.UsageError("Provide a SIP (--sip-amount/--sip-start) or at least one --lumpsum.")

    # Import here to avoid slow startup
    from .returns import calculate_xirr
    from .serialization import load_nav_data, save_result
    from .utils import format_currency, format_percent
    from .valuation import Lumpsum, SipPlan, calculate_combined_value, generate_cash_flows

    try:
        nav = load_nav_data(nav_path)
        sip = SipPlan(sip_amount, sip_start, sip_end) if sip_amount is not None else None
        lumps = [Lumpsum(amount, month) for amount, month in lumpsums]
        valuation = calculate_combined_value(sip, lumps, nav)
        flows = generate_cash_flows(sip, lumps, nav)
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", XirrConvergenceWarning)
            xirr = calculate_xirr(flows)
    except NavFolioError as e:
        _fail(str(e))

    combined = valuation.combined
    rows = [
        ("Valued at", f"{combined.current_month} (NAV {combined.current_nav:,.4f})"),
        ("Total invested", format_currency(combined.total_invested)),
        ("Units held", f"{combined.total_units:,.4f}"),
        ("Current value", format_currency(combined.current_value)),
        ("Absolute return", format_currency(combined.absolute_return)),
        ("Return %", format_percent(combined.absolute_return_percent)),
        ("XIRR", _fmt_xirr(xirr)),
    ]
    if valuation.sip is not None:
        rows.insert(1, ("SIP installments", f"{valuation.sip.installment_count}"))
    if valuation.lumpsums is not None:
        rows.insert(1, ("Lumpsums", f"{valuation.lumpsums.investment_count}"))

    if console:
        from rich.table import Table

        table = Table(title="Valuation", show_header=True)
        table.add_column("Metric", style="cyan")
        table.add_column("Value", style="green", justify="right")
        for label, text in rows:
            table.add_row(label, text)
        console.print(table)
    else:
        for label, text in rows:
            click.echo(f"{label}: {text}")

    if output:
        save_result({"valuation": valuation, "cash_flows": flows, "xirr": xirr}, output)
        click.echo(f"Results saved to {output}")


# ---------------------------------------------------------------------------
# returns
# ---------------------------------------------------------------------------

@main.command()
@click.option(
    "--nav", "-n", "nav_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    required=True,
    help="NAV history file (JSON)"
)
@click.option(
    "--window", "-w",
    type=int,
    default=12,
    help="Rolling window in NAV entries (default: 12)"
)
@click.pass_context
def returns(ctx: click.Context, nav_path: Path, window: int) -> None:
    """
    Trailing returns, CAGR and rolling-return statistics of a fund.

    Example:
        navfolio returns --nav nav.json --window 6
    """
    console = ctx.obj.get("console")
    settings = ctx.obj["settings"]

    from .nav_series import get_nav_range
    from .returns import (
        calculate_nav_cagr,
        calculate_return_statistics,
        calculate_rolling_returns,
        calculate_sharpe_ratio,
        calculate_trailing_returns,
    )
    from .serialization import load_nav_data
    from .utils import format_percent

    try:
        nav = load_nav_data(nav_path)
        span = get_nav_range(nav)
        trailing = calculate_trailing_returns(nav)
        cagr = calculate_nav_cagr(nav, span["start"], span["end"])
        rolling = calculate_rolling_returns(nav, window)
    except NavFolioError as e:
        _fail(str(e))

    stats = calculate_return_statistics([r.absolute_return for r in rolling]) if rolling else None
    sharpe = (
        calculate_sharpe_ratio(stats.mean, stats.std_dev, settings.risk_free_rate)
        if stats is not None
        else None
    )

    trailing_rows = [
        (
            label,
            format_percent(t.absolute_return) if t else "n/a",
            format_percent(t.annualized_return) if t else "n/a",
        )
        for label, t in trailing.items()
    ]
    summary_rows = [
        ("Period", f"{span['start']} to {span['end']} ({span['months']} NAVs)"),
        ("CAGR", format_percent(cagr)),
        (f"Rolling {window} windows", f"{len(rolling)}"),
    ]
    if stats is not None:
        summary_rows += [
            ("Rolling mean", format_percent(stats.mean)),
            ("Rolling median", format_percent(stats.median)),
            ("Rolling min / max", f"{format_percent(stats.min)} / {format_percent(stats.max)}"),
            ("Rolling std dev", f"{stats.std_dev:.2f}"),
            ("Sharpe (rf {:.2f}%)".format(settings.risk_free_rate), f"{sharpe:.2f}"),
        ]

    if console:
        from rich.table import Table

        table = Table(title="Trailing Returns", show_header=True)
        table.add_column("Window", style="cyan")
        table.add_column("Absolute", style="green", justify="right")
        table.add_column("Annualized", style="green", justify="right")
        for row in trailing_rows:
            table.add_row(*row)
        console.print(table)

        summary = Table(title="Summary", show_header=True)
        summary.add_column("Metric", style="cyan")
        summary.add_column("Value", style="green", justify="right")
        for row in summary_rows:
            summary.add_row(*row)
        console.print(summary)
    else:
        for label, absolute, annualized in trailing_rows:
            click.echo(f"{label}: {absolute} (annualized {annualized})")
        for label, text in summary_rows:
            click.echo(f"{label}: {text}")


# ---------------------------------------------------------------------------
# analyze
# ---------------------------------------------------------------------------

@main.command()
@click.option(
    "--portfolio", "-p", "portfolio_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    required=True,
    help="Portfolio definition (JSON)"
)
@click.option(
    "--nav-map", "-m", "nav_map_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    required=True,
    help="NAV histories per fund (JSON)"
)
@click.option(
    "--output", "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write the report to this JSON file"
)
@click.pass_context
def analyze(
    ctx: click.Context,
    portfolio_path: Path,
    nav_map_path: Path,
    output: Optional[Path],
) -> None:
    """
    Portfolio performance report.

    Example:
        navfolio analyze -p portfolio.json -m navs.json -o report.json
    """
    console = ctx.obj.get("console")

    from .performance import analyze_portfolio
    from .serialization import load_nav_map, load_portfolio, save_result
    from .utils import format_currency, format_percent

    try:
        portfolio = load_portfolio(portfolio_path)
        nav_map = load_nav_map(nav_map_path)
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", XirrConvergenceWarning)
            report = analyze_portfolio(portfolio.holdings(), nav_map, name=portfolio.name)
    except NavFolioError as e:
        _fail(str(e))

    summary_rows = [
        ("Funds analyzed", f"{len(report.funds)}"),
        ("Valued at", f"{report.valuation_month or 'n/a'}"),
        ("Total invested", format_currency(report.total_invested)),
        ("Current value", format_currency(report.current_value)),
        ("Absolute return", format_currency(report.absolute_return)),
        ("Return %", format_percent(report.absolute_return_percent)),
        ("XIRR", _fmt_xirr(report.xirr)),
        ("CAGR", format_percent(report.cagr)),
    ]

    if console:
        from rich.table import Table

        funds = Table(title=f"{report.name}: Funds", show_header=True)
        funds.add_column("Fund", style="cyan")
        funds.add_column("Invested", justify="right")
        funds.add_column("Value", justify="right")
        funds.add_column("Return %", justify="right")
        funds.add_column("XIRR", style="green", justify="right")
        for fund in report.funds:
            funds.add_row(
                fund.name,
                format_currency(fund.total_invested),
                format_currency(fund.current_value),
                format_percent(fund.absolute_return_percent),
                _fmt_xirr(fund.xirr),
            )
        console.print(funds)

        summary = Table(title=f"{report.name}: Summary", show_header=True)
        summary.add_column("Metric", style="cyan")
        summary.add_column("Value", style="green", justify="right")
        for label, text in summary_rows:
            summary.add_row(label, text)
        console.print(summary)

        for note in report.warnings:
            console.print(f"[yellow]Warning:[/yellow] {note}")
    else:
        for fund in report.funds:
            click.echo(
                f"{fund.name}: invested {format_currency(fund.total_invested)}, "
                f"value {format_currency(fund.current_value)}, XIRR {_fmt_xirr(fund.xirr)}"
            )
        for label, text in summary_rows:
            click.echo(f"{label}: {text}")
        for note in report.warnings:
            click.echo(f"Warning: {note}", err=True)

    if output:
        save_result(report, output)
        click.echo(f"Report saved to {output}")


# ---------------------------------------------------------------------------
# info
# ---------------------------------------------------------------------------

@main.command()
@click.pass_context
def info(ctx: click.Context) -> None:
    """
    Display system and package information.

    Shows version numbers, installed dependencies and the active settings.
    """
    console = ctx.obj.get("console")
    settings = ctx.obj["settings"]

    info_lines = [
        f"navfolio Version: {__version__}",
        f"Python: {sys.version.split()[0]}",
    ]

    # Check dependencies
    dependencies = ("numpy", "pandas", "pydantic", "pydantic-settings", "rich", "click")

    from importlib.metadata import PackageNotFoundError, version

    for name in dependencies:
        try:
            info_lines.append(f"{name}: {version(name)}")
        except PackageNotFoundError:
            info_lines.append(f"{name}: not installed")

    info_lines.append(f"Log level: {settings.effective_log_level}")
    info_lines.append(f"Risk-free rate: {settings.risk_free_rate:.2f}%")

    if console:
        from rich.panel import Panel
        console.print(Panel("\n".join(info_lines), title="System Information"))
    else:
        for line in info_lines:
            click.echo(line)


if __name__ == "__main__":
    main()
