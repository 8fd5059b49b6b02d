"""
Unusual options activity commands.

- optionable flow       fetch -> normalize -> window -> rank -> summarize
- optionable analyze    LLM breakdown of one ranked contract
"""
from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from optionable.config import Settings, load_settings
from optionable.data.deribit import DeribitClient
from optionable.errors import DataUnavailable
from optionable.flow.export import ranked_to_frame, report_to_dict
from optionable.flow.models import Aggregate, RankedContract
from optionable.flow.pipeline import FlowReport, run_pipeline
from optionable.flow.scoring import MAX_RANKED
from optionable.flow.summary import LEGACY_PUT_CALL_RATIO
from optionable.flow.window import parse_window
from optionable.llm.flow_analysis import analyze_contract, analyze_overall_flow
from optionable.utils.formatting import (
    bias_color,
    fmt_compact_usd,
    fmt_float,
    fmt_ratio,
    fmt_signed_pct,
    fmt_usd,
    kind_color,
)
from optionable.utils.logging import log_event


def load_report(
    settings: Settings,
    ticker: str,
    window: str,
    *,
    top: int = MAX_RANKED,
    legacy_pcr: bool = False,
) -> FlowReport:
    """Fetch one snapshot and run the pipeline against the current instant."""
    w = parse_window(window)
    client = DeribitClient.from_settings(settings)
    try:
        snapshot = client.fetch_snapshot(ticker)
    finally:
        client.close()
    return run_pipeline(
        snapshot,
        window=w,
        now=datetime.now(timezone.utc),
        top=top,
        fixed_put_call_ratio=LEGACY_PUT_CALL_RATIO if legacy_pcr else None,
    )


def _error_banner(console: Console, err: Exception) -> None:
    console.print(Panel(f"[bold]{err}[/bold]", border_style="red", title="Refresh failed"))


def register(app: typer.Typer) -> None:
    """Register flow/analyze commands on the root app."""

    @app.command("flow")
    def flow_cmd(
        ticker: Optional[str] = typer.Option(None, "--ticker", "-t", help="Underlying (default from settings, BTC)"),
        window: str = typer.Option("ALL", "--window", "-w", help="1W|2W|1M|3M|6M|ALL"),
        top: int = typer.Option(MAX_RANKED, "--top", help="Ranked contracts to keep"),
        show: int = typer.Option(10, "--show", "-n", help="Rows to display"),
        as_json: bool = typer.Option(False, "--json", help="Print the full report as JSON"),
        csv_path: Optional[Path] = typer.Option(None, "--csv", help="Write ranked contracts to CSV"),
        llm: bool = typer.Option(False, "--llm", help="Add an LLM read of the overall flow"),
        legacy_pcr: bool = typer.Option(False, "--legacy-pcr", help="Report the fixed 0.80 put/call ratio"),
    ):
        """
        Rank unusual options activity by notional-weighted volume/OI.

        Examples:
            optionable flow
            optionable flow -t ETH -w 1M --show 20
            optionable flow --json > flow.json
        """
        console = Console()
        settings = load_settings()
        t = (ticker or settings.default_ticker).upper()

        try:
            parse_window(window)
        except ValueError as e:
            raise typer.BadParameter(str(e), param_hint="--window")

        try:
            report = load_report(settings, t, window, top=top, legacy_pcr=legacy_pcr)
        except DataUnavailable as e:
            _error_banner(console, e)
            raise typer.Exit(code=1)

        if csv_path is not None:
            ranked_to_frame(report.ranked).to_csv(csv_path)

        if as_json:
            console.print_json(data=report_to_dict(report))
            return

        _display_summary(console, report.aggregate, report)
        _display_extremes(console, report.aggregate)
        if report.ranked:
            shown = list(report.ranked)[: max(1, show)]
            _display_ranked_table(console, shown, report.aggregate.ticker)
            console.print(f"\n[dim]Showing {len(shown)} of {len(report.ranked)} ranked contracts[/dim]")
        else:
            console.print(f"[yellow]No traded contracts in window {report.window.value}[/yellow]")

        if csv_path is not None:
            console.print(f"[dim]Wrote {len(report.ranked)} rows to {csv_path}[/dim]")

        if llm and report.ranked:
            overall = analyze_overall_flow(settings=settings, ranked=report.ranked, ticker=report.aggregate.ticker)
            color = bias_color(overall.bias)
            console.print(
                Panel(overall.summary, title=f"Flow read: [{color}]{overall.bias}[/{color}]", border_style=color)
            )

    @app.command("analyze")
    def analyze_cmd(
        instrument: str = typer.Argument(..., help="Instrument name, e.g. BTC-27DEC24-100000-C"),
        window: str = typer.Option("ALL", "--window", "-w", help="1W|2W|1M|3M|6M|ALL"),
    ):
        """LLM breakdown of one ranked contract (flow, gamma, skew, catalysts)."""
        console = Console()
        settings = load_settings()
        t = instrument.strip().upper().split("-")[0].replace("_USDC", "")

        try:
            report = load_report(settings, t, window)
        except DataUnavailable as e:
            _error_banner(console, e)
            raise typer.Exit(code=1)

        picked = report.find(instrument)
        if picked is None:
            console.print(f"[yellow]{instrument} is not among the ranked unusual contracts ({report.window.value})[/yellow]")
            raise typer.Exit(code=1)

        log_event(
            "CONTRACT",
            {
                "window": report.window,
                "score": picked.score,
                "contract": picked.contract,
            },
        )
        result = analyze_contract(settings=settings, contract=picked)
        sections = [
            ("Options Flow", result.options_flow),
            ("Gamma Exposure", result.gamma_exposure),
            ("Skew & Max Pain", result.skew_and_max_pain),
            ("Potential Catalysts", result.potential_catalysts),
            ("Actionable Summary", result.actionable_summary),
        ]
        for title, body in sections:
            console.print(Panel(body, title=title, border_style="cyan" if result.available else "yellow"))


def _display_summary(console: Console, a: Aggregate, report: FlowReport) -> None:
    change_color = "green" if a.price_change_24h >= 0 else "red"
    pcr = a.put_call_ratio
    pcr_color = "green" if (pcr or 0) > 1.2 else "red" if pcr is not None and pcr < 0.8 else "yellow"
    lines = [
        f"[bold]{a.name}[/bold]  {fmt_usd(a.underlying_price)}  [{change_color}]{fmt_signed_pct(a.price_change_24h)}[/{change_color}]",
        f"Unusual volume: {fmt_float(a.total_unusual_volume)} coins   Notional: {fmt_compact_usd(a.total_notional_value)}",
        f"Put/Call: [{pcr_color}]{fmt_float(pcr) if pcr is not None else 'n/a'}[/{pcr_color}]",
        f"[dim]{report.source} | window {report.window.value} | {len(report.filtered)} of {len(report.contracts)} contracts in window[/dim]",
    ]
    console.print(Panel("\n".join(lines), title=f"{a.ticker} Options Flow", border_style="cyan"))


def _display_extremes(console: Console, a: Aggregate) -> None:
    for label, r in (("CALL", a.most_unusual_call), ("PUT", a.most_unusual_put)):
        if r is None:
            continue
        c = r.contract
        color = kind_color(label)
        console.print(
            f"[bold {color}]Most unusual {label}[/bold {color}]  "
            f"{fmt_usd(c.strike_price, show_cents=False)} exp {c.expiration.isoformat()}  "
            f"vol {fmt_float(c.volume)}  notional {fmt_compact_usd(c.notional_value)}  "
            f"vol/OI {fmt_ratio(c.volume_oi_ratio)}"
        )


def _display_ranked_table(console: Console, ranked: list[RankedContract], ticker: str) -> None:
    table = Table(title=f"{ticker} Unusual Activity", show_header=True)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Instrument", style="cyan")
    table.add_column("Type", justify="center")
    table.add_column("Strike", justify="right")
    table.add_column("Expiry", justify="center")
    table.add_column("Volume", justify="right")
    table.add_column("OI", justify="right")
    table.add_column("Vol/OI", justify="right")
    table.add_column("IV", justify="right")
    table.add_column("Notional", justify="right", style="yellow")

    for i, r in enumerate(ranked, start=1):
        c = r.contract
        color = kind_color(c.kind.value)
        table.add_row(
            str(i),
            c.id,
            f"[{color}]{c.kind.value}[/{color}]",
            fmt_usd(c.strike_price, show_cents=False),
            c.expiration.isoformat(),
            fmt_float(c.volume),
            fmt_float(c.open_interest),
            fmt_ratio(c.volume_oi_ratio),
            f"{c.implied_volatility:.0%}" if c.implied_volatility > 0 else "n/a",
            fmt_compact_usd(c.notional_value),
        )
    console.print(table)
