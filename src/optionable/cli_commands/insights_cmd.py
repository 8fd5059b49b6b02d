"""LLM market panels: gamma walls, technicals, news sentiment."""
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from optionable.config import load_settings
from optionable.data.deribit import DeribitClient
from optionable.errors import DataUnavailable
from optionable.flow.normalize import matches_ticker, resolve_reference_price
from optionable.llm.flow_analysis import (
    GammaSqueezeAnalysis,
    NewsSentiment,
    TechnicalAnalysis,
    analyze_gamma,
    analyze_news_sentiment,
    analyze_technicals,
)
from optionable.utils.formatting import bias_color, fmt_usd


def register(app: typer.Typer) -> None:

    @app.command("insights")
    def insights_cmd(
        ticker: Optional[str] = typer.Option(None, "--ticker", "-t", help="Underlying (default from settings, BTC)"),
    ):
        """Gamma squeeze, technical and news-sentiment commentary (LLM)."""
        console = Console()
        settings = load_settings()
        client = DeribitClient.from_settings(settings)
        try:
            snapshot = client.fetch_snapshot(ticker or settings.default_ticker)
        except DataUnavailable as e:
            console.print(Panel(f"[bold]{e}[/bold]", border_style="red", title="Refresh failed"))
            raise typer.Exit(code=1)
        finally:
            client.close()

        t = snapshot.ticker
        own = [r for r in snapshot.raw_records if matches_ticker(str(r.get("instrument_name") or ""), t)]
        price = resolve_reference_price(own, snapshot.index_price)
        if price <= 0:
            console.print(Panel(f"[bold]No price for {t}.[/bold]", border_style="red", title="Refresh failed"))
            raise typer.Exit(code=1)
        console.print(f"\n[bold cyan]{t}[/bold cyan] {fmt_usd(price)}\n")

        # Sections are independent; one failing only degrades its own panel.
        with ThreadPoolExecutor(max_workers=3) as ex:
            f_news = ex.submit(analyze_news_sentiment, settings=settings, ticker=t)
            f_tech = ex.submit(analyze_technicals, settings=settings, ticker=t, price=price)
            f_gamma = ex.submit(analyze_gamma, settings=settings, ticker=t, price=price)
            news, tech, gamma = f_news.result(), f_tech.result(), f_gamma.result()

        _display_news(console, news)
        _display_technicals(console, tech)
        _display_gamma(console, gamma)


def _display_news(console: Console, n: NewsSentiment) -> None:
    color = bias_color(n.bias)
    body = n.summary
    if n.sources:
        body += "\n\n" + "\n".join(f"[dim]- {s.title} ({s.uri})[/dim]" for s in n.sources[:3])
    console.print(Panel(body, title=f"News sentiment: [{color}]{n.bias}[/{color}]", border_style=color))


def _display_technicals(console: Console, t: TechnicalAnalysis) -> None:
    color = bias_color(t.bias)
    support = ", ".join(fmt_usd(x, show_cents=False) for x in t.support_levels) or "n/a"
    resistance = ", ".join(fmt_usd(x, show_cents=False) for x in t.resistance_levels) or "n/a"
    body = "\n".join([
        t.summary,
        "",
        f"Support: {support}",
        f"Resistance: {resistance}",
        f"Moving averages: {t.moving_average_analysis}",
        f"Indicators: {t.indicator_analysis}",
    ])
    console.print(Panel(body, title=f"Technicals: [{color}]{t.bias}[/{color}]", border_style=color))


def _display_gamma(console: Console, g: GammaSqueezeAnalysis) -> None:
    console.print(Panel(
        g.commentary,
        title=f"Gamma: {g.gamma_regime} regime | squeeze risk {g.squeeze_probability}",
        border_style="magenta",
    ))
    if not g.key_levels:
        return
    table = Table(show_header=True)
    table.add_column("Level")
    table.add_column("Strike", justify="right")
    table.add_column("Gamma", justify="right")
    for lvl in g.key_levels:
        table.add_row(lvl.type, fmt_usd(lvl.strike, show_cents=False), lvl.gamma_value)
    console.print(table)
