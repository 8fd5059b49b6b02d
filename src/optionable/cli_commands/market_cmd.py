from __future__ import annotations

import typer
from rich.console import Console

from optionable.data.global_market import fetch_global_market
from optionable.utils.formatting import fmt_compact_usd, fmt_signed_pct
from optionable.utils.settings import safe_load_settings


def register(app: typer.Typer) -> None:

    @app.command("market")
    def market_cmd():
        """Total crypto market cap (CoinLore -> CoinCap -> CoinPaprika)."""
        console = Console()
        settings = safe_load_settings()
        gm = fetch_global_market(timeout_s=settings.http_timeout if settings else 15.0)
        if gm.source is None:
            console.print("[yellow]Global market data unavailable from all providers[/yellow]")
            raise typer.Exit(code=1)
        color = "green" if gm.change_24h_pct >= 0 else "red"
        console.print(
            f"[bold]Global crypto market cap[/bold] {fmt_compact_usd(gm.total_market_cap)} "
            f"[{color}]{fmt_signed_pct(gm.change_24h_pct)}[/{color}] [dim]({gm.source})[/dim]"
        )
