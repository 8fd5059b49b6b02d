"""
Optionable CLI

Primary commands:
- optionable flow        Ranked unusual options activity (+ optional LLM read)
- optionable analyze     LLM breakdown of one contract
- optionable insights    LLM gamma / technical / news panels
- optionable market      Total crypto market cap
"""
from __future__ import annotations

import typer

app = typer.Typer(
    add_completion=False,
    help="""Optionable CLI — Unusual Crypto Options Activity

\b
  optionable flow -w 1M            Ranked unusual trades + summary
  optionable flow --llm            ...with an LLM flow read
  optionable analyze BTC-27DEC24-100000-C
  optionable insights              Gamma, technicals, news sentiment
  optionable market                Global crypto market cap

\b
Run 'optionable <command> --help' for details.
""",
)

_COMMANDS_REGISTERED = False


def _register_commands() -> None:
    global _COMMANDS_REGISTERED
    if _COMMANDS_REGISTERED:
        return
    # Import here to keep `optionable.cli` lightweight at import time.
    from optionable.cli_commands.flow_cmd import register as register_flow
    from optionable.cli_commands.insights_cmd import register as register_insights
    from optionable.cli_commands.market_cmd import register as register_market

    register_flow(app)
    register_insights(app)
    register_market(app)
    _COMMANDS_REGISTERED = True


def main():
    _register_commands()
    app()


# Register commands when imported as a console-script entrypoint (`pyproject.toml` uses `optionable.cli:main`).
_register_commands()


if __name__ == "__main__":
    main()
