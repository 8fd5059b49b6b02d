"""
Unusual-activity pipeline: raw rows -> contracts -> window -> ranked -> aggregate.

Every stage is a pure function of its inputs; `now` is the only clock and is
passed in explicitly, so identical inputs give identical reports.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Mapping

from optionable.flow.models import (
    Aggregate,
    Contract,
    ExpirationWindow,
    MarketContext,
    MarketSnapshot,
    RankedContract,
)
from optionable.flow.normalize import matches_ticker, normalize, resolve_reference_price
from optionable.flow.scoring import MAX_RANKED, rank_unusual
from optionable.flow.summary import summarize
from optionable.flow.window import filter_by_window, parse_window


@dataclass(frozen=True)
class FlowReport:
    context: MarketContext
    window: ExpirationWindow
    as_of: datetime
    contracts: tuple[Contract, ...]
    filtered: tuple[Contract, ...]
    ranked: tuple[RankedContract, ...]
    aggregate: Aggregate
    source: str = "Deribit"

    def find(self, contract_id: str) -> RankedContract | None:
        """Ranked entry by instrument name (case-insensitive)."""
        key = contract_id.strip().upper()
        return next((r for r in self.ranked if r.contract.id.upper() == key), None)


def run_pipeline(
    snapshot: MarketSnapshot,
    *,
    window: ExpirationWindow | str = ExpirationWindow.ALL,
    now: datetime,
    top: int = MAX_RANKED,
    fixed_put_call_ratio: float | None = None,
) -> FlowReport:
    """
    Run normalize -> filter_by_window -> rank_unusual -> summarize over one fetch.

    Raises:
        DataUnavailable / NoPriceAvailable: from normalization; nothing partial is returned
    """
    w = parse_window(window)
    contracts = normalize(
        snapshot.raw_records,
        snapshot.index_price,
        ticker=snapshot.ticker,
        contract_size=snapshot.contract_size,
    )
    t = snapshot.ticker.upper()
    own = [
        r for r in snapshot.raw_records
        if isinstance(r, Mapping) and matches_ticker(str(r.get("instrument_name") or ""), t)
    ]
    price = resolve_reference_price(own, snapshot.index_price)
    context = MarketContext(
        ticker=t,
        name=snapshot.name,
        underlying_price=price,
        price_change_24h=float(snapshot.price_change_24h or 0.0),
    )

    filtered = filter_by_window(contracts, w, now)
    ranked = rank_unusual(filtered, top=top)
    aggregate = summarize(ranked, context, fixed_put_call_ratio=fixed_put_call_ratio)

    return FlowReport(
        context=context,
        window=w,
        as_of=now,
        contracts=tuple(contracts),
        filtered=tuple(filtered),
        ranked=tuple(ranked),
        aggregate=aggregate,
        source=snapshot.source,
    )
