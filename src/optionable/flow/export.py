from __future__ import annotations

from typing import Any, Sequence

import pandas as pd

from optionable.flow.models import Aggregate, RankedContract
from optionable.flow.pipeline import FlowReport

RANKED_COLUMNS = [
    "id", "ticker", "kind", "strike_price", "expiration", "volume", "open_interest",
    "volume_oi_ratio", "implied_volatility", "underlying_price", "notional_value", "score",
]


def ranked_row(r: RankedContract) -> dict[str, Any]:
    c = r.contract
    return {
        "id": c.id,
        "ticker": c.ticker,
        "kind": c.kind.value,
        "strike_price": c.strike_price,
        "expiration": c.expiration.isoformat(),
        "volume": c.volume,
        "open_interest": c.open_interest,
        "volume_oi_ratio": c.volume_oi_ratio,
        "implied_volatility": c.implied_volatility,
        "underlying_price": c.underlying_price,
        "notional_value": c.notional_value,
        "score": r.score,
    }


def ranked_to_frame(ranked: Sequence[RankedContract]) -> pd.DataFrame:
    """One row per ranked contract, rank order preserved (1-based `rank` index)."""
    df = pd.DataFrame([ranked_row(r) for r in ranked], columns=RANKED_COLUMNS)
    df.index = pd.RangeIndex(start=1, stop=len(df) + 1, name="rank")
    return df


def aggregate_to_dict(a: Aggregate) -> dict[str, Any]:
    return {
        "ticker": a.ticker,
        "name": a.name,
        "underlying_price": a.underlying_price,
        "price_change_24h": a.price_change_24h,
        "total_unusual_volume": a.total_unusual_volume,
        "total_notional_value": a.total_notional_value,
        "put_call_ratio": a.put_call_ratio,
        "most_unusual_call": a.most_unusual_call.contract.id if a.most_unusual_call else None,
        "most_unusual_put": a.most_unusual_put.contract.id if a.most_unusual_put else None,
    }


def report_to_dict(report: FlowReport) -> dict[str, Any]:
    return {
        "source": report.source,
        "window": report.window.value,
        "as_of": report.as_of.isoformat(),
        "contracts_loaded": len(report.contracts),
        "contracts_in_window": len(report.filtered),
        "summary": aggregate_to_dict(report.aggregate),
        "ranked": [ranked_row(r) for r in report.ranked],
    }
