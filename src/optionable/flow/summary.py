from __future__ import annotations

from typing import Sequence

from optionable.flow.models import Aggregate, MarketContext, OptionKind, RankedContract

# The browser dashboard shipped a hardcoded ratio; kept for callers that need parity.
LEGACY_PUT_CALL_RATIO = 0.8


def put_call_ratio(ranked: Sequence[RankedContract]) -> float | None:
    """Put volume / call volume across the ranked set; None when no call volume."""
    calls = sum((r.contract.volume for r in ranked if r.kind == OptionKind.CALL), 0.0)
    puts = sum((r.contract.volume for r in ranked if r.kind == OptionKind.PUT), 0.0)
    if calls <= 0:
        return None
    return puts / calls


def _first_of(ranked: Sequence[RankedContract], kind: OptionKind) -> RankedContract | None:
    return next((r for r in ranked if r.kind == kind), None)


def summarize(
    ranked: Sequence[RankedContract],
    context: MarketContext,
    *,
    fixed_put_call_ratio: float | None = None,
) -> Aggregate:
    """
    Portfolio-level view of the ranked set.

    `ranked` must already be in descending score order; the first call/put
    found is the most unusual of its kind.
    """
    pcr = float(fixed_put_call_ratio) if fixed_put_call_ratio is not None else put_call_ratio(ranked)
    return Aggregate(
        ticker=context.ticker,
        name=context.name,
        underlying_price=context.underlying_price,
        price_change_24h=context.price_change_24h,
        total_unusual_volume=sum((r.contract.volume for r in ranked), 0.0),
        total_notional_value=sum((r.contract.notional_value for r in ranked), 0.0),
        put_call_ratio=pcr,
        most_unusual_call=_first_of(ranked, OptionKind.CALL),
        most_unusual_put=_first_of(ranked, OptionKind.PUT),
    )
