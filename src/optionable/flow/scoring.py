from __future__ import annotations

from typing import Iterable

from optionable.flow.models import Contract, RankedContract

MAX_RANKED = 30
# Volume/OI multiple is capped so one near-zero-OI strike cannot dominate.
RATIO_CAP = 10.0
# Flat multiple for strikes with no open interest (ratio undefined).
NEW_POSITION_BONUS = 5.0


def unusual_score(c: Contract) -> float:
    """
    Notional-weighted unusualness:

        (volume * underlying_price) * (1 + min(volume / open_interest, 10))

    with the multiplier fixed at 1 + 5 when open interest is 0.
    """
    notional = c.volume * c.underlying_price
    if c.open_interest > 0:
        bonus = min(c.volume / c.open_interest, RATIO_CAP)
    else:
        bonus = NEW_POSITION_BONUS
    return notional * (1.0 + bonus)


def rank_unusual(contracts: Iterable[Contract], top: int = MAX_RANKED) -> list[RankedContract]:
    """
    Score every contract and return the `top` highest, descending.

    Ties keep input order (sorted() is stable).
    """
    scored = [RankedContract(contract=c, score=unusual_score(c)) for c in contracts]
    scored.sort(key=lambda r: r.score, reverse=True)
    return scored[: max(0, int(top))]
