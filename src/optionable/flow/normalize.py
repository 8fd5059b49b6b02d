"""
Raw venue records -> normalized Contract list.

Raw book-summary rows are untrusted: anything that cannot be turned into a
valid Contract is dropped here and never travels further down the pipeline.
"""
from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from optionable.errors import DataUnavailable, NoPriceAvailable
from optionable.flow.models import Contract, OptionKind
from optionable.utils.instruments import parse_instrument_name

logger = logging.getLogger(__name__)


def _num(x: Any) -> float:
    """Upstream numeric field -> float, 0.0 when absent or junk."""
    if x is None or isinstance(x, bool):
        return 0.0
    try:
        v = float(x)
    except (TypeError, ValueError):
        return 0.0
    if v != v:  # NaN
        return 0.0
    return v


def matches_ticker(name: str, ticker: str) -> bool:
    return name.startswith(f"{ticker}-") or name.startswith(f"{ticker}_USDC-")


def resolve_reference_price(records: Iterable[Mapping[str, Any]], reference_price: float | None) -> float:
    """Explicit price when positive, else the first record carrying a positive index_price, else 0."""
    if reference_price is not None and _num(reference_price) > 0:
        return float(reference_price)
    for r in records:
        if isinstance(r, Mapping):
            px = _num(r.get("index_price"))
            if px > 0:
                return px
    return 0.0


def normalize_record(
    record: Mapping[str, Any],
    *,
    underlying_price: float,
    ticker: str | None = None,
    contract_size: float = 1.0,
) -> Contract | None:
    """Single raw record -> Contract, or None when the record is rejected."""
    if not isinstance(record, Mapping):
        return None
    name = record.get("instrument_name")
    if not isinstance(name, str) or not name:
        return None

    try:
        parsed = parse_instrument_name(name)
        kind = OptionKind.from_code(parsed.kind)
    except ValueError as e:
        logger.debug("Rejected record %s: %s", name, e)
        return None

    if parsed.strike <= 0:
        logger.debug("Rejected record %s: non-positive strike", name)
        return None

    size = float(contract_size)
    return Contract(
        id=name,
        ticker=(ticker or parsed.ticker).upper(),
        underlying_price=float(underlying_price),
        strike_price=float(parsed.strike),
        expiration=parsed.expiration,
        kind=kind,
        volume=max(0.0, _num(record.get("volume")) * size),
        open_interest=max(0.0, _num(record.get("open_interest")) * size),
        implied_volatility=max(0.0, _num(record.get("mark_iv")) / 100.0),
    )


def normalize(
    raw_records: Iterable[Mapping[str, Any]] | None,
    reference_price: float | None,
    *,
    ticker: str | None = None,
    contract_size: float = 1.0,
) -> list[Contract]:
    """
    Convert raw book-summary rows into Contracts.

    Args:
        raw_records: Venue rows (instrument_name, volume, open_interest, mark_iv, index_price, ...)
        reference_price: Spot/index price of the underlying; 0/None falls back to the rows' index_price
        ticker: When given, keep only instruments of that underlying ("BTC-..." or "BTC_USDC-...")
        contract_size: Multiplier applied to volume and open interest (coins per contract)

    Returns:
        Contracts in input order; malformed rows are dropped silently.

    Raises:
        DataUnavailable: No raw records at all
        NoPriceAvailable: No positive reference price could be discovered
    """
    label = (ticker or "underlying").upper()
    records = list(raw_records or [])
    if not records:
        raise DataUnavailable(label, f"No option records for {label}.")

    if ticker:
        t = ticker.upper()
        records = [
            r for r in records
            if isinstance(r, Mapping) and matches_ticker(str(r.get("instrument_name") or ""), t)
        ]

    price = resolve_reference_price(records, reference_price)
    if price <= 0:
        raise NoPriceAvailable(label)

    out: list[Contract] = []
    for r in records:
        c = normalize_record(r, underlying_price=price, ticker=ticker, contract_size=contract_size)
        if c is not None:
            out.append(c)

    dropped = len(records) - len(out)
    if dropped:
        logger.debug("Dropped %d of %d %s records during normalization", dropped, len(records), label)
    return out
