"""
Deribit instrument-name parser.

Handles:
- Inverse options: "BTC-27DEC24-100000-C"
- Linear USDC options: "SOL_USDC-7MAR25-180-P", "XRP_USDC-28MAR25-0d625-C"
"""
from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import date

_MONTHS = {
    "JAN": 1, "FEB": 2, "MAR": 3, "APR": 4, "MAY": 5, "JUN": 6,
    "JUL": 7, "AUG": 8, "SEP": 9, "OCT": 10, "NOV": 11, "DEC": 12,
}
_EXPIRY_RE = re.compile(r"^(\d{1,2})([A-Z]{3})(\d{2})$")


@dataclass(frozen=True)
class ParsedInstrument:
    ticker: str
    expiration: date
    strike: float
    kind: str  # "C" | "P"


def parse_expiry(code: str) -> date:
    """
    Parse a DDMMMYY expiry code (e.g. "27DEC24", "7MAR25").

    Raises:
        ValueError: If the code is not a valid calendar date
    """
    m = _EXPIRY_RE.match((code or "").strip().upper())
    if not m:
        raise ValueError(f"Expiry code {code!r} is not DDMMMYY.")
    day, mon, yy = m.groups()
    if mon not in _MONTHS:
        raise ValueError(f"Unknown month {mon!r} in expiry {code!r}.")
    return date(2000 + int(yy), _MONTHS[mon], int(day))


def parse_strike(code: str) -> float:
    """Strike field; linear books write decimals with a 'd' (0d625 -> 0.625)."""
    strike = float((code or "").strip().lower().replace("d", "."))
    if not math.isfinite(strike):
        raise ValueError(f"Strike {code!r} is not a finite number.")
    return strike


def parse_instrument_name(name: str) -> ParsedInstrument:
    """
    Parse a hyphen-delimited `<TICKER>-<EXPIRY>-<STRIKE>-<C|P>` instrument name.

    The last three fields are expiry/strike/kind so that settlement prefixes
    ("SOL_USDC") still parse.

    Raises:
        ValueError: If the name cannot be parsed
    """
    parts = str(name or "").split("-")
    if len(parts) < 4:
        raise ValueError(f"Instrument {name!r} has fewer than 4 fields.")

    kind = parts[-1].strip().upper()
    if kind not in {"C", "P"}:
        raise ValueError(f"Unknown call/put code {parts[-1]!r} in instrument {name!r}.")

    expiration = parse_expiry(parts[-3])
    strike = parse_strike(parts[-2])
    ticker = parts[0].strip().upper()
    if ticker.endswith("_USDC"):
        ticker = ticker[: -len("_USDC")]
    return ParsedInstrument(ticker=ticker, expiration=expiration, strike=strike, kind=kind)
