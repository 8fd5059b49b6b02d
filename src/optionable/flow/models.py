from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any


class OptionKind(str, Enum):
    """Option contract kind."""
    CALL = "CALL"
    PUT = "PUT"

    @classmethod
    def from_code(cls, code: str) -> "OptionKind":
        c = str(code or "").strip().upper()
        if c in {"C", "CALL"}:
            return cls.CALL
        if c in {"P", "PUT"}:
            return cls.PUT
        raise ValueError(f"Unknown option kind {code!r}")


class ExpirationWindow(str, Enum):
    """Calendar cutoff used to scope which expirations are considered."""
    ONE_WEEK = "1W"
    TWO_WEEKS = "2W"
    ONE_MONTH = "1M"
    THREE_MONTHS = "3M"
    SIX_MONTHS = "6M"
    ALL = "ALL"

    @property
    def max_days(self) -> int | None:
        return _WINDOW_DAYS[self]


_WINDOW_DAYS: dict[ExpirationWindow, int | None] = {
    ExpirationWindow.ONE_WEEK: 7,
    ExpirationWindow.TWO_WEEKS: 14,
    ExpirationWindow.ONE_MONTH: 31,
    ExpirationWindow.THREE_MONTHS: 92,
    ExpirationWindow.SIX_MONTHS: 183,
    ExpirationWindow.ALL: None,
}


@dataclass(frozen=True)
class Contract:
    """Normalized option contract."""
    id: str  # venue instrument name, unique within a fetch
    ticker: str
    underlying_price: float
    strike_price: float
    expiration: date
    kind: OptionKind
    volume: float
    open_interest: float
    implied_volatility: float  # fraction; 0.0 = unknown

    @property
    def notional_value(self) -> float:
        """Volume x underlying spot price."""
        return self.volume * self.underlying_price

    @property
    def volume_oi_ratio(self) -> float | None:
        """Volume / open interest, None for a brand-new strike (no OI)."""
        if self.open_interest > 0:
            return self.volume / self.open_interest
        return None


@dataclass(frozen=True)
class RankedContract:
    contract: Contract
    score: float

    @property
    def kind(self) -> OptionKind:
        return self.contract.kind


@dataclass(frozen=True)
class MarketContext:
    ticker: str
    name: str
    underlying_price: float
    price_change_24h: float = 0.0


@dataclass(frozen=True)
class Aggregate:
    ticker: str
    name: str
    underlying_price: float
    price_change_24h: float
    total_unusual_volume: float
    total_notional_value: float
    put_call_ratio: float | None
    most_unusual_call: RankedContract | None
    most_unusual_put: RankedContract | None


@dataclass(frozen=True)
class MarketSnapshot:
    """One venue fetch: raw option rows plus the underlying's price context."""
    ticker: str
    name: str
    raw_records: tuple[dict[str, Any], ...]
    index_price: float
    price_change_24h: float = 0.0
    contract_size: float = 1.0
    source: str = "Deribit"
