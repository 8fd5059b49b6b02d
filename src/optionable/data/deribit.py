"""
Deribit public REST: option/future book summaries and index prices.

Endpoints (no API key):
- /public/get_book_summary_by_currency?currency=BTC&kind=option
- /public/get_book_summary_by_currency?currency=BTC&kind=future
- /public/get_index_price?index_name=btc_usd
"""
from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any

import requests

from optionable.config import Settings
from optionable.errors import DataUnavailable
from optionable.flow.models import MarketSnapshot

logger = logging.getLogger(__name__)

DERIBIT_BASE_URL = "https://www.deribit.com/api/v2"

# Alts listed only on the linear USDC-settled books.
USDC_SETTLED = frozenset({
    "SOL", "XRP", "MATIC", "LTC", "BCH", "ALGO", "AVAX",
    "LINK", "UNI", "DOT", "DOGE", "ADA", "NEAR", "TRX",
})
TICKER_ALIASES = {"SOLANA": "SOL", "RIPPLE": "XRP"}
# Coins per contract where it is not 1.
CONTRACT_SIZES = {"XRP": 10.0}

_FETCH_ERRORS = (requests.RequestException, ValueError)


def normalize_ticker(ticker: str) -> str:
    t = (ticker or "").strip().upper()
    return TICKER_ALIASES.get(t, t)


def index_name_for(ticker: str) -> str:
    t = normalize_ticker(ticker)
    return f"{t.lower()}_usdc" if t in USDC_SETTLED else f"{t.lower()}_usd"


def settlement_currency(ticker: str) -> str:
    t = normalize_ticker(ticker)
    return "USDC" if t in USDC_SETTLED else t


def perpetual_price_change(futures: list[dict[str, Any]], ticker: str) -> float:
    """24h price change (%) of the ticker's perpetual, 0.0 if not listed."""
    t = normalize_ticker(ticker)
    for item in futures or []:
        name = str(item.get("instrument_name") or "")
        if name.endswith("PERPETUAL") and (name.startswith(t) or t in name):
            try:
                return float(item.get("price_change") or 0.0)
            except (TypeError, ValueError):
                return 0.0
    return 0.0


def _outcome(fut: Future) -> tuple[Any, Exception | None]:
    try:
        return fut.result(), None
    except _FETCH_ERRORS as e:
        return None, e


class DeribitClient:
    """Thin requests wrapper around the public Deribit endpoints."""

    def __init__(
        self,
        *,
        base_url: str = DERIBIT_BASE_URL,
        timeout: float = 15.0,
        session: requests.Session | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = float(timeout)
        self.http = session or requests.Session()
        self.http.headers.update({"User-Agent": "optionable/flow-scanner"})

    @classmethod
    def from_settings(cls, settings: Settings, session: requests.Session | None = None) -> "DeribitClient":
        return cls(base_url=settings.deribit_base_url, timeout=settings.http_timeout, session=session)

    def close(self) -> None:
        self.http.close()

    def _get(self, path: str, params: dict[str, Any]) -> Any:
        resp = self.http.get(f"{self.base_url}{path}", params=params, timeout=self.timeout)
        resp.raise_for_status()
        data = resp.json()
        if not isinstance(data, dict) or "result" not in data:
            raise ValueError(f"Unexpected Deribit response shape for {path}")
        return data["result"]

    def book_summary(self, currency: str, kind: str) -> list[dict[str, Any]]:
        result = self._get("/public/get_book_summary_by_currency", {"currency": currency, "kind": kind})
        if not isinstance(result, list):
            raise ValueError("Unexpected Deribit book summary shape")
        return [r for r in result if isinstance(r, dict)]

    def index_price(self, index_name: str) -> float:
        result = self._get("/public/get_index_price", {"index_name": index_name})
        px = (result or {}).get("index_price") if isinstance(result, dict) else None
        return float(px) if px else 0.0

    def _books(self, currency: str) -> tuple[tuple[Any, Exception | None], tuple[Any, Exception | None]]:
        with ThreadPoolExecutor(max_workers=2) as ex:
            fo = ex.submit(self.book_summary, currency, "option")
            ff = ex.submit(self.book_summary, currency, "future")
            return _outcome(fo), _outcome(ff)

    def fetch_snapshot(self, ticker: str) -> MarketSnapshot:
        """
        Options book + futures book + index price for one underlying.

        The three requests run concurrently. A failed book on a native currency
        retries both books on USDC. Only the options book is required; a missing
        futures book means 0% change, a missing index price defers to the rows'
        own index_price during normalization.

        Raises:
            DataUnavailable: If the options book cannot be fetched
        """
        t = normalize_ticker(ticker)
        currency = settlement_currency(t)
        index_name = index_name_for(t)

        with ThreadPoolExecutor(max_workers=3) as ex:
            fo = ex.submit(self.book_summary, currency, "option")
            ff = ex.submit(self.book_summary, currency, "future")
            fi = ex.submit(self.index_price, index_name)
            (options, opt_err), (futures, fut_err) = _outcome(fo), _outcome(ff)
            index_px, idx_err = _outcome(fi)

        if (opt_err is not None or fut_err is not None) and currency != "USDC":
            logger.info("Deribit %s books failed (%s); retrying on USDC", currency, opt_err or fut_err)
            currency = "USDC"
            (options, opt_err), (futures, fut_err) = self._books(currency)

        if opt_err is not None:
            raise DataUnavailable(t, f"Failed to connect to live data for {t}.") from opt_err
        if fut_err is not None:
            logger.warning("Deribit futures book unavailable for %s: %s", t, fut_err)
            futures = []
        if idx_err is not None:
            logger.warning("Deribit index price unavailable for %s: %s", index_name, idx_err)
            index_px = 0.0

        return MarketSnapshot(
            ticker=t,
            name=f"{t} Options",
            raw_records=tuple(options or ()),
            index_price=float(index_px or 0.0),
            price_change_24h=perpetual_price_change(futures or [], t),
            contract_size=CONTRACT_SIZES.get(t, 1.0),
            source="Deribit",
        )
