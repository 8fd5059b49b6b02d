"""
Total crypto market capitalization with sequential provider fallback.

Providers are tried in order (CoinLore, CoinCap, CoinPaprika); the first one
returning a positive total wins.
"""
from __future__ import annotations

import logging
import random
import string
import time
from dataclasses import dataclass
from typing import Any, Callable

import requests

logger = logging.getLogger(__name__)

_NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
}


@dataclass(frozen=True)
class GlobalMarket:
    total_market_cap: float
    change_24h_pct: float
    source: str | None = None


def _parse_coinlore(j: Any) -> tuple[float, float]:
    row = j[0]
    return float(row["total_mcap"]), float(row.get("mcap_change") or 0.0)


def _parse_coincap(j: Any) -> tuple[float, float]:
    return float(j["data"]["totalMarketCapUsd"]), 0.0


def _parse_coinpaprika(j: Any) -> tuple[float, float]:
    return float(j["market_cap_usd"]), float(j.get("market_cap_change_24h") or 0.0)


PROVIDERS: list[tuple[str, str, Callable[[Any], tuple[float, float]]]] = [
    ("CoinLore", "https://api.coinlore.net/api/global/", _parse_coinlore),
    ("CoinCap", "https://api.coincap.io/v2/global", _parse_coincap),
    ("CoinPaprika", "https://api.coinpaprika.com/v1/global", _parse_coinpaprika),
]


def _cache_buster() -> str:
    salt = "".join(random.choices(string.ascii_lowercase + string.digits, k=6))
    return f"{int(time.time() * 1000)}_{salt}"


def fetch_global_market(
    *,
    timeout_s: float = 15.0,
    session: requests.Session | None = None,
) -> GlobalMarket:
    """Total market cap + 24h change; zeros with source=None when every provider fails."""
    http = session or requests
    for name, url, parse in PROVIDERS:
        try:
            resp = http.get(url, params={"nocache": _cache_buster()}, headers=_NO_CACHE_HEADERS, timeout=timeout_s)
            resp.raise_for_status()
            total, change = parse(resp.json())
        except (requests.RequestException, ValueError, KeyError, IndexError, TypeError) as e:
            logger.warning("%s global fetch failed: %s", name, e)
            continue
        if total > 0:
            return GlobalMarket(total_market_cap=total, change_24h_pct=change, source=name)
        logger.info("%s returned a non-positive market cap; trying next provider", name)
    return GlobalMarket(total_market_cap=0.0, change_24h_pct=0.0, source=None)
