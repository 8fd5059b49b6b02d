from unittest.mock import MagicMock

import requests

from optionable.data.global_market import fetch_global_market


def _resp(payload) -> MagicMock:
    r = MagicMock()
    r.json.return_value = payload
    return r


def test_first_provider_wins():
    session = MagicMock()
    session.get.return_value = _resp([{"total_mcap": "3100000000000", "mcap_change": "1.5"}])
    gm = fetch_global_market(session=session)
    assert gm.source == "CoinLore"
    assert gm.total_market_cap == 3.1e12
    assert gm.change_24h_pct == 1.5
    assert session.get.call_count == 1
    kwargs = session.get.call_args.kwargs
    assert kwargs["headers"]["Cache-Control"].startswith("no-cache")
    assert "nocache" in kwargs["params"]


def test_falls_through_errors_and_non_positive_totals():
    session = MagicMock()
    session.get.side_effect = [
        requests.ConnectionError("down"),
        _resp({"data": {"totalMarketCapUsd": "0"}}),
        _resp({"market_cap_usd": 2.9e12, "market_cap_change_24h": -0.7}),
    ]
    gm = fetch_global_market(session=session)
    assert gm.source == "CoinPaprika"
    assert gm.total_market_cap == 2.9e12
    assert gm.change_24h_pct == -0.7


def test_all_providers_failing_returns_zeros():
    session = MagicMock()
    session.get.side_effect = [
        _resp({"unexpected": True}),
        requests.Timeout("slow"),
        _resp([]),
    ]
    gm = fetch_global_market(session=session)
    assert gm.total_market_cap == 0.0
    assert gm.change_24h_pct == 0.0
    assert gm.source is None
