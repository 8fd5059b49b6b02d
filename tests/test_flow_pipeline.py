from datetime import datetime, timezone

import pytest

from conftest import raw_row
from optionable.errors import NoPriceAvailable
from optionable.flow.models import ExpirationWindow, MarketSnapshot
from optionable.flow.pipeline import run_pipeline


def _snapshot(rows, *, index_price=95_000.0, ticker="BTC") -> MarketSnapshot:
    return MarketSnapshot(
        ticker=ticker,
        name=f"{ticker} Options",
        raw_records=tuple(rows),
        index_price=index_price,
        price_change_24h=2.5,
    )


def test_pipeline_all_window(sample_rows, now):
    report = run_pipeline(_snapshot(sample_rows), window="ALL", now=now)

    assert len(report.contracts) == 5
    assert len(report.filtered) == 4  # zero-volume 28MAR25 put dropped
    assert [r.contract.id for r in report.ranked] == [
        "BTC-10JAN25-90000-P",
        "BTC-3JAN25-100000-C",
        "BTC-31JAN25-120000-C",
        "BTC-27DEC24-95000-C",
    ]
    a = report.aggregate
    assert a.ticker == "BTC"
    assert a.underlying_price == 95_000.0
    assert a.price_change_24h == 2.5
    assert a.total_unusual_volume == 85
    assert a.total_notional_value == 85 * 95_000
    assert a.most_unusual_call.contract.id == "BTC-3JAN25-100000-C"
    assert a.most_unusual_put.contract.id == "BTC-10JAN25-90000-P"
    assert a.put_call_ratio == pytest.approx(20 / 65)


def test_pipeline_one_week_window(sample_rows, now):
    report = run_pipeline(_snapshot(sample_rows), window=ExpirationWindow.ONE_WEEK, now=now)
    assert [r.contract.id for r in report.ranked] == ["BTC-3JAN25-100000-C", "BTC-27DEC24-95000-C"]
    assert report.aggregate.most_unusual_put is None
    assert report.window is ExpirationWindow.ONE_WEEK


def test_pipeline_is_deterministic(sample_rows, now):
    first = run_pipeline(_snapshot(sample_rows), window="1M", now=now)
    second = run_pipeline(_snapshot(sample_rows), window="1M", now=now)
    assert first == second


def test_pipeline_uses_row_index_price_when_index_missing(now):
    rows = [raw_row("BTC-3JAN25-100000-C", index_price=91_000.0)]
    report = run_pipeline(_snapshot(rows, index_price=0.0), now=now)
    assert report.context.underlying_price == 91_000.0


def test_pipeline_fails_without_price(now):
    rows = [raw_row("BTC-3JAN25-100000-C", index_price=None)]
    with pytest.raises(NoPriceAvailable):
        run_pipeline(_snapshot(rows, index_price=0.0), now=now)


def test_report_find_is_case_insensitive(sample_rows, now):
    report = run_pipeline(_snapshot(sample_rows), now=now)
    assert report.find("btc-3jan25-100000-c").contract.id == "BTC-3JAN25-100000-C"
    assert report.find("BTC-28MAR25-80000-P") is None


def test_naive_and_aware_now_agree(sample_rows):
    aware = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)
    naive = datetime(2025, 1, 1, 12, 0)
    a = run_pipeline(_snapshot(sample_rows), window="1W", now=aware)
    b = run_pipeline(_snapshot(sample_rows), window="1W", now=naive)
    assert a.ranked == b.ranked


def test_context_price_survives_when_every_row_is_rejected(now):
    rows = [raw_row("BTC-27DEC24-100000-X", index_price=91_000.0)]
    report = run_pipeline(_snapshot(rows, index_price=0.0), now=now)
    assert report.contracts == ()
    assert report.ranked == ()
    assert report.context.underlying_price == 91_000.0
    assert report.aggregate.underlying_price == 91_000.0
