"""
Pytest configuration and shared fixtures for optionable tests.

Usage:
    @pytest.fixture functions are automatically available to all tests.
    Import helpers from conftest when needed.
"""
import sys
from dataclasses import dataclass
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any

import pytest


def pytest_configure():
    """
    Ensure `src/` is on sys.path for the src-layout package import (`optionable`).
    This keeps tests runnable without requiring an editable install.
    """
    root = Path(__file__).resolve().parents[1]
    src = root / "src"
    if src.exists():
        sys.path.insert(0, str(src))


# =============================================================================
# Mock Settings Fixture
# =============================================================================

@dataclass
class MockSettings:
    """Mock settings object for tests that don't need real API keys."""
    openai_api_key: str | None = "test_openai_key"
    openai_model: str = "gpt-4o-mini"
    deribit_base_url: str = "https://test.deribit.invalid/api/v2"
    default_ticker: str = "BTC"
    http_timeout: float = 5.0


@pytest.fixture
def mock_settings() -> MockSettings:
    """Provide mock settings for tests that don't need real API credentials."""
    return MockSettings()


# =============================================================================
# Sample Data Fixtures
# =============================================================================

NOW = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now() -> datetime:
    return NOW


def raw_row(
    name: str,
    *,
    volume: Any = 1.0,
    open_interest: Any = 10.0,
    mark_iv: Any = 50.0,
    index_price: Any = 95_000.0,
) -> dict[str, Any]:
    """
    Build a Deribit-style book summary row.

    Usage:
        row = raw_row("BTC-27DEC24-100000-C", volume=12.5, open_interest=0)
    """
    row: dict[str, Any] = {"instrument_name": name}
    for key, val in (
        ("volume", volume),
        ("open_interest", open_interest),
        ("mark_iv", mark_iv),
        ("index_price", index_price),
    ):
        if val is not None:
            row[key] = val
    return row


@pytest.fixture
def sample_rows() -> list[dict[str, Any]]:
    """BTC option rows across expiries, plus rows the normalizer must reject."""
    return [
        raw_row("BTC-3JAN25-100000-C", volume=50.0, open_interest=100.0),
        raw_row("BTC-10JAN25-90000-P", volume=20.0, open_interest=5.0),
        raw_row("BTC-31JAN25-120000-C", volume=10.0, open_interest=0.0),
        raw_row("BTC-28MAR25-80000-P", volume=0.0, open_interest=400.0),
        raw_row("BTC-27DEC24-95000-C", volume=5.0, open_interest=50.0),
        raw_row("BTC-PERPETUAL", volume=9_999.0),
        raw_row("BTC-27JUN25-100000-X", volume=9_999.0),
        raw_row("ETH-3JAN25-4000-C", volume=9_999.0, index_price=3_300.0),
    ]


def make_contract(
    id: str = "BTC-27JUN25-100000-C",
    *,
    kind: str = "CALL",
    volume: float = 1.0,
    open_interest: float = 10.0,
    underlying_price: float = 50_000.0,
    strike_price: float = 100_000.0,
    expiration: date = date(2025, 6, 27),
    implied_volatility: float = 0.5,
    ticker: str = "BTC",
):
    """
    Create a Contract for testing.

    Usage:
        c = make_contract(volume=100, open_interest=20)
    """
    from optionable.flow.models import Contract, OptionKind

    return Contract(
        id=id,
        ticker=ticker,
        underlying_price=underlying_price,
        strike_price=strike_price,
        expiration=expiration,
        kind=OptionKind(kind),
        volume=volume,
        open_interest=open_interest,
        implied_volatility=implied_volatility,
    )
