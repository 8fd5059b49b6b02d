from __future__ import annotations

from datetime import date, datetime, time, timezone
from typing import Iterable

from optionable.flow.models import Contract, ExpirationWindow

_SECONDS_PER_DAY = 86_400.0

_ALIASES = {
    "ONE_WEEK": ExpirationWindow.ONE_WEEK,
    "TWO_WEEKS": ExpirationWindow.TWO_WEEKS,
    "ONE_MONTH": ExpirationWindow.ONE_MONTH,
    "THREE_MONTHS": ExpirationWindow.THREE_MONTHS,
    "SIX_MONTHS": ExpirationWindow.SIX_MONTHS,
    "ALL": ExpirationWindow.ALL,
}


def parse_window(value: str | ExpirationWindow) -> ExpirationWindow:
    """Accept "1W"/"1w"/"ONE_WEEK"/ExpirationWindow.ONE_WEEK style selectors."""
    if isinstance(value, ExpirationWindow):
        return value
    s = str(value or "").strip().upper()
    if s in _ALIASES:
        return _ALIASES[s]
    try:
        return ExpirationWindow(s)
    except ValueError:
        allowed = ", ".join(w.value for w in ExpirationWindow)
        raise ValueError(f"Unknown expiration window {value!r} (expected one of: {allowed})") from None


def days_until(expiration: date, now: datetime) -> float:
    """Fractional days from `now` to the expiration date at 00:00 UTC (negative once past)."""
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    exp = datetime.combine(expiration, time.min, tzinfo=timezone.utc)
    return (exp - now).total_seconds() / _SECONDS_PER_DAY


def filter_by_window(
    contracts: Iterable[Contract],
    window: ExpirationWindow | str,
    now: datetime,
) -> list[Contract]:
    """
    Keep contracts that traded and expire within the window.

    Zero-volume contracts are always dropped. The day check is a literal
    `days_until <= threshold`, so recently expired contracts (negative days) pass.
    """
    w = parse_window(window)
    limit = w.max_days
    out: list[Contract] = []
    for c in contracts:
        if c.volume <= 0:
            continue
        if limit is not None and days_until(c.expiration, now) > limit:
            continue
        out.append(c)
    return out
