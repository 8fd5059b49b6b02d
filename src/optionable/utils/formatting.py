"""
Display formatting utilities for CLI output.

Provides consistent formatting for:
- Numbers (floats, coin amounts, ratios)
- Currency values
- Percentages
"""
from __future__ import annotations

from typing import Optional


# ============================================================================
# Number Formatting
# ============================================================================

def fmt_float(x: Optional[float], decimals: int = 2) -> str:
    """Format float with comma separators and specified decimals, or 'n/a'."""
    if x is None or not isinstance(x, (int, float)):
        return "n/a"
    return f"{float(x):,.{decimals}f}"


def fmt_ratio(x: Optional[float], decimals: int = 2, missing: str = "New Position") -> str:
    """Format a volume/OI style multiple (e.g. 3.25x). None means the ratio is undefined."""
    if x is None or not isinstance(x, (int, float)):
        return missing
    return f"{float(x):.{decimals}f}x"


def fmt_signed_pct(x: Optional[float], decimals: int = 2, multiply: bool = False) -> str:
    """Format as signed percentage with + prefix for positives."""
    if x is None or not isinstance(x, (int, float)):
        return "n/a"
    value = float(x) * 100.0 if multiply else float(x)
    return f"{value:+.{decimals}f}%"


# ============================================================================
# Currency Formatting
# ============================================================================

def fmt_usd(x: Optional[float], show_cents: bool = True) -> str:
    """Format as USD currency."""
    if x is None or not isinstance(x, (int, float)):
        return "n/a"
    if show_cents:
        return f"${float(x):,.2f}"
    return f"${float(x):,.0f}"


def fmt_compact_usd(x: Optional[float]) -> str:
    """Format large USD values with K/M/B/T suffixes."""
    if x is None or not isinstance(x, (int, float)):
        return "n/a"

    v = float(x)
    if abs(v) >= 1e12:
        return f"${v/1e12:.2f}T"
    elif abs(v) >= 1e9:
        return f"${v/1e9:.2f}B"
    elif abs(v) >= 1e6:
        return f"${v/1e6:.2f}M"
    elif abs(v) >= 1e3:
        return f"${v/1e3:.2f}K"
    else:
        return f"${v:.0f}"


def kind_color(kind: str) -> str:
    """Rich color for an option kind ('CALL' green, 'PUT' red)."""
    return "green" if str(kind).upper() == "CALL" else "red"


def bias_color(bias: str | None) -> str:
    colors = {
        "bullish": "green",
        "bearish": "red",
    }
    return colors.get(str(bias or "").lower(), "yellow")
