"""
Unusual options activity: normalization, expiration windows, scoring and aggregates.

Each stage is a plain function over lists of frozen records; nothing here does I/O.
"""
from optionable.flow.models import (
    Aggregate,
    Contract,
    ExpirationWindow,
    MarketContext,
    MarketSnapshot,
    OptionKind,
    RankedContract,
)
from optionable.flow.normalize import normalize
from optionable.flow.pipeline import FlowReport, run_pipeline
from optionable.flow.scoring import MAX_RANKED, rank_unusual, unusual_score
from optionable.flow.summary import LEGACY_PUT_CALL_RATIO, summarize
from optionable.flow.window import filter_by_window, parse_window

__all__ = [
    "Aggregate",
    "Contract",
    "ExpirationWindow",
    "FlowReport",
    "LEGACY_PUT_CALL_RATIO",
    "MAX_RANKED",
    "MarketContext",
    "MarketSnapshot",
    "OptionKind",
    "RankedContract",
    "filter_by_window",
    "normalize",
    "parse_window",
    "rank_unusual",
    "run_pipeline",
    "summarize",
    "unusual_score",
]
