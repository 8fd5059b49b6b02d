"""Centralized settings utilities."""

from __future__ import annotations

import os

from optionable.config import Settings, load_settings


def safe_load_settings() -> Settings | None:
    """
    Load settings with graceful fallback.

    If .env is unreadable (e.g., sandbox), construct Settings directly from environment variables.
    Returns None if settings cannot be constructed.
    """
    try:
        return load_settings()
    except Exception:
        try:
            return Settings.model_construct(
                OPENAI_API_KEY=os.getenv("OPENAI_API_KEY"),
                OPENAI_MODEL=os.getenv("OPENAI_MODEL", "gpt-4o-mini"),
                DERIBIT_BASE_URL=os.getenv("DERIBIT_BASE_URL", "https://www.deribit.com/api/v2"),
                OPTIONABLE_TICKER=os.getenv("OPTIONABLE_TICKER", "BTC"),
                OPTIONABLE_HTTP_TIMEOUT=float(os.getenv("OPTIONABLE_HTTP_TIMEOUT", "15")),
            )
        except Exception:
            return None
