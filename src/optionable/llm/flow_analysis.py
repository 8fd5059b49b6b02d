"""
LLM commentary for ranked options flow.

Every entry point returns a pydantic model and never raises: when the OpenAI
call fails, or its output cannot be parsed into the expected shape, a fixed
placeholder (available=False) is returned instead. Commentary is display-only
and is never fed back into scoring.

Usage:
    from optionable.llm.flow_analysis import analyze_overall_flow

    overall = analyze_overall_flow(settings=settings, ranked=report.ranked, ticker="BTC")
"""
from __future__ import annotations

import json
import logging
import re
from typing import Any, Literal, Sequence, TypeVar

from openai import OpenAI, OpenAIError
from pydantic import BaseModel, Field, ValidationError, field_validator

from optionable.config import Settings
from optionable.flow.models import Contract, RankedContract

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


# ============================================================================
# Result models
# ============================================================================

class ContractAnalysis(BaseModel):
    options_flow: str
    gamma_exposure: str
    skew_and_max_pain: str
    potential_catalysts: str
    actionable_summary: str
    available: bool = True


class OverallAnalysis(BaseModel):
    bias: Literal["Bullish", "Bearish", "Neutral", "Mixed"]
    summary: str
    available: bool = True


class GammaLevel(BaseModel):
    strike: float
    gamma_value: str = ""
    type: Literal["Call Wall", "Put Wall", "Zero Gamma", "Neutral"] = "Neutral"


class GammaSqueezeAnalysis(BaseModel):
    squeeze_probability: Literal["Low", "Moderate", "High", "Extreme"]
    gamma_regime: Literal["Positive", "Negative"]
    commentary: str
    key_levels: list[GammaLevel] = Field(default_factory=list)
    available: bool = True


class TechnicalAnalysis(BaseModel):
    bias: Literal["Bullish", "Bearish", "Neutral"]
    summary: str
    support_levels: list[float] = Field(default_factory=list)
    resistance_levels: list[float] = Field(default_factory=list)
    moving_average_analysis: str = ""
    indicator_analysis: str = ""
    available: bool = True


class NewsSource(BaseModel):
    title: str
    uri: str


class NewsSentiment(BaseModel):
    bias: Literal["Bullish", "Bearish", "Neutral"] = "Neutral"
    summary: str = "Sentiment analysis in progress."
    sources: list[NewsSource] = Field(default_factory=list)
    available: bool = True

    @field_validator("sources")
    @classmethod
    def _unique_by_uri(cls, v: list[NewsSource]) -> list[NewsSource]:
        seen: dict[str, NewsSource] = {}
        for s in v:
            seen[s.uri] = s
        return list(seen.values())


# ============================================================================
# Placeholders (unparseable output vs. service error)
# ============================================================================

CONTRACT_UNPARSEABLE = ContractAnalysis(
    options_flow="Flow analysis unavailable.",
    gamma_exposure="Gamma profiling limited.",
    skew_and_max_pain="Skew metrics pending.",
    potential_catalysts="Catalyst scan incomplete.",
    actionable_summary="Target decomposition in progress.",
    available=False,
)
CONTRACT_SERVICE_ERROR = ContractAnalysis(
    options_flow="Service temporarily interrupted.",
    gamma_exposure="Unable to calculate exposure.",
    skew_and_max_pain="Volatility surface data restricted.",
    potential_catalysts="Macro feed disconnected.",
    actionable_summary="AI Analysis Error: Please try again.",
    available=False,
)
OVERALL_UNPARSEABLE = OverallAnalysis(bias="Neutral", summary="Consensus calculation in progress.", available=False)
OVERALL_SERVICE_ERROR = OverallAnalysis(
    bias="Neutral", summary="Global flow analysis service unavailable.", available=False
)
GAMMA_UNPARSEABLE = GammaSqueezeAnalysis(
    squeeze_probability="Moderate",
    gamma_regime="Positive",
    commentary="Awaiting structural hedging data.",
    available=False,
)
GAMMA_SERVICE_ERROR = GammaSqueezeAnalysis(
    squeeze_probability="Moderate",
    gamma_regime="Positive",
    commentary="Connection to gamma distribution hub timed out.",
    available=False,
)
TECHNICAL_UNPARSEABLE = TechnicalAnalysis(
    bias="Neutral",
    summary="Structural technical scan in progress.",
    moving_average_analysis="Calculating averages...",
    indicator_analysis="Oscillators pending.",
    available=False,
)
TECHNICAL_SERVICE_ERROR = TechnicalAnalysis(
    bias="Neutral",
    summary="Technical analysis engine disconnected.",
    moving_average_analysis="Feed unavailable.",
    indicator_analysis="Feed unavailable.",
    available=False,
)
NEWS_UNPARSEABLE = NewsSentiment(bias="Neutral", summary="Aggregating sentiment streams...", available=False)
NEWS_SERVICE_ERROR = NewsSentiment(bias="Neutral", summary="Global news feed unavailable.", available=False)


# ============================================================================
# Plumbing
# ============================================================================

def _extract_json_object(text: str) -> str:
    """
    Best-effort extraction of a JSON object from an LLM response.
    Handles fenced blocks and extra prose.
    """
    t = (text or "").strip()
    if not t:
        raise ValueError("Empty LLM response")
    t = re.sub(r"^```(?:json)?\s*", "", t, flags=re.IGNORECASE).strip()
    t = re.sub(r"\s*```$", "", t).strip()
    start = t.find("{")
    end = t.rfind("}")
    if start == -1 or end == -1 or end <= start:
        raise ValueError(f"LLM did not return a JSON object. Got: {t[:200]!r}")
    return t[start : end + 1]


def _chat(
    *,
    settings: Settings,
    prompt: str,
    model: str | None,
    temperature: float,
    client: Any | None,
) -> str:
    if client is None:
        if not settings.openai_api_key:
            raise RuntimeError("Missing OPENAI_API_KEY in environment / .env")
        client = OpenAI(api_key=settings.openai_api_key)

    resp = client.chat.completions.create(
        model=model or settings.openai_model,
        messages=[{"role": "user", "content": prompt}],
        temperature=float(temperature),
        response_format={"type": "json_object"},
    )
    # No choices or no message content reads as an empty (unparseable) reply.
    choices = getattr(resp, "choices", None) or []
    if not choices:
        return ""
    message = getattr(choices[0], "message", None)
    return str(getattr(message, "content", None) or "").strip()


def _run(
    result_model: type[M],
    *,
    label: str,
    settings: Settings,
    prompt: str,
    unparseable: M,
    service_error: M,
    model: str | None,
    temperature: float,
    client: Any | None,
) -> M:
    try:
        raw = _chat(settings=settings, prompt=prompt, model=model, temperature=temperature, client=client)
    except (OpenAIError, RuntimeError) as e:
        logger.warning("%s analysis unavailable: %s", label, e)
        return service_error.model_copy(deep=True)

    try:
        obj = json.loads(_extract_json_object(raw))
        return result_model.model_validate(obj)
    except (ValueError, ValidationError) as e:
        logger.warning("%s analysis returned unparseable output: %s", label, e)
        return unparseable.model_copy(deep=True)


# ============================================================================
# Entry points
# ============================================================================

def analyze_contract(
    *,
    settings: Settings,
    contract: Contract | RankedContract,
    model: str | None = None,
    temperature: float = 0.2,
    client: Any | None = None,
) -> ContractAnalysis:
    """Five-part breakdown (flow, gamma, skew/max pain, catalysts, summary) of one contract."""
    c = contract.contract if isinstance(contract, RankedContract) else contract
    ratio = c.volume_oi_ratio
    ratio_txt = f"{ratio:.2f}x" if ratio is not None else "new position"
    prompt = f"""
Analyze this unusual {c.ticker} options activity.
Price: ${c.underlying_price:,.2f}.
Contract: {c.kind.value} @ ${c.strike_price:,.0f} exp {c.expiration.isoformat()}.
Vol: {c.volume:,.2f}, OI: {c.open_interest:,.2f}, Vol/OI: {ratio_txt}.
Implied vol: {c.implied_volatility:.1%}.
Notional: ${c.notional_value:,.0f}.

1. Options Flow: Sweep/Block? Sentiment?
2. Gamma: Long/Short regime?
3. Skew/Pain: Cheap/Expensive vol?
4. Catalysts: Macro/Crypto events?
5. Summary: Actionable signal.

Return ONLY JSON with string fields:
{{"options_flow": "...", "gamma_exposure": "...", "skew_and_max_pain": "...",
  "potential_catalysts": "...", "actionable_summary": "..."}}
""".strip()
    return _run(
        ContractAnalysis,
        label=f"Contract {c.id}",
        settings=settings,
        prompt=prompt,
        unparseable=CONTRACT_UNPARSEABLE,
        service_error=CONTRACT_SERVICE_ERROR,
        model=model,
        temperature=temperature,
        client=client,
    )


def overall_flow_prompt(ranked: Sequence[RankedContract], ticker: str, limit: int = 10) -> str:
    details = "\n".join(
        f"- {r.contract.volume:g} {r.contract.kind.value} @ {r.contract.strike_price:g} exp {r.contract.expiration.isoformat()}"
        for r in list(ranked)[:limit]
    )
    return (
        f"Summarize {ticker} options flow based on these trades:\n{details}\n"
        'Provide bias (Bullish/Bearish/Neutral/Mixed) and a short summary. '
        'Return strictly JSON: {"bias": "...", "summary": "..."}'
    )


def analyze_overall_flow(
    *,
    settings: Settings,
    ranked: Sequence[RankedContract],
    ticker: str = "BTC",
    model: str | None = None,
    temperature: float = 0.2,
    client: Any | None = None,
) -> OverallAnalysis:
    """Directional read of the top 10 ranked trades."""
    return _run(
        OverallAnalysis,
        label="Overall flow",
        settings=settings,
        prompt=overall_flow_prompt(ranked, ticker),
        unparseable=OVERALL_UNPARSEABLE,
        service_error=OVERALL_SERVICE_ERROR,
        model=model,
        temperature=temperature,
        client=client,
    )


def analyze_gamma(
    *,
    settings: Settings,
    ticker: str,
    price: float,
    model: str | None = None,
    temperature: float = 0.2,
    client: Any | None = None,
) -> GammaSqueezeAnalysis:
    """Call wall / put wall / zero-gamma levels and squeeze risk around `price`."""
    prompt = f"""
Assess the current {ticker} options gamma distribution.
Current {ticker} price: ${price:,.2f}.
Identify: Call Wall, Put Wall, and Zero Gamma trigger.
Comment on Squeeze risk.

Return ONLY JSON:
{{
  "squeeze_probability": "Low|Moderate|High|Extreme",
  "gamma_regime": "Positive|Negative",
  "commentary": "...",
  "key_levels": [
    {{"strike": 0, "gamma_value": "...", "type": "Call Wall|Put Wall|Zero Gamma"}}
  ]
}}
""".strip()
    return _run(
        GammaSqueezeAnalysis,
        label="Gamma",
        settings=settings,
        prompt=prompt,
        unparseable=GAMMA_UNPARSEABLE,
        service_error=GAMMA_SERVICE_ERROR,
        model=model,
        temperature=temperature,
        client=client,
    )


def analyze_technicals(
    *,
    settings: Settings,
    ticker: str,
    price: float,
    model: str | None = None,
    temperature: float = 0.2,
    client: Any | None = None,
) -> TechnicalAnalysis:
    prompt = (
        f"{ticker} Technical Analysis at ${price:,.2f}. Return ONLY JSON "
        '{"bias": "Bullish|Bearish|Neutral", "summary": "...", "support_levels": [number], '
        '"resistance_levels": [number], "moving_average_analysis": "...", "indicator_analysis": "..."}.'
    )
    return _run(
        TechnicalAnalysis,
        label="Technical",
        settings=settings,
        prompt=prompt,
        unparseable=TECHNICAL_UNPARSEABLE,
        service_error=TECHNICAL_SERVICE_ERROR,
        model=model,
        temperature=temperature,
        client=client,
    )


def analyze_news_sentiment(
    *,
    settings: Settings,
    ticker: str,
    model: str | None = None,
    temperature: float = 0.2,
    client: Any | None = None,
) -> NewsSentiment:
    """Aggregate recent-news sentiment; sources are de-duplicated by URI."""
    prompt = (
        f"Summarize the most important {ticker} news of the last 24h and aggregate the sentiment. "
        'Return ONLY JSON {"bias": "Bullish|Bearish|Neutral", "summary": "...", '
        '"sources": [{"title": "...", "uri": "..."}]}. Only list sources you can cite by URL.'
    )
    return _run(
        NewsSentiment,
        label="News sentiment",
        settings=settings,
        prompt=prompt,
        unparseable=NEWS_UNPARSEABLE,
        service_error=NEWS_SERVICE_ERROR,
        model=model,
        temperature=temperature,
        client=client,
    )
