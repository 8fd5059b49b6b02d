from types import SimpleNamespace
from unittest.mock import MagicMock

from openai import OpenAIError

from conftest import make_contract
from optionable.flow.models import RankedContract
from optionable.llm.flow_analysis import (
    NEWS_SERVICE_ERROR,
    OVERALL_SERVICE_ERROR,
    OVERALL_UNPARSEABLE,
    _extract_json_object,
    analyze_contract,
    analyze_gamma,
    analyze_news_sentiment,
    analyze_overall_flow,
    analyze_technicals,
    overall_flow_prompt,
)


def _client(content: str) -> MagicMock:
    client = MagicMock()
    client.chat.completions.create.return_value = SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))]
    )
    return client


def _ranked(n: int = 3) -> list[RankedContract]:
    return [
        RankedContract(contract=make_contract(f"BTC-27JUN25-{100_000 + i}-C", volume=10 + i), score=float(100 - i))
        for i in range(n)
    ]


def test_extract_json_object_handles_fences_and_prose():
    txt = 'Sure!\n```json\n{"bias": "Bullish", "summary": "calls"}\n```'
    assert _extract_json_object(txt) == '{"bias": "Bullish", "summary": "calls"}'


def test_overall_flow_parses_model_output(mock_settings):
    client = _client('```json\n{"bias": "Bearish", "summary": "Put buyers dominate."}\n```')
    out = analyze_overall_flow(settings=mock_settings, ranked=_ranked(), ticker="BTC", client=client)

    assert out.bias == "Bearish"
    assert out.summary == "Put buyers dominate."
    assert out.available is True
    kwargs = client.chat.completions.create.call_args.kwargs
    assert kwargs["model"] == "gpt-4o-mini"
    assert kwargs["response_format"] == {"type": "json_object"}


def test_overall_flow_prompt_uses_top_ten():
    prompt = overall_flow_prompt(_ranked(12), "BTC")
    assert prompt.count("\n- ") == 10
    assert "BTC-27JUN25" not in prompt  # trades are described, not named
    assert "CALL @ 100000" in prompt


def test_garbage_output_returns_unparseable_placeholder(mock_settings):
    out = analyze_overall_flow(settings=mock_settings, ranked=_ranked(), client=_client("no json here"))
    assert out == OVERALL_UNPARSEABLE
    assert out.available is False


def test_schema_mismatch_returns_unparseable_placeholder(mock_settings):
    client = _client('{"bias": "Sideways", "summary": "?"}')
    out = analyze_overall_flow(settings=mock_settings, ranked=_ranked(), client=client)
    assert out.summary == "Consensus calculation in progress."


def test_api_error_returns_service_placeholder(mock_settings):
    client = MagicMock()
    client.chat.completions.create.side_effect = OpenAIError("boom")
    out = analyze_overall_flow(settings=mock_settings, ranked=_ranked(), client=client)
    assert out == OVERALL_SERVICE_ERROR


def test_missing_key_returns_service_placeholder(mock_settings):
    mock_settings.openai_api_key = None
    out = analyze_news_sentiment(settings=mock_settings, ticker="BTC")
    assert out == NEWS_SERVICE_ERROR


def test_placeholder_is_a_copy(mock_settings):
    client = _client("nope")
    out = analyze_overall_flow(settings=mock_settings, ranked=_ranked(), client=client)
    out.summary = "mutated"
    assert OVERALL_UNPARSEABLE.summary == "Consensus calculation in progress."


def test_contract_prompt_marks_new_positions(mock_settings):
    client = _client(
        '{"options_flow": "Block buy", "gamma_exposure": "Short gamma", "skew_and_max_pain": "Cheap",'
        ' "potential_catalysts": "CPI", "actionable_summary": "Follow"}'
    )
    ranked = RankedContract(contract=make_contract(volume=12, open_interest=0), score=1.0)
    out = analyze_contract(settings=mock_settings, contract=ranked, client=client)

    assert out.options_flow == "Block buy"
    assert out.available is True
    prompt = client.chat.completions.create.call_args.kwargs["messages"][0]["content"]
    assert "new position" in prompt
    assert "CALL @ $100,000" in prompt


def test_news_sources_deduplicated_by_uri(mock_settings):
    client = _client(
        '{"bias": "Bullish", "summary": "ETF inflows", "sources": ['
        '{"title": "A", "uri": "https://x/1"}, {"title": "B", "uri": "https://x/2"},'
        ' {"title": "A (updated)", "uri": "https://x/1"}]}'
    )
    out = analyze_news_sentiment(settings=mock_settings, ticker="BTC", client=client)
    assert [s.uri for s in out.sources] == ["https://x/1", "https://x/2"]
    assert out.sources[0].title == "A (updated)"


def test_gamma_and_technicals(mock_settings):
    gamma = analyze_gamma(
        settings=mock_settings,
        ticker="BTC",
        price=95_000.0,
        client=_client(
            '{"squeeze_probability": "High", "gamma_regime": "Negative", "commentary": "Short gamma below 90k",'
            ' "key_levels": [{"strike": 100000, "gamma_value": "+1.2B", "type": "Call Wall"}]}'
        ),
    )
    assert gamma.squeeze_probability == "High"
    assert gamma.key_levels[0].strike == 100_000
    assert gamma.key_levels[0].type == "Call Wall"

    tech = analyze_technicals(
        settings=mock_settings,
        ticker="BTC",
        price=95_000.0,
        client=_client('{"bias": "Neutral", "summary": "Range", "support_levels": [90000], "resistance_levels": [100000]}'),
    )
    assert tech.support_levels == [90_000.0]
    assert tech.moving_average_analysis == ""


def test_response_without_choices_returns_unparseable_placeholder(mock_settings):
    client = MagicMock()
    client.chat.completions.create.return_value = SimpleNamespace(choices=[])
    out = analyze_overall_flow(settings=mock_settings, ranked=_ranked(), client=client)
    assert out == OVERALL_UNPARSEABLE


def test_malformed_response_object_returns_unparseable_placeholder(mock_settings):
    client = MagicMock()
    client.chat.completions.create.return_value = SimpleNamespace(choices=[SimpleNamespace()])
    out = analyze_news_sentiment(settings=mock_settings, ticker="BTC", client=client)
    assert out.available is False
    assert out.summary == "Aggregating sentiment streams..."
