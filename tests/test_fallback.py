"""Tests for the language model fallback."""

import json
from types import SimpleNamespace

import pytest

from core.agents.column_mapping.constants import SOURCE_MODEL
from core.agents.column_mapping.exceptions import FallbackClassificationError
from core.agents.column_mapping.fallback import (
    DSPyCompletionClient,
    FallbackClassifier,
    build_completion_client,
    build_mapping_prompt,
    parse_model_response,
)
from core.agents.column_mapping.field_catalog import FieldCatalog

from conftest import FakeCompletionClient


# ==================== Response parsing ====================

def test_parse_plain_json(catalog):
    candidate = parse_model_response(
        '{"field": "industry", "confidence": 0.8, "reasoning": "sector names"}', catalog
    )
    assert candidate.field == "industry"
    assert candidate.confidence == pytest.approx(0.8)
    assert candidate.reasoning == "sector names"
    assert candidate.source == SOURCE_MODEL


def test_parse_json_wrapped_in_prose(catalog):
    text = 'Sure!\n```json\n{"field": "Company", "confidence": 0.7}\n```\nHope this helps.'
    candidate = parse_model_response(text, catalog)
    assert candidate.field == "company"
    assert candidate.reasoning == "AI analysis"


@pytest.mark.parametrize("text", [None, "", "no json here", '{"field": "mrr", "confidence": }', "[1, 2]"])
def test_parse_malformed(catalog, text):
    assert parse_model_response(text, catalog) is None


def test_parse_unknown_field_rejected(catalog):
    assert parse_model_response('{"field": "shoe_size", "confidence": 0.9}', catalog) is None


def test_parse_unmapped_accepted(catalog):
    candidate = parse_model_response('{"field": "unmapped", "confidence": 0}', catalog)
    assert candidate.field == "unmapped"
    assert candidate.confidence == 0.0


@pytest.mark.parametrize("raw,expected", [(1.7, 1.0), (-0.2, 0.0), ("0.65", 0.65), (None, 0.0)])
def test_parse_clamps_confidence(catalog, raw, expected):
    candidate = parse_model_response(json.dumps({"field": "mrr", "confidence": raw}), catalog)
    assert candidate.confidence == pytest.approx(expected)


def test_parse_non_numeric_confidence(catalog):
    assert parse_model_response('{"field": "mrr", "confidence": "high"}', catalog) is None


# ==================== Prompt ====================

def test_prompt_contents(catalog):
    values = [f"v{i}" for i in range(12)]
    prompt = build_mapping_prompt("acct", ["acct", "seats"], values, catalog)

    assert 'Column name: "acct"' in prompt
    assert "All columns in this file: acct, seats" in prompt
    assert "v9" in prompt
    assert "v10" not in prompt
    for name in catalog.names:
        assert f"- {name}" in prompt
    assert '"cli_name" means customer_name' in prompt
    assert '"app_name" means feature_usage' in prompt


def test_prompt_is_deterministic(catalog):
    args = ("acct", ["acct", "seats"], ["a", "", "b"], catalog)
    assert build_mapping_prompt(*args) == build_mapping_prompt(*args)


def test_prompt_without_samples(catalog):
    prompt = build_mapping_prompt("acct", ["acct"], [], catalog)
    assert "(none)" in prompt


def test_prompt_without_override_rules(catalog):
    prompt = build_mapping_prompt("acct", ["acct"], [], catalog, override_rules={})
    assert "Disambiguation notes" not in prompt


def test_prompt_describes_each_field(catalog):
    prompt = build_mapping_prompt("acct", ["acct"], [], catalog)
    assert "- contract_value: Total or annual value of the customer contract" in prompt
    assert "examples: renewal_date, expiry_date, contract_end" in prompt


def test_prompt_for_empty_catalog_lists_no_fields():
    prompt = build_mapping_prompt("acct", ["acct"], [], FieldCatalog([]))
    assert "- customer_name" not in prompt


# ==================== FallbackClassifier ====================

def test_fallback_unavailable_without_client(catalog):
    fallback = FallbackClassifier(None)
    assert not fallback.available
    assert fallback.classify_with_model("acct", ["acct"], [], catalog) is None


def test_fallback_returns_model_candidate(catalog):
    client = FakeCompletionClient({"acct": {"field": "customer_name", "confidence": 0.6, "reasoning": "r"}})
    candidate = FallbackClassifier(client).classify_with_model("acct", ["acct"], ["Acme"], catalog)
    assert candidate.field == "customer_name"
    assert len(client.prompts) == 1
    assert "Acme" in client.prompts[0]


@pytest.mark.parametrize("error", [TimeoutError("timed out"), ConnectionError("refused"), RuntimeError("boom")])
def test_fallback_swallows_client_errors(catalog, error):
    client = FakeCompletionClient(error=error)
    assert FallbackClassifier(client).classify_with_model("acct", ["acct"], [], catalog) is None


def test_fallback_ignores_garbage(catalog):
    client = FakeCompletionClient(lambda prompt: "I think it's a name")
    assert FallbackClassifier(client).classify_with_model("acct", ["acct"], [], catalog) is None


# ==================== DSPyCompletionClient ====================

class FakeLM:
    def __init__(self, outputs):
        self.outputs = list(outputs)
        self.calls = []

    def __call__(self, messages=None, **kwargs):
        self.calls.append(messages)
        result = self.outputs.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


def test_dspy_client_sends_system_and_user_messages():
    lm = FakeLM([['{"field": "mrr"}']])
    client = DSPyCompletionClient(lm=lm)
    assert client.complete("prompt text") == '{"field": "mrr"}'
    roles = [m["role"] for m in lm.calls[0]]
    assert roles == ["system", "user"]
    assert lm.calls[0][1]["content"] == "prompt text"


def test_dspy_client_handles_dict_outputs():
    client = DSPyCompletionClient(lm=FakeLM([[{"text": "answer", "logprobs": None}]]))
    assert client.complete("p") == "answer"


def test_dspy_client_empty_output():
    client = DSPyCompletionClient(lm=FakeLM([[]]))
    with pytest.raises(FallbackClassificationError):
        client.complete("p")


def test_dspy_client_retries_transient_errors():
    lm = FakeLM([ConnectionError("reset by peer"), ["ok"]])
    client = DSPyCompletionClient(lm=lm, max_retries=1)
    assert client.complete("p") == "ok"
    assert len(lm.calls) == 2


def test_dspy_client_does_not_retry_timeouts():
    lm = FakeLM([TimeoutError("request timed out"), ["ok"]])
    client = DSPyCompletionClient(lm=lm, max_retries=2)
    with pytest.raises(TimeoutError):
        client.complete("p")
    assert len(lm.calls) == 1


# ==================== Client factory ====================

def _config(fallback_enabled=True, credentials=True):
    return SimpleNamespace(
        column_mapping=SimpleNamespace(
            fallback_enabled=fallback_enabled,
            fallback_timeout=5.0,
            fallback_max_retries=0,
        ),
        mlflow=SimpleNamespace(enabled=False),
        has_llm_credentials=lambda: credentials,
    )


def test_no_client_when_disabled():
    assert build_completion_client(_config(fallback_enabled=False)) is None


def test_no_client_without_credentials():
    assert build_completion_client(_config(credentials=False)) is None
