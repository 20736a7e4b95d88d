from __future__ import annotations

import json
from types import SimpleNamespace

import pytest

from short_videos.errors import ConfigurationError, EnrichmentError
from short_videos.services.enrichment import (
    TRANSCRIPT_CHAR_LIMIT,
    EnrichmentEngine,
    match_category,
    parse_json_object,
)


class FakeLLM:
    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.messages = None

    def invoke(self, messages):
        self.messages = messages
        if self.error:
            raise self.error
        return SimpleNamespace(content=self.content)


def _engine(taxonomy, llm):
    return EnrichmentEngine(lambda: taxonomy, llm=llm)


def test_requires_api_key_without_llm(taxonomy):
    with pytest.raises(ConfigurationError):
        EnrichmentEngine(lambda: taxonomy)


def test_matches_existing_labels_case_insensitively(taxonomy):
    llm = FakeLLM(
        json.dumps(
            {
                "ai_summary": "Agent explains why buyers should move now.",
                "suggested_hook": "Rates just dropped",
                "suggested_cta": "Comment RATES",
                "suggested_triggers": ["scarcity", "SOCIAL PROOF"],
                "suggested_power_words": ["Exclusive"],
                "suggested_category": "market update",
            }
        )
    )

    result = _engine(taxonomy, llm).enrich("transcript", "Rates dropped", None)

    assert result.summary == "Agent explains why buyers should move now."
    assert result.hook_text == "Rates just dropped"
    assert result.cta == "Comment RATES"
    assert result.trigger_ids == ["t-1", "t-2"]
    assert result.power_word_ids == ["p-1"]
    assert result.category_id == "c-2"


def test_unknown_suggestions_are_dropped(taxonomy):
    llm = FakeLLM(
        json.dumps(
            {
                "suggested_triggers": ["Urgency", "Scarcity"],
                "suggested_power_words": ["Guaranteed"],
                "suggested_category": "Luxury Homes",
            }
        )
    )

    result = _engine(taxonomy, llm).enrich("transcript", "title")

    assert result.trigger_ids == ["t-1"]
    assert result.power_word_ids == []
    assert result.category_id is None


def test_unparseable_response_yields_empty_result(taxonomy):
    result = _engine(taxonomy, FakeLLM("Sorry, I can't help with that.")).enrich("transcript", "title")

    assert result.summary == ""
    assert result.trigger_ids == []
    assert result.category_id is None


def test_transcript_is_truncated_and_taxonomy_listed(taxonomy):
    llm = FakeLLM("{}")
    transcript = "a" * TRANSCRIPT_CHAR_LIMIT + "ZZZZ"

    _engine(taxonomy, llm).enrich(transcript, "Open house", "Saturday 1-3pm")

    system, user = llm.messages
    assert "Scarcity, Social Proof" in system.content
    assert "Exclusive, Instantly" in system.content
    assert "Buyer Tips, Market Update" in system.content
    assert "a" * TRANSCRIPT_CHAR_LIMIT in user.content
    assert "ZZZZ" not in user.content
    assert "TITLE: Open house" in user.content
    assert "DESCRIPTION: Saturday 1-3pm" in user.content


def test_taxonomy_is_loaded_on_every_call(taxonomy):
    calls = []

    def loader():
        calls.append(1)
        return taxonomy

    engine = EnrichmentEngine(loader, llm=FakeLLM("{}"))
    engine.enrich("one", "t")
    engine.enrich("two", "t")

    assert len(calls) == 2


def test_llm_failure_raises(taxonomy):
    with pytest.raises(EnrichmentError):
        _engine(taxonomy, FakeLLM(error=RuntimeError("503"))).enrich("transcript", "title")


def test_parse_json_object_variants():
    assert parse_json_object('```json\n{"a": 1}\n```') == {"a": 1}
    assert parse_json_object('Here you go: {"a": 2} thanks') == {"a": 2}
    assert parse_json_object("[1, 2]") == {}
    assert parse_json_object("") == {}
    assert parse_json_object(None) == {}


def test_match_category_ignores_non_strings(taxonomy):
    assert match_category(None, taxonomy.categories) is None
    assert match_category(["Buyer Tips"], taxonomy.categories) is None
    assert match_category("buyer tips", taxonomy.categories) == "c-1"
