"""Tests for query / transcript normalization."""

import pytest

from packmatch.core.transcript_normalizer import (
    STOP_WORDS,
    clean_transcript,
    extract_query_tokens,
    extract_search_intent,
    has_searchable_tokens,
    normalize_transcript,
)


class TestExtractQueryTokens:
    @pytest.mark.parametrize(
        "query,expected",
        [
            ("  Where can I eat late tonight  ", ["eat", "late", "tonight"]),
            ("um like toilet nearby please", ["toilet", "nearby"]),
            ("is this area safe at night", ["area", "safe", "night"]),
            ("I'm starving", ["starving"]),
            ("Lost?", ["lost"]),
        ],
    )
    def test_common_queries(self, query, expected):
        assert extract_query_tokens(query) == expected

    def test_keeps_query_order(self):
        assert extract_query_tokens("metro ticket") == ["metro", "ticket"]
        assert extract_query_tokens("ticket metro") == ["ticket", "metro"]

    def test_drops_single_characters(self):
        assert extract_query_tokens("x y metro") == ["metro"]

    def test_all_stop_words_is_empty(self):
        assert extract_query_tokens("um the please what") == []

    @pytest.mark.parametrize("value", ["", "   ", None, 42])
    def test_empty_or_non_string(self, value):
        assert extract_query_tokens(value) == []

    def test_deterministic(self):
        query = "Where's the nearest PHARMACY, please?"
        assert extract_query_tokens(query) == extract_query_tokens(query)

    def test_output_has_no_stop_words(self):
        tokens = extract_query_tokens("what is the best way to the metro from here")
        assert not set(tokens) & STOP_WORDS


class TestCleanTranscript:
    def test_removes_speech_artifacts(self):
        assert clean_transcript("Um, I think I need the metro... you know?") == "need metro"

    def test_empty(self):
        assert clean_transcript("") == ""

    def test_normalize_transcript_joins_tokens(self):
        assert normalize_transcript("Where can I eat") == "eat"


class TestSearchIntent:
    def test_short_input_returns_original(self):
        assert extract_search_intent(" um ") == "um"

    def test_returns_cleaned_query(self):
        assert extract_search_intent("uh where is the toilet") == "toilet"

    def test_has_searchable_tokens(self):
        assert has_searchable_tokens("toilet please") is True
        assert has_searchable_tokens("the a please") is False
