"""Tests for fuzzy matching primitives."""

from packmatch.core.fuzzy_match import (
    all_tokens_match_somewhere,
    any_token_matches,
    contains_substring,
    count_token_matches,
    fuzzy_token_match,
    phrase_contains_in_order,
    to_words,
)


class TestToWords:
    def test_lowercases_and_strips_punctuation(self):
        assert to_words("Metro: buy a single ticket!") == ["metro", "buy", "single", "ticket"]

    def test_keeps_apostrophes_and_hyphens(self):
        assert to_words("I'm near jambon-beurre") == ["i'm", "near", "jambon-beurre"]

    def test_empty(self):
        assert to_words("") == []


class TestFuzzyTokenMatch:
    def test_equal(self):
        assert fuzzy_token_match("metro", "Metro")

    def test_containment_both_ways(self):
        assert fuzzy_token_match("metro", "metros")
        assert fuzzy_token_match("metros", "metro")

    def test_no_match(self):
        assert not fuzzy_token_match("bus", "metro")

    def test_empty(self):
        assert not fuzzy_token_match("", "metro")


class TestContentMatching:
    def test_any_token_matches(self):
        assert any_token_matches(["bus", "metro"], "Take the Metro")
        assert not any_token_matches(["bus"], "Take the Metro")

    def test_count_token_matches(self):
        assert count_token_matches(["metro", "bus", "ticket"], "Metro ticket") == 2

    def test_contains_substring(self):
        assert contains_substring("Buy a Navigo pass", "navigo PASS")
        assert not contains_substring("", "x")

    def test_phrase_in_order(self):
        assert phrase_contains_in_order("Metro: buy a single ticket", ["metro", "ticket"])
        assert not phrase_contains_in_order("Metro: buy a single ticket", ["ticket", "metro"])

    def test_all_tokens_match_somewhere(self):
        assert all_tokens_match_somewhere([], "anything")
        assert all_tokens_match_somewhere(["metro", "tick"], "Metro ticket")
        assert not all_tokens_match_somewhere(["metro", "bus"], "Metro ticket")
