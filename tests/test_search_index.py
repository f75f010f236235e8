"""Tests for the search index builder."""

from packmatch.core.schemas_pack import Pack
from packmatch.core.search_index import build_search_index, index_stats


class TestBuildSearchIndex:
    def test_one_record_per_micro_situation(self, paris_pack):
        index = build_search_index(paris_pack)
        assert len(index) == paris_pack.micro_situation_count() == 6

    def test_stable_order(self, paris_pack):
        index = build_search_index(paris_pack)
        assert [r.micro_title for r in index] == [
            "Public transport",
            "Finding your way",
            "Quick cheap meal",
            "Late night bites",
            "Pickpockets",
            "Wander a neighborhood",
        ]
        assert index[-1].tier == "tier2"

    def test_searchable_text_keeps_case(self, paris_pack):
        record = build_search_index(paris_pack)[0]
        assert record.searchable_text == (
            "Survival 🧭 I'm lost Public transport Buy a Navigo pass "
            "Metro lines run until about 1am Avoid unlicensed taxis at the station"
        )

    def test_whitespace_collapsed(self):
        pack = Pack.model_validate(
            {
                "city": "X",
                "tiers": {
                    "tier1": {
                        "title": "  Survival ",
                        "cards": [
                            {
                                "headline": "Food\n\nnearby",
                                "microSituations": [{"title": "Bakery", "actions": ["Go   early"]}],
                            }
                        ],
                    }
                },
            }
        )
        assert build_search_index(pack)[0].searchable_text == "Survival Food nearby Bakery Go early"

    def test_empty_cards_skipped(self):
        pack = Pack.model_validate(
            {
                "city": "X",
                "tiers": {
                    "tier1": {
                        "title": "Survival",
                        "cards": [{"headline": "Empty"}, {"headline": "Also empty", "microSituations": []}],
                    },
                    "tier2": {"title": "Nothing here"},
                },
            }
        )
        assert build_search_index(pack) == ()

    def test_record_round_trips_micro_situation(self, paris_pack):
        record = build_search_index(paris_pack)[0]
        micro = paris_pack.tiers.tier1.cards[0].micro_situations[0]
        assert record.to_micro_situation() == micro
        assert record.key == ("🧭 I'm lost", "Public transport")

    def test_index_stats(self, paris_pack):
        stats = index_stats(build_search_index(paris_pack))
        assert stats == {"records": 6, "cards": 4, "actions": 10}
