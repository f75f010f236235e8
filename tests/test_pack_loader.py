"""Tests for reading packs from disk."""

import pytest

from packmatch.core.errors import PackInvalidError, PackNotFoundError
from packmatch.core.pack_loader import PackStore, load_pack, normalize_city_name, parse_pack


class TestNormalizeCityName:
    @pytest.mark.parametrize(
        "name,expected",
        [
            ("Paris", "paris"),
            ("Paris, France", "paris"),
            ("  New York  ", "new-york"),
            ("São Paulo", "são-paulo"),
            ("../etc/passwd", "etcpasswd"),
        ],
    )
    def test_normalize(self, name, expected):
        assert normalize_city_name(name) == expected


class TestParsePack:
    def test_valid(self, paris_raw):
        assert parse_pack(paris_raw).city == "Paris"

    def test_missing_tier1(self):
        with pytest.raises(PackInvalidError) as exc:
            parse_pack({"city": "Oslo", "tiers": {}})
        assert exc.value.city == "Oslo"

    def test_not_an_object(self):
        with pytest.raises(PackInvalidError):
            parse_pack(["not", "a", "pack"], "oslo")


class TestPackStore:
    def test_load(self, packs_dir):
        pack = PackStore(packs_dir).load("Paris, France")
        assert pack.city == "Paris"
        assert pack.micro_situation_count() == 6

    def test_missing_city(self, packs_dir):
        with pytest.raises(PackNotFoundError) as exc:
            PackStore(packs_dir).load("Berlin")
        assert "berlin" in str(exc.value)

    def test_empty_city(self, packs_dir):
        with pytest.raises(PackNotFoundError):
            PackStore(packs_dir).load("  ")

    def test_invalid_json(self, packs_dir):
        with pytest.raises(PackInvalidError):
            PackStore(packs_dir).load("rome")

    def test_available_cities(self, packs_dir):
        assert PackStore(packs_dir).available_cities() == ["paris", "rome"]

    def test_missing_directory(self, tmp_path):
        store = PackStore(tmp_path / "nope")
        assert store.available_cities() == []
        assert store.has_pack("paris") is False

    def test_has_pack(self, packs_dir):
        store = PackStore(packs_dir)
        assert store.has_pack("Paris")
        assert not store.has_pack("Berlin")

    def test_load_pack_helper(self, packs_dir):
        assert load_pack("paris", packs_dir).country == "France"
