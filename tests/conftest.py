"""Pytest configuration and fixtures."""

import json
import os

import pytest

# Must be set before packmatch modules read settings at import time
os.environ["PACKMATCH_ENV"] = "test"
os.environ.pop("ANTHROPIC_API_KEY", None)

from packmatch.core.config import get_settings  # noqa: E402
from packmatch.core.schemas_pack import Pack  # noqa: E402


PARIS_PACK = {
    "city": "Paris",
    "country": "France",
    "description": "Practical help for Paris, from Le Marais to Montmartre.",
    "tiers": {
        "tier1": {
            "title": "Survival",
            "cards": [
                {
                    "headline": "🧭 I'm lost",
                    "icon": "🧭",
                    "microSituations": [
                        {
                            "title": "Public transport",
                            "actions": [
                                "Buy a Navigo pass",
                                "Metro lines run until about 1am",
                            ],
                            "whatToDoInstead": "Avoid unlicensed taxis at the station",
                        },
                        {
                            "title": "Finding your way",
                            "actions": [
                                "Download the offline map before you go",
                                "Ask at a pharmacy for directions",
                            ],
                        },
                    ],
                },
                {
                    "headline": "🍽 I need food nearby",
                    "microSituations": [
                        {
                            "title": "Quick cheap meal",
                            "actions": [
                                "Grab a jambon-beurre from any boulangerie",
                                "Try a crêperie in Montparnasse",
                            ],
                        },
                        {
                            "title": "Late night bites",
                            "actions": ["Kebab shops near Bastille stay open after 1am"],
                        },
                    ],
                },
                {
                    "headline": "🚨 Something feels unsafe",
                    "microSituations": [
                        {
                            "title": "Pickpockets",
                            "actions": [
                                "Keep your phone in a front pocket",
                                "Watch your bag on metro line 1",
                            ],
                            "whatToDoInstead": "Don't sign petitions near Sacré-Cœur",
                        }
                    ],
                },
            ],
        },
        "tier2": {
            "title": "Making the most of it",
            "cards": [
                {
                    "headline": "✨ Free time",
                    "microSituations": [
                        {
                            "title": "Wander a neighborhood",
                            "actions": ["Walk through Le Marais on a Sunday"],
                        }
                    ],
                }
            ],
        },
    },
}


@pytest.fixture(scope="session", autouse=True)
def setup_test_env():
    """Set up test environment variables."""
    os.environ["PACKMATCH_ENV"] = "test"
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def paris_raw() -> dict:
    """Raw pack JSON (deep copy, safe to mutate)."""
    return json.loads(json.dumps(PARIS_PACK))


@pytest.fixture
def paris_pack(paris_raw) -> Pack:
    return Pack.model_validate(paris_raw)


@pytest.fixture
def lost_pack() -> Pack:
    """Single card / single micro pack."""
    return Pack.model_validate(
        {
            "city": "Paris",
            "tiers": {
                "tier1": {
                    "title": "Survival",
                    "cards": [
                        {
                            "headline": "I'm lost",
                            "microSituations": [
                                {"title": "Public transport", "actions": ["Buy a Navigo pass"]}
                            ],
                        }
                    ],
                }
            },
        }
    )


@pytest.fixture
def packs_dir(tmp_path, paris_raw):
    """Directory with paris.json and a broken rome.json."""
    (tmp_path / "paris.json").write_text(json.dumps(paris_raw), encoding="utf-8")
    (tmp_path / "rome.json").write_text("{not json", encoding="utf-8")
    return tmp_path
