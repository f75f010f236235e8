"""Situational concepts: map how people talk to what a card is about.

A coarse layer above literal keywords. "I'm starving" has no token in
common with "🍽 I need food nearby", but both map to FOOD.
"""

import re
from enum import Enum


class SituationConcept(str, Enum):
    """Closed set of situations a pack card can be about."""

    FOOD = "food"
    LOST = "lost"
    FREETIME = "freetime"
    SAFETY = "safety"
    TIRED = "tired"
    LANGUAGE = "language"
    DISCOVER = "discover"
    TOILET = "toilet"
    PHARMACY = "pharmacy"
    EMERGENCY = "emergency"
    CASH = "cash"


# Every concept needs a label; checked below so a new member cannot be
# added without one.
CONCEPT_LABELS: dict[SituationConcept, str] = {
    SituationConcept.FOOD: "Food & drink",
    SituationConcept.LOST: "Getting around",
    SituationConcept.FREETIME: "Things to do",
    SituationConcept.SAFETY: "Safety",
    SituationConcept.TIRED: "Rest & recharge",
    SituationConcept.LANGUAGE: "Language help",
    SituationConcept.DISCOVER: "Local discoveries",
    SituationConcept.TOILET: "Toilets",
    SituationConcept.PHARMACY: "Pharmacy",
    SituationConcept.EMERGENCY: "Emergency",
    SituationConcept.CASH: "Cash & ATMs",
}

_unlabelled = set(SituationConcept) - set(CONCEPT_LABELS)
if _unlabelled:
    raise RuntimeError(f"SituationConcept members without a label: {sorted(c.value for c in _unlabelled)}")

_C = SituationConcept

# How travellers phrase things → concept
QUERY_TERM_TO_CONCEPT: dict[str, SituationConcept] = {
    # Food
    "hungry": _C.FOOD, "eat": _C.FOOD, "eating": _C.FOOD, "food": _C.FOOD,
    "restaurant": _C.FOOD, "meal": _C.FOOD, "bite": _C.FOOD, "lunch": _C.FOOD,
    "dinner": _C.FOOD, "breakfast": _C.FOOD, "starving": _C.FOOD, "cafe": _C.FOOD,
    "café": _C.FOOD, "coffee": _C.FOOD, "drink": _C.FOOD, "bakery": _C.FOOD,
    "boulangerie": _C.FOOD,
    # Navigation
    "lost": _C.LOST, "direction": _C.LOST, "directions": _C.LOST, "finding": _C.LOST,
    "find": _C.LOST, "around": _C.LOST, "getting": _C.LOST, "metro": _C.LOST,
    "bus": _C.LOST, "taxi": _C.LOST, "transport": _C.LOST, "transit": _C.LOST,
    "navigate": _C.LOST, "walk": _C.LOST,
    # Free time
    "free": _C.FREETIME, "time": _C.FREETIME, "activity": _C.FREETIME,
    "activities": _C.FREETIME, "bored": _C.FREETIME, "things": _C.FREETIME,
    "do": _C.FREETIME, "museum": _C.FREETIME, "park": _C.FREETIME,
    # Safety
    "safe": _C.SAFETY, "unsafe": _C.SAFETY, "scared": _C.SAFETY, "wrong": _C.SAFETY,
    "scam": _C.SAFETY, "suspicious": _C.SAFETY, "pickpocket": _C.SAFETY,
    "stolen": _C.SAFETY,
    # Emergency
    "emergency": _C.EMERGENCY, "police": _C.EMERGENCY, "hospital": _C.EMERGENCY,
    "doctor": _C.EMERGENCY, "embassy": _C.EMERGENCY, "consulate": _C.EMERGENCY,
    # Tired / overwhelmed
    "tired": _C.TIRED, "overwhelm": _C.TIRED, "overwhelmed": _C.TIRED, "rest": _C.TIRED,
    "break": _C.TIRED, "quiet": _C.TIRED, "calm": _C.TIRED,
    # Language
    "phrase": _C.LANGUAGE, "phrases": _C.LANGUAGE, "language": _C.LANGUAGE,
    "say": _C.LANGUAGE, "speak": _C.LANGUAGE, "order": _C.LANGUAGE,
    "english": _C.LANGUAGE, "translate": _C.LANGUAGE,
    # Discovery
    "discover": _C.DISCOVER, "spontaneous": _C.DISCOVER, "local": _C.DISCOVER,
    "hidden": _C.DISCOVER, "off": _C.DISCOVER,  # "off the beaten path"
    # Facilities
    "toilet": _C.TOILET, "bathroom": _C.TOILET, "restroom": _C.TOILET,
    "loo": _C.TOILET, "wc": _C.TOILET,
    "pharmacy": _C.PHARMACY, "medicine": _C.PHARMACY,
    "atm": _C.CASH, "cash": _C.CASH, "money": _C.CASH,
}

# Words in headlines / micro titles → concept
CONTENT_WORD_TO_CONCEPT: dict[str, SituationConcept] = {
    "food": _C.FOOD, "eat": _C.FOOD, "eating": _C.FOOD, "meal": _C.FOOD,
    "restaurant": _C.FOOD, "bite": _C.FOOD, "lunch": _C.FOOD, "dinner": _C.FOOD,
    "breakfast": _C.FOOD, "café": _C.FOOD, "cafe": _C.FOOD, "coffee": _C.FOOD,
    "lost": _C.LOST, "direction": _C.LOST, "around": _C.LOST, "getting": _C.LOST,
    "metro": _C.LOST, "transport": _C.LOST, "taxi": _C.LOST, "bus": _C.LOST,
    "free": _C.FREETIME, "time": _C.FREETIME, "activity": _C.FREETIME,
    "bored": _C.FREETIME,
    "safe": _C.SAFETY, "safety": _C.SAFETY, "scam": _C.SAFETY,
    "suspicious": _C.SAFETY, "off": _C.SAFETY,  # "something feels off"
    "tired": _C.TIRED, "overwhelm": _C.TIRED, "rest": _C.TIRED,
    "phrase": _C.LANGUAGE, "language": _C.LANGUAGE, "say": _C.LANGUAGE,
    "order": _C.LANGUAGE,
    "discover": _C.DISCOVER, "spontaneous": _C.DISCOVER, "local": _C.DISCOVER,
    "toilet": _C.TOILET, "bathroom": _C.TOILET,
    "pharmacy": _C.PHARMACY, "medicine": _C.PHARMACY,
    "emergency": _C.EMERGENCY, "police": _C.EMERGENCY, "hospital": _C.EMERGENCY,
    "atm": _C.CASH, "cash": _C.CASH,
}

_EMOJI_RE = re.compile("[\U0001F300-\U0001FAFF\u2300-\u23FF\u2600-\u27BF\uFE0F\u200D]")
_PUNCT_RE = re.compile(r"[^\w\s'\-]")


def _content_words(text: str) -> list[str]:
    """Emoji and punctuation stripped, lowercased words of length > 1."""
    if not text:
        return []
    cleaned = _EMOJI_RE.sub(" ", text)
    cleaned = _PUNCT_RE.sub(" ", cleaned.lower())
    return [w for w in cleaned.split() if len(w) > 1]


def get_query_concepts(tokens: list[str]) -> set[SituationConcept]:
    """Concepts expressed by a tokenized query."""
    return {
        QUERY_TERM_TO_CONCEPT[t.lower()]
        for t in tokens
        if t.lower() in QUERY_TERM_TO_CONCEPT
    }


def get_item_concepts(headline: str, micro_title: str) -> set[SituationConcept]:
    """Concepts a card headline + micro title are about."""
    words = _content_words(headline) + _content_words(micro_title)
    return {CONTENT_WORD_TO_CONCEPT[w] for w in words if w in CONTENT_WORD_TO_CONCEPT}


def has_overlap(a: set[SituationConcept], b: set[SituationConcept]) -> bool:
    """True iff the two concept sets intersect."""
    return bool(a & b)
