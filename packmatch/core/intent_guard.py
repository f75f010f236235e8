"""Intent guard: short-circuit queries with no travel signal.

Runs after stop-word removal and before any scoring. Off-topic input
("what's the weather") gets a friendly redirect instead of a confident
"0 results" screen, while on-topic but rare queries still reach the scorer.
"""

from packmatch.core.schemas_search import GuardDecision
from packmatch.core.situational_concepts import QUERY_TERM_TO_CONCEPT

# Shown instead of "no results found".
NO_SIGNAL_MESSAGE = "Try asking about food, places, or things to do nearby."

_BASE_KEYWORDS = frozenset(
    [
        "eat", "food", "restaurant", "bar", "drink",
        "coffee", "cafe", "museum", "walk", "park",
        "safe", "unsafe", "night", "late",
        "local", "tourist", "area", "neighborhood",
        "lost", "direction", "map", "metro", "bus", "train", "taxi",
        "toilet", "bathroom", "restroom", "wc",
        "pharmacy", "hospital", "doctor", "emergency", "police",
        "atm", "cash", "money", "bank",
        "wifi", "internet", "sim", "phone",
        "hotel", "accommodation", "stay",
        "attraction", "sight", "see", "visit", "tour",
        "shopping", "market", "store", "shop",
        "language", "speak", "say", "communicate",
        "tired", "rest", "overwhelmed",
        "time", "free", "do", "activity", "things",
        "nearby", "close", "far", "distance",
        "recommend", "suggest", "best", "good",
        "avoid", "skip", "tip", "advice", "help", "need",
        "ticket", "airport", "station",
    ]
)

# A token must equal one of these (case-insensitive) to pass the guard.
# Every term the concept mapper understands counts as domain signal too,
# so "starving" reaches the scorer even though it is not a base keyword.
TRAVEL_KEYWORDS = _BASE_KEYWORDS | frozenset(QUERY_TERM_TO_CONCEPT)

# Prompts used when there is nothing to suggest from a pack
DEFAULT_SUGGESTIONS = (
    ("Food & Dining", "Ask: 'Where can I eat?' or 'Late night food'"),
    ("Getting Around", "Ask: 'I'm lost' or 'How do I get to...'"),
    ("Safety & Emergency", "Ask: 'I feel unsafe' or 'Emergency help'"),
    ("Places & Activities", "Ask: 'What to do nearby?' or 'Museums'"),
)


def check_travel_signal(tokens: list[str]) -> GuardDecision:
    """
    Decide whether a tokenized query proceeds to scoring.

    - No tokens left (all stop words)      → no_signal
    - No token exactly matches a keyword   → no_signal
    - Otherwise                            → proceed

    Never raises.
    """
    if not tokens:
        return GuardDecision(proceed=False, message=NO_SIGNAL_MESSAGE)

    if not any(t.lower() in TRAVEL_KEYWORDS for t in tokens):
        return GuardDecision(proceed=False, message=NO_SIGNAL_MESSAGE)

    return GuardDecision(proceed=True)


def has_travel_signal(query: str) -> bool:
    """Looser raw-text check: any keyword appears as a substring."""
    if not query or not isinstance(query, str):
        return False
    lowered = query.lower().strip()
    return any(keyword in lowered for keyword in TRAVEL_KEYWORDS)


def default_suggestions() -> list[dict[str, str]]:
    """Static "Try asking about" prompts."""
    return [
        {"title": title, "prompt": prompt}
        for title, prompt in DEFAULT_SUGGESTIONS
    ]
