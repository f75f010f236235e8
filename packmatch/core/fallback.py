"""Fallback suggestions when nothing matches strongly.

Picks a few broadly useful, non time-bound micro-situations so the user is
offered "Try asking about…" content instead of an empty screen.
"""

from packmatch.core.schemas_search import IndexRecord, MatchResult, MatchType

# Best score below this means "no strong match".
STRONG_MATCH_THRESHOLD = 25

BROAD_TERMS = (
    "food", "eat", "restaurant", "lost", "direction", "safe", "thing", "do", "activity",
    "time", "rest", "toilet", "pharmacy", "metro", "bus", "taxi", "coffee", "park", "museum",
    "local", "area", "quick", "transport", "emergency", "free", "nearby", "meal", "around",
    "getting", "walk", "nearest", "public", "bite", "supermarket", "café", "cafe",
)

TIME_SENSITIVE_PHRASES = (
    "late night", "midnight", "2am", "1am", "early morning", "5am", "6am", "7am",
    "after 10", "after hours", "after 1am", "until 1", "5:30am", "1:15am", "12:30am",
)

FALLBACK_MESSAGE = "Here are a few things that usually help. Try asking about food, getting around, or safety."


def fallback_candidate_score(record: IndexRecord) -> int:
    """
    Cheap usefulness heuristic.

    +2 if the text mentions any broadly useful term, -2 if it mentions a
    time-sensitive phrase, +1 if there is at least one action.
    """
    text = " ".join(
        [record.headline, record.micro_title, *record.actions, record.what_to_do_instead or ""]
    ).lower()

    score = 0
    if any(term in text for term in BROAD_TERMS):
        score += 2
    if any(phrase in text for phrase in TIME_SENSITIVE_PHRASES):
        score -= 2
    if record.actions:
        score += 1
    return score


def needs_fallback(results: list[MatchResult], threshold: int = STRONG_MATCH_THRESHOLD) -> bool:
    """True when there are no results or the best one is weak."""
    if not results:
        return True
    return max(r.relevance_score for r in results) < threshold


def select_fallback(
    index: tuple[IndexRecord, ...],
    city: str = "",
    limit: int = 3,
) -> list[MatchResult]:
    """
    Choose up to ``limit`` suggestions from the index.

    Results carry match_type=fallback, relevance_score=0 and no matched
    actions. Ties keep index order. Non-empty whenever the index is.
    """
    ranked = sorted(
        enumerate(index),
        key=lambda item: (-fallback_candidate_score(item[1]), item[0]),
    )

    seen: set[tuple[str, str]] = set()
    suggestions: list[MatchResult] = []
    for _, record in ranked:
        if record.key in seen:
            continue
        seen.add(record.key)
        suggestions.append(
            MatchResult(
                card_headline=record.headline,
                micro_situation=record.to_micro_situation(),
                matched_actions=[],
                relevance_score=0,
                match_type=MatchType.FALLBACK,
                city=city,
                tier=record.tier,
            )
        )
        if len(suggestions) >= limit:
            break

    return suggestions
