"""Relevance scoring for index records.

Signals are additive (a record can earn credit from several) and the total is
capped at 100:

    Situational concept overlap             +50 once
    Headline/title phrase in order          +40
    Exact token in headline                 +35
    Exact token in micro title              +30
    Fuzzy tokens in headline + title        +8 per token, cap +24
    Exact token in an action                +20 per matching action
    Exact token in advice                   +18
    Fuzzy tokens in actions + advice        +4 per token, cap +12
    Whole query found in searchable text    +5
    Each extra distinct matching token      +5, cap +15

With search options, records that already scored get context adjustments:

    Advice suited to the requested time     +10 (timeless advice counts)
    Advice written for another time         -5, never below 1
    Advice naming the requested area        +15

``match_type`` names the highest-priority signal that fired
(situational > headline_title > action_advice > keyword). It labels results
for the UI and plays no part in the score.

The in-order phrase and whole-query checks run on query tokens resolved to
the content words they fuzzy-match, with repeats collapsed. A token that only
re-matches an already matched word therefore never breaks a phrase, which
keeps scores monotone as queries grow.

Weights are tunable and should be re-validated against real query logs.
"""

from dataclasses import dataclass, field

from packmatch.core.fuzzy_match import count_token_matches, fuzzy_token_match, to_words
from packmatch.core.schemas_search import IndexRecord, MatchResult, MatchType
from packmatch.core.search_context import (
    NO_OPTIONS,
    SearchOptions,
    record_mentions_area,
    time_fits,
)
from packmatch.core.situational_concepts import (
    SituationConcept,
    get_item_concepts,
    has_overlap,
)


@dataclass(frozen=True)
class ScoringWeights:
    """Tunable scoring constants."""

    situational: int = 50
    phrase_in_order: int = 40
    headline_exact: int = 35
    title_exact: int = 30
    headline_title_fuzzy_per_token: int = 8
    headline_title_fuzzy_cap: int = 24
    action_exact_per_action: int = 20
    advice_exact: int = 18
    action_advice_fuzzy_per_token: int = 4
    action_advice_fuzzy_cap: int = 12
    query_in_text: int = 5
    extra_token: int = 5
    extra_token_cap: int = 15
    time_match: int = 10
    time_mismatch: int = 5
    area_match: int = 15
    max_score: int = 100


DEFAULT_WEIGHTS = ScoringWeights()


@dataclass(frozen=True)
class RecordScore:
    """Score for one record against one query."""

    score: int
    match_type: MatchType
    matched_actions: tuple[str, ...] = ()
    signals: tuple[str, ...] = field(default=(), compare=False)


# =============================================================================
# Helpers
# =============================================================================


def _resolve_tokens(tokens: list[str], words: list[str]) -> list[str] | None:
    """
    Map each query token to a content word it fuzzy-matches.

    Words already chosen for earlier tokens are preferred, then an exact
    word, then the first fuzzy match in text order. Repeats are collapsed so
    the result is the ordered list of distinct words hit by the query.

    Returns None when some token matches no word at all.
    """
    resolved: list[str] = []
    for token in tokens:
        choice = next((w for w in resolved if fuzzy_token_match(token, w)), None)
        if choice is None:
            choice = next((w for w in words if w == token), None)
        if choice is None:
            choice = next((w for w in words if fuzzy_token_match(token, w)), None)
        if choice is None:
            return None
        if choice not in resolved:
            resolved.append(choice)
    return resolved


def _in_order(sequence: list[str], words: list[str]) -> bool:
    """True if sequence appears in words in order, gaps allowed."""
    position = 0
    for target in sequence:
        try:
            position = words.index(target, position) + 1
        except ValueError:
            return False
    return True


def _contiguous(sequence: list[str], words: list[str]) -> bool:
    """True if sequence appears in words as an unbroken run."""
    n = len(sequence)
    if n == 0:
        return False
    return any(words[i : i + n] == sequence for i in range(len(words) - n + 1))


def _has_exact(tokens: list[str], words: list[str]) -> bool:
    word_set = set(words)
    return any(t in word_set for t in tokens)


# =============================================================================
# Scoring
# =============================================================================


def score_record(
    record: IndexRecord,
    tokens: list[str],
    query_concepts: set[SituationConcept],
    weights: ScoringWeights = DEFAULT_WEIGHTS,
    options: SearchOptions = NO_OPTIONS,
) -> RecordScore:
    """
    Score one record. Pure: same inputs, same output.

    Args:
        record: Index record
        tokens: Normalized query tokens (lowercase)
        query_concepts: Concepts of the query
        weights: Scoring constants
        options: Optional time and area context

    Returns:
        RecordScore with the capped score, match type and matched actions
    """
    if not tokens:
        return RecordScore(score=0, match_type=MatchType.KEYWORD)

    tokens = [t.lower() for t in tokens]
    fired: list[tuple[str, MatchType]] = []
    score = 0

    headline_words = to_words(record.headline)
    title_words = to_words(record.micro_title)
    headline_title_words = headline_words + title_words
    headline_title = f"{record.headline} {record.micro_title}"

    # 1) Situational concepts
    if has_overlap(query_concepts, get_item_concepts(record.headline, record.micro_title)):
        score += weights.situational
        fired.append(("situational", MatchType.SITUATIONAL))

    # 2) Headline / micro title
    resolved = _resolve_tokens(tokens, headline_title_words)
    if resolved and _in_order(resolved, headline_title_words):
        score += weights.phrase_in_order
        fired.append(("phrase_in_order", MatchType.HEADLINE_TITLE))

    if _has_exact(tokens, headline_words):
        score += weights.headline_exact
        fired.append(("headline_exact", MatchType.HEADLINE_TITLE))

    if _has_exact(tokens, title_words):
        score += weights.title_exact
        fired.append(("title_exact", MatchType.HEADLINE_TITLE))

    fuzzy_head_title = count_token_matches(tokens, headline_title)
    if fuzzy_head_title:
        score += min(
            weights.headline_title_fuzzy_cap,
            fuzzy_head_title * weights.headline_title_fuzzy_per_token,
        )
        fired.append(("headline_title_fuzzy", MatchType.HEADLINE_TITLE))

    # 3) Actions / advice
    matched_actions = tuple(a for a in record.actions if _has_exact(tokens, to_words(a)))
    if matched_actions:
        score += weights.action_exact_per_action * len(matched_actions)
        fired.append(("action_exact", MatchType.ACTION_ADVICE))

    advice = record.what_to_do_instead or ""
    if advice and _has_exact(tokens, to_words(advice)):
        score += weights.advice_exact
        fired.append(("advice_exact", MatchType.ACTION_ADVICE))

    action_advice_text = " ".join([*record.actions, advice])
    fuzzy_action_advice = count_token_matches(tokens, action_advice_text)
    if fuzzy_action_advice:
        score += min(
            weights.action_advice_fuzzy_cap,
            fuzzy_action_advice * weights.action_advice_fuzzy_per_token,
        )
        fired.append(("action_advice_fuzzy", MatchType.ACTION_ADVICE))

    # 4) Catch-all over the whole record
    text_words = to_words(record.searchable_text)
    resolved_text = _resolve_tokens(tokens, text_words)
    if resolved_text and _contiguous(resolved_text, text_words):
        score += weights.query_in_text
        fired.append(("query_in_text", MatchType.KEYWORD))

    distinct_matching = count_token_matches(list(dict.fromkeys(tokens)), record.searchable_text)
    if distinct_matching > 1:
        score += min(weights.extra_token_cap, (distinct_matching - 1) * weights.extra_token)
        fired.append(("extra_tokens", MatchType.KEYWORD))

    # 5) Context, only for records the query already hit
    if score > 0 and options.time_of_day is not None:
        if time_fits(record, options.time_of_day):
            score += weights.time_match
            fired.append(("time_of_day", MatchType.KEYWORD))
        else:
            score = max(1, score - weights.time_mismatch)

    if score > 0 and options.area and record_mentions_area(record, options.area):
        score += weights.area_match
        fired.append(("area", MatchType.KEYWORD))

    match_type = max((mt for _, mt in fired), key=lambda mt: mt.priority, default=MatchType.KEYWORD)

    return RecordScore(
        score=min(weights.max_score, score),
        match_type=match_type,
        matched_actions=matched_actions,
        signals=tuple(name for name, _ in fired),
    )


def rank_records(
    index: tuple[IndexRecord, ...],
    tokens: list[str],
    query_concepts: set[SituationConcept],
    city: str = "",
    weights: ScoringWeights = DEFAULT_WEIGHTS,
    limit: int | None = None,
    options: SearchOptions = NO_OPTIONS,
) -> list[MatchResult]:
    """
    Score every record and return ranked, deduplicated results.

    - Records scoring 0, or below ``options.min_score``, are dropped.
    - Records sharing (headline, micro title) collapse into the best-scoring
      one; matched actions from all of them are merged.
    - Order: score desc, then title-level matches before action-only ones,
      then index order.
    """
    best: dict[tuple[str, str], tuple[int, IndexRecord, RecordScore, list[str]]] = {}

    for position, record in enumerate(index):
        scored = score_record(record, tokens, query_concepts, weights, options)
        if scored.score <= 0 or scored.score < (options.min_score or 0):
            continue

        current = best.get(record.key)
        if current is None:
            best[record.key] = (position, record, scored, list(scored.matched_actions))
            continue

        # Merged actions must belong to the record that is kept
        first_position, kept_record, kept_score, actions = current
        if scored.score > kept_score.score:
            kept_record, kept_score = record, scored
            actions = list(scored.matched_actions) + actions
        else:
            actions = actions + list(scored.matched_actions)
        merged = [a for a in dict.fromkeys(actions) if a in kept_record.actions]
        best[record.key] = (first_position, kept_record, kept_score, merged)

    ranked = sorted(
        best.values(),
        key=lambda item: (
            -item[2].score,
            0 if item[2].match_type.is_title_level else 1,
            item[0],
        ),
    )

    results = [
        MatchResult(
            card_headline=record.headline,
            micro_situation=record.to_micro_situation(),
            matched_actions=actions,
            relevance_score=scored.score,
            match_type=scored.match_type,
            city=city,
            tier=record.tier,
        )
        for _, record, scored, actions in ranked
    ]

    return results[:limit] if limit else results
