"""Search session: the synchronous search path over one active pack.

A SearchSession is created by the caller for the active pack and owns that
pack's index for its lifetime. Switching cities means building a new
session; there is no process-wide engine.

    session = SearchSession(pack)
    outcome = session.search("um where can I eat")

Flow: normalize → (no tokens: ask again + suggestions) → intent guard
(no signal: redirect, scoring skipped) → score & rank → fallback when the
best score is below the strong-match threshold.
"""

import logging
import time
from datetime import datetime

from packmatch.core.config import Settings, get_settings
from packmatch.core.errors import PackNotLoadedError
from packmatch.core.fallback import needs_fallback, select_fallback
from packmatch.core.intent_guard import check_travel_signal
from packmatch.core.logging import get_logger, log_with_context
from packmatch.core.schemas_pack import Pack
from packmatch.core.schemas_search import (
    IndexRecord,
    MatchResult,
    SearchOutcome,
    SearchState,
    TimeOfDay,
)
from packmatch.core.scoring import DEFAULT_WEIGHTS, ScoringWeights, rank_records
from packmatch.core.search_context import NO_OPTIONS, SearchOptions
from packmatch.core.search_index import build_search_index, index_stats
from packmatch.core.search_messages import outcome_message
from packmatch.core.situational_concepts import get_query_concepts
from packmatch.core.transcript_normalizer import extract_query_tokens

logger = get_logger(__name__)


class SearchSession:
    """Index plus search entry point for one pack."""

    def __init__(
        self,
        pack: Pack,
        settings: Settings | None = None,
        weights: ScoringWeights = DEFAULT_WEIGHTS,
    ):
        """
        Build the index for ``pack``.

        Args:
            pack: Active pack (read only)
            settings: Overrides for thresholds and limits
            weights: Scoring constants
        """
        self._pack = pack
        self._settings = settings or get_settings()
        self._weights = weights

        started = time.perf_counter()
        self._index = build_search_index(pack)
        log_with_context(
            logger,
            logging.INFO,
            "Search index built",
            city=pack.city,
            elapsed_ms=round((time.perf_counter() - started) * 1000, 2),
            **index_stats(self._index),
        )

    @property
    def pack(self) -> Pack:
        return self._pack

    @property
    def city(self) -> str:
        return self._pack.city

    @property
    def index(self) -> tuple[IndexRecord, ...]:
        return self._index

    def suggestions(self) -> list[MatchResult]:
        return select_fallback(self._index, city=self.city, limit=self._settings.FALLBACK_LIMIT)

    def search(self, query: str, options: SearchOptions | None = None) -> SearchOutcome:
        """
        Run the synchronous search path. Never raises for any query text.

        Args:
            query: Typed text or speech transcript
            options: Optional time, area and minimum-score context

        Returns:
            SearchOutcome; results are never empty unless the state is
            no_signal or the pack has no micro-situations
        """
        started = time.perf_counter()
        outcome = self._route(query, options or NO_OPTIONS)
        elapsed_ms = (time.perf_counter() - started) * 1000

        level = logging.DEBUG
        if elapsed_ms > self._settings.SEARCH_LATENCY_BUDGET_MS:
            level = logging.WARNING
        log_with_context(
            logger,
            level,
            "Search complete",
            city=self.city,
            state=outcome.state.value,
            tokens=len(outcome.tokens),
            results=len(outcome.results),
            elapsed_ms=round(elapsed_ms, 2),
        )

        return outcome.model_copy(update={"elapsed_ms": elapsed_ms})

    def _route(self, query: str, options: SearchOptions) -> SearchOutcome:
        tokens = extract_query_tokens(query)

        if not tokens:
            return SearchOutcome(
                state=SearchState.ASK_AGAIN,
                results=self.suggestions(),
                message=outcome_message(SearchState.ASK_AGAIN),
            )

        decision = check_travel_signal(tokens)
        if not decision.proceed:
            return SearchOutcome(
                state=SearchState.NO_SIGNAL,
                results=[],
                message=decision.message,
                tokens=tokens,
            )

        results = rank_records(
            self._index,
            tokens,
            get_query_concepts(tokens),
            city=self.city,
            weights=self._weights,
            limit=self._settings.SEARCH_RESULT_LIMIT,
            options=options,
        )

        if needs_fallback(results, self._settings.STRONG_MATCH_THRESHOLD):
            return SearchOutcome(
                state=SearchState.FALLBACK,
                results=self.suggestions(),
                message=outcome_message(SearchState.FALLBACK),
                tokens=tokens,
            )

        return SearchOutcome(
            state=SearchState.LOCAL_RESULTS,
            results=results,
            message=outcome_message(SearchState.LOCAL_RESULTS, len(results)),
            tokens=tokens,
        )


def search(
    query: str,
    pack: Pack | None,
    settings: Settings | None = None,
    options: SearchOptions | None = None,
) -> SearchOutcome:
    """
    One-shot search against ``pack``.

    Prefer a long-lived SearchSession; this rebuilds the index per call.

    Raises:
        PackNotLoadedError: pack is None in dev/test environments
    """
    settings = settings or get_settings()

    if pack is None:
        if settings.is_dev:
            raise PackNotLoadedError("search() called before any pack was loaded")
        logger.warning("search() called without an active pack")
        return SearchOutcome(state=SearchState.NO_PACK, message=outcome_message(SearchState.NO_PACK))

    return SearchSession(pack, settings=settings).search(query, options)


def current_time_of_day(now: datetime | None = None) -> TimeOfDay:
    """Bucket a local time for search options and context annotation."""
    hour = (now or datetime.now()).hour

    if 5 <= hour < 9:
        return TimeOfDay.EARLY_MORNING
    if 9 <= hour < 12:
        return TimeOfDay.MORNING
    if 12 <= hour < 17:
        return TimeOfDay.AFTERNOON
    if 17 <= hour < 21:
        return TimeOfDay.EVENING
    if hour >= 21 or hour < 2:
        return TimeOfDay.LATE_NIGHT
    return TimeOfDay.NIGHT
