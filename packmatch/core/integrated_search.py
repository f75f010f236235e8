"""Local search first, online enhancement later.

    searcher = IntegratedSearch(session, monitor, enhancer)
    result = searcher.run("late night food")
    render(result.outcome)                  # immediate, never waits on network
    if result.enhancement:
        update = await result.enhancement   # may arrive later, or be stale

A newer ``run`` supersedes any in-flight enhancement: the older task still
resolves, but with its original results and ``stale=True``, and it never
reaches ``on_enhanced`` listeners.
"""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

from packmatch.core.connectivity import ConnectivityMonitor
from packmatch.core.enhancement import Enhancer, enhance
from packmatch.core.logging import get_logger
from packmatch.core.schemas_enhancement import EnhancedResult, EnhancementContext
from packmatch.core.schemas_search import ConnectivityState, MatchResult, SearchOutcome, SearchState
from packmatch.core.search_context import SearchOptions
from packmatch.core.search_session import SearchSession, current_time_of_day

logger = get_logger(__name__)

EnhancedListener = Callable[[str, list[EnhancedResult]], None]


@dataclass
class EnhancementUpdate:
    """What an enhancement task resolves to."""

    query: str
    results: list[EnhancedResult] = field(default_factory=list)
    applied: bool = False  # enhancer actually ran for the current query
    stale: bool = False  # superseded by a newer query


@dataclass
class IntegratedSearchResult:
    outcome: SearchOutcome
    connectivity: ConnectivityState
    enhancement: asyncio.Task | None = None  # resolves to EnhancementUpdate


class IntegratedSearch:
    """Couples a SearchSession with connectivity-gated enhancement."""

    def __init__(
        self,
        session: SearchSession,
        monitor: ConnectivityMonitor | None = None,
        enhancer: Enhancer | None = None,
    ):
        self.session = session
        self.monitor = monitor
        self.enhancer = enhancer
        self._generation = 0
        self._listeners: list[EnhancedListener] = []
        self._in_flight: asyncio.Task | None = None

    def on_enhanced(self, listener: EnhancedListener) -> Callable[[], None]:
        """Register for fresh (non-stale) enhancement results."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def run(
        self,
        query: str,
        user_location: str | None = None,
        now: datetime | None = None,
        options: SearchOptions | None = None,
    ) -> IntegratedSearchResult:
        """
        Search synchronously and schedule enhancement when it can apply.

        Enhancement is scheduled only for local results, with a monitor and
        an enhancer configured, from inside a running event loop.
        """
        self._generation += 1
        generation = self._generation

        outcome = self.session.search(query, options)
        connectivity = self.monitor.state if self.monitor else ConnectivityState.OFFLINE

        if not self._can_enhance(outcome):
            return IntegratedSearchResult(outcome=outcome, connectivity=connectivity)

        try:
            asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; skipping enhancement")
            return IntegratedSearchResult(outcome=outcome, connectivity=connectivity)

        context = EnhancementContext(
            query=query,
            pack=self.session.pack,
            time_of_day=(options and options.time_of_day) or current_time_of_day(now),
            user_location=user_location,
        )
        self._in_flight = asyncio.create_task(
            self._enhance(generation, query, outcome.results, context)
        )
        return IntegratedSearchResult(
            outcome=outcome, connectivity=connectivity, enhancement=self._in_flight
        )

    def _can_enhance(self, outcome: SearchOutcome) -> bool:
        return (
            outcome.state == SearchState.LOCAL_RESULTS
            and bool(outcome.results)
            and self.monitor is not None
            and self.enhancer is not None
        )

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation

    async def _enhance(
        self,
        generation: int,
        query: str,
        results: list[MatchResult],
        context: EnhancementContext,
    ) -> EnhancementUpdate:
        originals = [EnhancedResult.from_match(r) for r in results]

        state = await self.monitor.check()
        if not self._is_current(generation):
            return EnhancementUpdate(query=query, results=originals, stale=True)
        if state != ConnectivityState.ONLINE:
            logger.debug(f"Connectivity is {state.value}; enhancement skipped")
            return EnhancementUpdate(query=query, results=originals)

        enhanced = await enhance(results, context, state, self.enhancer)
        if not self._is_current(generation):
            logger.debug(f"Discarding stale enhancement for query: {query!r}")
            return EnhancementUpdate(query=query, results=originals, stale=True)

        for listener in list(self._listeners):
            try:
                listener(query, enhanced)
            except Exception:
                logger.exception("Enhancement listener raised")

        return EnhancementUpdate(query=query, results=enhanced, applied=True)

    def dispose(self) -> None:
        if self._in_flight is not None and not self._in_flight.done():
            self._in_flight.cancel()
        self._in_flight = None
        self._listeners.clear()
