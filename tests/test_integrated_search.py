"""Tests for local-first search with deferred enhancement."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from packmatch.core.connectivity import ConnectivityMonitor
from packmatch.core.enhancement import Enhancer
from packmatch.core.integrated_search import IntegratedSearch
from packmatch.core.schemas_enhancement import EnhancedResult
from packmatch.core.schemas_search import ConnectivityState, SearchState
from packmatch.core.search_context import SearchOptions
from packmatch.core.search_session import SearchSession


class RecordingEnhancer(Enhancer):
    """Marks every result enhanced, optionally after a delay."""

    def __init__(self, delay_s: float = 0.0):
        self.delay_s = delay_s
        self.queries: list[str] = []

    async def enhance(self, results, context):
        self.queries.append(context.query)
        if self.delay_s:
            await asyncio.sleep(self.delay_s)
        return [
            EnhancedResult.from_match(r).model_copy(update={"enhanced": True}) for r in results
        ]


@pytest.fixture
def session(paris_pack):
    return SearchSession(paris_pack)


@pytest.fixture
def online_monitor():
    return ConnectivityMonitor(probe=AsyncMock(return_value=0.01))


class TestIntegratedSearch:
    @pytest.mark.asyncio
    async def test_immediate_results_then_enhancement(self, session, online_monitor):
        enhancer = RecordingEnhancer()
        searcher = IntegratedSearch(session, online_monitor, enhancer)
        delivered = []
        searcher.on_enhanced(lambda query, results: delivered.append((query, results)))

        result = searcher.run("metro")

        assert result.outcome.state == SearchState.LOCAL_RESULTS
        assert result.connectivity == ConnectivityState.ONLINE
        assert result.enhancement is not None

        update = await result.enhancement
        assert update.applied is True
        assert update.stale is False
        assert all(r.enhanced for r in update.results)
        assert [q for q, _ in delivered] == ["metro"]

    @pytest.mark.asyncio
    async def test_offline_skips_enhancer(self, session):
        monitor = ConnectivityMonitor(probe=AsyncMock(), passive_online=False)
        enhancer = RecordingEnhancer()
        searcher = IntegratedSearch(session, monitor, enhancer)

        result = searcher.run("metro")
        update = await result.enhancement

        assert result.connectivity == ConnectivityState.OFFLINE
        assert update.applied is False
        assert enhancer.queries == []
        assert [r.key for r in update.results] == [r.key for r in result.outcome.results]
        assert all(not r.enhanced for r in update.results)

    @pytest.mark.asyncio
    async def test_poor_connection_skips_enhancer(self, session):
        monitor = ConnectivityMonitor(probe=AsyncMock(return_value=0.9))
        enhancer = RecordingEnhancer()

        update = await IntegratedSearch(session, monitor, enhancer).run("metro").enhancement

        assert update.applied is False
        assert enhancer.queries == []

    @pytest.mark.asyncio
    async def test_probe_error_keeps_local_results(self, session):
        monitor = ConnectivityMonitor(probe=AsyncMock(side_effect=RuntimeError("boom")))
        enhancer = RecordingEnhancer()

        result = IntegratedSearch(session, monitor, enhancer).run("metro")
        update = await result.enhancement

        assert update.applied is False
        assert enhancer.queries == []
        assert [r.key for r in update.results] == [r.key for r in result.outcome.results]

    @pytest.mark.asyncio
    async def test_options_reach_local_search(self, session, online_monitor):
        options = SearchOptions(min_score=30)
        result = IntegratedSearch(session, online_monitor, RecordingEnhancer()).run(
            "metro", options=options
        )
        update = await result.enhancement

        assert [r.relevance_score for r in result.outcome.results] == [79, 50]
        assert len(update.results) == 2

    @pytest.mark.asyncio
    async def test_newer_query_supersedes(self, session, online_monitor):
        enhancer = RecordingEnhancer(delay_s=0.05)
        searcher = IntegratedSearch(session, online_monitor, enhancer)
        delivered = []
        searcher.on_enhanced(lambda query, results: delivered.append(query))

        first = searcher.run("metro")
        await asyncio.sleep(0.01)
        second = searcher.run("food")

        stale = await first.enhancement
        fresh = await second.enhancement

        assert stale.stale is True
        assert stale.applied is False
        assert [r.key for r in stale.results] == [r.key for r in first.outcome.results]
        assert all(not r.enhanced for r in stale.results)
        assert fresh.stale is False
        assert delivered == ["food"]

    @pytest.mark.asyncio
    async def test_fallback_not_enhanced(self, session, online_monitor):
        searcher = IntegratedSearch(session, online_monitor, RecordingEnhancer())

        result = searcher.run("ticket")

        assert result.outcome.state == SearchState.FALLBACK
        assert result.enhancement is None

    @pytest.mark.asyncio
    async def test_without_enhancer(self, session, online_monitor):
        result = IntegratedSearch(session, online_monitor).run("metro")
        assert result.enhancement is None

    def test_without_event_loop(self, session, online_monitor):
        result = IntegratedSearch(session, online_monitor, RecordingEnhancer()).run("metro")
        assert result.outcome.state == SearchState.LOCAL_RESULTS
        assert result.enhancement is None

    @pytest.mark.asyncio
    async def test_unsubscribe_and_dispose(self, session, online_monitor):
        searcher = IntegratedSearch(session, online_monitor, RecordingEnhancer(delay_s=0.05))
        delivered = []
        unsubscribe = searcher.on_enhanced(lambda query, results: delivered.append(query))
        unsubscribe()

        await searcher.run("metro").enhancement
        assert delivered == []

        task = searcher.run("food").enhancement
        searcher.dispose()
        with pytest.raises(asyncio.CancelledError):
            await task
