"""Tests for the online enhancement pipeline."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from packmatch.core.config import Settings
from packmatch.core.enhancement import EnhancementPipeline, Enhancer, NoOpEnhancer, enhance
from packmatch.core.grounding import result_in_pack
from packmatch.core.schemas_enhancement import (
    ContextProposal,
    EnhancedResult,
    EnhancementContext,
    ScoreProposal,
)
from packmatch.core.schemas_search import ConnectivityState
from packmatch.core.search_session import SearchSession


def _fields(results):
    return [
        (r.key, r.relevance_score, r.match_type, r.matched_actions, r.micro_situation)
        for r in results
    ]


@pytest.fixture
def results(paris_pack):
    # Public transport (79), Finding your way (50), Pickpockets (29)
    return SearchSession(paris_pack).search("metro").results


@pytest.fixture
def context(paris_pack):
    return EnhancementContext(query="metro", pack=paris_pack)


@pytest.fixture
def service():
    """Service that proposes no changes unless a test overrides it."""
    mock = MagicMock()
    mock.propose_ranking = AsyncMock(return_value=[0, 1, 2])
    mock.propose_scores = AsyncMock(return_value=[])
    mock.propose_context = AsyncMock(return_value=[])
    return mock


@pytest.fixture
def pipeline(service):
    return EnhancementPipeline(service, settings=Settings(ENHANCEMENT_TIMEOUT_MS=500))


class TestConnectivityGate:
    @pytest.mark.asyncio
    async def test_offline_never_invokes_enhancer(self, results, context):
        enhancer = MagicMock(spec=Enhancer)
        enhancer.enhance = AsyncMock()

        out = await enhance(results, context, ConnectivityState.OFFLINE, enhancer)

        enhancer.enhance.assert_not_awaited()
        assert _fields(out) == _fields(results)
        assert all(not r.enhanced for r in out)

    @pytest.mark.asyncio
    async def test_poor_never_invokes_enhancer(self, results, context):
        enhancer = MagicMock(spec=Enhancer)
        enhancer.enhance = AsyncMock()

        await enhance(results, context, ConnectivityState.POOR, enhancer)
        enhancer.enhance.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_online_invokes_enhancer(self, results, context):
        enhancer = MagicMock(spec=Enhancer)
        enhancer.enhance = AsyncMock(return_value=[])

        await enhance(results, context, ConnectivityState.ONLINE, enhancer)
        enhancer.enhance.assert_awaited_once_with(results, context)

    @pytest.mark.asyncio
    async def test_no_enhancer_is_identity(self, results, context):
        out = await enhance(results, context, ConnectivityState.ONLINE, None)
        assert _fields(out) == _fields(results)

    @pytest.mark.asyncio
    async def test_noop_enhancer(self, results, context):
        out = await NoOpEnhancer().enhance(results, context)
        assert _fields(out) == _fields(results)
        assert [r.original_score for r in out] == [79, 50, 29]


class TestRankingPass:
    @pytest.mark.asyncio
    async def test_reorders(self, pipeline, service, results, context):
        service.propose_ranking.return_value = [2, 1, 0]

        out = await pipeline.enhance(results, context)

        assert [r.micro_situation.title for r in out] == [
            "Pickpockets",
            "Finding your way",
            "Public transport",
        ]
        assert [r.enhanced for r in out] == [True, False, True]

    @pytest.mark.asyncio
    async def test_partial_ranking_rejected(self, pipeline, service, results, context):
        service.propose_ranking.return_value = [2, 2, 0]

        out = await pipeline.enhance(results, context)
        assert _fields(out) == _fields(results)

    @pytest.mark.asyncio
    async def test_disabled_pass_not_called(self, service, results, context):
        pipeline = EnhancementPipeline(service, settings=Settings(ENHANCE_RANKING=False))
        await pipeline.enhance(results, context)
        service.propose_ranking.assert_not_awaited()
        service.propose_scores.assert_awaited_once()


class TestScorePass:
    @pytest.mark.asyncio
    async def test_adjusts_and_clamps(self, pipeline, service, results, context):
        service.propose_scores.return_value = [
            ScoreProposal(index=0, score=150, reason="Exactly about the metro"),
            ScoreProposal(index=2, score=-5),
        ]

        out = await pipeline.enhance(results, context)

        assert [r.relevance_score for r in out] == [100, 50, 0]
        assert [r.original_score for r in out] == [79, 50, 29]
        assert out[0].enhancement_reason == "Exactly about the metro"
        assert out[1].enhanced is False

    @pytest.mark.asyncio
    async def test_unknown_index_rejected(self, pipeline, service, results, context):
        service.propose_scores.return_value = [ScoreProposal(index=7, score=90)]

        out = await pipeline.enhance(results, context)
        assert _fields(out) == _fields(results)


class TestContextPass:
    @pytest.mark.asyncio
    async def test_ungrounded_location_stripped(self, pipeline, service, results, context):
        service.propose_context.return_value = [ContextProposal(index=0, location="Atlantis")]

        out = await pipeline.enhance(results, context)

        assert out == [EnhancedResult.from_match(r) for r in results]
        assert out[0].context is None

    @pytest.mark.asyncio
    async def test_only_location_removed(self, pipeline, service, results, context):
        service.propose_context.return_value = [
            ContextProposal(index=0, location="Atlantis", intent="getting home", time_of_day="late_night")
        ]

        out = await pipeline.enhance(results, context)

        assert out[0].context.location is None
        assert out[0].context.intent == "getting home"
        assert out[0].context.time_of_day == "late_night"
        assert _fields(out) == _fields(results)

    @pytest.mark.asyncio
    async def test_grounded_location_kept(self, pipeline, service, results, context):
        service.propose_context.return_value = [ContextProposal(index=1, location="Le Marais")]

        out = await pipeline.enhance(results, context)
        assert out[1].context.location == "Le Marais"
        assert out[1].enhanced is True


class TestFailureModes:
    @pytest.mark.asyncio
    async def test_timeout_returns_original(self, service, results, context):
        async def slow(*args):
            await asyncio.sleep(1)
            return [2, 1, 0]

        service.propose_ranking.side_effect = slow
        pipeline = EnhancementPipeline(service, settings=Settings(ENHANCEMENT_TIMEOUT_MS=20))

        out = await pipeline.enhance(results, context)
        assert _fields(out) == _fields(results)
        assert all(not r.enhanced for r in out)

    @pytest.mark.asyncio
    async def test_service_error_returns_original(self, pipeline, service, results, context):
        service.propose_scores.side_effect = RuntimeError("backend down")

        out = await pipeline.enhance(results, context)
        assert _fields(out) == _fields(results)

    @pytest.mark.asyncio
    async def test_later_failure_discards_earlier_passes(self, pipeline, service, results, context):
        service.propose_ranking.return_value = [2, 1, 0]
        service.propose_context.return_value = [ContextProposal(index=9, intent="x")]

        out = await pipeline.enhance(results, context)
        assert _fields(out) == _fields(results)

    @pytest.mark.asyncio
    async def test_results_outside_pack_not_enhanced(self, pipeline, service, results, context):
        forged = results[0].model_copy(update={"card_headline": "Invented"})

        out = await pipeline.enhance([forged, *results[1:]], context)

        service.propose_ranking.assert_not_awaited()
        assert out[0].card_headline == "Invented"
        assert all(not r.enhanced for r in out)

    @pytest.mark.asyncio
    async def test_empty_results(self, pipeline, service, context):
        assert await pipeline.enhance([], context) == []
        service.propose_ranking.assert_not_awaited()


class TestInvariants:
    @pytest.mark.asyncio
    async def test_containment_and_count(self, pipeline, service, results, context, paris_pack):
        service.propose_ranking.return_value = [1, 2, 0]
        service.propose_scores.return_value = [ScoreProposal(index=1, score=95)]
        service.propose_context.return_value = [
            ContextProposal(index=0, location="Bastille", intent="late food"),
            ContextProposal(index=2, location="Mars"),
        ]

        out = await pipeline.enhance(results, context)

        assert len(out) == len(results)
        assert {r.key for r in out} == {r.key for r in results}
        assert all(result_in_pack(r, paris_pack) for r in out)
        for r in out:
            if r.context and r.context.location:
                assert r.context.location in ("Bastille",)
