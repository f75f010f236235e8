"""Online enhancement pipeline.

Takes the already-displayed local results and, only when connectivity is
online, lets an external service refine them in up to three passes:

1. Ranking reorder
2. Relevance score adjustment
3. Context annotation (time of day, location, intent)

Every pass is validated against the active pack. The pipeline never adds a
result, never drops an originally valid result, and never surfaces a location
that does not appear verbatim in the pack. Timeouts and failures return the
original results unchanged; nothing here raises to the caller.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Protocol

from packmatch.core.config import Settings, get_settings
from packmatch.core.errors import EnhancementError, EnhancementInvalid
from packmatch.core.grounding import (
    location_in_pack,
    no_new_results,
    no_removed_results,
    result_in_pack,
)
from packmatch.core.logging import get_logger, log_with_context
from packmatch.core.schemas_enhancement import (
    ContextAnnotation,
    ContextProposal,
    EnhancedResult,
    EnhancementContext,
    ScoreProposal,
)
from packmatch.core.schemas_search import ConnectivityState, MatchResult

logger = get_logger(__name__)


# =============================================================================
# Interfaces
# =============================================================================


class Enhancer(ABC):
    """Refines a result set. Implementations must keep every invariant above."""

    @abstractmethod
    async def enhance(
        self,
        results: list[MatchResult],
        context: EnhancementContext,
    ) -> list[EnhancedResult]: ...


class NoOpEnhancer(Enhancer):
    """Identity enhancer for environments without a backend."""

    async def enhance(
        self,
        results: list[MatchResult],
        context: EnhancementContext,
    ) -> list[EnhancedResult]:
        return [EnhancedResult.from_match(r) for r in results]


class EnhancementService(Protocol):
    """External backend consulted by the pipeline. Proposals are untrusted."""

    async def propose_ranking(
        self, results: list[EnhancedResult], context: EnhancementContext
    ) -> list[int]: ...

    async def propose_scores(
        self, results: list[EnhancedResult], context: EnhancementContext
    ) -> list[ScoreProposal]: ...

    async def propose_context(
        self, results: list[EnhancedResult], context: EnhancementContext
    ) -> list[ContextProposal]: ...


# =============================================================================
# Pipeline
# =============================================================================


class EnhancementPipeline(Enhancer):
    """Three validated passes over an EnhancementService, under one deadline."""

    def __init__(self, service: EnhancementService, settings: Settings | None = None):
        self.service = service
        self.settings = settings or get_settings()

    async def enhance(
        self,
        results: list[MatchResult],
        context: EnhancementContext,
    ) -> list[EnhancedResult]:
        originals = [EnhancedResult.from_match(r) for r in results]
        if not originals:
            return []

        # Only pack-valid inputs are enhanced
        valid = [r for r in originals if result_in_pack(r, context.pack)]
        if len(valid) != len(originals):
            logger.warning(
                f"Skipping enhancement: {len(originals) - len(valid)} results not found in pack"
            )
            return originals

        timeout_s = self.settings.ENHANCEMENT_TIMEOUT_MS / 1000
        try:
            enhanced = await asyncio.wait_for(self._run(valid, context), timeout=timeout_s)
        except TimeoutError:
            log_with_context(
                logger,
                logging.INFO,
                "Enhancement timed out, keeping local results",
                city=context.city,
                timeout_ms=self.settings.ENHANCEMENT_TIMEOUT_MS,
            )
            return originals
        except EnhancementError as e:
            log_with_context(
                logger,
                logging.INFO,
                "Enhancement rejected, keeping local results",
                city=context.city,
                reason=str(e),
            )
            return originals
        except Exception as e:
            logger.debug(f"Enhancement service failed, keeping local results: {e}")
            return originals

        log_with_context(
            logger,
            logging.DEBUG,
            "Enhancement applied",
            city=context.city,
            results=len(enhanced),
            changed=sum(1 for r in enhanced if r.enhanced),
        )
        return enhanced

    async def _run(
        self,
        results: list[EnhancedResult],
        context: EnhancementContext,
    ) -> list[EnhancedResult]:
        current = results

        if self.settings.ENHANCE_RANKING:
            current = self._apply_ranking(
                current, await self.service.propose_ranking(current, context)
            )
        if self.settings.ENHANCE_SCORES:
            current = self._apply_scores(
                current, await self.service.propose_scores(current, context)
            )
        if self.settings.ENHANCE_CONTEXT:
            current = self._apply_context(
                current, await self.service.propose_context(current, context), context
            )

        return self._validate_final(results, current, context)

    # -- Passes ---------------------------------------------------------------

    @staticmethod
    def _apply_ranking(results: list[EnhancedResult], order: list[int]) -> list[EnhancedResult]:
        if sorted(order) != list(range(len(results))):
            raise EnhancementInvalid(f"Ranking is not a permutation of {len(results)} results")

        reordered = []
        for position, index in enumerate(order):
            result = results[index]
            if position != index:
                result = result.model_copy(
                    update={"enhanced": True, "enhancement_reason": "Reordered for this query"}
                )
            reordered.append(result)
        return reordered

    @staticmethod
    def _apply_scores(
        results: list[EnhancedResult], proposals: list[ScoreProposal]
    ) -> list[EnhancedResult]:
        updated = list(results)
        seen: set[int] = set()

        for proposal in proposals:
            if not 0 <= proposal.index < len(results) or proposal.index in seen:
                raise EnhancementInvalid(f"Score proposal for unknown result {proposal.index}")
            seen.add(proposal.index)

            score = min(100, max(0, proposal.score))
            result = updated[proposal.index]
            if score == result.relevance_score:
                continue
            updated[proposal.index] = result.model_copy(
                update={
                    "relevance_score": score,
                    "enhanced": True,
                    "enhancement_reason": proposal.reason or result.enhancement_reason,
                }
            )

        return updated

    @staticmethod
    def _apply_context(
        results: list[EnhancedResult],
        proposals: list[ContextProposal],
        context: EnhancementContext,
    ) -> list[EnhancedResult]:
        updated = list(results)
        seen: set[int] = set()

        for proposal in proposals:
            if not 0 <= proposal.index < len(results) or proposal.index in seen:
                raise EnhancementInvalid(f"Context proposal for unknown result {proposal.index}")
            seen.add(proposal.index)

            location = proposal.location
            if location and not location_in_pack(location, context.pack):
                logger.info(f"Stripped ungrounded location from enhancement: {location!r}")
                location = None

            annotation = ContextAnnotation(
                time_of_day=proposal.time_of_day,
                location=location,
                intent=proposal.intent,
            )
            if annotation.is_empty():
                continue

            updated[proposal.index] = updated[proposal.index].model_copy(
                update={"context": annotation, "enhanced": True}
            )

        return updated

    # -- Invariants -----------------------------------------------------------

    @staticmethod
    def _validate_final(
        original: list[EnhancedResult],
        enhanced: list[EnhancedResult],
        context: EnhancementContext,
    ) -> list[EnhancedResult]:
        contained = [r for r in enhanced if result_in_pack(r, context.pack)]
        if len(contained) != len(enhanced):
            logger.warning(f"Discarded {len(enhanced) - len(contained)} ungrounded results")

        if not no_new_results(original, contained):
            raise EnhancementInvalid("Enhancement introduced new results")
        if not no_removed_results(original, contained):
            raise EnhancementInvalid("Enhancement removed original results")
        return contained


async def enhance(
    results: list[MatchResult],
    context: EnhancementContext,
    connectivity: ConnectivityState,
    enhancer: Enhancer | None = None,
) -> list[EnhancedResult]:
    """
    Connectivity-gated entry point.

    Returns the input unchanged (as EnhancedResult) unless ``connectivity``
    is online and an enhancer is available.
    """
    if connectivity != ConnectivityState.ONLINE or enhancer is None:
        return [EnhancedResult.from_match(r) for r in results]
    return await enhancer.enhance(results, context)
