"""Anthropic-backed enhancement service.

Each proposal is a single forced tool call grounded in the active pack. The
pipeline validates everything returned here; this module only shapes prompts
and parses replies.
"""

from __future__ import annotations

import json
from typing import Any

from anthropic import AsyncAnthropic

from packmatch.core.config import Settings, get_settings
from packmatch.core.grounding import extract_grounded_locations, pack_text
from packmatch.core.llm import parse_llm_index_list, parse_llm_json_list
from packmatch.core.logging import get_logger
from packmatch.core.schemas_enhancement import (
    ContextProposal,
    EnhancedResult,
    EnhancementContext,
    ScoreProposal,
)

logger = get_logger(__name__)

_SYSTEM = (
    "You help a travel app order and annotate advice it already has. "
    "Only refer to results by index. Never invent advice, places, or results. "
    "Locations must appear in the provided pack data."
)

_RANKING_TOOL = {
    "name": "submit_ranking",
    "description": "Submit result indices from most to least relevant.",
    "input_schema": {
        "type": "object",
        "properties": {"order": {"type": "array", "items": {"type": "integer"}}},
        "required": ["order"],
    },
}

_SCORES_TOOL = {
    "name": "submit_scores",
    "description": "Submit adjusted 0-100 relevance scores for results.",
    "input_schema": {
        "type": "object",
        "properties": {
            "scores": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "index": {"type": "integer"},
                        "score": {"type": "integer", "minimum": 0, "maximum": 100},
                        "reason": {"type": "string"},
                    },
                    "required": ["index", "score"],
                },
            }
        },
        "required": ["scores"],
    },
}

_CONTEXT_TOOL = {
    "name": "submit_context",
    "description": "Submit time-of-day, location and intent notes for results.",
    "input_schema": {
        "type": "object",
        "properties": {
            "annotations": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "index": {"type": "integer"},
                        "time_of_day": {"type": "string"},
                        "location": {"type": "string"},
                        "intent": {"type": "string"},
                    },
                    "required": ["index"],
                },
            }
        },
        "required": ["annotations"],
    },
}


def _pack_summary(context: EnhancementContext) -> str:
    cards = []
    for tier_key, tier in context.pack.iter_tiers():
        for card in tier.cards:
            cards.append(
                {
                    "tier": tier_key,
                    "headline": card.headline,
                    "microSituations": [
                        {"title": m.title, "actions": m.actions} for m in card.micro_situations
                    ],
                }
            )
    return json.dumps({"city": context.city, "cards": cards}, ensure_ascii=False)


def _result_lines(results: list[EnhancedResult]) -> str:
    lines = []
    for i, r in enumerate(results):
        first_action = r.micro_situation.actions[0][:60] if r.micro_situation.actions else ""
        lines.append(
            f"{i}: [{r.relevance_score}] {r.card_headline} / {r.micro_situation.title} - {first_action}"
        )
    return "\n".join(lines)


class AnthropicEnhancementService:
    """EnhancementService backed by the Anthropic Messages API."""

    def __init__(self, settings: Settings | None = None, client: AsyncAnthropic | None = None):
        self.settings = settings or get_settings()
        self.client = client or AsyncAnthropic(api_key=self.settings.ANTHROPIC_API_KEY)

    async def _call_tool(self, tool: dict, prompt: str, max_tokens: int = 400) -> Any:
        """Force a single tool call. Returns its input, or the text reply if no tool was used."""
        response = await self.client.messages.create(
            model=self.settings.ENHANCEMENT_MODEL,
            max_tokens=max_tokens,
            temperature=0.0,
            system=[{"type": "text", "text": _SYSTEM, "cache_control": {"type": "ephemeral"}}],
            messages=[{"role": "user", "content": prompt}],
            tools=[tool],
            tool_choice={"type": "tool", "name": tool["name"]},
        )

        for block in response.content:
            if block.type == "tool_use" and block.name == tool["name"]:
                return block.input

        text = "".join(getattr(b, "text", "") for b in response.content)
        logger.debug(f"{tool['name']} returned text instead of a tool call")
        return text

    async def propose_ranking(
        self, results: list[EnhancedResult], context: EnhancementContext
    ) -> list[int]:
        prompt = (
            f"Travel pack for {context.city}:\n{_pack_summary(context)}\n\n"
            f'User query: "{context.query}"\n\n'
            f"Rank these results by relevance:\n{_result_lines(results)}"
        )
        payload = await self._call_tool(_RANKING_TOOL, prompt, max_tokens=200)
        if isinstance(payload, str):
            return parse_llm_index_list(payload)
        return list(payload.get("order", []))

    async def propose_scores(
        self, results: list[EnhancedResult], context: EnhancementContext
    ) -> list[ScoreProposal]:
        prompt = (
            f'User query: "{context.query}"\n\n'
            f"Adjust relevance scores (0-100) for these results from the {context.city} pack. "
            f"Only score the listed indices.\n{_result_lines(results)}"
        )
        payload = await self._call_tool(_SCORES_TOOL, prompt)
        if isinstance(payload, str):
            return parse_llm_json_list(payload, ScoreProposal)
        return [ScoreProposal.model_validate(s) for s in payload.get("scores", [])]

    async def propose_context(
        self, results: list[EnhancedResult], context: EnhancementContext
    ) -> list[ContextProposal]:
        known_places = extract_grounded_locations(pack_text(context.pack), context.pack)
        prompt = (
            f'User query: "{context.query}"\n'
            f"City: {context.city}\n"
            f"Time of day: {context.time_of_day.value if context.time_of_day else 'unknown'}\n"
            f"User location: {context.user_location or 'unknown'}\n"
            f"Places named in the pack: {', '.join(known_places) or 'none'}\n\n"
            f"Annotate these results with time-of-day relevance, location and user intent. "
            f"Only use locations from the pack.\n{_result_lines(results)}"
        )
        payload = await self._call_tool(_CONTEXT_TOOL, prompt)
        if isinstance(payload, str):
            return parse_llm_json_list(payload, ContextProposal)
        return [ContextProposal.model_validate(a) for a in payload.get("annotations", [])]


def build_enhancement_service(settings: Settings | None = None) -> AnthropicEnhancementService | None:
    """Service for the configured backend, or None when no API key is set."""
    settings = settings or get_settings()
    if not settings.ANTHROPIC_API_KEY:
        logger.info("ANTHROPIC_API_KEY not set; online enhancement disabled")
        return None
    return AnthropicEnhancementService(settings=settings)
