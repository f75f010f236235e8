"""Grounding checks for online enhancement.

The active pack is the only source of truth. Anything an enhancement
proposes is checked here before it can reach the user.
"""

import re

from packmatch.core.schemas_pack import Pack
from packmatch.core.schemas_search import MatchResult

_LOCATION_PATTERNS = (
    re.compile(r"\b(?:in|at|near|around)\s+([A-Z][\w'\-]+(?:\s+[A-Z][\w'\-]+)*)"),
    re.compile(r"\b([A-Z][\w'\-]+(?:\s+[A-Z][\w'\-]+)*)\s+(?:area|neighborhood|neighbourhood|district)\b"),
)


def pack_text(pack: Pack) -> str:
    """All human-readable pack content joined into one string."""
    parts = [pack.city, pack.country, pack.description or ""]
    for _, tier in pack.iter_tiers():
        parts.append(tier.title)
        for card in tier.cards:
            parts.append(card.headline)
            for micro in card.micro_situations:
                parts.append(micro.title)
                parts.extend(micro.actions)
                parts.append(micro.what_to_do_instead or "")
    return "\n".join(p for p in parts if p)


def result_in_pack(result: MatchResult, pack: Pack) -> bool:
    """
    True when the result is an unaltered MicroSituation of ``pack``.

    Headline and title must match a pack entry, the micro-situation content
    must be identical, and every matched action must be one of its actions.
    """
    for _, tier in pack.iter_tiers():
        for card in tier.cards:
            if card.headline != result.card_headline:
                continue
            for micro in card.micro_situations:
                if micro.title != result.micro_situation.title:
                    continue
                if micro != result.micro_situation:
                    continue
                if all(a in micro.actions for a in result.matched_actions):
                    return True
    return False


def location_in_pack(location: str, pack: Pack) -> bool:
    """Whole-name, case-insensitive presence of ``location`` in pack content."""
    needle = " ".join(location.split())
    if not needle:
        return False
    pattern = re.compile(rf"(?<!\w){re.escape(needle)}(?!\w)", re.IGNORECASE)
    return bool(pattern.search(pack_text(pack)))


def extract_grounded_locations(text: str, pack: Pack) -> list[str]:
    """Place names mentioned in ``text`` that also appear in the pack."""
    found: list[str] = []
    for pattern in _LOCATION_PATTERNS:
        for match in pattern.finditer(text):
            location = match.group(1).strip()
            if location and location not in found and location_in_pack(location, pack):
                found.append(location)
    return found


def no_new_results(original: list[MatchResult], enhanced: list[MatchResult]) -> bool:
    original_keys = {r.key for r in original}
    return len(enhanced) <= len(original) and all(r.key in original_keys for r in enhanced)


def no_removed_results(original: list[MatchResult], enhanced: list[MatchResult]) -> bool:
    enhanced_keys = {r.key for r in enhanced}
    return all(r.key in enhanced_keys for r in original)
