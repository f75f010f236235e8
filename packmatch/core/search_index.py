"""Flatten a pack into searchable records.

One IndexRecord per MicroSituation, ordered by tier, then card, then
micro-situation. The index is derived data: rebuilt whenever the active pack
changes and never mutated in place.
"""

import re

from packmatch.core.logging import get_logger
from packmatch.core.schemas_pack import Pack
from packmatch.core.schemas_search import IndexRecord

logger = get_logger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")


def _searchable_text(parts: list[str | None]) -> str:
    """Join non-empty parts with single spaces. Case is preserved."""
    joined = " ".join(p for p in parts if isinstance(p, str) and p)
    return _WHITESPACE_RE.sub(" ", joined).strip()


def build_search_index(pack: Pack) -> tuple[IndexRecord, ...]:
    """
    Build the flattened index for one pack.

    Tiers, cards or micro-situations that are missing or empty are skipped.
    Cost is O(total micro-situations), cheap enough to run on pack load.

    Args:
        pack: Active pack

    Returns:
        Immutable tuple of records in tier → card → micro order
    """
    records: list[IndexRecord] = []

    for tier_key, tier in pack.iter_tiers():
        if not tier.cards:
            continue

        for card in tier.cards:
            if not card.micro_situations:
                continue

            for micro in card.micro_situations:
                records.append(
                    IndexRecord(
                        tier=tier_key,
                        headline=card.headline,
                        micro_title=micro.title,
                        actions=tuple(micro.actions),
                        what_to_do_instead=micro.what_to_do_instead,
                        searchable_text=_searchable_text(
                            [
                                tier.title,
                                card.headline,
                                micro.title,
                                *micro.actions,
                                micro.what_to_do_instead,
                            ]
                        ),
                    )
                )

    return tuple(records)


def index_stats(index: tuple[IndexRecord, ...]) -> dict[str, int]:
    """Counts used in load-time logging."""
    return {
        "records": len(index),
        "cards": len({(r.tier, r.headline) for r in index}),
        "actions": sum(len(r.actions) for r in index),
    }
