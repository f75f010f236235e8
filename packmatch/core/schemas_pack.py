"""Pydantic models for downloaded city packs.

A pack is the unit of offline download: Pack → Tier → Card → MicroSituation.
Only ``tier1`` is guaranteed; ``tier2``..``tier4`` are optional.

Pack JSON uses camelCase keys (``microSituations``, ``whatToDoInstead``);
both the wire names and the snake_case field names are accepted.
Malformed list entries are dropped at parse time instead of failing the
whole pack, so a partially broken download still searches.
"""

from collections.abc import Iterator
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from packmatch.core.logging import get_logger

logger = get_logger(__name__)

TierKey = Literal["tier1", "tier2", "tier3", "tier4"]
TIER_KEYS: tuple[TierKey, ...] = ("tier1", "tier2", "tier3", "tier4")


def _drop_malformed(value: Any, kind: str) -> list:
    """Keep only object-like entries of a list field."""
    if value is None:
        return []
    if not isinstance(value, list):
        logger.warning(f"Expected a list of {kind}, got {type(value).__name__}; skipping")
        return []
    kept = [v for v in value if isinstance(v, (dict, BaseModel))]
    if len(kept) != len(value):
        logger.warning(f"Skipped {len(value) - len(kept)} malformed {kind} entries")
    return kept


def _has_headline(card: Any) -> bool:
    headline = card.get("headline") if isinstance(card, dict) else getattr(card, "headline", None)
    return isinstance(headline, str) and bool(headline.strip())


class MicroSituation(BaseModel):
    """The atomic answer unit: ordered actions plus an optional caveat."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    title: str = ""
    actions: list[str] = Field(default_factory=list)
    what_to_do_instead: str | None = Field(default=None, alias="whatToDoInstead")

    @field_validator("title", mode="before")
    @classmethod
    def _title_or_empty(cls, v: Any) -> str:
        return v if isinstance(v, str) else ""

    @field_validator("actions", mode="before")
    @classmethod
    def _string_actions(cls, v: Any) -> list[str]:
        if not isinstance(v, list):
            return []
        return [a for a in v if isinstance(a, str) and a.strip()]

    @field_validator("what_to_do_instead", mode="before")
    @classmethod
    def _blank_advice_is_none(cls, v: Any) -> str | None:
        if isinstance(v, str) and v.strip():
            return v
        return None


class Card(BaseModel):
    """A broad problem category, e.g. "🧭 I'm lost / getting around"."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    headline: str = ""
    icon: str | None = None
    micro_situations: list[MicroSituation] = Field(default_factory=list, alias="microSituations")

    @field_validator("headline", mode="before")
    @classmethod
    def _headline_or_empty(cls, v: Any) -> str:
        return v if isinstance(v, str) else ""

    @field_validator("micro_situations", mode="before")
    @classmethod
    def _skip_bad_micros(cls, v: Any) -> list:
        return _drop_malformed(v, "microSituations")


class Tier(BaseModel):
    """Ordered priority grouping of cards."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    title: str = ""
    cards: list[Card] = Field(default_factory=list)

    @field_validator("title", mode="before")
    @classmethod
    def _title_or_empty(cls, v: Any) -> str:
        return v if isinstance(v, str) else ""

    @field_validator("cards", mode="before")
    @classmethod
    def _skip_bad_cards(cls, v: Any) -> list:
        cards = _drop_malformed(v, "cards")
        kept = [c for c in cards if _has_headline(c)]
        if len(kept) != len(cards):
            logger.warning(f"Skipped {len(cards) - len(kept)} cards without a headline")
        return kept


class PackTiers(BaseModel):
    """Tier slots. tier1 is required, the rest are optional."""

    model_config = ConfigDict(frozen=True)

    tier1: Tier
    tier2: Tier | None = None
    tier3: Tier | None = None
    tier4: Tier | None = None

    @field_validator("tier2", "tier3", "tier4", mode="before")
    @classmethod
    def _optional_tier(cls, v: Any) -> Any:
        # A garbage optional tier is treated as absent
        if v is None or isinstance(v, (dict, BaseModel)):
            return v
        logger.warning(f"Ignoring malformed optional tier of type {type(v).__name__}")
        return None


class Pack(BaseModel):
    """Offline content bundle for one city."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    city: str
    country: str = ""
    description: str | None = None
    tiers: PackTiers

    def iter_tiers(self) -> Iterator[tuple[TierKey, Tier]]:
        """Yield present tiers in precedence order."""
        for key in TIER_KEYS:
            tier = getattr(self.tiers, key)
            if tier is not None:
                yield key, tier

    def micro_situation_count(self) -> int:
        return sum(
            len(card.micro_situations) for _, tier in self.iter_tiers() for card in tier.cards
        )
