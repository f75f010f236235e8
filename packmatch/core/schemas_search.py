"""Types produced and consumed by the matching core."""

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from packmatch.core.schemas_pack import MicroSituation, TierKey


# =============================================================================
# Enums
# =============================================================================


class MatchType(str, Enum):
    """Highest-priority signal that fired for a result (UI label only)."""

    SITUATIONAL = "situational"  # Query concepts overlap headline/title concepts
    HEADLINE_TITLE = "headline_title"  # Literal hit in card headline or micro title
    ACTION_ADVICE = "action_advice"  # Hit only in actions or whatToDoInstead
    KEYWORD = "keyword"  # Fuzzy or catch-all substring credit only
    FALLBACK = "fallback"  # Suggestion, not a match

    @property
    def priority(self) -> int:
        return _MATCH_TYPE_PRIORITY[self]

    @property
    def is_title_level(self) -> bool:
        return self in (MatchType.SITUATIONAL, MatchType.HEADLINE_TITLE)


_MATCH_TYPE_PRIORITY = {
    MatchType.SITUATIONAL: 4,
    MatchType.HEADLINE_TITLE: 3,
    MatchType.ACTION_ADVICE: 2,
    MatchType.KEYWORD: 1,
    MatchType.FALLBACK: 0,
}


class ConnectivityState(str, Enum):
    """Network state as seen by the connectivity monitor."""

    ONLINE = "online"
    POOR = "poor"
    OFFLINE = "offline"


class SearchState(str, Enum):
    """How a search was routed."""

    LOCAL_RESULTS = "local_results"  # Strong matches from the pack
    FALLBACK = "fallback"  # No strong match; broadly useful suggestions
    NO_SIGNAL = "no_signal"  # Intent guard rejected the query
    ASK_AGAIN = "ask_again"  # Nothing left after stop-word removal
    NO_PACK = "no_pack"  # No active pack (production guard)


class TimeOfDay(str, Enum):
    EARLY_MORNING = "early_morning"  # 5am - 9am
    MORNING = "morning"  # 9am - 12pm
    AFTERNOON = "afternoon"  # 12pm - 5pm
    EVENING = "evening"  # 5pm - 9pm
    LATE_NIGHT = "late_night"  # 9pm - 2am
    NIGHT = "night"  # 2am - 5am


# =============================================================================
# Index and results
# =============================================================================


@dataclass(frozen=True)
class IndexRecord:
    """One searchable row per MicroSituation. Derived, never persisted."""

    tier: TierKey
    headline: str
    micro_title: str
    actions: tuple[str, ...]
    what_to_do_instead: str | None
    searchable_text: str  # tier title + headline + title + actions + advice, case preserved

    @property
    def key(self) -> tuple[str, str]:
        return (self.headline, self.micro_title)

    def to_micro_situation(self) -> MicroSituation:
        return MicroSituation(
            title=self.micro_title,
            actions=list(self.actions),
            what_to_do_instead=self.what_to_do_instead,
        )


class MatchResult(BaseModel):
    """A MicroSituation returned for a query. Created fresh per query."""

    model_config = ConfigDict(frozen=True)

    card_headline: str
    micro_situation: MicroSituation
    matched_actions: list[str] = Field(default_factory=list)
    relevance_score: int = Field(..., ge=0, le=100)
    match_type: MatchType
    city: str = ""
    tier: TierKey = "tier1"

    @property
    def key(self) -> tuple[str, str]:
        return (self.card_headline, self.micro_situation.title)


class GuardDecision(BaseModel):
    """Outcome of the intent guard."""

    model_config = ConfigDict(frozen=True)

    proceed: bool
    message: str | None = None
    results: list[MatchResult] = Field(default_factory=list)


class SearchOutcome(BaseModel):
    """Everything a caller needs to render a search."""

    state: SearchState
    results: list[MatchResult] = Field(default_factory=list)
    message: str | None = None
    tokens: list[str] = Field(default_factory=list)
    elapsed_ms: float = 0.0

    @property
    def best_score(self) -> int:
        return self.results[0].relevance_score if self.results else 0
