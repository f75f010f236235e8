"""Pydantic models for the online enhancement pass."""

from pydantic import BaseModel, ConfigDict, Field

from packmatch.core.schemas_pack import Pack
from packmatch.core.schemas_search import MatchResult, TimeOfDay


class ContextAnnotation(BaseModel):
    """Time-of-day / location / intent notes attached to a result."""

    model_config = ConfigDict(frozen=True)

    time_of_day: str | None = None
    location: str | None = None  # Only ever a string found verbatim in the pack
    intent: str | None = None

    def is_empty(self) -> bool:
        return not (self.time_of_day or self.location or self.intent)


class EnhancedResult(MatchResult):
    """A MatchResult after (possibly no-op) enhancement."""

    enhanced: bool = False
    enhancement_reason: str | None = None
    original_score: int = Field(default=0, ge=0, le=100)
    context: ContextAnnotation | None = None

    @classmethod
    def from_match(cls, result: MatchResult) -> "EnhancedResult":
        if isinstance(result, EnhancedResult):
            return result
        return cls(**result.model_dump(), original_score=result.relevance_score)


class EnhancementContext(BaseModel):
    """Inputs the enhancement service may use. The pack is the grounding data."""

    model_config = ConfigDict(frozen=True)

    query: str
    pack: Pack
    time_of_day: TimeOfDay | None = None
    user_location: str | None = None

    @property
    def city(self) -> str:
        return self.pack.city


# -- Raw service proposals (validated before use) ----------------------------


class ScoreProposal(BaseModel):
    index: int
    score: int
    reason: str | None = None


class ContextProposal(BaseModel):
    index: int
    time_of_day: str | None = None
    location: str | None = None
    intent: str | None = None
