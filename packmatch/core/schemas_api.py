"""Request and response models for the HTTP adapter."""

from pydantic import BaseModel, Field

from packmatch.core.schemas_enhancement import EnhancedResult
from packmatch.core.schemas_search import ConnectivityState, MatchResult, SearchState, TimeOfDay


class SearchResponse(BaseModel):
    city: str
    query: str
    state: SearchState
    message: str | None = None
    results: list[MatchResult] = Field(default_factory=list)
    connectivity: ConnectivityState
    elapsed_ms: float = 0.0


class EnhanceRequest(BaseModel):
    query: str = Field(..., description="Query the displayed results came from")
    user_location: str | None = Field(None, description="Optional user-reported location")
    time_of_day: TimeOfDay | None = Field(None, description="Time context the search used")
    area: str | None = Field(None, description="Neighbourhood context the search used")
    min_score: int | None = Field(None, ge=0, le=100, description="Minimum relevance score")


class EnhanceResponse(BaseModel):
    city: str
    query: str
    state: SearchState
    connectivity: ConnectivityState
    enhanced: bool = False
    results: list[EnhancedResult] = Field(default_factory=list)


class ConnectivityResponse(BaseModel):
    state: ConnectivityState
    monitoring: bool = False


class PackListResponse(BaseModel):
    cities: list[str] = Field(default_factory=list)
    total: int = 0
