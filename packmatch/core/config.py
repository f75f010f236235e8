"""Configuration management for packmatch."""

from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file (only if accessible)
try:
    load_dotenv()
except (PermissionError, OSError):
    # In sandboxed environments, .env might not be accessible
    # Environment variables should be set directly
    pass


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    # Environment
    PACKMATCH_ENV: str = Field(default="dev", description="Environment: dev, test, staging, prod")

    # Pack storage (read-only)
    PACKS_DIR: str = Field(default="data/packs", description="Directory holding <city>.json packs")

    # Search
    STRONG_MATCH_THRESHOLD: int = Field(
        default=25, ge=0, le=100, description="Best score below this triggers fallback"
    )
    FALLBACK_LIMIT: int = Field(default=3, ge=1, description="Max fallback suggestions")
    SEARCH_RESULT_LIMIT: int = Field(default=20, ge=1, description="Max ranked results returned")
    SEARCH_LATENCY_BUDGET_MS: float = Field(
        default=200.0, description="Searches slower than this are logged as warnings"
    )

    # Connectivity
    CONNECTIVITY_PROBE_URL: str = Field(
        default="https://www.google.com/favicon.ico", description="Small resource used for probes"
    )
    CONNECTIVITY_TIMEOUT_MS: int = Field(default=1000, description="Probe timeout")
    CONNECTIVITY_ONLINE_LATENCY_MS: int = Field(
        default=500, description="Probe latency below this counts as online"
    )
    CONNECTIVITY_MIN_CHECK_INTERVAL_MS: int = Field(
        default=2000, description="Minimum spacing between active probes"
    )
    CONNECTIVITY_POLL_INTERVAL_S: float = Field(
        default=30.0, description="Interval for continuous monitoring"
    )

    # Enhancement
    ENHANCEMENT_TIMEOUT_MS: int = Field(default=2000, description="Deadline for the whole pipeline")
    ENHANCEMENT_MODEL: str = Field(
        default="claude-haiku-4-5-20251001", description="Model for online enhancement"
    )
    ENHANCE_RANKING: bool = Field(default=True, description="Run the ranking reorder pass")
    ENHANCE_SCORES: bool = Field(default=True, description="Run the score adjustment pass")
    ENHANCE_CONTEXT: bool = Field(default=True, description="Run the context annotation pass")
    ANTHROPIC_API_KEY: str | None = Field(
        default=None, description="Anthropic API key; enhancement is a no-op without it"
    )

    @property
    def is_dev(self) -> bool:
        return self.PACKMATCH_ENV in ("dev", "test")


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings instance

    Raises:
        ValidationError: If an environment variable has an invalid value
    """
    return Settings()
