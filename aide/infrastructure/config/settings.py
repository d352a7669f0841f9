"""Configuration settings for the agent core."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AideSettings(BaseSettings):
    """Settings loaded from AIDE_* environment variables."""

    model_config = SettingsConfigDict(env_prefix="AIDE_", env_file=".env", extra="ignore")

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"  # json or console
    service_name: str = "aide-agent"

    # Memory
    embedding_dimensions: int = Field(default=384, ge=1)
    relevance_floor: float = Field(default=0.3, ge=-1.0, le=1.0)
    retrieval_limit: int = Field(default=10, ge=1)
    context_limit: int = Field(default=5, ge=1)
    statistics_size: int = Field(default=5, ge=1)

    # Pipeline
    stage_timeout_seconds: float = Field(default=60.0, gt=0)
    max_revisions: int = Field(default=0, ge=0)  # 0 keeps verifier failures terminal


@lru_cache
def get_settings() -> AideSettings:
    """Get cached settings instance."""
    return AideSettings()
