"""
Centralized configuration for LeadPulse.

All settings are loaded from environment variables via .env file.
"""

from functools import lru_cache
from typing import List, Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Service
    app_name: str = Field(default="LeadPulse Scoring API")
    api_version: str = Field(default="1.0.0")

    # OpenAI
    openai_api_key: Optional[str] = Field(default=None)
    openai_sentiment_model: str = Field(default="gpt-4o-mini")
    openai_recommend_model: str = Field(default="gpt-4o-mini")

    # Sentiment
    sentiment_provider: Literal["keyword", "llm"] = Field(default="keyword")
    sentiment_cache_max_entries: int = Field(default=10000, ge=1)

    # Recommendations
    recommend_cache_ttl_minutes: int = Field(default=10)
    agent_max_rounds: int = Field(default=10, ge=1)

    # Scoring config / feedback
    config_history_size: int = Field(default=5, ge=1)
    feedback_window_days: int = Field(default=7, ge=1)

    # API
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=3000)
    cors_origins: str = Field(default="http://localhost:5173")

    # Logging
    log_level: str = Field(default="INFO")
    debug: bool = Field(default=False)

    @field_validator("recommend_cache_ttl_minutes", mode="after")
    @classmethod
    def clamp_recommend_ttl(cls, v: int) -> int:
        """Recommendation TTL is kept between 5 and 15 minutes."""
        return max(5, min(15, v))

    @property
    def cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def llm_enabled(self) -> bool:
        return bool(self.openai_api_key)

    @property
    def use_llm_sentiment(self) -> bool:
        return self.sentiment_provider == "llm" and self.llm_enabled


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
