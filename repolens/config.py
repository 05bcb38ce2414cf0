"""Application configuration using Pydantic Settings."""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

SUPPORTED_PROVIDERS = {"demo", "gemini", "openai", "github"}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    log_level: str = "INFO"

    # AI provider: demo runs the deterministic heuristics only
    ai_provider: str = "demo"

    # Gemini
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.0-flash"

    # OpenAI-compatible backends
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"
    openai_base_url: str | None = None
    github_token: str = ""
    github_models_endpoint: str = "https://models.inference.ai.azure.com"

    # Generation
    llm_temperature: float = 0.2
    llm_max_tokens: int = 4000
    llm_timeout_seconds: float = 120.0
    llm_max_retries: int = 3
    llm_backoff_seconds: float = 1.0

    # Pipeline
    batch_size: int = 10
    max_concurrent_batches: int = 1
    max_file_size: int = 1 * 1024 * 1024  # 1MB

    @field_validator("ai_provider", mode="before")
    @classmethod
    def validate_provider(cls, v: str) -> str:
        """Normalize provider name and reject unknown providers."""
        provider = str(v or "demo").strip().lower()
        if provider not in SUPPORTED_PROVIDERS:
            raise ValueError(
                f"ai_provider must be one of {sorted(SUPPORTED_PROVIDERS)}, got {v!r}"
            )
        return provider

    @field_validator("batch_size", "max_concurrent_batches", mode="after")
    @classmethod
    def validate_positive(cls, v: int, info) -> int:
        if v < 1:
            raise ValueError(f"{info.field_name} must be at least 1")
        return v

    @property
    def is_demo(self) -> bool:
        return self.ai_provider == "demo"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
