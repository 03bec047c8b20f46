"""Application configuration using pydantic-settings."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: str = "development"
    log_level: str = "INFO"
    log_dir: str | None = None

    # Manual update authorization
    update_token: str | None = None
    update_rate_limit: str = "10/minute"

    # Dynamic prompt source
    prompt_source_url: str = "https://prompt.hitokoto.natsuki.cloud"
    prompt_source_token: str | None = None
    prompt_source_timeout_seconds: float = 30.0

    # LLM credentials
    gemini_api_key: str | None = None
    openai_api_key: str | None = None

    # Model tiers
    primary_model: str = "gemini-2.5-pro"
    primary_endpoint: str = (
        "https://generativelanguage.googleapis.com/v1beta/openai/chat/completions"
    )
    fallback_model: str = "gemini-2.5-flash"
    fallback_endpoint: str = (
        "https://generativelanguage.googleapis.com/v1beta/openai/chat/completions"
    )
    final_tier_enabled: bool = True
    final_model: str = "gpt-4o"
    final_endpoint: str = "https://api.openai.com/v1/chat/completions"

    # Retry policy
    update_max_attempts: int = 5
    update_retry_delay_seconds: float = 2.0
    escalate_on_server_error: bool = True
    llm_timeout_seconds: float = 120.0

    # Content cache
    cache_backend: str = "memory"
    cache_key: str = "generated_text"
    cache_table: str = "content_cache"
    supabase_url: str | None = None
    supabase_service_key: str | None = None

    # Scheduling
    schedule_enabled: bool = True
    update_interval_seconds: int = 3600
    update_on_startup: bool = True

    def credential(self, ref: str) -> str | None:
        """Resolve a credential slot name (e.g. ``GEMINI_API_KEY``) to its value."""
        value = getattr(self, ref.lower(), None)
        return value or None

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
