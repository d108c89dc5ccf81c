"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

DEFAULT_MODEL_CHAIN = ("gemini-2.5-flash", "gemini-2.5-pro")
OPENAI_MODEL_CHAIN = ("gpt-4.1-mini", "gpt-4.1")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str | None = None
    supabase_anon_key: str | None = None
    ai_provider: str = "gemini"
    gemini_api_key: str | None = None
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    openai_api_key: str | None = None
    ai_model_chain: str | None = None
    ai_max_attempts: int = 4
    ai_base_retry_delay_seconds: float = 2.0
    local_store_path: str = ".cravecare/local-store.json"
    timezone: str = "Asia/Kolkata"
    tokens_per_cheat_day: int = 5
    max_healthy_meal_tokens_per_day: int = 2
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    @property
    def ai_api_key(self) -> str | None:
        """Return the credential for the configured AI provider."""
        if self.ai_provider == "openai":
            return self.openai_api_key
        return self.gemini_api_key

    @property
    def model_chain(self) -> tuple[str, ...]:
        """Return the model fallback chain for the configured provider."""
        default = (
            OPENAI_MODEL_CHAIN if self.ai_provider == "openai" else DEFAULT_MODEL_CHAIN
        )
        return parse_model_chain(self.ai_model_chain, default)

    @property
    def remote_enabled(self) -> bool:
        """Return whether a hosted backend is configured."""
        return bool(self.supabase_url and self.supabase_anon_key)


def parse_model_chain(
    raw: str | None, default: tuple[str, ...] = DEFAULT_MODEL_CHAIN
) -> tuple[str, ...]:
    """Parse a comma-separated model fallback chain from env."""
    if raw is None:
        return default
    models = tuple(chunk.strip() for chunk in raw.split(",") if chunk.strip())
    return models or default
