"""Application configuration."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings (environment variables)."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # LLM gateway (any OpenAI-compatible chat completion endpoint)
    llm_api_key: str = ""
    llm_base_url: str = "https://api.openai.com/v1"
    llm_model: str = "gpt-3.5-turbo"
    llm_temperature: float = 0.3
    llm_max_tokens: int = 1000
    llm_timeout_seconds: float = 60.0

    # Approximate provider price per 1K tokens
    usage_unit_rate: float = 0.001

    # App
    database_url: str = "sqlite+aiosqlite:///./storyjournal.db"
    log_level: str = "INFO"

    @property
    def llm_configured(self) -> bool:
        return bool(self.llm_api_key)


@lru_cache
def get_settings() -> Settings:
    """Get application settings (cached)."""
    return Settings()
