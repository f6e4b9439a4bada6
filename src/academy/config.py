"""Centralized application configuration.

All settings are read from environment variables (or a .env file).
Everything has a default, including the LLM endpoint; without an API key
the coach cannot authenticate and every move gets the fallback advice.
"""

from pydantic import AliasChoices, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore",
    )

    # LLM (OpenAI-compatible chat completions; Gemini by default)
    llm_base_url: str = "https://generativelanguage.googleapis.com/v1beta/openai"
    llm_model: str = "gemini-3-flash-preview"
    llm_api_key: SecretStr | None = Field(
        default=None, validation_alias=AliasChoices("llm_api_key", "api_key"),
    )
    llm_timeout: float = 30.0

    log_level: str = "INFO"

    @property
    def api_key_value(self) -> str | None:
        """Plain-text key for the Authorization header only."""
        if self.llm_api_key is None:
            return None
        return self.llm_api_key.get_secret_value() or None
