"""Configuration for a chat session.

Centralizes provider, credential, and engine settings. Values come from the
environment; the CLI may override them.
"""

import os

from pydantic import BaseModel, Field, SecretStr

from .conversation import DEFAULT_GREETING

# Environment variable holding the API key, per provider
API_KEY_ENV = {
    "openai": "OPENAI_API_KEY",
    "deepseek": "DEEPSEEK_API_KEY",
}

_TRUE_VALUES = {"1", "true", "yes", "on"}


class ChatSettings(BaseModel):
    """Settings for the provider and the conversation engine."""

    provider: str = Field(default="openai", description="Provider type ('openai' or 'deepseek')")
    api_key: SecretStr | None = Field(default=None, description="Bearer credential")
    model: str | None = Field(default=None, description="Model override (None uses provider default)")
    base_url: str | None = Field(default=None, description="API base URL override")
    timeout: float | None = Field(
        default=60.0,
        gt=0,
        description="Read timeout in seconds for the response stream"
    )
    greeting: str = Field(default=DEFAULT_GREETING, description="Initial assistant message")
    strict_events: bool = Field(
        default=False,
        description="Fail the turn on malformed event lines instead of skipping them"
    )

    @classmethod
    def from_env(cls, provider: str | None = None) -> "ChatSettings":
        """Build settings from environment variables.

        Args:
            provider: Provider override; the API key is read for this provider

        Environment variables:
            LLM_PROVIDER: Provider type (openai, deepseek; default: openai)
            OPENAI_API_KEY: OpenAI API key (for openai provider)
            DEEPSEEK_API_KEY: DeepSeek API key (for deepseek provider)
            OPENAI_CHAT_MODEL: Model override
            OPENAI_BASE_URL: Base URL override
            CHAT_TIMEOUT: Stream read timeout in seconds (default: 60)
            CHAT_GREETING: Initial assistant message
            CHAT_STRICT_EVENTS: Fail on malformed event lines (default: false)
        """
        provider = (provider or os.getenv("LLM_PROVIDER", "openai")).lower()
        api_key = os.getenv(API_KEY_ENV.get(provider, "OPENAI_API_KEY"))
        timeout = os.getenv("CHAT_TIMEOUT")

        return cls(
            provider=provider,
            api_key=SecretStr(api_key) if api_key else None,
            model=os.getenv("OPENAI_CHAT_MODEL") or None,
            base_url=os.getenv("OPENAI_BASE_URL") or None,
            timeout=float(timeout) if timeout else 60.0,
            greeting=os.getenv("CHAT_GREETING", DEFAULT_GREETING),
            strict_events=os.getenv("CHAT_STRICT_EVENTS", "").lower() in _TRUE_VALUES,
        )

    def provider_config(self) -> dict[str, object]:
        """Keyword arguments for create_llm_provider, omitting unset overrides."""
        config: dict[str, object] = {
            "api_key": self.api_key.get_secret_value() if self.api_key else None,
            "timeout": self.timeout,
        }
        if self.model:
            config["model"] = self.model
        if self.base_url:
            config["base_url"] = self.base_url
        return config
