from typing import Any

from .base import LLMProvider
from .providers import DeepSeekProvider, OpenAIProvider


def create_llm_provider(provider: str, **config: Any) -> LLMProvider:
    """Create an LLM provider instance.

    This factory function hides the instantiation logic for different providers.

    Args:
        provider: Provider type ('openai', 'deepseek')
        **config: Provider-specific configuration
            For OpenAI:
                - api_key: str | None
                - model: str (default: 'gpt-3.5-turbo')
                - base_url: str (default: 'https://api.openai.com/v1')
                - timeout: float | None (default: 60.0)
            For DeepSeek:
                - api_key: str | None
                - model: str (default: 'deepseek-chat')
                - base_url: str (default: 'https://api.deepseek.com')
                - timeout: float | None (default: 60.0)

    Returns:
        Initialized LLM provider instance

    Raises:
        ValueError: If provider type is not supported

    Examples:
        >>> provider = create_llm_provider(
        ...     "deepseek",
        ...     api_key="sk-...",
        ...     model="deepseek-chat"
        ... )
    """
    provider_lower = provider.lower()

    if provider_lower == "openai":
        return OpenAIProvider(**config)

    if provider_lower == "deepseek":
        return DeepSeekProvider(**config)

    raise ValueError(
        f"Unsupported provider: {provider}. "
        f"Supported providers: 'openai', 'deepseek'"
    )
