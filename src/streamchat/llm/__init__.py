from .base import LLMProvider
from .factory import create_llm_provider
from .providers import DeepSeekProvider, OpenAIProvider

__all__ = [
    "LLMProvider",
    "create_llm_provider",
    "DeepSeekProvider",
    "OpenAIProvider",
]
