from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Sequence
from contextlib import AbstractAsyncContextManager
from typing import Any

from ..conversation.models import Message


class LLMProvider(ABC):
    """Abstract base class for chat-completion providers.

    This module hides the design decision of which service answers a turn.
    Implementations must handle provider-specific details like:
    - HTTP client setup and bearer authentication
    - Request body construction
    - Mapping non-success responses to RequestFailed
    - Mapping connection errors to TransportFailure

    Supports async context manager protocol for proper resource cleanup:
        async with provider:
            async with provider.stream_chat(messages) as chunks:
                async for chunk in chunks:
                    ...
        # Automatically cleaned up
    """

    @property
    @abstractmethod
    def model(self) -> str:
        """Get the model name sent with each request."""

    @property
    @abstractmethod
    def has_credential(self) -> bool:
        """Whether an API key is configured."""

    @abstractmethod
    def set_api_key(self, api_key: str | None) -> None:
        """Replace the API key (None or empty clears it)."""

    @abstractmethod
    def stream_chat(
        self,
        messages: Sequence[Message],
    ) -> AbstractAsyncContextManager[AsyncIterator[bytes]]:
        """Open a streaming chat completion.

        Args:
            messages: Full conversation history, oldest first

        Returns:
            Async context manager yielding the raw response body chunks.
            The response is released when the context exits.

        Raises:
            MissingCredential: If no API key is configured
            RequestFailed: If the service answers with a non-success status
            TransportFailure: On connection errors, before or while iterating
        """

    @abstractmethod
    async def close(self) -> None:
        """Close any open connections or resources."""
        pass

    async def __aenter__(self) -> "LLMProvider":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit with automatic cleanup.

        Note: Suppresses "Event loop is closed" errors during cleanup.
        This is a known harmless race condition in httpx/anyio cleanup:
        https://github.com/encode/httpx/issues/914
        """
        try:
            await self.close()
        except RuntimeError as e:
            # Suppress harmless cleanup errors from httpx/anyio
            if "Event loop is closed" not in str(e):
                raise
