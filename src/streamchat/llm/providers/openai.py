import json
import logging
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from typing import Any

import httpx

from ...conversation.models import Message
from ...errors import MissingCredential, RequestFailed, TransportFailure
from ..base import LLMProvider

logger = logging.getLogger(__name__)

_CONNECT_TIMEOUT = 10.0


def _error_detail(body: bytes) -> str | None:
    """Extract ``error.message`` from an error body, if present."""
    try:
        data = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None
    if not isinstance(data, dict):
        return None
    error = data.get("error")
    if not isinstance(error, dict):
        return None
    message = error.get("message")
    return message if isinstance(message, str) and message else None


async def _iter_body(response: httpx.Response) -> AsyncIterator[bytes]:
    """Yield raw body chunks, mapping httpx errors to TransportFailure."""
    try:
        async for chunk in response.aiter_bytes():
            yield chunk
    except httpx.RequestError as e:
        raise TransportFailure(f"Stream interrupted: {e}") from e


class OpenAIProvider(LLMProvider):
    """OpenAI chat-completions provider over a streaming HTTP POST.

    Hidden design decisions:
    - HTTP client initialization and timeouts
    - Request body and header format
    - Error body parsing
    - Authentication mechanism
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str = "gpt-3.5-turbo",
        base_url: str = "https://api.openai.com/v1",
        timeout: float | None = 60.0,
        **client_kwargs: Any
    ):
        """Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key (may be supplied later via set_api_key)
            model: Model to request
            base_url: API base URL; requests go to ``{base_url}/chat/completions``
            timeout: Read/write timeout in seconds, None to wait forever
            **client_kwargs: Additional kwargs for httpx.AsyncClient
        """
        self._api_key = api_key or None
        self._model = model
        self._endpoint = f"{base_url.rstrip('/')}/chat/completions"
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout, connect=_CONNECT_TIMEOUT),
            **client_kwargs
        )

    @property
    def model(self) -> str:
        """Get the model name."""
        return self._model

    @property
    def endpoint(self) -> str:
        return self._endpoint

    @property
    def has_credential(self) -> bool:
        return self._api_key is not None

    def set_api_key(self, api_key: str | None) -> None:
        self._api_key = api_key or None

    @asynccontextmanager
    async def stream_chat(self, messages: Sequence[Message]) -> AsyncIterator[AsyncIterator[bytes]]:
        """Send the conversation and stream the response body.

        Args:
            messages: Conversation history

        Yields:
            Async iterator over raw body chunks
        """
        if self._api_key is None:
            raise MissingCredential("No API key configured")

        payload = {
            "model": self._model,
            "messages": [msg.to_wire() for msg in messages],
            "stream": True,
        }
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._api_key}",
        }
        request = self._client.build_request("POST", self._endpoint, json=payload, headers=headers)

        logger.debug("POST %s (model=%s, messages=%d)", self._endpoint, self._model, len(messages))
        try:
            response = await self._client.send(request, stream=True)
        except httpx.RequestError as e:
            raise TransportFailure(f"Request failed: {e}") from e

        try:
            if not response.is_success:
                try:
                    body = await response.aread()
                except httpx.RequestError as e:
                    raise TransportFailure(f"Error body unreadable: {e}") from e
                raise RequestFailed(response.status_code, _error_detail(body))
            chunks = _iter_body(response)
            try:
                yield chunks
            finally:
                await chunks.aclose()
        finally:
            await response.aclose()

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()
