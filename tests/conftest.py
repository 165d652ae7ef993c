"""Pytest configuration and shared fixtures."""
import inspect
import json
import os

import httpx
import pytest

from streamchat.llm import OpenAIProvider


def sse_event(content: str) -> bytes:
    """Encode one delta as a ``data:`` line the way the API sends it."""
    payload = {"choices": [{"index": 0, "delta": {"content": content}}]}
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n".encode()


DONE = b"data: [DONE]\n\n"


def sse_body(*deltas: str, done: bool = True) -> bytes:
    """Build a complete streaming response body."""
    body = b"".join(sse_event(delta) for delta in deltas)
    return body + DONE if done else body


class RecordingHandler:
    """MockTransport handler that records requests and replays a response.

    The response factory is called once per request, so async generator
    bodies are fresh for each turn.
    """

    def __init__(self, respond):
        self.respond = respond
        self.requests: list[httpx.Request] = []

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.respond(request)
        if inspect.isawaitable(response):
            response = await response
        return response

    def last_body(self) -> dict:
        return json.loads(self.requests[-1].content)


def make_provider(handler, api_key: str | None = "sk-test", **kwargs) -> OpenAIProvider:
    """Create an OpenAI provider backed by an in-memory transport."""
    return OpenAIProvider(api_key=api_key, transport=httpx.MockTransport(handler), **kwargs)


def streaming_handler(*deltas: str, done: bool = True) -> RecordingHandler:
    """Handler answering every request with the given deltas."""
    return RecordingHandler(lambda request: httpx.Response(200, content=sse_body(*deltas, done=done)))


@pytest.fixture(scope="session")
def api_keys():
    """Return API keys from environment."""
    return {
        "openai": os.getenv("OPENAI_API_KEY"),
        "deepseek": os.getenv("DEEPSEEK_API_KEY")
    }


@pytest.fixture
def clean_env(monkeypatch):
    """Remove configuration variables so tests see defaults."""
    for var in (
        "LLM_PROVIDER",
        "OPENAI_API_KEY",
        "DEEPSEEK_API_KEY",
        "OPENAI_CHAT_MODEL",
        "OPENAI_BASE_URL",
        "CHAT_TIMEOUT",
        "CHAT_GREETING",
        "CHAT_STRICT_EVENTS",
    ):
        monkeypatch.delenv(var, raising=False)
    return monkeypatch
