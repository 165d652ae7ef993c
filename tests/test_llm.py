"""Unit tests for the LLM provider module."""
import httpx
import pytest
from conftest import RecordingHandler, make_provider, sse_body, streaming_handler
from hypothesis import given
from hypothesis import strategies as st

from streamchat.conversation import Message, Role
from streamchat.errors import MissingCredential, RequestFailed, TransportFailure
from streamchat.llm import DeepSeekProvider, LLMProvider, OpenAIProvider, create_llm_provider

MESSAGES = [Message(role=Role.USER, content="hello")]


class TestLLMProviderInterface:
    """Tests for the abstract LLMProvider interface."""

    def test_provider_is_abstract(self):
        """Test that LLMProvider cannot be instantiated directly."""
        with pytest.raises(TypeError):
            LLMProvider()  # type: ignore


class TestOpenAIProvider:
    """Tests for OpenAIProvider."""

    def test_defaults(self):
        provider = OpenAIProvider(api_key="sk-test")

        assert provider.model == "gpt-3.5-turbo"
        assert provider.endpoint == "https://api.openai.com/v1/chat/completions"
        assert provider.has_credential

    def test_custom_base_url(self):
        provider = OpenAIProvider(api_key="sk-test", base_url="http://localhost:8080/v1/")

        assert provider.endpoint == "http://localhost:8080/v1/chat/completions"

    @pytest.mark.parametrize("api_key", [None, ""])
    def test_missing_key(self, api_key):
        """Test that None and empty keys both count as missing."""
        assert not OpenAIProvider(api_key=api_key).has_credential

    def test_set_api_key(self):
        provider = OpenAIProvider()

        provider.set_api_key("sk-new")
        assert provider.has_credential

        provider.set_api_key("")
        assert not provider.has_credential

    @pytest.mark.asyncio
    async def test_stream_chat_yields_body_chunks(self):
        handler = streaming_handler("a", "b")

        async with make_provider(handler) as provider:
            async with provider.stream_chat(MESSAGES) as chunks:
                body = b"".join([chunk async for chunk in chunks])

        assert body == sse_body("a", "b")
        assert handler.last_body()["messages"] == [{"role": "user", "content": "hello"}]
        assert handler.last_body()["stream"] is True

    @pytest.mark.asyncio
    async def test_stream_chat_without_key_makes_no_request(self):
        handler = streaming_handler("a")
        provider = make_provider(handler, api_key=None)

        with pytest.raises(MissingCredential):
            async with provider.stream_chat(MESSAGES):
                pass

        assert handler.requests == []
        await provider.close()

    @pytest.mark.asyncio
    async def test_error_status_raises_request_failed(self):
        handler = RecordingHandler(
            lambda request: httpx.Response(429, json={"error": {"message": "rate limited"}})
        )
        provider = make_provider(handler)

        with pytest.raises(RequestFailed) as exc_info:
            async with provider.stream_chat(MESSAGES):
                pass

        assert exc_info.value.status_code == 429
        assert exc_info.value.detail == "rate limited"
        await provider.close()

    @pytest.mark.asyncio
    async def test_redirect_raises_request_failed(self):
        """Test that a 3xx answer is not read as an event stream."""
        handler = RecordingHandler(
            lambda request: httpx.Response(
                302,
                headers={"Location": "https://example.com/login"},
                content=b"<html>moved</html>",
            )
        )
        provider = make_provider(handler)

        with pytest.raises(RequestFailed) as exc_info:
            async with provider.stream_chat(MESSAGES):
                pass

        assert exc_info.value.status_code == 302
        assert exc_info.value.detail is None
        assert len(handler.requests) == 1
        await provider.close()

    @pytest.mark.asyncio
    async def test_timeout_raises_transport_failure(self):
        def time_out(request):
            raise httpx.ReadTimeout("timed out", request=request)

        provider = make_provider(time_out, timeout=0.5)

        with pytest.raises(TransportFailure):
            async with provider.stream_chat(MESSAGES):
                pass

        await provider.close()

    @pytest.mark.asyncio
    @pytest.mark.integration
    async def test_stream_real_api(self, api_keys):
        """Integration test: Stream a short reply from the real API."""
        if not api_keys["openai"]:
            pytest.skip("OPENAI_API_KEY not set")

        async with OpenAIProvider(api_key=api_keys["openai"], model="gpt-4o-mini") as provider:
            async with provider.stream_chat(MESSAGES) as chunks:
                body = b"".join([chunk async for chunk in chunks])

        assert b"data: [DONE]" in body


class TestDeepSeekProvider:
    """Tests for DeepSeekProvider."""

    def test_defaults(self):
        provider = DeepSeekProvider(api_key="sk-test")

        assert provider.model == "deepseek-chat"
        assert provider.endpoint == "https://api.deepseek.com/chat/completions"


class TestLLMFactory:
    """Tests for LLM factory function."""

    def test_create_openai_provider(self):
        provider = create_llm_provider("openai", api_key="test-key", model="gpt-4o-mini")

        assert isinstance(provider, OpenAIProvider)
        assert provider.model == "gpt-4o-mini"

    def test_create_deepseek_provider_case_insensitive(self):
        provider = create_llm_provider("DeepSeek", api_key="test-key")

        assert isinstance(provider, DeepSeekProvider)

    def test_create_provider_without_key(self):
        """Test that the key may be supplied later."""
        provider = create_llm_provider("openai")

        assert not provider.has_credential

    def test_create_provider_unknown_type(self):
        with pytest.raises(ValueError, match="Unsupported provider"):
            create_llm_provider("unknown", api_key="test-key")

    @given(st.text(min_size=1))
    def test_factory_with_random_provider_names(self, provider_name: str):
        """Property test: Factory should only accept known providers."""
        if provider_name.lower() in ("openai", "deepseek"):
            provider = create_llm_provider(provider_name, api_key="fake")
            assert isinstance(provider, OpenAIProvider)
        else:
            with pytest.raises(ValueError):
                create_llm_provider(provider_name, api_key="fake")
