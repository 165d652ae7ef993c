"""
streamchat: a minimal streaming chat client for OpenAI-compatible APIs.

This package follows Parnas's information hiding principles,
where each module hides a specific design decision.
"""

__version__ = "0.1.0"

from .config import ChatSettings
from .conversation import (
    ConversationEngine,
    ConversationLog,
    EngineState,
    Message,
    Role,
    TurnOutcome,
    TurnResult,
)
from .errors import ChatError, MalformedEvent, MissingCredential, RequestFailed, TransportFailure
from .llm import LLMProvider, create_llm_provider
from .stream import StreamDecoder, StreamEvent, StreamEventKind

__all__ = [
    "ChatSettings",
    "ConversationEngine",
    "ConversationLog",
    "EngineState",
    "Message",
    "Role",
    "TurnOutcome",
    "TurnResult",
    "ChatError",
    "MalformedEvent",
    "MissingCredential",
    "RequestFailed",
    "TransportFailure",
    "LLMProvider",
    "create_llm_provider",
    "StreamDecoder",
    "StreamEvent",
    "StreamEventKind",
]
