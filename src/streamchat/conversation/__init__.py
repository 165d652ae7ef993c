"""Conversation module for streamchat.

Owns the ordered message log and the streaming turn protocol.
"""

from .engine import (
    DEFAULT_ERROR_MESSAGE,
    DEFAULT_GREETING,
    ConversationEngine,
    EngineState,
    TurnOutcome,
    TurnResult,
)
from .models import ConversationLog, Message, Role

__all__ = [
    "DEFAULT_ERROR_MESSAGE",
    "DEFAULT_GREETING",
    "ConversationEngine",
    "ConversationLog",
    "EngineState",
    "Message",
    "Role",
    "TurnOutcome",
    "TurnResult",
]
