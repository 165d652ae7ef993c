"""Conversation engine: one streaming turn at a time over an append-only log.

The engine owns the ConversationLog. Each turn sends the whole log to the
provider, decodes the streamed body, and folds text deltas into a single open
assistant message at the tail of the log. Presentation code observes the log
through listeners and must not mutate it.
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from contextlib import aclosing
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from ..errors import ChatError, MissingCredential, RequestFailed
from ..stream import StreamDecoder
from .models import ConversationLog, Message, Role

if TYPE_CHECKING:
    from ..llm.base import LLMProvider

logger = logging.getLogger(__name__)

DEFAULT_GREETING = "How can I help you?"
DEFAULT_ERROR_MESSAGE = "Request failed, please try again later."

LogListener = Callable[[tuple[Message, ...]], None]
ErrorListener = Callable[[ChatError], None]


class EngineState(str, Enum):
    """Protocol state of the engine."""

    IDLE = "idle"
    REQUESTING = "requesting"  # Request sent, no response yet
    STREAMING = "streaming"    # Applying deltas to the open message
    FAILED = "failed"          # Transient; always followed by IDLE


class TurnOutcome(str, Enum):
    """How a turn ended."""

    COMPLETED = "completed"
    REQUEST_FAILED = "request_failed"  # Error message appended to the log
    FAILED = "failed"                  # Surfaced to error listeners
    CANCELLED = "cancelled"


@dataclass
class TurnResult:
    """Result of a single send() call."""

    outcome: TurnOutcome
    reply: Message | None = None
    error: ChatError | None = None


class ConversationEngine:
    """Drives chat turns and maintains the conversation log.

    Usage:
        engine = ConversationEngine(provider)
        engine.seed()
        engine.subscribe(lambda messages: render(messages))
        engine.on_error(lambda error: show_error(error))
        result = await engine.send("2+2?")
    """

    def __init__(
        self,
        provider: "LLMProvider",
        *,
        greeting: str = DEFAULT_GREETING,
        fallback_error_message: str = DEFAULT_ERROR_MESSAGE,
        strict_events: bool = False
    ) -> None:
        """Initialize the engine.

        Args:
            provider: Provider that carries the credential and opens streams
            greeting: Assistant message the log is seeded with
            fallback_error_message: Shown when an error response has no message
            strict_events: Fail the turn on malformed event lines instead of
                skipping them
        """
        self._provider = provider
        self._greeting = greeting
        self._fallback_error_message = fallback_error_message
        self._strict_events = strict_events
        self._log = ConversationLog()
        self._state = EngineState.IDLE
        self._seeded = False
        self._cancel_requested = False
        self._turn: asyncio.Future[TurnResult] | None = None
        self._log_listeners: list[LogListener] = []
        self._error_listeners: list[ErrorListener] = []

    @property
    def provider(self) -> "LLMProvider":
        return self._provider

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def log(self) -> ConversationLog:
        """The conversation log. Read-only for callers."""
        return self._log

    @property
    def messages(self) -> tuple[Message, ...]:
        """Snapshot of the conversation log."""
        return self._log.snapshot()

    @property
    def is_busy(self) -> bool:
        """Whether a turn is requesting or streaming."""
        return self._state in (EngineState.REQUESTING, EngineState.STREAMING)

    def subscribe(self, listener: LogListener) -> Callable[[], None]:
        """Register a listener for log changes.

        Returns:
            Callable that removes the listener
        """
        self._log_listeners.append(listener)
        return lambda: self._remove(self._log_listeners, listener)

    def on_error(self, listener: ErrorListener) -> Callable[[], None]:
        """Register a listener for session-level errors.

        Returns:
            Callable that removes the listener
        """
        self._error_listeners.append(listener)
        return lambda: self._remove(self._error_listeners, listener)

    @staticmethod
    def _remove(listeners: list, listener: Callable) -> None:
        if listener in listeners:
            listeners.remove(listener)

    def seed(self) -> None:
        """Seed the log with the assistant greeting. Call once per session."""
        if self._seeded:
            raise RuntimeError("Conversation already seeded")
        self._seeded = True
        self._log.append(Message(role=Role.ASSISTANT, content=self._greeting))
        self._notify()

    def cancel(self) -> None:
        """Abandon the in-flight turn.

        No further chunks are applied; partial content already in the log
        stays there.
        """
        if self.is_busy:
            logger.debug("Cancellation requested in state %s", self._state.value)
            self._cancel_requested = True
            # Interrupt a pending read instead of waiting for the next chunk
            if self._turn is not None and not self._turn.done():
                self._turn.cancel()

    async def send(self, text: str) -> TurnResult | None:
        """Send a user message and stream the assistant reply.

        Blank text and calls made while a turn is in flight are ignored.

        Args:
            text: The user's message

        Returns:
            TurnResult describing how the turn ended, or None if ignored
        """
        if not text.strip():
            return None
        if self.is_busy:
            logger.debug("Turn in progress, ignoring send")
            return None
        if not self._provider.has_credential:
            return self._fail(MissingCredential("No API key configured"))

        self._cancel_requested = False
        self._log.append(Message(role=Role.USER, content=text))
        self._notify()
        self._set_state(EngineState.REQUESTING)

        self._turn = asyncio.ensure_future(self._run_turn())
        try:
            return await self._turn
        except asyncio.CancelledError:
            if not self._cancel_requested:
                # The caller's own task was cancelled
                raise
            logger.debug("Turn abandoned in state %s", self._state.value)
            return TurnResult(outcome=TurnOutcome.CANCELLED, reply=self._log.close_open())
        except RequestFailed as e:
            if self._cancel_requested:
                return TurnResult(outcome=TurnOutcome.CANCELLED)
            logger.warning("Request failed with status %d", e.status_code)
            reply = Message(
                role=Role.ASSISTANT,
                content=e.detail or self._fallback_error_message,
            )
            self._log.append(reply)
            self._notify()
            return TurnResult(outcome=TurnOutcome.REQUEST_FAILED, reply=reply, error=e)
        except ChatError as e:
            # Partial reply stays in the log as far as it got
            reply = self._log.close_open()
            if self._cancel_requested:
                return TurnResult(outcome=TurnOutcome.CANCELLED, reply=reply)
            return self._fail(e, reply=reply)
        finally:
            self._turn = None
            self._log.close_open()
            if self._state is not EngineState.IDLE:
                self._set_state(EngineState.IDLE)

    async def _run_turn(self) -> TurnResult:
        decoder = StreamDecoder(strict=self._strict_events)

        async with self._provider.stream_chat(self._log.snapshot()) as chunks:
            if self._cancel_requested:
                return TurnResult(outcome=TurnOutcome.CANCELLED)

            self._set_state(EngineState.STREAMING)
            self._log.open_assistant()
            self._notify()

            async with (
                aclosing(self._until_cancelled(chunks)) as guarded,
                aclosing(decoder.aiter_events(guarded)) as events,
            ):
                async for event in events:
                    if self._cancel_requested:
                        logger.debug("Turn abandoned while streaming")
                        return TurnResult(
                            outcome=TurnOutcome.CANCELLED,
                            reply=self._log.close_open(),
                        )
                    if event.is_done:
                        break
                    if event.content:
                        self._log.extend_open(event.content)
                        self._notify()

        outcome = TurnOutcome.CANCELLED if self._cancel_requested else TurnOutcome.COMPLETED
        return TurnResult(outcome=outcome, reply=self._log.close_open())

    async def _until_cancelled(self, chunks: AsyncIterator[bytes]) -> AsyncIterator[bytes]:
        """Pass chunks through until the turn is abandoned."""
        async for chunk in chunks:
            if self._cancel_requested:
                return
            yield chunk

    def _fail(self, error: ChatError, reply: Message | None = None) -> TurnResult:
        self._set_state(EngineState.FAILED)
        logger.warning("Turn failed: %s", error)
        for listener in list(self._error_listeners):
            listener(error)
        self._set_state(EngineState.IDLE)
        return TurnResult(outcome=TurnOutcome.FAILED, reply=reply, error=error)

    def _set_state(self, state: EngineState) -> None:
        logger.debug("State %s -> %s", self._state.value, state.value)
        self._state = state

    def _notify(self) -> None:
        snapshot = self._log.snapshot()
        for listener in list(self._log_listeners):
            listener(snapshot)
