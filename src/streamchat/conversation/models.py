"""Data models for the conversation log.

The log is append-only. The only in-place change is to the open assistant
message at its tail while a reply is streaming, and that change replaces the
element with a new immutable Message.
"""

from collections.abc import Iterator
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Role(str, Enum):
    """Author of a message."""

    USER = "user"
    ASSISTANT = "assistant"


class Message(BaseModel):
    """A single message in the conversation."""

    model_config = ConfigDict(frozen=True)

    role: Role = Field(description="Role of the message sender: 'user' or 'assistant'")
    content: str = Field(description="Content of the message")

    def to_wire(self) -> dict[str, str]:
        """Return the role/content pair sent to the chat-completions API."""
        return {"role": self.role.value, "content": self.content}


class ConversationLog:
    """Ordered, append-only sequence of messages.

    Tracks the index of the open (still streaming) assistant message. At most
    one message is open, and while open it is the last element.
    """

    def __init__(self) -> None:
        self._messages: list[Message] = []
        self._open_index: int | None = None

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(tuple(self._messages))

    def __getitem__(self, index: int) -> Message:
        return self._messages[index]

    @property
    def open_index(self) -> int | None:
        """Index of the open assistant message, or None."""
        return self._open_index

    @property
    def is_open(self) -> bool:
        return self._open_index is not None

    def snapshot(self) -> tuple[Message, ...]:
        """Return an immutable copy of the current messages."""
        return tuple(self._messages)

    def append(self, message: Message) -> None:
        """Append a finished message.

        Raises:
            RuntimeError: If an assistant message is still open
        """
        if self.is_open:
            raise RuntimeError("Cannot append while an assistant message is open")
        self._messages.append(message)

    def open_assistant(self) -> int:
        """Append an empty assistant message and mark it open.

        Returns:
            Index of the open message
        """
        self.append(Message(role=Role.ASSISTANT, content=""))
        self._open_index = len(self._messages) - 1
        return self._open_index

    def extend_open(self, delta: str) -> Message:
        """Append a text delta to the open message.

        Raises:
            RuntimeError: If no message is open
        """
        if self._open_index is None:
            raise RuntimeError("No open assistant message")
        current = self._messages[self._open_index]
        updated = current.model_copy(update={"content": current.content + delta})
        self._messages[self._open_index] = updated
        return updated

    def close_open(self) -> Message | None:
        """Finalize the open message.

        Returns:
            The final message, or None if nothing was open
        """
        if self._open_index is None:
            return None
        message = self._messages[self._open_index]
        self._open_index = None
        return message
