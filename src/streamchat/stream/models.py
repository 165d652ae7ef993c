from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class StreamEventKind(str, Enum):
    """Kind of a decoded stream event."""

    DELTA = "delta"  # Incremental assistant text
    DONE = "done"    # Terminal sentinel


class StreamEvent(BaseModel):
    """A single event decoded from the response stream."""

    model_config = ConfigDict(frozen=True)

    kind: StreamEventKind = Field(description="Delta or terminal sentinel")
    content: str = Field(default="", description="Text delta (empty for the sentinel)")

    @property
    def is_done(self) -> bool:
        """Whether this is the terminal sentinel."""
        return self.kind == StreamEventKind.DONE

    @classmethod
    def delta(cls, content: str) -> "StreamEvent":
        return cls(kind=StreamEventKind.DELTA, content=content)

    @classmethod
    def done(cls) -> "StreamEvent":
        return cls(kind=StreamEventKind.DONE)
