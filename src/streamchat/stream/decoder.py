"""Decoding of chunked ``data: <json>`` response bodies.

This module hides the wire format of the streaming response:
- UTF-8 sequences and lines split across arbitrary chunk boundaries
- The ``data:`` line prefix and the ``[DONE]`` sentinel
- The location of the text delta inside each JSON payload

The decoder knows nothing about conversations; it is a pure transform from
bytes to StreamEvent, parameterized only by its own buffers. Use a fresh
instance per response.
"""

import codecs
import json
import logging
from collections.abc import AsyncIterable, AsyncIterator, Iterable, Iterator
from typing import Any

from ..errors import MalformedEvent
from .models import StreamEvent

logger = logging.getLogger(__name__)

DATA_PREFIX = "data:"
DONE_PAYLOAD = "[DONE]"


def _extract_delta(record: Any) -> str | None:
    """Return ``choices[0].delta.content`` or None when any step is missing."""
    if not isinstance(record, dict):
        return None
    choices = record.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0]
    if not isinstance(first, dict):
        return None
    delta = first.get("delta")
    if not isinstance(delta, dict):
        return None
    content = delta.get("content")
    return content if isinstance(content, str) else None


def parse_event(line: str) -> StreamEvent | None:
    """Parse one decoded line into a stream event.

    Args:
        line: A complete, non-blank line from the response body

    Returns:
        The sentinel, a delta event, or None for lines that carry no delta
        (comments, other SSE fields, payloads without delta content)

    Raises:
        MalformedEvent: If a ``data:`` payload is not valid JSON
    """
    if not line.startswith(DATA_PREFIX):
        return None

    payload = line[len(DATA_PREFIX):].strip()
    if payload == DONE_PAYLOAD:
        return StreamEvent.done()

    try:
        record = json.loads(payload)
    except json.JSONDecodeError as e:
        raise MalformedEvent(line) from e

    content = _extract_delta(record)
    if content is None:
        return None
    return StreamEvent.delta(content)


class StreamDecoder:
    """Incremental decoder from raw body chunks to stream events.

    Chunks may end mid-line, mid-UTF-8 sequence, or carry several events;
    incomplete input is buffered until the next chunk or ``flush()``.

    Usage:
        decoder = StreamDecoder()
        async for event in decoder.aiter_events(response_chunks):
            if event.is_done:
                break
            print(event.content, end="")
    """

    def __init__(self, strict: bool = False):
        """Initialize the decoder.

        Args:
            strict: Raise MalformedEvent for unparseable payloads instead of
                skipping the line
        """
        self.strict = strict
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._pending = ""

    def feed(self, chunk: bytes) -> list[str]:
        """Decode a chunk and return the complete non-blank lines it finishes."""
        self._pending += self._decoder.decode(chunk)
        *lines, self._pending = self._pending.split("\n")
        return [line.rstrip("\r") for line in lines if line.strip()]

    def flush(self) -> list[str]:
        """Finish decoding and return the held-back final line, if any."""
        rest = (self._pending + self._decoder.decode(b"", final=True)).rstrip("\r")
        self._pending = ""
        return [rest] if rest.strip() else []

    def decode(self, chunk: bytes) -> list[StreamEvent]:
        """Decode a chunk into the events completed by it."""
        return self._to_events(self.feed(chunk))

    def finish(self) -> list[StreamEvent]:
        """Return the events still buffered at end of input."""
        return self._to_events(self.flush())

    def _to_events(self, lines: list[str]) -> list[StreamEvent]:
        events = []
        for line in lines:
            try:
                event = parse_event(line)
            except MalformedEvent:
                if self.strict:
                    raise
                logger.warning("Skipping malformed stream event: %s", line[:200])
                continue
            if event is not None:
                events.append(event)
        return events

    def iter_events(self, chunks: Iterable[bytes]) -> Iterator[StreamEvent]:
        """Lazily decode a synchronous source of chunks."""
        for chunk in chunks:
            yield from self.decode(chunk)
        yield from self.finish()

    async def aiter_events(self, chunks: AsyncIterable[bytes]) -> AsyncIterator[StreamEvent]:
        """Lazily decode an asynchronous source of chunks.

        Awaiting the next chunk is the only suspension point; decoding of
        each chunk is synchronous.
        """
        async for chunk in chunks:
            for event in self.decode(chunk):
                yield event
        for event in self.finish():
            yield event
