"""Error taxonomy for a single chat turn.

Every error here is local to one turn: the provider and the decoder raise
them, the conversation engine catches them and surfaces them to listeners.
"""


class ChatError(Exception):
    """Base class for all turn-level chat errors."""


class MissingCredential(ChatError):
    """Raised when no API key is configured. No request is made."""


class RequestFailed(ChatError):
    """The service answered with a non-success status.

    Attributes:
        status_code: HTTP status of the response
        detail: Human-readable message from the error body, if any
    """

    def __init__(self, status_code: int, detail: str | None = None):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"HTTP {status_code}: {detail or 'request failed'}")


class TransportFailure(ChatError):
    """Connection-level failure before or during the response stream."""


class MalformedEvent(ChatError):
    """An event line whose payload is not valid JSON."""

    def __init__(self, line: str):
        self.line = line
        super().__init__(f"Malformed stream event: {line[:200]}")
