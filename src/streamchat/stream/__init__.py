from .decoder import StreamDecoder, parse_event
from .models import StreamEvent, StreamEventKind

__all__ = [
    "StreamDecoder",
    "parse_event",
    "StreamEvent",
    "StreamEventKind",
]
