"""Client-side assistant: streaming consumer with local fallback."""

from .assistant import AssistantClient, StreamingMessage
from .local import LocalMatcher
from .sse import EventStream

__all__ = ["AssistantClient", "StreamingMessage", "LocalMatcher", "EventStream"]
