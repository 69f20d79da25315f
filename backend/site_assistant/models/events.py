"""Server-Sent-Event payloads for the streaming answer endpoint.

The server emits, in order: ``status``, ``context``, zero or more ``token``
events, then either ``done`` or ``error``. The client parses the same models
back through :data:`STREAM_EVENT_ADAPTER`.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

import orjson
from pydantic import BaseModel, Field, TypeAdapter


class CitationPayload(BaseModel):
    index: int
    score: float
    text: str
    title: str | None = None
    link: str | None = None


class StatusEvent(BaseModel):
    event: Literal["status"] = "status"
    usingServerContext: bool = True


class ContextEvent(BaseModel):
    event: Literal["context"] = "context"
    citations: list[CitationPayload] = Field(default_factory=list)


class TokenEvent(BaseModel):
    event: Literal["token"] = "token"
    text: str = ""


class DoneEvent(BaseModel):
    event: Literal["done"] = "done"


class ErrorEvent(BaseModel):
    event: Literal["error"] = "error"
    code: str = "stream_failed"
    message: str = ""


StreamEvent = Annotated[
    Union[StatusEvent, ContextEvent, TokenEvent, DoneEvent, ErrorEvent],
    Field(discriminator="event"),
]

STREAM_EVENT_ADAPTER: TypeAdapter[Any] = TypeAdapter(StreamEvent)

TERMINAL_EVENTS = frozenset({"done", "error"})


def encode_sse(event: BaseModel) -> str:
    """Render one event as an SSE frame; the name is carried by ``event:``."""
    payload = event.model_dump(exclude={"event"})
    data = orjson.dumps(payload).decode("utf-8")
    return f"event: {event.event}\ndata: {data}\n\n"


def decode_sse(name: str, data: str) -> StatusEvent | ContextEvent | TokenEvent | DoneEvent | ErrorEvent:
    payload = orjson.loads(data) if data.strip() else {}
    if not isinstance(payload, dict):
        raise ValueError(f"SSE '{name}' payload must be an object")
    payload["event"] = name
    return STREAM_EVENT_ADAPTER.validate_python(payload)


__all__ = [
    "CitationPayload",
    "StatusEvent",
    "ContextEvent",
    "TokenEvent",
    "DoneEvent",
    "ErrorEvent",
    "StreamEvent",
    "STREAM_EVENT_ADAPTER",
    "TERMINAL_EVENTS",
    "encode_sse",
    "decode_sse",
]
