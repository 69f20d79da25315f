"""Assistant client with a stream -> JSON -> local fallback chain."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Literal

import requests
from pydantic import ValidationError

from site_assistant.client.local import LocalMatcher
from site_assistant.client.replies import APOLOGY, DEFAULT_DOCUMENTS, compose_local_reply
from site_assistant.client.sse import EventStream
from site_assistant.models.entities import Document
from site_assistant.models.events import (
    CitationPayload,
    ContextEvent,
    DoneEvent,
    ErrorEvent,
    StatusEvent,
    TokenEvent,
)

logger = logging.getLogger(__name__)

DEFAULT_HOST = "http://127.0.0.1:8888"
STREAM_FAILED_TOAST = "Streaming failed; falling back."

Origin = Literal["pending", "stream", "json", "local", "error"]


@dataclass
class StreamingMessage:
    """The assistant's reply, mutated in place as events arrive."""

    raw_text: str = ""
    using_server: bool = False
    citations: list[CitationPayload] = field(default_factory=list)
    origin: Origin = "pending"
    complete: bool = False

    def reset(self) -> None:
        self.raw_text = ""
        self.using_server = False
        self.citations = []
        self.origin = "pending"
        self.complete = False

    def snapshot(self) -> "StreamingMessage":
        return StreamingMessage(
            raw_text=self.raw_text,
            using_server=self.using_server,
            citations=list(self.citations),
            origin=self.origin,
            complete=self.complete,
        )

    def restore(self, other: "StreamingMessage") -> None:
        self.raw_text = other.raw_text
        self.using_server = other.using_server
        self.citations = list(other.citations)
        self.origin = other.origin
        self.complete = other.complete


class StreamFailed(Exception):
    """The SSE stream errored or ended without a ``done`` event."""


class ServerUnavailable(Exception):
    """The JSON answer endpoint could not produce an answer."""


Renderer = Callable[[StreamingMessage], None]
Retry = Callable[[], bool]
Toast = Callable[[str, Retry], None]


class AssistantClient:
    """Asks the server for grounded answers and always returns some reply.

    Order of attempts: SSE stream, JSON answer, local term-frequency match.
    ``on_update`` runs after every mutation of the message; ``on_toast``
    receives a notice plus a callable that restarts the stream.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_HOST,
        k: int = 4,
        session: Any | None = None,
        timeout: float | None = None,
        on_update: Renderer | None = None,
        on_toast: Toast | None = None,
        matcher: LocalMatcher | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.k = k
        self.session = session or requests.Session()
        self.timeout = timeout
        self.on_update = on_update
        self.on_toast = on_toast
        self.matcher = matcher or LocalMatcher()
        self._event_handlers: dict[type, Callable[[Any, StreamingMessage], None]] = {
            StatusEvent: self._on_status,
            ContextEvent: self._on_context,
            TokenEvent: self._on_token,
            DoneEvent: self._on_done,
            ErrorEvent: self._on_error,
        }

    # ------------------------------------------------------------------

    def ask(self, query: str, stream: bool = True) -> StreamingMessage:
        message = StreamingMessage()
        self._render(message)
        try:
            if stream:
                try:
                    self.stream_into(query, message)
                    return message
                except StreamFailed as exc:
                    logger.info("Streaming answer failed: %s", exc)
                    self._toast(STREAM_FAILED_TOAST, lambda: self.retry_stream(query, message))
            try:
                self.answer_into(query, message)
            except ServerUnavailable as exc:
                logger.info("Server answer unavailable, using local match: %s", exc)
                self.local_into(query, message)
        except Exception:
            logger.exception("Assistant failed to produce a reply")
            message.raw_text = APOLOGY
            message.using_server = False
            message.citations = []
            message.origin = "error"
            message.complete = True
            self._render(message)
        return message

    def stream_into(self, query: str, message: StreamingMessage) -> None:
        """Fill ``message`` from the SSE endpoint, starting from scratch."""
        message.reset()
        message.origin = "stream"
        self._render(message)
        stream = EventStream(
            self.session,
            f"{self.base_url}/api/faiss/answer/stream",
            params={"q": query, "k": self.k},
            timeout=self.timeout,
        )
        try:
            with stream:
                for event in stream:
                    self._event_handlers[type(event)](event, message)
                    self._render(message)
        except (requests.RequestException, ValidationError, ValueError) as exc:
            raise StreamFailed(str(exc)) from exc
        if not message.complete:
            raise StreamFailed("stream ended before completion")

    def retry_stream(self, query: str, message: StreamingMessage) -> bool:
        """Restart the stream for ``message``; keep the fallback reply if it fails."""
        previous = message.snapshot()
        try:
            self.stream_into(query, message)
            return True
        except StreamFailed as exc:
            logger.info("Retried stream failed: %s", exc)
            message.restore(previous)
            self._render(message)
            return False

    def answer_into(self, query: str, message: StreamingMessage) -> None:
        try:
            response = self.session.post(
                f"{self.base_url}/api/faiss/answer",
                json={"query": query, "k": self.k},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise ServerUnavailable(str(exc)) from exc
        if not response.ok:
            raise ServerUnavailable(f"answer endpoint returned {response.status_code}")
        try:
            data = response.json()
            citations = [CitationPayload.model_validate(item) for item in data.get("citations") or []]
        except (ValueError, ValidationError, AttributeError) as exc:
            raise ServerUnavailable(f"malformed answer payload: {exc}") from exc
        message.raw_text = str(data.get("answer") or "")
        message.using_server = True
        message.citations = citations
        message.origin = "json"
        message.complete = True
        self._render(message)

    def local_into(self, query: str, message: StreamingMessage) -> None:
        if not len(self.matcher):
            self.load_documents()
        matches = self.matcher.search(query, k=3)
        message.raw_text = compose_local_reply(query, matches)
        message.using_server = False
        message.citations = []
        message.origin = "local"
        message.complete = True
        self._render(message)

    def load_documents(self) -> int:
        """Seed the local matcher from the server corpus, or the built-in set."""
        documents = self._fetch_documents()
        if not documents:
            documents = list(DEFAULT_DOCUMENTS)
        return self.matcher.add_documents(documents)

    # ------------------------------------------------------------------

    def _fetch_documents(self) -> list[Document]:
        try:
            response = self.session.get(f"{self.base_url}/api/documents", timeout=self.timeout)
            if not response.ok:
                return []
            items = response.json().get("documents") or []
        except (requests.RequestException, ValueError, AttributeError) as exc:
            logger.info("Could not fetch documents: %s", exc)
            return []
        return [Document.from_dict(item) for item in items if isinstance(item, dict)]

    def _on_status(self, event: StatusEvent, message: StreamingMessage) -> None:
        message.using_server = event.usingServerContext

    def _on_context(self, event: ContextEvent, message: StreamingMessage) -> None:
        message.citations = list(event.citations)

    def _on_token(self, event: TokenEvent, message: StreamingMessage) -> None:
        message.raw_text += event.text

    def _on_done(self, event: DoneEvent, message: StreamingMessage) -> None:
        message.complete = True

    def _on_error(self, event: ErrorEvent, message: StreamingMessage) -> None:
        raise StreamFailed(f"{event.code}: {event.message}")

    def _render(self, message: StreamingMessage) -> None:
        if self.on_update is not None:
            self.on_update(message)

    def _toast(self, text: str, retry: Retry) -> None:
        if self.on_toast is not None:
            self.on_toast(text, retry)


__all__ = [
    "AssistantClient",
    "StreamingMessage",
    "StreamFailed",
    "ServerUnavailable",
    "DEFAULT_HOST",
]
