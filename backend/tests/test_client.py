"""Tests for the assistant client and its offline fallback."""

from __future__ import annotations

import io
from typing import Any

import requests

from site_assistant.client.assistant import AssistantClient, StreamingMessage
from site_assistant.client.local import LocalMatcher, cosine_similarity, term_vector
from site_assistant.client.replies import (
    APOLOGY,
    CONTACT_PHONE,
    DEFAULT_DOCUMENTS,
    NO_MATCH,
    compose_local_reply,
    strip_citation_markers,
)
from site_assistant.client.sse import iter_sse_frames
from site_assistant.models.entities import Document
from site_assistant.models.events import DoneEvent, StatusEvent, TokenEvent, encode_sse

STREAM_BODY = [
    "event: status",
    'data: {"usingServerContext":true}',
    "",
    "event: context",
    'data: {"citations":[{"index":0,"score":0.9,"text":"Fire damage is covered.","title":"Home","link":null}]}',
    "",
    ": keep-alive",
    "event: token",
    'data: {"text":"Fire "}',
    "",
    "event: token",
    'data: {"text":"is covered [#1]"}',
    "",
    "event: done",
    "data: {}",
    "",
]


class FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = None, lines: list[str] | None = None) -> None:
        self.status_code = status_code
        self.ok = status_code < 400
        self.payload = payload
        self.lines = lines or []
        self.encoding: str | None = None
        self.closed = False

    def json(self) -> Any:
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload

    def raise_for_status(self) -> None:
        if not self.ok:
            raise requests.HTTPError(f"{self.status_code} error")

    def iter_lines(self, decode_unicode: bool = False):
        yield from self.lines

    def close(self) -> None:
        self.closed = True


class FakeSession:
    """Routes GET/POST by URL suffix; a route mapped to an exception raises it."""

    def __init__(self, routes: dict[str, Any]) -> None:
        self.routes = routes
        self.calls: list[tuple[str, str]] = []

    def _dispatch(self, method: str, url: str) -> FakeResponse:
        self.calls.append((method, url))
        for suffix, response in self.routes.items():
            if url.endswith(suffix):
                if isinstance(response, Exception):
                    raise response
                if isinstance(response, list):
                    return response.pop(0)
                return response
        raise requests.ConnectionError(f"no route for {url}")

    def get(self, url: str, **kwargs: Any) -> FakeResponse:
        return self._dispatch("GET", url)

    def post(self, url: str, **kwargs: Any) -> FakeResponse:
        return self._dispatch("POST", url)


def test_term_vector_ignores_short_tokens() -> None:
    vector = term_vector("A car, a CAR and an umbrella")
    assert vector == {"car": 2, "and": 1, "umbrella": 1}
    assert abs(cosine_similarity(vector, vector) - 1.0) < 1e-9
    assert cosine_similarity(vector, term_vector("")) == 0.0


def test_local_matcher_ranks_by_similarity() -> None:
    matcher = LocalMatcher(DEFAULT_DOCUMENTS)
    matches = matcher.search("how do I get a quote from an agent", k=2)
    assert len(matches) == 2
    assert matches[0].document.source == "Contact"
    assert matches[0].score >= matches[1].score
    assert LocalMatcher().search("anything") == []


def test_compose_local_reply_prefers_intents() -> None:
    assert CONTACT_PHONE in compose_local_reply("How can I call you?", [])
    assert compose_local_reply("zzz", []) == NO_MATCH


def test_compose_local_reply_uses_best_match() -> None:
    matcher = LocalMatcher([Document(text="Flood coverage is available as an add-on.", source="Flood")])
    reply = compose_local_reply("Is flood coverage available?", matcher.search("Is flood coverage available?"))
    assert reply == "Based on what I know about Flood: Flood coverage is available as an add-on."


def test_strip_citation_markers() -> None:
    assert strip_citation_markers("Covered [#1] and insured [#1, #2].") == "Covered and insured."


def test_iter_sse_frames_groups_lines() -> None:
    frames = list(iter_sse_frames(STREAM_BODY))
    assert [name for name, _ in frames] == ["status", "context", "token", "token", "done"]
    assert frames[2] == ("token", '{"text":"Fire "}')


def test_client_streams_answer() -> None:
    session = FakeSession({"/api/faiss/answer/stream": FakeResponse(lines=list(STREAM_BODY))})
    updates: list[str] = []
    client = AssistantClient(session=session, on_update=lambda message: updates.append(message.raw_text))
    message = client.ask("Is fire damage covered?")
    assert message.origin == "stream"
    assert message.complete
    assert message.using_server
    assert message.raw_text == "Fire is covered [#1]"
    assert message.citations[0].title == "Home"
    assert "Fire " in updates


def test_client_falls_back_to_json_answer() -> None:
    toasts: list[str] = []
    session = FakeSession(
        {
            "/api/faiss/answer/stream": FakeResponse(status_code=500),
            "/api/faiss/answer": FakeResponse(payload={"answer": "Covered [#1].", "citations": []}),
        }
    )
    client = AssistantClient(session=session, on_toast=lambda text, retry: toasts.append(text))
    message = client.ask("Is fire damage covered?")
    assert message.origin == "json"
    assert message.raw_text == "Covered [#1]."
    assert message.using_server
    assert toasts == ["Streaming failed; falling back."]


def test_client_treats_error_event_as_stream_failure() -> None:
    lines = ["event: status", "data: {}", "", "event: error", 'data: {"code":"not_ready","message":"x"}', ""]
    session = FakeSession(
        {
            "/api/faiss/answer/stream": FakeResponse(lines=lines),
            "/api/faiss/answer": FakeResponse(payload={"answer": "From JSON", "citations": []}),
        }
    )
    message = AssistantClient(session=session).ask("fire")
    assert message.origin == "json"
    assert message.raw_text == "From JSON"


def test_client_uses_local_match_when_server_is_down() -> None:
    session = FakeSession({})
    message = AssistantClient(session=session).ask("Tell me about life insurance")
    assert message.origin == "local"
    assert not message.using_server
    assert message.citations == []
    assert "life insurance" in message.raw_text


def test_client_local_match_uses_server_documents() -> None:
    documents = {"documents": [{"text": "Pet insurance covers veterinary bills.", "source": "Pets"}], "count": 1}
    session = FakeSession(
        {
            "/api/faiss/answer/stream": requests.ConnectionError("refused"),
            "/api/faiss/answer": FakeResponse(status_code=503, payload={"detail": "not ready"}),
            "/api/documents": FakeResponse(payload=documents),
        }
    )
    message = AssistantClient(session=session).ask("veterinary bills", stream=True)
    assert message.origin == "local"
    assert message.raw_text == "Based on what I know about Pets: Pet insurance covers veterinary bills."


def test_client_apologizes_on_unexpected_failure() -> None:
    class BrokenMatcher(LocalMatcher):
        def search(self, query: str, k: int = 3):
            raise RuntimeError("boom")

    message = AssistantClient(session=FakeSession({}), matcher=BrokenMatcher(DEFAULT_DOCUMENTS)).ask("quote")
    assert message.origin == "error"
    assert message.raw_text == APOLOGY


def test_retry_stream_restores_previous_reply_on_failure() -> None:
    retries: list = []
    session = FakeSession(
        {
            "/api/faiss/answer/stream": [FakeResponse(status_code=502), FakeResponse(status_code=502)],
            "/api/faiss/answer": FakeResponse(payload={"answer": "JSON answer", "citations": []}),
        }
    )
    client = AssistantClient(session=session, on_toast=lambda text, retry: retries.append(retry))
    message = client.ask("fire")
    assert message.raw_text == "JSON answer"
    assert retries[0]() is False
    assert message.raw_text == "JSON answer"
    assert message.origin == "json"


def test_retry_stream_replaces_reply_on_success() -> None:
    retries: list = []
    session = FakeSession(
        {
            "/api/faiss/answer/stream": [FakeResponse(status_code=502), FakeResponse(lines=list(STREAM_BODY))],
            "/api/faiss/answer": FakeResponse(payload={"answer": "JSON answer", "citations": []}),
        }
    )
    client = AssistantClient(session=session, on_toast=lambda text, retry: retries.append(retry))
    message = client.ask("fire")
    assert retries[0]() is True
    assert message.origin == "stream"
    assert message.raw_text == "Fire is covered [#1]"


def test_streaming_message_snapshot_is_independent() -> None:
    message = StreamingMessage(raw_text="a", origin="json", complete=True)
    copy = message.snapshot()
    message.reset()
    assert copy.raw_text == "a"
    message.restore(copy)
    assert message.origin == "json"


def _raw_response(body: bytes) -> requests.Response:
    response = requests.Response()
    response.status_code = 200
    response.headers["Content-Type"] = "text/event-stream"
    response.raw = io.BytesIO(body)
    return response


def test_stream_keeps_unicode_line_separators_inside_tokens() -> None:
    body = "".join(
        encode_sse(event)
        for event in (StatusEvent(), TokenEvent(text="cover\u2028age\u2029 and\u0085 more"), DoneEvent())
    ).encode("utf-8")
    session = FakeSession({"/api/faiss/answer/stream": _raw_response(body)})
    message = AssistantClient(session=session).ask("coverage")
    assert message.origin == "stream"
    assert message.raw_text == "cover\u2028age\u2029 and\u0085 more"
