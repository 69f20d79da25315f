"""Tests for the Generative Language REST client."""

from __future__ import annotations

from typing import Any

import orjson
import pytest

from site_assistant.llm.gemini import GeminiAPIError, GeminiClient, candidate_text


class FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = None, lines: list[str] | None = None) -> None:
        self.status_code = status_code
        self.ok = status_code < 400
        self.reason = "Error"
        self.payload = payload
        self.lines = lines or []

    def json(self) -> Any:
        return self.payload

    def iter_lines(self, decode_unicode: bool = False):
        yield from self.lines

    def __enter__(self) -> "FakeResponse":
        return self

    def __exit__(self, *exc_info: object) -> None:
        return None


class RecordingSession:
    def __init__(self, response: FakeResponse) -> None:
        self.response = response
        self.requests: list[dict[str, Any]] = []

    def post(self, url: str, **kwargs: Any) -> FakeResponse:
        self.requests.append({"url": url, **kwargs})
        return self.response


def _reply(text: str) -> dict[str, Any]:
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def test_embed_posts_to_model_endpoint() -> None:
    session = RecordingSession(FakeResponse(payload={"embedding": {"values": [0.1, 0.2]}}))
    client = GeminiClient("secret", api_base="https://api.example/", session=session)
    assert client.embed("text-embedding-004", "hello") == [0.1, 0.2]
    request = session.requests[0]
    assert request["url"] == "https://api.example/v1/models/text-embedding-004:embedContent"
    assert request["headers"]["x-goog-api-key"] == "secret"
    assert orjson.loads(request["data"]) == {"content": {"parts": [{"text": "hello"}]}}


def test_generate_joins_candidate_parts() -> None:
    payload = {"candidates": [{"content": {"parts": [{"text": "Fire "}, {"text": "is covered."}]}}]}
    client = GeminiClient("secret", session=RecordingSession(FakeResponse(payload=payload)))
    assert client.generate("gemini-1.5-flash", "prompt") == "Fire is covered."
    assert candidate_text({}) == ""


def test_stream_yields_fragments_from_sse_lines() -> None:
    lines = [f"data: {orjson.dumps(_reply('Fire ')).decode()}", "", f"data: {orjson.dumps(_reply('covered')).decode()}"]
    session = RecordingSession(FakeResponse(lines=lines))
    client = GeminiClient("secret", session=session)
    assert list(client.stream("gemini-2.5-flash-lite", "prompt")) == ["Fire ", "covered"]
    assert session.requests[0]["params"] == {"alt": "sse"}
    assert session.requests[0]["url"].endswith(":streamGenerateContent")


def test_error_status_raises_with_upstream_message() -> None:
    response = FakeResponse(status_code=404, payload={"error": {"message": "model not found"}})
    client = GeminiClient("secret", session=RecordingSession(response))
    with pytest.raises(GeminiAPIError, match="model not found"):
        client.embed("textembedding-005", "hello")


def test_missing_api_key_fails_before_any_request() -> None:
    session = RecordingSession(FakeResponse(payload={}))
    with pytest.raises(GeminiAPIError, match="GOOGLE_API_KEY"):
        GeminiClient(None, session=session).generate("gemini-1.5-flash", "prompt")
    assert session.requests == []
