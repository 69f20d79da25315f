"""Thin REST client for the Google Generative Language API."""

from __future__ import annotations

import logging
from typing import Any, Iterator

import orjson
import requests

logger = logging.getLogger(__name__)


class GeminiAPIError(RuntimeError):
    """Non-2xx response or malformed payload from the API."""


class GeminiClient:
    """Embedding and text generation calls over plain HTTPS.

    ``timeout`` of ``None`` means requests wait for the service indefinitely.
    """

    def __init__(
        self,
        api_key: str | None,
        api_base: str = "https://generativelanguage.googleapis.com",
        timeout: float | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.api_key = api_key
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def embed(self, model: str, text: str) -> list[float]:
        payload = {"content": {"parts": [{"text": text}]}}
        data = self._post(f"/v1/models/{model}:embedContent", payload)
        values = (data.get("embedding") or {}).get("values") or []
        return [float(value) for value in values]

    def generate(self, model: str, prompt: str) -> str:
        data = self._post(f"/v1beta/models/{model}:generateContent", _prompt_payload(prompt))
        return candidate_text(data)

    def stream(self, model: str, prompt: str) -> Iterator[str]:
        """Yield text fragments as the model produces them."""
        url = f"{self.api_base}/v1beta/models/{model}:streamGenerateContent"
        response = self.session.post(
            url,
            params={"alt": "sse"},
            headers=self._headers(),
            data=orjson.dumps(_prompt_payload(prompt)),
            timeout=self.timeout,
            stream=True,
        )
        with response:
            _raise_for_status(response, model)
            for raw in response.iter_lines():
                line = raw.decode("utf-8") if isinstance(raw, bytes) else raw
                if not line or not line.startswith("data:"):
                    continue
                body = line[len("data:") :].strip()
                if not body:
                    continue
                try:
                    chunk = orjson.loads(body)
                except orjson.JSONDecodeError as exc:
                    raise GeminiAPIError(f"Malformed stream chunk from {model}") from exc
                fragment = candidate_text(chunk)
                if fragment:
                    yield fragment

    # ------------------------------------------------------------------

    def _headers(self) -> dict[str, str]:
        if not self.api_key:
            raise GeminiAPIError("Missing GOOGLE_API_KEY in environment. Set it in your config or environment.")
        return {"Content-Type": "application/json", "x-goog-api-key": self.api_key}

    def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        headers = self._headers()
        response = self.session.post(
            f"{self.api_base}{path}",
            headers=headers,
            data=orjson.dumps(payload),
            timeout=self.timeout,
        )
        _raise_for_status(response, path)
        try:
            data = response.json()
        except ValueError as exc:
            raise GeminiAPIError(f"Non-JSON response from {path}") from exc
        if not isinstance(data, dict):
            raise GeminiAPIError(f"Unexpected response shape from {path}")
        return data


def candidate_text(data: dict[str, Any]) -> str:
    """Concatenate the text parts of the first candidate."""
    candidates = data.get("candidates") or []
    if not candidates:
        return ""
    parts = ((candidates[0] or {}).get("content") or {}).get("parts") or []
    return "".join(part.get("text", "") for part in parts if isinstance(part, dict))


def _prompt_payload(prompt: str) -> dict[str, Any]:
    return {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}


def _raise_for_status(response: requests.Response, target: str) -> None:
    if response.ok:
        return
    try:
        detail = response.json().get("error", {}).get("message")
    except (ValueError, AttributeError):
        detail = None
    raise GeminiAPIError(f"{target} failed ({response.status_code}): {detail or response.reason}")


__all__ = ["GeminiClient", "GeminiAPIError", "candidate_text"]
