"""Server-Sent-Events subscription over ``requests``."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Iterator

import requests

from site_assistant.models.events import TERMINAL_EVENTS, decode_sse

logger = logging.getLogger(__name__)


def iter_sse_frames(lines: Iterable[str | bytes | None]) -> Iterator[tuple[str, str]]:
    """Group raw lines into ``(event name, data)`` frames.

    Comment lines and frames without data are skipped; multi-line data is
    joined with newlines.
    """
    name = "message"
    data: list[str] = []
    for raw in lines:
        if raw is None:
            continue
        line = raw.decode("utf-8") if isinstance(raw, bytes) else raw
        line = line.rstrip("\r")
        if not line:
            if data:
                yield name, "\n".join(data)
            name, data = "message", []
            continue
        if line.startswith(":"):
            continue
        field, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]
        if field == "event":
            name = value
        elif field == "data":
            data.append(value)
    if data:
        yield name, "\n".join(data)


class EventStream:
    """A single cancellable subscription yielding typed stream events.

    Iteration stops after a terminal ``done`` or ``error`` event. ``close()``
    is the only way to cancel; the server keeps generating regardless.
    """

    def __init__(
        self,
        session: Any,
        url: str,
        params: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> None:
        self.session = session
        self.url = url
        self.params = params or {}
        self.timeout = timeout
        self._response: requests.Response | None = None
        self._closed = False

    def __enter__(self) -> "EventStream":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __iter__(self) -> Iterator[Any]:
        response = self.session.get(
            self.url,
            params=self.params,
            headers={"Accept": "text/event-stream"},
            stream=True,
            timeout=self.timeout,
        )
        self._response = response
        response.raise_for_status()
        # Lines are split as bytes; str.splitlines would also break on U+2028.
        for name, data in iter_sse_frames(response.iter_lines()):
            if self._closed:
                return
            event = decode_sse(name, data)
            yield event
            if event.event in TERMINAL_EVENTS:
                return

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._response is not None:
            self._response.close()


__all__ = ["EventStream", "iter_sse_frames"]
