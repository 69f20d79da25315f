"""Text generation backends."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterator, Protocol, Sequence

from site_assistant.core.config import Settings
from site_assistant.llm.gemini import GeminiClient
from site_assistant.models.entities import Hit

NO_ANSWER = "I do not know based on the information available on this site."

_WORD_RE = re.compile(r"\S+\s*")


@dataclass(frozen=True, slots=True)
class GroundedPrompt:
    question: str
    hits: Sequence[Hit] = field(default_factory=tuple)
    text: str = ""


class GenerationBackend(Protocol):
    name: str

    def generate(self, model: str, prompt: GroundedPrompt) -> str:
        ...

    def stream(self, model: str, prompt: GroundedPrompt) -> Iterator[str]:
        ...


class GeminiGenerationBackend:
    name = "gemini"

    def __init__(self, client: GeminiClient) -> None:
        self.client = client

    def generate(self, model: str, prompt: GroundedPrompt) -> str:
        return self.client.generate(model, prompt.text)

    def stream(self, model: str, prompt: GroundedPrompt) -> Iterator[str]:
        return self.client.stream(model, prompt.text)


class ExtractiveBackend:
    """Offline stand-in that answers with the best retrieved chunk."""

    name = "extractive"

    def generate(self, model: str, prompt: GroundedPrompt) -> str:
        if not prompt.hits:
            return NO_ANSWER
        return f"{prompt.hits[0].text} [#1]"

    def stream(self, model: str, prompt: GroundedPrompt) -> Iterator[str]:
        for match in _WORD_RE.finditer(self.generate(model, prompt)):
            yield match.group()


def backend_from_settings(settings: Settings) -> GenerationBackend:
    if settings.generation_provider == "extractive":
        return ExtractiveBackend()
    return GeminiGenerationBackend(
        GeminiClient(
            api_key=settings.resolve_api_key(),
            api_base=settings.api_base,
            timeout=settings.request_timeout,
        )
    )


__all__ = [
    "GroundedPrompt",
    "GenerationBackend",
    "GeminiGenerationBackend",
    "ExtractiveBackend",
    "backend_from_settings",
    "NO_ANSWER",
]
