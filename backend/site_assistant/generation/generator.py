"""Grounded answer generation, whole or streamed."""

from __future__ import annotations

import logging
from typing import Iterator, Sequence

from site_assistant.core.errors import AssistantError, GenerationError
from site_assistant.core.fallback import LadderExhausted, ladder
from site_assistant.core.metrics import FALLBACKS, REQUEST_COUNT
from site_assistant.generation.backends import GenerationBackend, GroundedPrompt
from site_assistant.models.entities import Answer, Citation, Hit
from site_assistant.models.events import (
    CitationPayload,
    ContextEvent,
    DoneEvent,
    ErrorEvent,
    StatusEvent,
    TokenEvent,
)
from site_assistant.retrieval.search import QueryService

logger = logging.getLogger(__name__)

PROMPT_INSTRUCTIONS = (
    "You are a helpful assistant answering questions using the provided context.",
    "Use only the context to answer. If missing, say you do not know.",
    "Cite sources using bracketed numbers [#1], [#2] matching context chunks.",
)

StreamItem = StatusEvent | ContextEvent | TokenEvent | DoneEvent | ErrorEvent


class EmptyStreamError(RuntimeError):
    """The streaming call ended without producing any text."""


def build_prompt(question: str, hits: Sequence[Hit]) -> GroundedPrompt:
    context = "\n\n".join(f"[#{rank} score={hit.score:.3f}]\n{hit.text}" for rank, hit in enumerate(hits, start=1))
    lines = [*PROMPT_INSTRUCTIONS, "", f"Question: {question}", "", "Context:", context]
    return GroundedPrompt(question=question, hits=tuple(hits), text="\n".join(lines))


class AnswerGenerator:
    """Retrieves context for a question and asks the generation ladder.

    Citations come from retrieval, never from parsing the generated text.
    """

    def __init__(self, query_service: QueryService, backend: GenerationBackend, models: Sequence[str]) -> None:
        if not models:
            raise ValueError("At least one generation model is required")
        self.query_service = query_service
        self.backend = backend
        self.models = list(models)

    def answer(self, query: str, k: int | None = None) -> Answer:
        hits = self.query_service.search(query, k)
        citations = self.query_service.citations(hits)
        prompt = build_prompt(query, hits)
        try:
            result = ladder("generation", self.models, lambda model: self.backend.generate(model, prompt))
        except LadderExhausted as exc:
            REQUEST_COUNT.labels(endpoint="answer", status="generation_failed").inc()
            raise GenerationError(f"Generation failed: {exc}", attempts=exc.attempts, citations=citations) from exc
        REQUEST_COUNT.labels(endpoint="answer", status="ok").inc()
        return Answer(answer=result.value, citations=citations, model=result.candidate)

    def answer_stream(self, query: str, k: int | None = None) -> Iterator[StreamItem]:
        """Yield status, context, tokens and a terminal done or error event."""
        try:
            hits = self.query_service.search(query, k)
            citations = self.query_service.citations(hits)
        except AssistantError as exc:
            REQUEST_COUNT.labels(endpoint="answer_stream", status=exc.code).inc()
            yield ErrorEvent(code=exc.code, message=exc.message)
            return

        yield StatusEvent(usingServerContext=True)
        yield ContextEvent(citations=[_citation_payload(citation) for citation in citations])

        prompt = build_prompt(query, hits)
        primary = self.models[0]
        produced = 0
        try:
            for fragment in self.backend.stream(primary, prompt):
                if not fragment:
                    continue
                produced += 1
                yield TokenEvent(text=fragment)
            if not produced:
                raise EmptyStreamError(f"{primary} streamed no text")
        except Exception as exc:
            if produced:
                logger.warning("Generation stream broke after %d fragments: %s", produced, exc)
                REQUEST_COUNT.labels(endpoint="answer_stream", status="interrupted").inc()
                yield ErrorEvent(code="generation_interrupted", message=str(exc))
                return
            logger.warning("Streaming with '%s' failed, falling back to a single response: %s", primary, exc)
            FALLBACKS.labels(kind="stream").inc()
            fallback_models = self.models[1:] or self.models[:1]
            try:
                result = ladder("generation", fallback_models, lambda model: self.backend.generate(model, prompt))
            except LadderExhausted as final:
                REQUEST_COUNT.labels(endpoint="answer_stream", status="generation_failed").inc()
                yield ErrorEvent(code=GenerationError.code, message=f"Generation failed: {final}")
                return
            yield TokenEvent(text=result.value)

        REQUEST_COUNT.labels(endpoint="answer_stream", status="ok").inc()
        yield DoneEvent()


def _citation_payload(citation: Citation) -> CitationPayload:
    return CitationPayload(**citation.to_dict())


__all__ = ["AnswerGenerator", "build_prompt", "PROMPT_INSTRUCTIONS"]
