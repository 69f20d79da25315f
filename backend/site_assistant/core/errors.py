"""Error taxonomy shared by the services and the HTTP layer."""

from __future__ import annotations

from typing import Any, Sequence


class AssistantError(Exception):
    """Base class for errors reported to API callers."""

    status_code = 500
    code = "internal_error"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def to_payload(self) -> dict[str, Any]:
        return {"detail": self.message, "code": self.code}


class InputError(AssistantError):
    """Caller supplied something unusable; never retried."""

    status_code = 400
    code = "invalid_input"


class SourceNotFoundError(InputError):
    code = "source_not_found"

    def __init__(self, path: object) -> None:
        self.path = str(path)
        super().__init__(f"Scraped file not found at {self.path}")


class UnreadableSourceError(InputError):
    code = "unreadable_source"

    def __init__(self, path: object, reason: str) -> None:
        self.path = str(path)
        super().__init__(f"Scraped file at {self.path} could not be read: {reason}")


class EmptyCorpusError(InputError):
    code = "empty_corpus"

    def __init__(self, message: str = "No content chunks to index") -> None:
        super().__init__(message)


class NotReadyError(AssistantError):
    """The vector index has not been built or loaded yet."""

    status_code = 503
    code = "not_ready"

    def __init__(self, message: str = "Vector index not loaded. Build it first.") -> None:
        super().__init__(message)


class IndexMismatchError(NotReadyError):
    """The loaded index was built by a different embedding configuration."""

    code = "index_mismatch"

    def __init__(self, index_dimension: int, query_dimension: int) -> None:
        self.index_dimension = index_dimension
        self.query_dimension = query_dimension
        super().__init__(
            f"Vector index has {index_dimension} dimensions but queries embed to {query_dimension}. Rebuild it."
        )


class UpstreamError(AssistantError):
    """An external model service failed on every candidate model."""

    status_code = 502
    code = "upstream_failed"

    def __init__(self, message: str, attempts: Sequence[tuple[str, str]] = ()) -> None:
        self.attempts = list(attempts)
        super().__init__(message)

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        payload["attempts"] = [{"candidate": name, "error": error} for name, error in self.attempts]
        return payload


class EmbeddingError(UpstreamError):
    code = "embedding_failed"


class GenerationError(UpstreamError):
    """Generation failed; retrieval results are kept for the caller."""

    code = "generation_failed"

    def __init__(
        self,
        message: str,
        attempts: Sequence[tuple[str, str]] = (),
        citations: Sequence[Any] = (),
    ) -> None:
        self.citations = list(citations)
        super().__init__(message, attempts)

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        payload["citations"] = [
            citation.to_dict() if hasattr(citation, "to_dict") else citation for citation in self.citations
        ]
        return payload


__all__ = [
    "AssistantError",
    "InputError",
    "SourceNotFoundError",
    "EmptyCorpusError",
    "UnreadableSourceError",
    "NotReadyError",
    "IndexMismatchError",
    "UpstreamError",
    "EmbeddingError",
    "GenerationError",
]
