"""Embedding utilities."""

from __future__ import annotations

import hashlib
import logging
import re
from typing import Iterable, Protocol, Sequence

import numpy as np

from site_assistant.core.config import Settings
from site_assistant.core.errors import EmbeddingError
from site_assistant.core.fallback import LadderExhausted, ladder
from site_assistant.llm.gemini import GeminiClient

logger = logging.getLogger(__name__)

_TOKEN_RE = re.compile(r"\w+")


class EmbeddingBackend(Protocol):
    name: str

    def embed(self, model: str, text: str) -> Sequence[float]:
        ...


class GeminiEmbeddingBackend:
    """Remote embeddings from the Generative Language API."""

    name = "gemini"

    def __init__(self, client: GeminiClient) -> None:
        self.client = client

    def embed(self, model: str, text: str) -> Sequence[float]:
        return self.client.embed(model, text)


class HashedEmbeddingBackend:
    """Deterministic token-hashing embeddings for offline use.

    The model name is ignored; every token increments one of ``dim`` slots.
    """

    name = "hashed"

    def __init__(self, dim: int = 384) -> None:
        self.dim = dim

    def embed(self, model: str, text: str) -> Sequence[float]:
        vector = [0.0] * self.dim
        for token in _tokenize(text):
            vector[_hash_token(token, self.dim)] += 1.0
        return vector


class Embedder:
    """Turns text into vectors, walking ``models`` in order on failure."""

    def __init__(self, backend: EmbeddingBackend, models: Sequence[str]) -> None:
        if not models:
            raise ValueError("At least one embedding model is required")
        self.backend = backend
        self.models = list(models)

    @classmethod
    def from_settings(cls, settings: Settings) -> "Embedder":
        backend: EmbeddingBackend
        if settings.embedding_provider == "hashed":
            backend = HashedEmbeddingBackend(dim=settings.hashed_dim)
        else:
            backend = GeminiEmbeddingBackend(
                GeminiClient(
                    api_key=settings.resolve_api_key(),
                    api_base=settings.api_base,
                    timeout=settings.request_timeout,
                )
            )
        return cls(backend=backend, models=settings.embedding_models)

    def embed(self, text: str) -> np.ndarray:
        try:
            result = ladder(
                "embedding",
                self.models,
                lambda model: self.backend.embed(model, text),
                accept=lambda values: len(values) > 0,
            )
        except LadderExhausted as exc:
            raise EmbeddingError(f"Embedding failed: {exc}", attempts=exc.attempts) from exc
        if result.position > 0:
            logger.info("Embedded with fallback model '%s'", result.candidate)
        return np.asarray(result.value, dtype=np.float32)

    def embed_many(self, texts: Iterable[str]) -> list[np.ndarray]:
        """Embed one text at a time to stay within upstream rate limits."""
        return [self.embed(text) for text in texts]


def _tokenize(text: str) -> list[str]:
    return _TOKEN_RE.findall(text.lower())


def _hash_token(token: str, dim: int) -> int:
    digest = hashlib.blake2b(token.encode("utf-8"), digest_size=8).digest()
    value = int.from_bytes(digest, "big")
    return value % dim


__all__ = [
    "Embedder",
    "EmbeddingBackend",
    "GeminiEmbeddingBackend",
    "HashedEmbeddingBackend",
]
