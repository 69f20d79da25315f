"""Network-free term-frequency matcher used as the last fallback."""

from __future__ import annotations

import math
import re
from collections import Counter
from dataclasses import dataclass
from typing import Iterable

from site_assistant.models.entities import Document

_SPLIT_RE = re.compile(r"\W+")
MIN_TOKEN_CHARS = 3


@dataclass(frozen=True, slots=True)
class LocalMatch:
    document: Document
    score: float
    index: int


def term_vector(text: str) -> Counter[str]:
    return Counter(
        token for token in _SPLIT_RE.split(text.lower()) if len(token) >= MIN_TOKEN_CHARS
    )


def cosine_similarity(left: Counter[str], right: Counter[str]) -> float:
    if not left or not right:
        return 0.0
    dot = sum(count * right[token] for token, count in left.items() if token in right)
    left_norm = math.sqrt(sum(count * count for count in left.values()))
    right_norm = math.sqrt(sum(count * count for count in right.values()))
    if left_norm == 0 or right_norm == 0:
        return 0.0
    return dot / (left_norm * right_norm)


class LocalMatcher:
    """In-memory cosine search over term-frequency vectors.

    ``search`` never raises; with no documents it returns an empty list.
    """

    def __init__(self, documents: Iterable[Document] = ()) -> None:
        self._documents: list[Document] = []
        self._vectors: list[Counter[str]] = []
        self.add_documents(documents)

    def __len__(self) -> int:
        return len(self._documents)

    def add_documents(self, documents: Iterable[Document]) -> int:
        for document in documents:
            self._documents.append(document)
            self._vectors.append(term_vector(document.text))
        return len(self._documents)

    def search(self, query: str, k: int = 3) -> list[LocalMatch]:
        if not self._documents or k <= 0:
            return []
        query_vector = term_vector(query or "")
        matches = [
            LocalMatch(document=document, score=cosine_similarity(query_vector, vector), index=position)
            for position, (document, vector) in enumerate(zip(self._documents, self._vectors))
        ]
        matches.sort(key=lambda match: match.score, reverse=True)
        return matches[:k]


__all__ = ["LocalMatcher", "LocalMatch", "term_vector", "cosine_similarity"]
