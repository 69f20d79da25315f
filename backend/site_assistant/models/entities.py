"""Internal dataclasses passed between pipeline stages."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class Document:
    """A labelled passage of scraped site text."""

    text: str
    source: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Document":
        return cls(text=str(data.get("text") or ""), source=str(data.get("source") or ""))

    def to_dict(self) -> dict[str, str]:
        return {"text": self.text, "source": self.source}


@dataclass(frozen=True, slots=True)
class Hit:
    index: int
    score: float
    text: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class SourceMeta:
    title: str | None = None
    link: str | None = None


@dataclass(frozen=True, slots=True)
class Citation:
    index: int
    score: float
    text: str
    title: str | None = None
    link: str | None = None

    @classmethod
    def from_hit(cls, hit: Hit, meta: SourceMeta | None) -> "Citation":
        meta = meta or SourceMeta()
        return cls(index=hit.index, score=hit.score, text=hit.text, title=meta.title, link=meta.link)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class IndexStats:
    dimension: int
    count: int

    def to_dict(self) -> dict[str, int]:
        return {"dimension": self.dimension, "count": self.count}


@dataclass(slots=True)
class Answer:
    answer: str
    citations: list[Citation] = field(default_factory=list)
    model: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"answer": self.answer, "citations": [citation.to_dict() for citation in self.citations]}


__all__ = ["Document", "Hit", "SourceMeta", "Citation", "IndexStats", "Answer"]
