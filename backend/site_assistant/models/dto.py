"""Pydantic DTOs exposed via API."""

from __future__ import annotations

from pydantic import AliasChoices, BaseModel, Field

from site_assistant.models.events import CitationPayload


class BuildRequest(BaseModel):
    path: str | None = Field(default=None, description="Scraped text file; defaults to the data dir corpus")


class BuildResponse(BaseModel):
    dimension: int
    count: int


class QueryRequest(BaseModel):
    query: str = Field(default="", validation_alias=AliasChoices("query", "q"))
    k: int | None = Field(default=None, ge=1, le=50)


class HitResult(BaseModel):
    index: int
    score: float
    text: str


class SearchResponse(BaseModel):
    results: list[HitResult]


class AnswerResponse(BaseModel):
    answer: str
    citations: list[CitationPayload]


class DocumentPayload(BaseModel):
    text: str
    source: str = "Section"


class DocumentsResponse(BaseModel):
    count: int
    documents: list[DocumentPayload]


class IndexStatusResponse(BaseModel):
    ready: bool
    dimension: int | None = None
    count: int | None = None


class AttemptPayload(BaseModel):
    candidate: str
    error: str


class ErrorResponse(BaseModel):
    """Body of every error response; upstream failures add ``attempts``."""

    detail: str
    code: str
    attempts: list[AttemptPayload] | None = None
    citations: list[CitationPayload] | None = None


__all__ = [
    "BuildRequest",
    "BuildResponse",
    "QueryRequest",
    "HitResult",
    "SearchResponse",
    "AnswerResponse",
    "DocumentPayload",
    "DocumentsResponse",
    "IndexStatusResponse",
    "AttemptPayload",
    "ErrorResponse",
]
