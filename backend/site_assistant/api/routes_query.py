"""Query API routes."""

from __future__ import annotations

import logging
from typing import Iterator

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse

from site_assistant.api.dependencies import get_answer_generator, get_query_service
from site_assistant.generation.generator import AnswerGenerator
from site_assistant.models.dto import AnswerResponse, ErrorResponse, HitResult, QueryRequest, SearchResponse
from site_assistant.models.events import ErrorEvent, encode_sse
from site_assistant.retrieval.search import QueryService

logger = logging.getLogger(__name__)

router = APIRouter()

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


@router.post(
    "/faiss/search",
    response_model=SearchResponse,
    responses={400: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
    summary="Nearest chunks for a query",
)
def search(request: QueryRequest, service: QueryService = Depends(get_query_service)) -> SearchResponse:
    hits = service.search(request.query, request.k)
    return SearchResponse(results=[HitResult(**hit.to_dict()) for hit in hits])


@router.post(
    "/faiss/answer",
    response_model=AnswerResponse,
    responses={400: {"model": ErrorResponse}, 502: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
    summary="Grounded answer with citations",
)
def answer(request: QueryRequest, generator: AnswerGenerator = Depends(get_answer_generator)) -> AnswerResponse:
    result = generator.answer(request.query, request.k)
    return AnswerResponse(**result.to_dict())


@router.get("/faiss/answer/stream", summary="Grounded answer as Server-Sent Events")
def answer_stream(
    q: str | None = Query(default=None, description="Question text"),
    query: str | None = Query(default=None, description="Alias of q"),
    k: int | None = Query(default=None, ge=1, le=50),
    generator: AnswerGenerator = Depends(get_answer_generator),
) -> StreamingResponse:
    question = (q or query or "").strip()

    def event_source() -> Iterator[str]:
        try:
            for event in generator.answer_stream(question, k):
                yield encode_sse(event)
        except Exception as exc:
            logger.exception("Answer stream failed")
            yield encode_sse(ErrorEvent(code="stream_failed", message=str(exc)))

    return StreamingResponse(event_source(), media_type="text/event-stream", headers=SSE_HEADERS)


__all__ = ["router"]
