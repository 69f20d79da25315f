"""Index build and corpus routes."""

from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, Body, Depends

from site_assistant.api.dependencies import get_app_settings, get_index_builder, get_index_handle
from site_assistant.core.config import Settings
from site_assistant.ingest.documents import load_documents
from site_assistant.ingest.pipeline import IndexBuilder
from site_assistant.models.dto import (
    BuildRequest,
    BuildResponse,
    DocumentPayload,
    DocumentsResponse,
    ErrorResponse,
    IndexStatusResponse,
)
from site_assistant.models.entities import Document
from site_assistant.retrieval.vector_index import IndexHandle

router = APIRouter()


@router.post(
    "/faiss/build",
    response_model=BuildResponse,
    responses={400: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
    summary="Rebuild the vector index from the scraped corpus",
)
def build_index(
    request: BuildRequest | None = Body(default=None),
    builder: IndexBuilder = Depends(get_index_builder),
) -> BuildResponse:
    path = Path(request.path) if request and request.path else None
    stats = builder.build_from_file(path)
    return BuildResponse(**stats.to_dict())


@router.get("/faiss/status", response_model=IndexStatusResponse, summary="Report whether an index is loaded")
async def index_status(handle: IndexHandle = Depends(get_index_handle)) -> IndexStatusResponse:
    index = handle.current
    if index is None:
        return IndexStatusResponse(ready=False)
    return IndexStatusResponse(ready=True, dimension=index.dimension, count=index.count)


@router.get("/documents", response_model=DocumentsResponse, summary="List scraped documents")
async def list_documents(settings: Settings = Depends(get_app_settings)) -> DocumentsResponse:
    documents = load_documents(settings.scraped_json_path)
    return DocumentsResponse(
        count=len(documents),
        documents=[DocumentPayload(**document.to_dict()) for document in documents],
    )


@router.put("/documents", response_model=DocumentsResponse, summary="Replace the scraped corpus")
def replace_documents(
    documents: list[DocumentPayload],
    builder: IndexBuilder = Depends(get_index_builder),
    settings: Settings = Depends(get_app_settings),
) -> DocumentsResponse:
    builder.replace_documents([Document(text=item.text, source=item.source) for item in documents])
    stored = load_documents(settings.scraped_json_path)
    return DocumentsResponse(
        count=len(stored),
        documents=[DocumentPayload(**document.to_dict()) for document in stored],
    )


__all__ = ["router"]
