"""Health and metrics routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from site_assistant.api.dependencies import get_index_handle
from site_assistant.core.metrics import metrics_response
from site_assistant.retrieval.vector_index import IndexHandle

router = APIRouter()


@router.get("/health", summary="Liveness check")
async def health(handle: IndexHandle = Depends(get_index_handle)) -> dict[str, bool]:
    # Liveness only; an unbuilt index is reported, not treated as unhealthy.
    return {"ok": True, "indexReady": handle.ready}


@router.get("/metrics", summary="Prometheus metrics")
async def get_metrics():
    return metrics_response()


__all__ = ["router"]
