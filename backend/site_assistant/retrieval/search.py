"""Search orchestration."""

from __future__ import annotations

import logging
import time

from site_assistant.core.config import Settings
from site_assistant.core.errors import IndexMismatchError, InputError
from site_assistant.core.metrics import REQUEST_COUNT, REQUEST_LATENCY
from site_assistant.ingest.documents import load_documents
from site_assistant.ingest.embeddings import Embedder
from site_assistant.models.entities import Citation, Hit
from site_assistant.retrieval.citations import CitationResolver
from site_assistant.retrieval.normalize import normalize
from site_assistant.retrieval.vector_index import IndexHandle

logger = logging.getLogger(__name__)


class QueryService:
    """Embeds queries, searches the live index and resolves citations."""

    def __init__(self, settings: Settings, handle: IndexHandle, embedder: Embedder) -> None:
        self.settings = settings
        self.handle = handle
        self.embedder = embedder

    def search(self, query_text: str, k: int | None = None) -> list[Hit]:
        start_time = time.perf_counter()
        query_text = (query_text or "").strip()
        if not query_text:
            raise InputError("Query text is required")
        top_k = k or self.settings.top_k
        index = self.handle.require()
        query_vector = normalize(self.embedder.embed(query_text))
        if len(query_vector) != index.dimension:
            raise IndexMismatchError(index.dimension, len(query_vector))
        hits = index.search(query_vector, top_k)
        REQUEST_LATENCY.labels(endpoint="search").observe(time.perf_counter() - start_time)
        REQUEST_COUNT.labels(endpoint="search", status="ok").inc()
        logger.debug("Search complete", extra={"ctx_k": top_k, "ctx_hits": len(hits)})
        return hits

    def resolver(self) -> CitationResolver:
        """Resolver over the current scraped corpus, re-read on every call."""
        documents = load_documents(self.settings.scraped_json_path)
        return CitationResolver(documents, self.settings.site_origin)

    def citations(self, hits: list[Hit]) -> list[Citation]:
        return self.resolver().enrich(hits)


__all__ = ["QueryService"]
