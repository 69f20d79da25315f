"""Shared FastAPI dependencies."""

from __future__ import annotations

from functools import lru_cache

from site_assistant.core.config import Settings
from site_assistant.core.logging import get_logger
from site_assistant.core.metrics import INDEX_SIZE
from site_assistant.generation.backends import backend_from_settings
from site_assistant.generation.generator import AnswerGenerator
from site_assistant.ingest.embeddings import Embedder
from site_assistant.ingest.pipeline import IndexBuilder
from site_assistant.retrieval import IndexHandle, QueryService

logger = get_logger(__name__)

_EMBEDDER: Embedder | None = None
_INDEX_HANDLE: IndexHandle | None = None
_BUILDER: IndexBuilder | None = None
_QUERY_SERVICE: QueryService | None = None
_GENERATOR: AnswerGenerator | None = None


@lru_cache(maxsize=1)
def get_app_settings() -> Settings:
    """The one cached settings instance; cleared with ``cache_clear()``."""
    return Settings.from_yaml()


def get_embedder() -> Embedder:
    global _EMBEDDER
    if _EMBEDDER is None:
        _EMBEDDER = Embedder.from_settings(get_app_settings())
    return _EMBEDDER


def get_index_handle() -> IndexHandle:
    global _INDEX_HANDLE
    if _INDEX_HANDLE is None:
        settings = get_app_settings()
        handle = IndexHandle()
        if handle.load_from(settings.data_dir):
            INDEX_SIZE.set(handle.require().count)
            logger.info("Loaded persisted index", extra={"ctx_data_dir": str(settings.data_dir)})
        else:
            logger.info("No persisted index found; build required", extra={"ctx_data_dir": str(settings.data_dir)})
        _INDEX_HANDLE = handle
    return _INDEX_HANDLE


def get_index_builder() -> IndexBuilder:
    global _BUILDER
    if _BUILDER is None:
        _BUILDER = IndexBuilder(
            settings=get_app_settings(),
            embedder=get_embedder(),
            handle=get_index_handle(),
        )
    return _BUILDER


def get_query_service() -> QueryService:
    global _QUERY_SERVICE
    if _QUERY_SERVICE is None:
        _QUERY_SERVICE = QueryService(
            settings=get_app_settings(),
            handle=get_index_handle(),
            embedder=get_embedder(),
        )
    return _QUERY_SERVICE


def get_answer_generator() -> AnswerGenerator:
    global _GENERATOR
    if _GENERATOR is None:
        settings = get_app_settings()
        _GENERATOR = AnswerGenerator(
            query_service=get_query_service(),
            backend=backend_from_settings(settings),
            models=settings.generation_models,
        )
    return _GENERATOR


__all__ = [
    "get_app_settings",
    "get_embedder",
    "get_index_handle",
    "get_index_builder",
    "get_query_service",
    "get_answer_generator",
]
