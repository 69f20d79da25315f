"""Retrieval orchestration components."""

from .citations import CitationResolver
from .normalize import normalize
from .search import QueryService
from .vector_index import IndexHandle, VectorIndex

__all__ = [
    "CitationResolver",
    "IndexHandle",
    "QueryService",
    "VectorIndex",
    "normalize",
]
