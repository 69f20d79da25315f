"""Index build orchestration."""

from __future__ import annotations

import threading
import time
from pathlib import Path
from typing import Sequence

from site_assistant.core.config import Settings
from site_assistant.core.errors import EmptyCorpusError, SourceNotFoundError, UnreadableSourceError
from site_assistant.core.logging import get_logger
from site_assistant.core.metrics import BUILD_DURATION, INDEX_SIZE
from site_assistant.ingest.chunker import chunk_text
from site_assistant.ingest.documents import save_documents
from site_assistant.ingest.embeddings import Embedder
from site_assistant.models.entities import Document, IndexStats
from site_assistant.retrieval.vector_index import IndexHandle, VectorIndex

logger = get_logger(__name__)


class IndexBuilder:
    """Rebuild the whole index from the scraped corpus.

    One build runs at a time; a concurrent request waits on the lock. The
    live index keeps serving until the new one is persisted and swapped in.
    """

    def __init__(self, settings: Settings, embedder: Embedder, handle: IndexHandle) -> None:
        self.settings = settings
        self.embedder = embedder
        self.handle = handle
        self._lock = threading.Lock()

    def build_from_file(self, path: Path | None = None) -> IndexStats:
        source = (path or self.settings.scraped_txt_path).expanduser()
        with self._lock:
            if not source.is_file():
                raise SourceNotFoundError(source)
            try:
                raw = source.read_text(encoding="utf-8")
            except UnicodeDecodeError as exc:
                raise UnreadableSourceError(source, f"not valid UTF-8 at byte {exc.start}") from exc
            except OSError as exc:
                raise UnreadableSourceError(source, exc.strerror or str(exc)) from exc
            return self._build(chunk_text(raw, max_chars=self.settings.chunk_max_chars), source)

    def replace_documents(self, documents: Sequence[Document]) -> int:
        """Store a fresh scrape; the index is rebuilt separately."""
        with self._lock:
            return save_documents(documents, self.settings.scraped_json_path, self.settings.scraped_txt_path)

    def _build(self, chunks: list[str], source: Path) -> IndexStats:
        if not chunks:
            raise EmptyCorpusError(f"No content chunks to index in {source}")
        start_time = time.perf_counter()
        logger.info("Index build started", extra={"ctx_source": str(source), "ctx_chunks": len(chunks)})
        index = VectorIndex.build(chunks, self.embedder)
        index.save(self.settings.data_dir)
        self.handle.swap(index)
        duration = time.perf_counter() - start_time
        BUILD_DURATION.observe(duration)
        INDEX_SIZE.set(index.count)
        logger.info(
            "Index build finished",
            extra={"ctx_dimension": index.dimension, "ctx_count": index.count, "ctx_seconds": round(duration, 3)},
        )
        return index.stats


__all__ = ["IndexBuilder"]
