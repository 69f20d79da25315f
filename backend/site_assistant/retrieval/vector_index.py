"""Vector index backed by FAISS inner-product search."""

from __future__ import annotations

import hashlib
import logging
import os
import threading
from pathlib import Path
from typing import Sequence

import faiss
import numpy as np
import orjson

from site_assistant.core.errors import EmbeddingError, EmptyCorpusError, NotReadyError
from site_assistant.ingest.embeddings import Embedder
from site_assistant.models.entities import Hit, IndexStats
from site_assistant.retrieval.normalize import normalize

logger = logging.getLogger(__name__)

INDEX_FILENAME = "faiss.index"
META_FILENAME = "faiss_meta.json"


class VectorIndex:
    """Normalized chunk vectors plus their texts, searched by inner product.

    Instances are immutable once built; a rebuild produces a new instance.
    """

    def __init__(self, index: faiss.Index, chunk_texts: Sequence[str]) -> None:
        if index.ntotal != len(chunk_texts):
            raise ValueError(
                f"Index holds {index.ntotal} vectors but {len(chunk_texts)} chunk texts were given"
            )
        self._index = index
        self._chunk_texts = list(chunk_texts)

    @property
    def dimension(self) -> int:
        return int(self._index.d)

    @property
    def count(self) -> int:
        return len(self._chunk_texts)

    @property
    def chunk_texts(self) -> list[str]:
        return list(self._chunk_texts)

    @property
    def stats(self) -> IndexStats:
        return IndexStats(dimension=self.dimension, count=self.count)

    @classmethod
    def build(cls, chunks: Sequence[str], embedder: Embedder) -> "VectorIndex":
        if not chunks:
            raise EmptyCorpusError()
        vectors = [normalize(vector) for vector in embedder.embed_many(chunks)]
        dimension = len(vectors[0])
        for position, vector in enumerate(vectors):
            if len(vector) != dimension:
                raise EmbeddingError(
                    f"Chunk {position} embedded to {len(vector)} dimensions, expected {dimension}"
                )
        index = faiss.IndexFlatIP(dimension)
        index.add(np.vstack(vectors).astype(np.float32))
        logger.info("Built vector index", extra={"ctx_dimension": dimension, "ctx_count": len(chunks)})
        return cls(index, chunks)

    def search(self, query_vector: Sequence[float] | np.ndarray, k: int = 4) -> list[Hit]:
        vector = np.asarray(query_vector, dtype=np.float32).reshape(1, -1)
        if vector.shape[1] != self.dimension:
            raise ValueError(f"Query vector has {vector.shape[1]} dimensions, index has {self.dimension}")
        if k <= 0 or self.count == 0:
            return []
        scores, labels = self._index.search(vector, min(k, self.count))
        hits: list[Hit] = []
        for label, score in zip(labels[0], scores[0]):
            position = int(label)
            if position < 0 or position >= self.count:
                continue
            hits.append(Hit(index=position, score=float(score), text=self._chunk_texts[position]))
        return hits

    def save(self, directory: Path) -> None:
        """Write the index blob, then its metadata record, each atomically."""
        directory.mkdir(parents=True, exist_ok=True)
        index_path = directory / INDEX_FILENAME
        meta_path = directory / META_FILENAME
        tmp_index = directory / f".{INDEX_FILENAME}.tmp"
        faiss.write_index(self._index, str(tmp_index))
        digest = _file_digest(tmp_index)
        os.replace(tmp_index, index_path)
        meta = {
            "dimension": self.dimension,
            "count": self.count,
            "indexDigest": digest,
            "chunkTexts": self._chunk_texts,
        }
        tmp_meta = directory / f".{META_FILENAME}.tmp"
        tmp_meta.write_bytes(orjson.dumps(meta, option=orjson.OPT_INDENT_2))
        os.replace(tmp_meta, meta_path)

    @classmethod
    def load(cls, directory: Path) -> "VectorIndex | None":
        """Read both artifacts; ``None`` when either is absent or they disagree.

        The metadata records a digest of the index file it was written with, so
        an index left paired with older metadata is rejected.
        """
        index_path = directory / INDEX_FILENAME
        meta_path = directory / META_FILENAME
        if not index_path.exists() or not meta_path.exists():
            return None
        try:
            meta = orjson.loads(meta_path.read_bytes())
            digest = _file_digest(index_path)
            index = faiss.read_index(str(index_path))
        except (OSError, RuntimeError, orjson.JSONDecodeError) as exc:
            logger.warning("Persisted index unreadable: %s", exc)
            return None
        chunk_texts = meta.get("chunkTexts") if isinstance(meta, dict) else None
        if not isinstance(chunk_texts, list):
            logger.warning("Persisted index metadata has no chunk texts")
            return None
        if meta.get("count") != len(chunk_texts) or index.ntotal != len(chunk_texts) or meta.get("dimension") != index.d:
            logger.warning(
                "Persisted index and metadata disagree",
                extra={"ctx_meta_count": meta.get("count"), "ctx_index_count": index.ntotal},
            )
            return None
        if meta.get("indexDigest") != digest:
            logger.warning("Persisted metadata was written for a different index file")
            return None
        return cls(index, [str(text) for text in chunk_texts])


def _file_digest(path: Path) -> str:
    return hashlib.blake2b(path.read_bytes(), digest_size=16).hexdigest()


class IndexHandle:
    """Owns the live :class:`VectorIndex`; rebuilds swap it wholesale.

    Readers grab the current index once per request, so a search running
    during a rebuild finishes against the index it started with.
    """

    def __init__(self, index: VectorIndex | None = None) -> None:
        self._index = index
        self._lock = threading.Lock()

    @property
    def current(self) -> VectorIndex | None:
        return self._index

    @property
    def ready(self) -> bool:
        return self._index is not None

    def require(self) -> VectorIndex:
        index = self._index
        if index is None:
            raise NotReadyError()
        return index

    def swap(self, index: VectorIndex) -> VectorIndex | None:
        with self._lock:
            previous, self._index = self._index, index
        return previous

    def load_from(self, directory: Path) -> bool:
        index = VectorIndex.load(directory)
        if index is None:
            return False
        self.swap(index)
        return True


__all__ = ["VectorIndex", "IndexHandle", "INDEX_FILENAME", "META_FILENAME"]
