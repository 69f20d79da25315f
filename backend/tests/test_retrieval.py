"""Tests for retrieval utilities."""

from pathlib import Path

import pytest

from site_assistant.core.config import Settings
from site_assistant.core.errors import EmptyCorpusError, InputError, NotReadyError
from site_assistant.ingest.embeddings import Embedder, HashedEmbeddingBackend
from site_assistant.retrieval.normalize import normalize
from site_assistant.retrieval.search import QueryService
from site_assistant.retrieval.vector_index import INDEX_FILENAME, META_FILENAME, IndexHandle, VectorIndex

CHUNKS = [
    "Our home insurance covers fire damage and theft of belongings.",
    "Auto insurance protects your car on the road.",
]


@pytest.fixture
def embedder() -> Embedder:
    return Embedder(HashedEmbeddingBackend(dim=384), ["hashed"])


def _query(index: VectorIndex, embedder: Embedder, text: str, k: int = 4):
    return index.search(normalize(embedder.embed(text)), k)


def test_vector_index_ranks_relevant_chunk_first(embedder: Embedder) -> None:
    index = VectorIndex.build(CHUNKS, embedder)
    assert index.count == 2
    assert index.dimension == 384

    hits = _query(index, embedder, "Does home insurance cover fire damage?", k=1)
    assert len(hits) == 1
    assert hits[0].index == 0
    assert hits[0].text == CHUNKS[0]


def test_search_returns_at_most_k_in_score_order(embedder: Embedder) -> None:
    index = VectorIndex.build(CHUNKS, embedder)
    hits = _query(index, embedder, "insurance", k=10)
    assert len(hits) == 2
    assert hits[0].score >= hits[1].score
    assert all(hit.text == CHUNKS[hit.index] for hit in hits)


def test_search_rejects_wrong_dimension(embedder: Embedder) -> None:
    index = VectorIndex.build(CHUNKS, embedder)
    with pytest.raises(ValueError):
        index.search([1.0, 0.0], 1)


def test_build_requires_chunks(embedder: Embedder) -> None:
    with pytest.raises(EmptyCorpusError):
        VectorIndex.build([], embedder)


def test_save_and_load_round_trip(tmp_path: Path, embedder: Embedder) -> None:
    index = VectorIndex.build(CHUNKS, embedder)
    index.save(tmp_path)
    assert (tmp_path / INDEX_FILENAME).exists()
    assert (tmp_path / META_FILENAME).exists()

    loaded = VectorIndex.load(tmp_path)
    assert loaded is not None
    assert loaded.stats == index.stats
    assert loaded.chunk_texts == CHUNKS
    query = "fire damage"
    assert _query(loaded, embedder, query) == _query(index, embedder, query)


def test_load_without_both_files_returns_none(tmp_path: Path, embedder: Embedder) -> None:
    VectorIndex.build(CHUNKS, embedder).save(tmp_path)
    (tmp_path / META_FILENAME).unlink()
    assert VectorIndex.load(tmp_path) is None
    assert VectorIndex.load(tmp_path / "missing") is None


def test_load_rejects_mismatched_metadata(tmp_path: Path, embedder: Embedder) -> None:
    VectorIndex.build(CHUNKS, embedder).save(tmp_path)
    (tmp_path / META_FILENAME).write_text('{"dimension": 384, "count": 1, "chunkTexts": ["only one"]}')
    assert VectorIndex.load(tmp_path) is None


def test_handle_requires_index_until_swapped(embedder: Embedder) -> None:
    handle = IndexHandle()
    assert not handle.ready
    with pytest.raises(NotReadyError):
        handle.require()

    first = VectorIndex.build(CHUNKS, embedder)
    assert handle.swap(first) is None
    second = VectorIndex.build(CHUNKS[:1], embedder)
    assert handle.swap(second) is first
    assert handle.require() is second


def test_query_service_checks_input_before_readiness(tmp_path: Path, embedder: Embedder) -> None:
    service = QueryService(Settings(data_dir=tmp_path), IndexHandle(), embedder)
    with pytest.raises(InputError):
        service.search("   ")
    with pytest.raises(NotReadyError):
        service.search("fire")


def test_query_service_defaults_k_from_settings(tmp_path: Path, embedder: Embedder) -> None:
    handle = IndexHandle(VectorIndex.build(CHUNKS, embedder))
    service = QueryService(Settings(data_dir=tmp_path, top_k=1), handle, embedder)
    assert len(service.search("insurance")) == 1
    assert len(service.search("insurance", 2)) == 2


def test_load_rejects_index_paired_with_older_metadata(tmp_path: Path, embedder: Embedder) -> None:
    first, second = tmp_path / "first", tmp_path / "second"
    VectorIndex.build(CHUNKS, embedder).save(first)
    VectorIndex.build(["Pet insurance covers vets.", "Travel insurance covers trips."], embedder).save(second)
    assert VectorIndex.load(first) is not None

    (first / INDEX_FILENAME).write_bytes((second / INDEX_FILENAME).read_bytes())
    assert VectorIndex.load(first) is None
