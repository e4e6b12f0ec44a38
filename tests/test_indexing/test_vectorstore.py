"""Tests for the in-memory vector store and the store factory."""

import numpy as np
import orjson
import pytest
from langchain_core.documents import Document

from docrag.config import RetryConfig, VectorStoreConfig
from docrag.errors import DimensionMismatchError, StoreConnectionError
from docrag.indexing.vectorstore import (
    InMemoryVectorStore,
    get_vector_store,
    relevance_from_cosine,
)


def _unit(dimension: int, axis: int) -> list[float]:
    vector = [0.0] * dimension
    vector[axis] = 1.0
    return vector


def test_relevance_scale():
    """Identical → 1.0, orthogonal → 0.5, opposite → 0.0."""
    scores = relevance_from_cosine(np.array([1.0, 0.0, -1.0]))
    assert scores.tolist() == [1.0, 0.5, 0.0]


def test_add_all_and_count(memory_store, fake_embeddings, sample_segments):
    vectors = fake_embeddings.embed_documents([s.page_content for s in sample_segments])
    written = memory_store.add_all(vectors, sample_segments)
    assert written == 3
    assert memory_store.count() == 3


def test_add_all_is_an_upsert(memory_store, fake_embeddings, sample_segments):
    """Adding the same segments again leaves one record per segment."""
    vectors = fake_embeddings.embed_documents([s.page_content for s in sample_segments])
    memory_store.add_all(vectors, sample_segments)
    memory_store.add_all(vectors, sample_segments)
    assert memory_store.count() == 3


def test_same_text_in_different_sources_is_kept_twice(memory_store, fake_embeddings):
    segments = [
        Document(page_content="Shared paragraph.", metadata={"source": "a.md", "start_index": 0}),
        Document(page_content="Shared paragraph.", metadata={"source": "b.md", "start_index": 0}),
    ]
    vectors = fake_embeddings.embed_documents([s.page_content for s in segments])
    memory_store.add_all(vectors, segments)
    assert memory_store.count() == 2


def test_add_all_length_mismatch(memory_store, sample_segments):
    with pytest.raises(ValueError, match="vectors"):
        memory_store.add_all([[0.0] * 384], sample_segments)


def test_add_all_dimension_mismatch(memory_store, sample_segments):
    with pytest.raises(DimensionMismatchError):
        memory_store.add_all([[0.1] * 10 for _ in sample_segments], sample_segments)
    assert memory_store.count() == 0


def test_find_relevant_exact_match_scores_one(memory_store, fake_embeddings, sample_segments):
    vectors = fake_embeddings.embed_documents([s.page_content for s in sample_segments])
    memory_store.add_all(vectors, sample_segments)

    matches = memory_store.find_relevant(vectors[1], max_results=5, min_score=0.6)

    assert matches[0].chunk.content == sample_segments[1].page_content
    assert matches[0].score == pytest.approx(1.0, abs=1e-5)
    assert matches[0].rank == 0
    assert matches[0].chunk.metadata.source == "docs/routing.md"
    assert matches[0].chunk.metadata.record_id


def test_find_relevant_respects_max_results(memory_store, fake_embeddings, sample_segments):
    vectors = fake_embeddings.embed_documents([s.page_content for s in sample_segments])
    memory_store.add_all(vectors, sample_segments)

    matches = memory_store.find_relevant(vectors[0], max_results=2, min_score=0.0)
    assert len(matches) == 2


def test_find_relevant_threshold_and_order():
    """Scores are non-increasing and every one clears min_score."""
    store = InMemoryVectorStore(dimension=3)
    segments = [
        Document(page_content="same", metadata={"source": "s", "start_index": 0}),
        Document(page_content="orthogonal", metadata={"source": "o", "start_index": 0}),
        Document(page_content="opposite", metadata={"source": "x", "start_index": 0}),
        Document(page_content="close", metadata={"source": "c", "start_index": 0}),
    ]
    store.add_all([[1, 0, 0], [0, 1, 0], [-1, 0, 0], [0.9, 0.1, 0]], segments)

    matches = store.find_relevant([1.0, 0.0, 0.0], max_results=10, min_score=0.5)

    assert [m.chunk.content for m in matches] == ["same", "close", "orthogonal"]
    scores = [m.score for m in matches]
    assert scores == sorted(scores, reverse=True)
    assert all(s >= 0.5 for s in scores)
    assert [m.rank for m in matches] == [0, 1, 2]


def test_find_relevant_nothing_above_threshold():
    store = InMemoryVectorStore(dimension=4)
    store.add_all([_unit(4, 1)], [Document(page_content="other", metadata={"source": "a"})])
    assert store.find_relevant(_unit(4, 0), max_results=5, min_score=0.6) == []


def test_find_relevant_empty_store(memory_store, fake_embeddings):
    assert memory_store.find_relevant(fake_embeddings.embed_query("q"), 5, 0.0) == []


def test_find_relevant_query_dimension(memory_store):
    with pytest.raises(DimensionMismatchError):
        memory_store.find_relevant([0.1] * 5, max_results=5, min_score=0.0)


def test_clear_returns_removed(memory_store, fake_embeddings, sample_segments):
    vectors = fake_embeddings.embed_documents([s.page_content for s in sample_segments])
    memory_store.add_all(vectors, sample_segments)

    assert memory_store.clear() == 3
    assert memory_store.count() == 0
    assert memory_store.clear() == 0


def test_persistence(tmp_path, fake_embeddings, sample_segments):
    """A store reopened on the same file sees the same records."""
    path = tmp_path / "index" / "store.json"
    store = InMemoryVectorStore(dimension=384, persist_path=str(path))
    vectors = fake_embeddings.embed_documents([s.page_content for s in sample_segments])
    store.add_all(vectors, sample_segments)

    reopened = InMemoryVectorStore(dimension=384, persist_path=str(path))
    assert reopened.count() == 3
    matches = reopened.find_relevant(vectors[2], max_results=1, min_score=0.9)
    assert matches[0].chunk.content == sample_segments[2].page_content

    reopened.clear()
    assert InMemoryVectorStore(dimension=384, persist_path=str(path)).count() == 0


def test_persisted_dimension_must_match(tmp_path):
    path = tmp_path / "store.json"
    path.write_bytes(orjson.dumps({"dimension": 768, "records": []}))
    with pytest.raises(DimensionMismatchError, match="768"):
        InMemoryVectorStore(dimension=384, persist_path=str(path))


@pytest.mark.parametrize("content", [b"not json", b"[1, 2]", b'{"records": [{"id": 1}]}'])
def test_unreadable_persist_file(tmp_path, content):
    """A corrupt store file is a store error, not a raw decode traceback."""
    path = tmp_path / "store.json"
    path.write_bytes(content)
    with pytest.raises(StoreConnectionError, match="store.json"):
        InMemoryVectorStore(dimension=384, persist_path=str(path))


def test_factory_memory(tmp_path):
    config = VectorStoreConfig(store_type="memory", persist_path=str(tmp_path / "s.json"))
    store = get_vector_store(config, RetryConfig(), dimension=384)
    assert isinstance(store, InMemoryVectorStore)
    assert store.dimension == 384
