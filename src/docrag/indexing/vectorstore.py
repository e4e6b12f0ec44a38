"""
Vector store factory and the in-memory backend.

This is the final step of the indexing pipeline:

    Loader → Chunker → Embeddings → VectorStore (this file)

Two backends:
    pgvector — PostgreSQL with the pgvector extension. Persistent, shared,
               the default. Lives in indexing/pgvector.py.
    memory   — numpy cosine search over a dict of records. Optionally
               saved to a JSON file (orjson) after every write, which makes
               the CLI usable without a database.

Scoring is the same everywhere: relevance = (1 + cosine) / 2, in [0, 1].

Usage:
    from docrag.indexing.vectorstore import get_vector_store
    from docrag.config import VectorStoreConfig, RetryConfig

    store = get_vector_store(VectorStoreConfig(store_type="memory"), RetryConfig(), dimension=384)
    store.add_all(vectors, segments)
    matches = store.find_relevant(query_vector, max_results=5, min_score=0.6)
"""

from pathlib import Path
from typing import Optional, Sequence

import numpy as np
import orjson
from langchain_core.documents import Document
from loguru import logger

from docrag.base.store import BaseVectorStore
from docrag.config import RetryConfig, VectorStoreConfig, VectorStoreType
from docrag.errors import DimensionMismatchError, StoreConnectionError
from docrag.models.document import Chunk, ScoredDocument, StoredRecord


def get_vector_store(
    store_config: VectorStoreConfig,
    retry_config: RetryConfig,
    dimension: int,
) -> BaseVectorStore:
    """
    Create the configured vector store.

    Args:
        store_config: Which backend and its connection settings.
        retry_config: Retry policy for network backends.
        dimension: Vector length the store accepts (from EmbeddingConfig).

    Returns:
        A ready BaseVectorStore. The pgvector backend has already
        connected and created its table when this returns.

    Raises:
        StoreConnectionError: If the database cannot be reached.
        ValueError: If the store type is unknown.
    """
    if store_config.store_type == VectorStoreType.PGVECTOR:
        from docrag.indexing.pgvector import PgVectorStore

        return PgVectorStore(store_config, dimension=dimension, retry_config=retry_config)

    elif store_config.store_type == VectorStoreType.MEMORY:
        return InMemoryVectorStore(dimension=dimension, persist_path=store_config.persist_path)

    else:
        raise ValueError(
            f"Unknown vector store type: '{store_config.store_type}'. "
            f"Supported: 'pgvector', 'memory'."
        )


def relevance_from_cosine(cosine: np.ndarray) -> np.ndarray:
    """Map cosine similarity in [-1, 1] to a relevance score in [0, 1]."""
    return np.clip((1.0 + cosine) / 2.0, 0.0, 1.0)


# ---------------------------------------------------------------------------
# In-memory backend
# ---------------------------------------------------------------------------

class InMemoryVectorStore(BaseVectorStore):
    """
    Exact nearest-neighbour search in process memory.

    Records are keyed by their content-hash id, so re-adding a segment
    replaces it. With persist_path set, the store loads that file on
    start and rewrites it after every add_all()/clear().
    """

    def __init__(self, dimension: int, persist_path: Optional[str] = None):
        super().__init__(dimension)
        self._records: dict[str, StoredRecord] = {}
        self._persist_path = Path(persist_path) if persist_path else None

        if self._persist_path is not None and self._persist_path.exists():
            self._load()

    def add_all(self, vectors: Sequence[Sequence[float]], segments: Sequence[Document]) -> int:
        records = self.to_records(vectors, segments)
        for record in records:
            self._records[record.id] = record
        if records:
            self._save()
        return len(records)

    def find_relevant(
        self,
        query_vector: Sequence[float],
        max_results: int,
        min_score: float,
    ) -> list[ScoredDocument]:
        self.check_dimension(query_vector)
        if max_results <= 0 or not self._records:
            return []

        records = list(self._records.values())
        matrix = np.asarray([r.vector for r in records], dtype=np.float32)
        query = np.asarray(query_vector, dtype=np.float32)

        norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query)
        norms = np.where(norms == 0, 1.0, norms)  # avoid div-by-zero
        scores = relevance_from_cosine(matrix @ query / norms)

        order = np.argsort(-scores, kind="stable")
        matches: list[ScoredDocument] = []
        for idx in order[:max_results]:
            score = float(scores[idx])
            if score < min_score:
                break
            record = records[idx]
            matches.append(ScoredDocument(
                chunk=Chunk(content=record.text, metadata=record.metadata),
                score=score,
                rank=len(matches),
            ))
        return matches

    def clear(self) -> int:
        removed = len(self._records)
        self._records.clear()
        self._save()
        return removed

    def count(self) -> int:
        return len(self._records)

    # -- persistence ---------------------------------------------------------

    def _save(self) -> None:
        if self._persist_path is None:
            return
        self._persist_path.parent.mkdir(parents=True, exist_ok=True)
        payload = {
            "dimension": self.dimension,
            "records": [record.model_dump() for record in self._records.values()],
        }
        self._persist_path.write_bytes(orjson.dumps(payload))

    def _load(self) -> None:
        try:
            payload = orjson.loads(self._persist_path.read_bytes())
            stored_dimension = payload.get("dimension", self.dimension)
            records = [StoredRecord.model_validate(raw) for raw in payload.get("records", [])]
        except (OSError, ValueError, AttributeError) as e:
            raise StoreConnectionError(
                f"Could not read vector store file {self._persist_path}: {e}"
            ) from e

        if stored_dimension != self.dimension:
            raise DimensionMismatchError(self.dimension, stored_dimension)
        for record in records:
            self._records[record.id] = record
        logger.debug(f"Loaded {len(self._records)} records from {self._persist_path}")
