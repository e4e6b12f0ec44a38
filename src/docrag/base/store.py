"""
Abstract base class for vector stores.

The store is an external collaborator; this is the narrow surface the
pipeline talks to. Two implementations ship with docrag:
    - PgVectorStore:       PostgreSQL + pgvector (the default)
    - InMemoryVectorStore: numpy, optionally saved to a file

Scores are relevance values in [0, 1] computed as (1 + cosine) / 2.
"""

from abc import ABC, abstractmethod
from typing import Sequence

from langchain_core.documents import Document

from docrag.errors import DimensionMismatchError
from docrag.models.document import ChunkMetadata, ScoredDocument, StoredRecord
from docrag.utils.helpers import make_record_id


class BaseVectorStore(ABC):
    """
    Contract for vector stores.

    Records are keyed by a content hash of (source, offset, text), so
    adding the same segment twice overwrites instead of duplicating.
    """

    def __init__(self, dimension: int):
        self.dimension = dimension

    @abstractmethod
    def add_all(self, vectors: Sequence[Sequence[float]], segments: Sequence[Document]) -> int:
        """
        Upsert one record per (vector, segment) pair.

        Returns:
            Number of records written.

        Raises:
            ValueError: If vectors and segments differ in length.
            DimensionMismatchError: If a vector has the wrong length.
        """
        ...

    @abstractmethod
    def find_relevant(
        self,
        query_vector: Sequence[float],
        max_results: int,
        min_score: float,
    ) -> list[ScoredDocument]:
        """
        Return at most max_results matches scoring >= min_score, best first.

        An empty list means nothing cleared the threshold.
        """
        ...

    @abstractmethod
    def clear(self) -> int:
        """Remove every record. Irreversible. Returns the number removed."""
        ...

    @abstractmethod
    def count(self) -> int:
        """Number of records currently stored."""
        ...

    def close(self) -> None:
        """Release connections or flush state. No-op by default."""

    def to_records(
        self,
        vectors: Sequence[Sequence[float]],
        segments: Sequence[Document],
    ) -> list[StoredRecord]:
        """
        Validate a batch and turn it into StoredRecords.

        Shared by implementations so the length and dimension checks
        behave the same everywhere.
        """
        if len(vectors) != len(segments):
            raise ValueError(
                f"Got {len(vectors)} vectors for {len(segments)} segments"
            )

        records = []
        for vector, segment in zip(vectors, segments):
            self.check_dimension(vector)
            source = str(segment.metadata.get("source", ""))
            start_index = int(segment.metadata.get("start_index", 0))
            record_id = make_record_id(source, start_index, segment.page_content)
            records.append(StoredRecord(
                id=record_id,
                vector=[float(x) for x in vector],
                text=segment.page_content,
                metadata=ChunkMetadata(
                    source=source,
                    chunk_index=int(segment.metadata.get("chunk_index", 0)),
                    start_index=start_index,
                    record_id=record_id,
                ),
            ))
        return records

    def check_dimension(self, vector: Sequence[float]) -> None:
        if len(vector) != self.dimension:
            raise DimensionMismatchError(self.dimension, len(vector))
