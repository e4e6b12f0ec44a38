"""
Document models for the pipeline.

These represent data at each stage:
  Segment (split) → StoredRecord (embedded + persisted) → ScoredDocument (retrieved + scored)

Raw documents and segments travel as LangChain Documents; these models take
over once a segment has an identity in the store.
"""

from pydantic import BaseModel, Field


class ChunkMetadata(BaseModel):
    """
    Metadata attached to every stored segment.

    start_index is the character offset of the segment inside its source
    file; together with source and the text it determines the record id.
    """

    source: str = Field(default="", description="File path the segment came from")
    chunk_index: int = Field(default=0, description="Position of this segment in its source")
    start_index: int = Field(default=0, description="Character offset in the source text")
    record_id: str = Field(default="", description="Content-hash identifier in the store")


class Chunk(BaseModel):
    """A single segment of text as it lives in the vector store."""

    content: str = Field(description="The segment text")
    metadata: ChunkMetadata = Field(default_factory=ChunkMetadata)


class StoredRecord(BaseModel):
    """
    One persisted row: id, vector, text and source metadata.

    Built by the vector stores from (vector, segment) pairs in add_all().
    """

    id: str = Field(description="sha256 of source, offset and text")
    vector: list[float] = Field(description="Embedding of text")
    text: str = Field(description="The segment text")
    metadata: ChunkMetadata = Field(default_factory=ChunkMetadata)


class ScoredDocument(BaseModel):
    """
    A chunk with a relevance score attached.

    This is what retrieval returns. Scores are on the (1 + cosine) / 2
    scale, so 1.0 is identical direction and 0.5 is orthogonal.
    """

    chunk: Chunk
    score: float = Field(default=0.0, description="Relevance score (higher = more relevant)")
    rank: int = Field(default=0, description="Position in the result list")
