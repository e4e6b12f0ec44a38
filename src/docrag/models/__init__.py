"""
Pydantic models shared across docrag.

Import from here rather than reaching into submodules:
    from docrag.models import Chunk, RetrievalResult, IngestReport
"""

from .document import Chunk, ChunkMetadata, ScoredDocument, StoredRecord
from .result import (
    IngestReport,
    RetrievalResult,
    GenerationResult,
    RAGResponse,
)

__all__ = [
    # Document
    "Chunk",
    "ChunkMetadata",
    "ScoredDocument",
    "StoredRecord",
    # Result
    "IngestReport",
    "RetrievalResult",
    "GenerationResult",
    "RAGResponse",
]
