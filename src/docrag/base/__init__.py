"""
Abstract base classes defining the contract for each pipeline stage.

Import from here:
    from docrag.base import BaseLoader, BaseVectorStore, BaseGenerator
"""

from .indexer import BaseLoader, BaseChunker
from .store import BaseVectorStore
from .retriever import BaseRetriever
from .generator import BaseGenerator

__all__ = [
    "BaseLoader",
    "BaseChunker",
    "BaseVectorStore",
    "BaseRetriever",
    "BaseGenerator",
]
