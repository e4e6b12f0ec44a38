"""
Indexing pipeline: load → chunk → embed → store.

Usage:
    from docrag.indexing import FileTreeLoader, get_chunker, get_embedding_model, get_vector_store
"""

from .loader import FileTreeLoader
from .chunking import get_chunker, RecursiveChunker, MarkdownChunker
from .embeddings import get_embedding_model, embed_segments
from .vectorstore import get_vector_store, InMemoryVectorStore

__all__ = [
    # Loader
    "FileTreeLoader",
    # Chunkers
    "get_chunker",
    "RecursiveChunker",
    "MarkdownChunker",
    # Embeddings
    "get_embedding_model",
    "embed_segments",
    # Vector store
    "get_vector_store",
    "InMemoryVectorStore",
]
