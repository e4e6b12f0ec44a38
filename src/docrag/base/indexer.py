"""
Abstract base classes for document loading and chunking.

Loading and chunking are separate steps so the file walk and the split
strategy can change independently:
    loader = FileTreeLoader()
    chunker = get_chunker(ChunkingConfig(strategy="markdown"))
    segments = chunker.chunk(loader.load("docs/"))
"""

from abc import ABC, abstractmethod
from typing import Iterator

from langchain_core.documents import Document

from docrag.config import ChunkingConfig


class BaseLoader(ABC):
    """
    Contract for document loaders.

    A loader takes a source and yields LangChain Documents, one per file,
    with the file path in metadata["source"]. It does NOT chunk.
    """

    @abstractmethod
    def lazy_load(self, source: str) -> Iterator[Document]:
        """
        Yield documents from a source one at a time.

        Args:
            source: Path the loader understands.

        Returns:
            Iterator of Documents with page_content and metadata populated.
        """
        ...

    def load(self, source: str) -> list[Document]:
        """Eager form of lazy_load()."""
        return list(self.lazy_load(source))


class BaseChunker(ABC):
    """
    Contract for document chunkers.

    Every chunker receives a ChunkingConfig so the caller controls
    chunk_size, overlap and strategy.
    """

    def __init__(self, config: ChunkingConfig):
        self.config = config

    @abstractmethod
    def chunk(self, documents: list[Document]) -> list[Document]:
        """
        Split documents into segments.

        Args:
            documents: Raw documents from a loader.

        Returns:
            Segments with source metadata preserved and chunk_index and
            start_index added. Empty input gives an empty list.
        """
        ...
