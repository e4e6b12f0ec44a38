"""
Document segmentation.

Takes loaded Documents and splits them into bounded, overlapping segments
for embedding. Each chunker implements BaseChunker and is driven by
ChunkingConfig.

Choosing a strategy:

    "recursive"     Default. Splits on paragraphs → lines → words →
                    characters, so a hard cut only happens when a single
                    word is longer than chunk_size.

    "markdown"      Same idea, but tries markdown structure first
                    (headings, code fences, horizontal rules). Keeps a
                    section and its heading together when they fit.

Every segment carries:
    source       the file it came from
    chunk_index  position within that file, from 0
    start_index  character offset of the segment in the file's text

Usage:
    from docrag.indexing.chunking import get_chunker
    from docrag.config import ChunkingConfig

    chunker = get_chunker(ChunkingConfig(chunk_size=512, chunk_overlap=100))
    segments = chunker.chunk(documents)
"""

from abc import abstractmethod
from collections import defaultdict

from langchain_core.documents import Document
from langchain_text_splitters import (
    MarkdownTextSplitter,
    RecursiveCharacterTextSplitter,
    TextSplitter,
)

from docrag.base.indexer import BaseChunker
from docrag.config import ChunkingConfig, ChunkingStrategy


class _SplitterChunker(BaseChunker):
    """Runs a LangChain TextSplitter and numbers the output per source."""

    def __init__(self, config: ChunkingConfig):
        super().__init__(config)
        self._splitter = self._build_splitter(config)

    @abstractmethod
    def _build_splitter(self, config: ChunkingConfig) -> TextSplitter:
        ...

    def chunk(self, documents: list[Document]) -> list[Document]:
        """
        Split documents into segments.

        Metadata from the original document is preserved on each segment;
        chunk_index counts from 0 within each source.
        """
        if not documents:
            return []

        chunks = self._splitter.split_documents(documents)

        counters: dict[str, int] = defaultdict(int)
        for chunk in chunks:
            source = chunk.metadata.get("source", "")
            chunk.metadata["chunk_index"] = counters[source]
            counters[source] += 1

        return chunks


class RecursiveChunker(_SplitterChunker):
    """
    Splits text using a hierarchy of separators.

    RecursiveCharacterTextSplitter tries to split on double newlines first
    (paragraph boundaries), then single newlines, then spaces, then
    characters. Adjacent segments share up to chunk_overlap characters.
    """

    def _build_splitter(self, config: ChunkingConfig) -> TextSplitter:
        return RecursiveCharacterTextSplitter(
            chunk_size=config.chunk_size,
            chunk_overlap=config.chunk_overlap,
            length_function=len,
            separators=["\n\n", "\n", " ", ""],
            add_start_index=True,
        )


class MarkdownChunker(_SplitterChunker):
    """
    Markdown-aware splitting.

    MarkdownTextSplitter is a RecursiveCharacterTextSplitter whose
    separator list starts with markdown headings and block boundaries.
    """

    def _build_splitter(self, config: ChunkingConfig) -> TextSplitter:
        return MarkdownTextSplitter(
            chunk_size=config.chunk_size,
            chunk_overlap=config.chunk_overlap,
            length_function=len,
            add_start_index=True,
        )


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------

def get_chunker(config: ChunkingConfig) -> BaseChunker:
    """
    Factory that returns the right chunker based on config.strategy.

    Args:
        config: ChunkingConfig with strategy set.

    Returns:
        A BaseChunker implementation.

    Raises:
        ValueError: If the strategy is not recognized.
    """
    if config.strategy == ChunkingStrategy.RECURSIVE:
        return RecursiveChunker(config)

    elif config.strategy == ChunkingStrategy.MARKDOWN:
        return MarkdownChunker(config)

    else:
        raise ValueError(
            f"Unknown chunking strategy: '{config.strategy}'. "
            f"Built-in strategies: 'recursive', 'markdown'."
        )
