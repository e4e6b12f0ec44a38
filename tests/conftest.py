"""
Shared test fixtures for the docrag test suite.

Everything runs offline: embeddings come from DeterministicFakeEmbedding,
the store is the in-memory backend, and chat models are mocks.
"""

import os
from unittest.mock import MagicMock

import pytest
from langchain_core.documents import Document
from langchain_core.embeddings import DeterministicFakeEmbedding
from langchain_core.messages import AIMessage
from loguru import logger

from docrag.config import (
    AppConfig,
    ChunkingConfig,
    EmbeddingConfig,
    LLMConfig,
    RetrieverConfig,
    RetryConfig,
    VectorStoreConfig,
)
from docrag.indexing.vectorstore import InMemoryVectorStore
from docrag.models.document import Chunk, ChunkMetadata, ScoredDocument
from docrag.models.result import RetrievalResult
from docrag.pipeline import DocAssistant

DIMENSION = 384


# ---------------------------------------------------------------------------
# Environment isolation
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """No stray DOCRAG_* settings, API keys or ./.env leak into a test."""
    for key in list(os.environ):
        if key.upper().startswith("DOCRAG_"):
            monkeypatch.delenv(key, raising=False)
    for key in ("GOOGLE_AI_GEMINI_API_KEY", "GEMINI_API_KEY"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    yield
    logger.remove()


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def no_wait_retry():
    return RetryConfig(attempts=2, min_wait=0.0, max_wait=0.0)


@pytest.fixture
def google_llm_config():
    return LLMConfig(provider="google", model_name="gemini-2.0-flash", api_key="test-key")


@pytest.fixture
def chunking_config():
    return ChunkingConfig(strategy="recursive", chunk_size=512, chunk_overlap=100)


@pytest.fixture
def app_config(no_wait_retry):
    """Offline config: fake embeddings, memory store, no retry waits."""
    return AppConfig(
        embedding=EmbeddingConfig(provider="fake", dimension=DIMENSION),
        vector_store=VectorStoreConfig(store_type="memory"),
        retriever=RetrieverConfig(k=5, min_score=0.6),
        retry=no_wait_retry,
    )


# ---------------------------------------------------------------------------
# Collaborator fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def fake_embeddings():
    return DeterministicFakeEmbedding(size=DIMENSION)


@pytest.fixture
def memory_store():
    return InMemoryVectorStore(dimension=DIMENSION)


@pytest.fixture
def mock_generator():
    """A generator that must not be called unless a test says so."""
    return MagicMock()


@pytest.fixture
def assistant(app_config, fake_embeddings, memory_store, mock_generator):
    return DocAssistant(
        app_config,
        embeddings=fake_embeddings,
        store=memory_store,
        generator=mock_generator,
    )


@pytest.fixture
def mock_llm():
    """A chat model mock returning a fixed AIMessage."""
    llm = MagicMock()
    llm.invoke.return_value = AIMessage(content="Orders are routed by the brokering engine.")
    return llm


# ---------------------------------------------------------------------------
# Sample data fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def docs_tree(tmp_path):
    """
    A small documentation folder:

        docs/routing.md         two paragraphs
        docs/inventory.txt      one paragraph
        docs/empty.md           empty
        docs/blank.txt          whitespace only
        docs/logo.png           wrong extension
        docs/guides/deep.md     nested file
    """
    root = tmp_path / "docs"
    (root / "guides").mkdir(parents=True)
    (root / "routing.md").write_text(
        "# Order routing\n\n"
        "Orders are routed by the brokering engine.\n\n"
        "Each routing rule filters facilities by inventory and distance.\n",
        encoding="utf-8",
    )
    (root / "inventory.txt").write_text(
        "Inventory is reserved when an order is brokered to a facility.\n",
        encoding="utf-8",
    )
    (root / "empty.md").write_text("", encoding="utf-8")
    (root / "blank.txt").write_text("   \n\t\n", encoding="utf-8")
    (root / "logo.png").write_bytes(b"\x89PNG\r\n")
    (root / "guides" / "deep.md").write_text(
        "Rejected orders go back to the queue for the next brokering run.\n",
        encoding="utf-8",
    )
    return root


@pytest.fixture
def sample_segments():
    """Segments as a chunker would produce them."""
    return [
        Document(
            page_content="Orders are routed by the brokering engine.",
            metadata={"source": "docs/routing.md", "chunk_index": 0, "start_index": 0},
        ),
        Document(
            page_content="Each routing rule filters facilities by inventory.",
            metadata={"source": "docs/routing.md", "chunk_index": 1, "start_index": 44},
        ),
        Document(
            page_content="Inventory is reserved when an order is brokered.",
            metadata={"source": "docs/inventory.txt", "chunk_index": 0, "start_index": 0},
        ),
    ]


@pytest.fixture
def sample_scored_documents():
    return [
        ScoredDocument(
            chunk=Chunk(
                content="Orders are routed by the brokering engine.",
                metadata=ChunkMetadata(source="docs/routing.md", chunk_index=0),
            ),
            score=0.95,
            rank=0,
        ),
        ScoredDocument(
            chunk=Chunk(
                content="Each routing rule filters facilities by inventory.",
                metadata=ChunkMetadata(source="docs/routing.md", chunk_index=1),
            ),
            score=0.81,
            rank=1,
        ),
        ScoredDocument(
            chunk=Chunk(
                content="Inventory is reserved when an order is brokered.",
                metadata=ChunkMetadata(source="docs/inventory.txt", chunk_index=0),
            ),
            score=0.72,
            rank=2,
        ),
    ]


@pytest.fixture
def sample_retrieval_result(sample_scored_documents):
    return RetrievalResult(
        documents=sample_scored_documents,
        query_used="How are orders routed?",
        strategy="similarity",
        k=5,
        min_score=0.6,
    )
