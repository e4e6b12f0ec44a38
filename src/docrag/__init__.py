"""
docrag — ask questions about your documentation.

Quick start:
    from docrag import DocAssistant, load_config

    with DocAssistant(load_config()) as assistant:
        assistant.ingest(["docs/"])
        response = assistant.chat("How are orders routed?")
        print(response.answer)

Or from the shell:
    docrag ingest docs/
    docrag chat "How are orders routed?"
"""

from docrag.config import (
    AppConfig,
    ChunkingConfig,
    EmbeddingConfig,
    LLMConfig,
    RetrieverConfig,
    RetryConfig,
    VectorStoreConfig,
    load_config,
)
from docrag.pipeline import DocAssistant

__all__ = [
    # Pipeline (public API)
    "DocAssistant",
    # Config
    "AppConfig",
    "LLMConfig",
    "EmbeddingConfig",
    "ChunkingConfig",
    "RetrieverConfig",
    "VectorStoreConfig",
    "RetryConfig",
    "load_config",
]

__version__ = "0.1.0"
