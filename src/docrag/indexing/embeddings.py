"""
Embedding model factory.

Returns the right LangChain embedding model based on EmbeddingConfig.
This is the single place that maps provider strings to actual classes.

Supported providers:
    "huggingface" → HuggingFaceEmbeddings (local sentence-transformers, default)
    "fake"        → DeterministicFakeEmbedding (hash-seeded vectors, no model download)
    "openai"      → OpenAIEmbeddings (API-based, optional extra)

The returned object covers both halves of the embedding interface:
    model.embed_query(text)        -> one vector
    model.embed_documents(texts)   -> one vector per text, same order

Usage:
    from docrag.indexing.embeddings import get_embedding_model
    from docrag.config import EmbeddingConfig

    model = get_embedding_model(EmbeddingConfig())
    vector = model.embed_query("How are orders routed?")
"""

from langchain_core.documents import Document
from langchain_core.embeddings import Embeddings

from docrag.config import EmbeddingConfig, EmbeddingProvider
from docrag.errors import DimensionMismatchError


def get_embedding_model(config: EmbeddingConfig) -> Embeddings:
    """
    Factory that returns a LangChain embedding model based on config.

    Provider packages are imported lazily so only the one in use needs
    to be installed.

    Args:
        config: EmbeddingConfig with provider, model_name, dimension and
            optional model_kwargs.

    Returns:
        A LangChain Embeddings instance.

    Raises:
        ValueError: If the provider is not recognized.
        ImportError: If the required package for the provider is not installed.
    """
    if config.provider == EmbeddingProvider.HUGGINGFACE:
        from langchain_huggingface import HuggingFaceEmbeddings

        return HuggingFaceEmbeddings(
            model_name=config.model_name,
            model_kwargs=config.model_kwargs,
        )

    elif config.provider == EmbeddingProvider.FAKE:
        from langchain_core.embeddings import DeterministicFakeEmbedding

        return DeterministicFakeEmbedding(size=config.dimension)

    elif config.provider == EmbeddingProvider.OPENAI:
        try:
            from langchain_openai import OpenAIEmbeddings
        except ImportError:
            raise ImportError(
                "OpenAI embeddings require langchain-openai. "
                "Install with: pip install docrag[openai]"
            )

        return OpenAIEmbeddings(
            model=config.model_name,
            dimensions=config.dimension,
            **config.model_kwargs,
        )

    else:
        raise ValueError(
            f"Unknown embedding provider: '{config.provider}'. "
            f"Supported: 'huggingface', 'fake', 'openai'."
        )


def embed_segments(model: Embeddings, segments: list[Document], dimension: int) -> list[list[float]]:
    """
    Embed a batch of segments in one call.

    Vectors come back in segment order. A model that does not produce the
    configured dimension is caught here, before anything reaches the store.
    """
    if not segments:
        return []

    vectors = model.embed_documents([segment.page_content for segment in segments])
    for vector in vectors:
        if len(vector) != dimension:
            raise DimensionMismatchError(dimension, len(vector))
    return vectors
