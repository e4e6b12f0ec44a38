"""
Vector store retrieval.

Embeds the query and asks the store for its nearest records:

    retriever = SimilarityRetriever(embeddings, store, RetrieverConfig(k=5, min_score=0.6))
    result = retriever.retrieve("How are orders routed?")
    # → RetrievalResult with up to 5 ScoredDocuments, best first

The store does the filtering and ordering; the retriever owns the
defaults and re-checks the contract so a misbehaving backend cannot
hand more than k matches, or matches under the threshold, to generation.
"""

from typing import Optional

from langchain_core.embeddings import Embeddings
from loguru import logger

from docrag.base.retriever import BaseRetriever
from docrag.base.store import BaseVectorStore
from docrag.config import RetrieverConfig
from docrag.models.result import RetrievalResult


class SimilarityRetriever(BaseRetriever):
    """
    Cosine similarity search with a score threshold.

    Scores are relevance values, (1 + cosine) / 2, so min_score=0.6
    keeps matches with a cosine similarity of at least 0.2.
    """

    def __init__(
        self,
        embeddings: Embeddings,
        store: BaseVectorStore,
        config: Optional[RetrieverConfig] = None,
    ):
        self._embeddings = embeddings
        self._store = store
        self._config = config or RetrieverConfig()

    def retrieve(
        self,
        query: str,
        k: Optional[int] = None,
        min_score: Optional[float] = None,
    ) -> RetrievalResult:
        k = self._config.k if k is None else k
        min_score = self._config.min_score if min_score is None else min_score

        query_vector = self._embeddings.embed_query(query)
        matches = self._store.find_relevant(query_vector, max_results=k, min_score=min_score)

        documents = sorted(
            (m for m in matches if m.score >= min_score),
            key=lambda m: m.score,
            reverse=True,
        )[:k]
        for rank, doc in enumerate(documents):
            doc.rank = rank

        logger.debug(
            f"[retrieve] {len(documents)} matches for {query!r} (k={k}, min_score={min_score})"
        )

        return RetrievalResult(
            documents=documents,
            query_used=query,
            strategy="similarity",
            k=k,
            min_score=min_score,
        )
