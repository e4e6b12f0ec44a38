"""
Abstract base class for retrievers.

A retriever takes a natural language query and returns relevant segments.
SimilarityRetriever is the only implementation.
"""

from abc import ABC, abstractmethod
from typing import Optional

from docrag.models.result import RetrievalResult


class BaseRetriever(ABC):
    """
    Contract for retrievers.

    Every retriever returns a RetrievalResult which wraps the scored
    matches plus the parameters used to get them.
    """

    @abstractmethod
    def retrieve(
        self,
        query: str,
        k: Optional[int] = None,
        min_score: Optional[float] = None,
    ) -> RetrievalResult:
        """
        Retrieve segments for a query.

        Args:
            query: Natural language query.
            k: Maximum matches; the configured default when None.
            min_score: Score threshold; the configured default when None.

        Returns:
            RetrievalResult with matches in descending score order.
        """
        ...
