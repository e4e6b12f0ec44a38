"""
Retrieval components.

Usage:
    from docrag.retrieval import SimilarityRetriever
"""

from .search import SimilarityRetriever

__all__ = ["SimilarityRetriever"]
