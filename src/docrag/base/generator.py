"""
Abstract base class for answer generators.

The generator is the final stage: it takes retrieved segments and the
question and produces an answer through a remote model.
"""

from abc import ABC, abstractmethod

from docrag.models.result import GenerationResult, RetrievalResult


class BaseGenerator(ABC):
    """
    Contract for answer generators.

    Callers only hand over non-empty retrievals; the empty case is
    answered by the pipeline without a model call.
    """

    @abstractmethod
    def generate(self, query: str, retrieval: RetrievalResult) -> GenerationResult:
        """
        Generate an answer from retrieved segments.

        Args:
            query: The user's question.
            retrieval: Segments to use as context.

        Returns:
            GenerationResult with the answer, sources and model name.
        """
        ...

    @abstractmethod
    def generate_text(self, prompt: str) -> str:
        """Send a fully assembled prompt and return the model's text."""
        ...
