"""
Result models for ingestion, retrieval and generation.

These are the outputs of the pipeline, what the CLI renders.
"""

from typing import Optional

from pydantic import BaseModel, Field

from .document import ScoredDocument


# ---------------------------------------------------------------------------
# Ingestion
# ---------------------------------------------------------------------------

class IngestReport(BaseModel):
    """
    Outcome of one `ingest` invocation across all of its paths.

    errors holds the human-readable message of every per-path and per-file
    failure, in the order they happened.
    """

    paths: list[str] = Field(default_factory=list, description="Paths requested")
    invalid_paths: list[str] = Field(default_factory=list, description="Paths that did not exist")
    files_processed: int = Field(default=0, description="Files segmented and stored")
    files_skipped: int = Field(default=0, description="Empty or whitespace-only files")
    files_failed: int = Field(default=0, description="Files that could not be read or stored")
    segments_stored: int = Field(default=0, description="Records written to the store")
    errors: list[str] = Field(default_factory=list)
    cancelled: bool = Field(default=False, description="Stopped early by a signal")

    @property
    def ok(self) -> bool:
        return not self.invalid_paths and self.files_failed == 0 and not self.cancelled


# ---------------------------------------------------------------------------
# Retrieval results
# ---------------------------------------------------------------------------

class RetrievalResult(BaseModel):
    """
    Output of the retrieval stage.

    Bundles the matches with the parameters they were retrieved under.
    """

    documents: list[ScoredDocument] = Field(default_factory=list)
    query_used: str = Field(description="The query that was embedded")
    strategy: str = Field(default="similarity", description="Retrieval strategy used")
    k: int = Field(default=0, description="Maximum matches requested")
    min_score: float = Field(default=0.0, description="Score threshold applied")


# ---------------------------------------------------------------------------
# Generation results
# ---------------------------------------------------------------------------

class GenerationResult(BaseModel):
    """Output of the generation stage."""

    answer: str = Field(description="The generated answer")
    sources: list[str] = Field(
        default_factory=list,
        description="Source files of the segments given as context",
    )
    model: str = Field(default="", description="Model that produced this answer")


# ---------------------------------------------------------------------------
# Full chat response (top-level output)
# ---------------------------------------------------------------------------

class RAGResponse(BaseModel):
    """
    The complete response to a `chat` question.

    generation is None when retrieval found nothing and the fixed
    fallback answer was returned without calling the model.
    """

    answer: str = Field(description="The answer shown to the user")
    retrieval: Optional[RetrievalResult] = Field(
        default=None, description="Retrieval details (documents, scores)",
    )
    generation: Optional[GenerationResult] = Field(
        default=None, description="Generation details (model, sources)",
    )

    @property
    def grounded(self) -> bool:
        return self.generation is not None
