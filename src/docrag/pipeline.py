"""
The documentation assistant: ingest, search, chat, reset.

DocAssistant wires the stages together and is what the CLI drives:

    with DocAssistant(load_config()) as assistant:
        report = assistant.ingest(["docs/"])
        response = assistant.chat("How are orders routed?")
        print(response.answer)

Collaborators are built lazily from AppConfig on first use, so `reset`
never loads the embedding model and a `chat` that retrieves nothing
never builds the chat model. Each one can also be injected, which is how
the tests run the whole pipeline offline:

    assistant = DocAssistant(config, embeddings=fake, store=InMemoryVectorStore(384))
"""

from pathlib import Path
from typing import Optional, Sequence, Union

from langchain_core.documents import Document
from langchain_core.embeddings import Embeddings
from loguru import logger

from docrag.base.generator import BaseGenerator
from docrag.base.indexer import BaseChunker, BaseLoader
from docrag.base.store import BaseVectorStore
from docrag.config import AppConfig
from docrag.errors import (
    ConfigurationError,
    DimensionMismatchError,
    DocRagError,
    InvalidPathError,
    StoreConnectionError,
)
from docrag.generation.generate import SimpleGenerator
from docrag.generation.prompts import NO_CONTEXT_RESPONSE
from docrag.indexing.chunking import get_chunker
from docrag.indexing.embeddings import embed_segments, get_embedding_model
from docrag.indexing.loader import FileTreeLoader
from docrag.indexing.vectorstore import get_vector_store
from docrag.models.result import IngestReport, RAGResponse, RetrievalResult
from docrag.retrieval.search import SimilarityRetriever
from docrag.utils.signals import CancellationToken

# Errors that mean the whole ingest is misconfigured, not just one file.
_FATAL_INGEST_ERRORS = (StoreConnectionError, DimensionMismatchError, ConfigurationError)


class DocAssistant:
    """
    Ingestion and question answering over one vector store.

    No state is shared between commands beyond the collaborators
    themselves; every method can be called on its own.
    """

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        *,
        embeddings: Optional[Embeddings] = None,
        store: Optional[BaseVectorStore] = None,
        generator: Optional[BaseGenerator] = None,
        loader: Optional[BaseLoader] = None,
        chunker: Optional[BaseChunker] = None,
    ):
        self._config = config or AppConfig()
        self._embeddings = embeddings
        self._store = store
        self._generator = generator
        self._loader = loader or FileTreeLoader()
        self._chunker = chunker

    # -- lazily built collaborators -------------------------------------------

    @property
    def config(self) -> AppConfig:
        return self._config

    @property
    def embeddings(self) -> Embeddings:
        if self._embeddings is None:
            logger.debug(f"Loading embedding model {self._config.embedding.model_name}")
            self._embeddings = _build("embedding model", get_embedding_model, self._config.embedding)
        return self._embeddings

    @property
    def store(self) -> BaseVectorStore:
        if self._store is None:
            self._store = _build(
                "vector store",
                get_vector_store,
                self._config.vector_store,
                self._config.retry,
                self._config.embedding.dimension,
            )
        return self._store

    @property
    def generator(self) -> BaseGenerator:
        if self._generator is None:
            self._generator = SimpleGenerator(self._config.llm, self._config.retry)
        return self._generator

    @property
    def chunker(self) -> BaseChunker:
        if self._chunker is None:
            self._chunker = _build("chunker", get_chunker, self._config.chunking)
        return self._chunker

    # -- commands --------------------------------------------------------------

    def ingest(
        self,
        paths: Sequence[Union[str, Path]],
        cancel: Optional[CancellationToken] = None,
    ) -> IngestReport:
        """
        Load, segment, embed and store every document under each path.

        Failure granularity:
            - a missing path is reported and the next path continues
            - a file that cannot be read or embedded is logged and skipped
            - a store, dimension or configuration error aborts the whole ingest

        Args:
            paths: Files or directories to walk.
            cancel: Checked between files; when set, stops cleanly.

        Returns:
            IngestReport with counts and the collected error messages.
        """
        report = IngestReport(paths=[str(p) for p in paths])

        self.warm_up()

        for path in paths:
            if cancel is not None and cancel.cancelled:
                report.cancelled = True
                break

            logger.info(f"Ingesting from: {path}")
            try:
                documents = self._loader.lazy_load(str(path))
            except InvalidPathError as e:
                logger.error(str(e))
                report.invalid_paths.append(str(path))
                report.errors.append(str(e))
                continue

            for document in documents:
                self._ingest_one(document, report)
                if cancel is not None and cancel.cancelled:
                    report.cancelled = True
                    break

            failures = getattr(self._loader, "failures", [])
            report.files_failed += len(failures)
            report.errors.extend(str(f) for f in failures)
            report.files_skipped += len(getattr(self._loader, "skipped", []))

        if report.cancelled:
            logger.warning(
                f"Ingest cancelled after {report.files_processed} files "
                f"({report.segments_stored} segments stored)"
            )
        else:
            logger.info(
                f"Ingest finished: {report.files_processed} files, "
                f"{report.segments_stored} segments stored, {report.files_failed} failed"
            )
        return report

    def warm_up(self) -> None:
        """Build the chunker, embedding model and store now instead of on first use."""
        self._chunker = self.chunker
        self._embeddings = self.embeddings
        self._store = self.store

    def ingest_document(self, document: Document) -> int:
        """Segment, embed (one batch) and store a single document. Returns records written."""
        segments = self.chunker.chunk([document])
        if not segments:
            return 0

        logger.info(f"  - Embedding {len(segments)} segments...")
        vectors = embed_segments(self.embeddings, segments, self._config.embedding.dimension)
        return self.store.add_all(vectors, segments)

    def search(
        self,
        query: str,
        k: Optional[int] = None,
        min_score: Optional[float] = None,
    ) -> RetrievalResult:
        """Embed the query and return the matching segments. No generation."""
        retriever = SimilarityRetriever(self.embeddings, self.store, self._config.retriever)
        return retriever.retrieve(query, k=k, min_score=min_score)

    def chat(
        self,
        question: str,
        k: Optional[int] = None,
        min_score: Optional[float] = None,
    ) -> RAGResponse:
        """
        Answer a question from the stored documentation.

        When retrieval finds nothing the fixed NO_CONTEXT_RESPONSE is
        returned and the chat model is never built or called.

        Raises:
            MissingCredentialError: If context was found but no key is set.
            GenerationError: If the model call fails.
        """
        retrieval = self.search(question, k=k, min_score=min_score)

        if not retrieval.documents:
            logger.info("No segment cleared the score threshold; skipping generation")
            return RAGResponse(answer=NO_CONTEXT_RESPONSE, retrieval=retrieval)

        generation = self.generator.generate(question, retrieval)
        return RAGResponse(answer=generation.answer, retrieval=retrieval, generation=generation)

    def reset(self) -> int:
        """Delete every stored record. Irreversible. Returns the number removed."""
        removed = self.store.clear()
        logger.info(f"Cleared {removed} records from the vector store")
        return removed

    def count(self) -> int:
        return self.store.count()

    def close(self) -> None:
        if self._store is not None:
            self._store.close()

    def __enter__(self) -> "DocAssistant":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # -- internals -------------------------------------------------------------

    def _ingest_one(self, document: Document, report: IngestReport) -> None:
        source = document.metadata.get("source", "")
        logger.info(f"Processing: {source}")
        try:
            stored = self.ingest_document(document)
        except _FATAL_INGEST_ERRORS:
            raise
        except Exception as e:
            logger.warning(f"Failed to process file {source}: {e}")
            report.files_failed += 1
            report.errors.append(f"Failed to process file {source}: {e}")
            return

        report.files_processed += 1
        report.segments_stored += stored


def _build(what: str, factory, *args):
    """Run a collaborator factory, turning unexpected failures into ConfigurationError."""
    try:
        return factory(*args)
    except DocRagError:
        raise
    except Exception as e:
        raise ConfigurationError(f"Could not build the {what}: {e}") from e
