"""
PostgreSQL + pgvector backend.

One table, created on first use:

    id           text primary key   sha256(source, offset, text)
    embedding    vector(dimension)
    text         text
    source       text
    chunk_index  integer
    start_index  integer
    created_at   timestamptz

Writes are upserts on id, so ingesting the same file twice leaves the
table unchanged. Search orders by cosine distance (the `<=>` operator)
and converts it to relevance = 1 - distance / 2, which equals
(1 + cosine) / 2.

Every database round trip goes through the tenacity policy from
RetryConfig. Connection-level failures (OperationalError, InterfaceError)
are retried; whatever is still failing afterwards surfaces as
StoreConnectionError.
"""

from typing import Any, Callable, Sequence

from langchain_core.documents import Document
from loguru import logger
from pgvector.sqlalchemy import Vector
from sqlalchemy import (
    Column,
    DateTime,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    func,
    select,
    text,
)
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import InterfaceError, OperationalError, SQLAlchemyError

from docrag.base.store import BaseVectorStore
from docrag.config import RetryConfig, VectorStoreConfig
from docrag.errors import StoreConnectionError
from docrag.models.document import Chunk, ChunkMetadata, ScoredDocument
from docrag.utils.helpers import build_retrying

_TRANSIENT_ERRORS = (OperationalError, InterfaceError)


def build_table(name: str, dimension: int, metadata: MetaData) -> Table:
    """Table definition for the embeddings."""
    return Table(
        name,
        metadata,
        Column("id", String(64), primary_key=True),
        Column("embedding", Vector(dimension), nullable=False),
        Column("text", Text, nullable=False),
        Column("source", Text, nullable=False, server_default=""),
        Column("chunk_index", Integer, nullable=False, server_default="0"),
        Column("start_index", Integer, nullable=False, server_default="0"),
        Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    )


class PgVectorStore(BaseVectorStore):
    """
    Vector store backed by a PostgreSQL table with a pgvector column.

    Connects and (optionally) creates the extension and table in the
    constructor, so a misconfigured database fails before any work starts.
    """

    def __init__(self, config: VectorStoreConfig, dimension: int, retry_config: RetryConfig):
        super().__init__(dimension)
        self._config = config
        self._retrying = build_retrying(retry_config, retry_on=_TRANSIENT_ERRORS)
        self._engine = create_engine(
            config.database_url,
            pool_pre_ping=True,
            connect_args={
                "connect_timeout": config.connect_timeout,
                "options": f"-c statement_timeout={config.statement_timeout * 1000}",
            },
        )
        self._table = build_table(config.table, dimension, MetaData())

        if config.create_table:
            self._run(self._ensure_schema)

    @property
    def location(self) -> str:
        return f"{self._config.host}:{self._config.port}/{self._config.database}.{self._config.table}"

    def add_all(self, vectors: Sequence[Sequence[float]], segments: Sequence[Document]) -> int:
        records = self.to_records(vectors, segments)
        if not records:
            return 0

        rows = [
            {
                "id": record.id,
                "embedding": record.vector,
                "text": record.text,
                "source": record.metadata.source,
                "chunk_index": record.metadata.chunk_index,
                "start_index": record.metadata.start_index,
            }
            for record in records
        ]
        stmt = pg_insert(self._table).values(rows)
        stmt = stmt.on_conflict_do_update(
            index_elements=[self._table.c.id],
            set_={
                "embedding": stmt.excluded.embedding,
                "text": stmt.excluded.text,
                "source": stmt.excluded.source,
                "chunk_index": stmt.excluded.chunk_index,
                "start_index": stmt.excluded.start_index,
            },
        )
        self._run(self._execute, stmt)
        return len(rows)

    def find_relevant(
        self,
        query_vector: Sequence[float],
        max_results: int,
        min_score: float,
    ) -> list[ScoredDocument]:
        self.check_dimension(query_vector)
        if max_results <= 0:
            return []

        t = self._table
        distance = t.c.embedding.cosine_distance([float(x) for x in query_vector])
        score = 1 - distance / 2
        stmt = (
            select(t.c.id, t.c.text, t.c.source, t.c.chunk_index, t.c.start_index, score.label("score"))
            .where(score >= min_score)
            .order_by(distance)
            .limit(max_results)
        )
        rows = self._run(self._fetch, stmt)

        return [
            ScoredDocument(
                chunk=Chunk(
                    content=row.text,
                    metadata=ChunkMetadata(
                        source=row.source,
                        chunk_index=row.chunk_index,
                        start_index=row.start_index,
                        record_id=row.id,
                    ),
                ),
                score=float(row.score),
                rank=rank,
            )
            for rank, row in enumerate(rows)
        ]

    def clear(self) -> int:
        return self._run(self._truncate)

    def count(self) -> int:
        stmt = select(func.count()).select_from(self._table)
        return int(self._run(self._scalar, stmt))

    def close(self) -> None:
        self._engine.dispose()

    # -- database round trips ------------------------------------------------

    def _run(self, fn: Callable[..., Any], *args: Any) -> Any:
        try:
            return self._retrying.copy()(fn, *args)
        except SQLAlchemyError as e:
            reason = getattr(e, "orig", None) or e
            raise StoreConnectionError(
                f"Vector store {self.location} failed: {reason}"
            ) from e

    def _ensure_schema(self) -> None:
        with self._engine.begin() as conn:
            conn.execute(text("CREATE EXTENSION IF NOT EXISTS vector"))
            self._table.metadata.create_all(conn, checkfirst=True)
        logger.debug(f"Vector table ready at {self.location} (dimension={self.dimension})")

    def _execute(self, stmt) -> None:
        with self._engine.begin() as conn:
            conn.execute(stmt)

    def _fetch(self, stmt) -> list:
        with self._engine.connect() as conn:
            return list(conn.execute(stmt))

    def _scalar(self, stmt) -> Any:
        with self._engine.connect() as conn:
            return conn.execute(stmt).scalar_one()

    def _truncate(self) -> int:
        quoted = self._engine.dialect.identifier_preparer.quote(self._table.name)
        with self._engine.begin() as conn:
            removed = conn.execute(select(func.count()).select_from(self._table)).scalar_one()
            conn.execute(text(f"TRUNCATE TABLE {quoted}"))
        return int(removed)
