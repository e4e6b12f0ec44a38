"""
Configuration for docrag.

Split into one config per concern so each collaborator only receives
what it needs. AppConfig bundles them and reads overrides from the
environment (and a .env file), so nothing is hardcoded in the code paths.

Usage:
    # Everything from the environment / .env
    config = load_config()

    # Override specific parts in code
    config = AppConfig(
        chunking=ChunkingConfig(chunk_size=256, chunk_overlap=32),
        vector_store=VectorStoreConfig(store_type="memory"),
    )

Environment variables use the DOCRAG_ prefix and a double underscore
between the section and the field:
    DOCRAG_VECTOR_STORE__HOST=db.internal
    DOCRAG_RETRIEVER__MIN_SCORE=0.7

The Gemini key keeps its historical name, GOOGLE_AI_GEMINI_API_KEY.
"""

from enum import Enum
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import AliasChoices, BaseModel, Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy import URL


# ---------------------------------------------------------------------------
# Enums: for things with a genuinely fixed set of choices
# ---------------------------------------------------------------------------

class LLMProvider(str, Enum):
    """
    Supported chat model providers.

    Each provider needs a different LangChain class, so the set we can
    instantiate is closed.
    """

    GOOGLE = "google"
    OPENAI = "openai"
    ANTHROPIC = "anthropic"


class VectorStoreType(str, Enum):
    """Supported vector store backends."""

    PGVECTOR = "pgvector"
    MEMORY = "memory"


class EmbeddingProvider(str, Enum):
    """Supported embedding providers."""

    HUGGINGFACE = "huggingface"
    FAKE = "fake"
    OPENAI = "openai"


class ChunkingStrategy(str, Enum):
    """Built-in segmentation strategies."""

    RECURSIVE = "recursive"
    MARKDOWN = "markdown"


# ---------------------------------------------------------------------------
# Per-concern configs
# ---------------------------------------------------------------------------

class LLMConfig(BaseModel):
    """
    Chat model configuration.

    Used by: generation/generate.py (through utils.helpers.get_llm)

    api_key is normally filled from GOOGLE_AI_GEMINI_API_KEY by AppConfig.
    It is only checked when a model is actually built, so commands that
    never generate (ingest, search, an empty-context chat) run without it.
    """

    provider: LLMProvider = Field(
        default=LLMProvider.GOOGLE,
        description="Which chat model provider to use",
    )
    model_name: str = Field(
        default="gemini-2.0-flash",
        description="Model identifier (e.g. 'gemini-2.0-flash', 'gpt-4o-mini')",
    )
    api_key: Optional[SecretStr] = Field(
        default=None,
        description="Provider credential",
    )
    temperature: float = Field(
        default=0.0,
        ge=0.0,
        le=2.0,
        description="Sampling temperature. 0 = deterministic, higher = more creative",
    )
    max_tokens: int = Field(
        default=1024,
        gt=0,
        description="Maximum tokens in the model response",
    )
    timeout: float = Field(
        default=60.0,
        gt=0,
        description="Per-request timeout in seconds",
    )


class EmbeddingConfig(BaseModel):
    """
    Embedding model configuration.

    Used by: indexing/embeddings.py

    An unknown provider is rejected when the config is loaded, before any
    command starts.

    Examples:
        EmbeddingConfig()                                    # local all-MiniLM-L6-v2
        EmbeddingConfig(provider="fake")                     # deterministic, offline
        EmbeddingConfig(provider="openai", model_name="text-embedding-3-small", dimension=1536)
    """

    provider: EmbeddingProvider = Field(
        default=EmbeddingProvider.HUGGINGFACE,
        description="Embedding provider: 'huggingface', 'fake', 'openai'",
    )
    model_name: str = Field(
        default="sentence-transformers/all-MiniLM-L6-v2",
        description="Embedding model identifier",
    )
    dimension: int = Field(
        default=384,
        gt=0,
        description="Vector length produced by the model; the store is sized from it",
    )
    model_kwargs: dict[str, Any] = Field(
        default_factory=dict,
        description="Extra kwargs passed to the embedding model constructor (e.g. device)",
    )


class ChunkingConfig(BaseModel):
    """
    Document segmentation configuration.

    Used by: indexing/chunking.py

    Built-in strategies:
        "recursive" — RecursiveCharacterTextSplitter. Splits on paragraphs,
                      then lines, then words, then characters.
        "markdown"  — MarkdownTextSplitter. Tries headings, code fences and
                      horizontal rules first, then the recursive fallbacks.
    """

    strategy: ChunkingStrategy = Field(
        default=ChunkingStrategy.RECURSIVE,
        description="Segmentation strategy: 'recursive' or 'markdown'",
    )
    chunk_size: int = Field(
        default=512,
        gt=0,
        description="Maximum segment size in characters",
    )
    chunk_overlap: int = Field(
        default=100,
        ge=0,
        description="Overlap between consecutive segments",
    )

    @model_validator(mode="after")
    def validate_overlap(self) -> "ChunkingConfig":
        """Overlap must be smaller than chunk size, otherwise segments would never advance."""
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError(
                f"chunk_overlap ({self.chunk_overlap}) must be less than "
                f"chunk_size ({self.chunk_size})"
            )
        return self


class RetrieverConfig(BaseModel):
    """
    Retrieval configuration.

    Used by: retrieval/search.py

    min_score is on the relevance scale, (1 + cosine) / 2, so 0.6
    corresponds to a cosine similarity of 0.2.
    """

    k: int = Field(
        default=5,
        gt=0,
        description="Maximum number of matches to return",
    )
    min_score: float = Field(
        default=0.6,
        ge=0.0,
        le=1.0,
        description="Matches scoring below this are dropped",
    )


class VectorStoreConfig(BaseModel):
    """
    Vector store configuration.

    Used by: indexing/vectorstore.py, indexing/pgvector.py

    The PostgreSQL fields are only read by the pgvector backend;
    persist_path is only read by the memory backend.
    """

    store_type: VectorStoreType = Field(
        default=VectorStoreType.PGVECTOR,
        description="Vector store backend",
    )
    host: str = Field(default="localhost", description="PostgreSQL host")
    port: int = Field(default=5432, gt=0, description="PostgreSQL port")
    database: str = Field(default="docrag", description="PostgreSQL database name")
    user: str = Field(default="postgres", description="PostgreSQL user")
    password: SecretStr = Field(default=SecretStr("postgres"), description="PostgreSQL password")
    table: str = Field(
        default="documents",
        pattern=r"^[A-Za-z_][A-Za-z0-9_]*$",
        description="Table holding the embeddings",
    )
    create_table: bool = Field(
        default=True,
        description="Create the vector extension and the table if they are missing",
    )
    connect_timeout: int = Field(
        default=10,
        gt=0,
        description="Seconds to wait for a database connection",
    )
    statement_timeout: int = Field(
        default=30,
        gt=0,
        description="Seconds a single statement may run",
    )
    persist_path: Optional[str] = Field(
        default=None,
        description="File the memory store is saved to (memory backend only)",
    )

    @property
    def database_url(self) -> URL:
        """
        SQLAlchemy URL for the psycopg (v3) driver.

        Built from parts, so credentials containing URL delimiters
        (@ / : % #) reach the driver unchanged.
        """
        return URL.create(
            drivername="postgresql+psycopg",
            username=self.user,
            password=self.password.get_secret_value(),
            host=self.host,
            port=self.port,
            database=self.database,
        )


class RetryConfig(BaseModel):
    """
    Retry policy for the two network collaborators (PostgreSQL and the chat model).

    Used by: indexing/pgvector.py, generation/generate.py
    """

    attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Total attempts, including the first call",
    )
    min_wait: float = Field(
        default=0.5,
        ge=0.0,
        description="Initial backoff in seconds",
    )
    max_wait: float = Field(
        default=8.0,
        ge=0.0,
        description="Backoff ceiling in seconds",
    )

    @model_validator(mode="after")
    def validate_wait(self) -> "RetryConfig":
        if self.max_wait < self.min_wait:
            self.max_wait = self.min_wait
        return self


# ---------------------------------------------------------------------------
# Top-level config
# ---------------------------------------------------------------------------

class AppConfig(BaseSettings):
    """
    Complete application configuration.

    The pipeline receives this and passes slices to each stage:
        chunker = get_chunker(config.chunking)
        store = get_vector_store(config.vector_store, config.retry, config.embedding.dimension)
        generator = SimpleGenerator(config.llm, config.retry)

    All sub-configs have defaults, so AppConfig() with an empty
    environment describes a local PostgreSQL on the default port.
    """

    model_config = SettingsConfigDict(
        env_prefix="DOCRAG_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    llm: LLMConfig = Field(default_factory=LLMConfig)
    embedding: EmbeddingConfig = Field(default_factory=EmbeddingConfig)
    chunking: ChunkingConfig = Field(default_factory=ChunkingConfig)
    retriever: RetrieverConfig = Field(default_factory=RetrieverConfig)
    vector_store: VectorStoreConfig = Field(default_factory=VectorStoreConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)

    gemini_api_key: Optional[SecretStr] = Field(
        default=None,
        validation_alias=AliasChoices("GOOGLE_AI_GEMINI_API_KEY", "gemini_api_key"),
        description="Gemini credential, copied into llm.api_key when that is unset",
    )
    log_level: str = Field(default="INFO", description="Console log level")
    log_file: Optional[str] = Field(default=None, description="Optional rotating log file")

    @model_validator(mode="after")
    def fill_llm_key(self) -> "AppConfig":
        """The Gemini key only ever goes to the Google provider."""
        if (
            self.llm.provider == LLMProvider.GOOGLE
            and self.llm.api_key is None
            and self.gemini_api_key is not None
        ):
            self.llm.api_key = self.gemini_api_key
        return self


def load_config(env_file: Optional[str] = None) -> AppConfig:
    """
    Build the AppConfig once at startup.

    An explicit env_file is loaded into the process environment first
    (so libraries reading os.environ see it too); otherwise a .env in the
    working directory is picked up if present.

    Raises:
        FileNotFoundError: If env_file is given but does not exist.
        pydantic.ValidationError: If any value is invalid.
    """
    if env_file is not None:
        path = Path(env_file)
        if not path.is_file():
            raise FileNotFoundError(f"Env file not found: {env_file}")
        load_dotenv(path, override=False)
        return AppConfig(_env_file=path)

    return AppConfig()
