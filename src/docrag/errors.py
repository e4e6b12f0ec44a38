"""
Exception hierarchy.

Everything docrag raises on purpose derives from DocRagError, so the CLI
can turn any of them into a readable message and a non-zero exit code.

    DocRagError
    ├── InvalidPathError        ingest path does not exist (per path)
    ├── FileReadError           one file could not be read (per file, non-fatal)
    ├── StoreConnectionError    vector store unreachable or misconfigured
    ├── DimensionMismatchError  vector length does not match the store
    ├── ConfigurationError      a collaborator could not be built from the config
    ├── MissingCredentialError  chat model key not configured
    └── GenerationError         chat model call failed
"""

from pathlib import Path
from typing import Union


class DocRagError(Exception):
    """Base class for all docrag errors."""


class InvalidPathError(DocRagError):
    """An ingest path does not exist."""

    def __init__(self, path: Union[str, Path]):
        self.path = str(path)
        super().__init__(f"Path does not exist: {self.path}")


class FileReadError(DocRagError):
    """A single file could not be read. Collected, never escalated."""

    def __init__(self, path: Union[str, Path], reason: str):
        self.path = str(path)
        self.reason = reason
        super().__init__(f"Failed to read {self.path}: {reason}")


class StoreConnectionError(DocRagError):
    """The vector store could not be reached or rejected the request."""


class DimensionMismatchError(DocRagError):
    """A vector's length does not match the store's configured dimension."""

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Vector dimension {actual} does not match the store dimension {expected}"
        )


class ConfigurationError(DocRagError):
    """An embedding model, chunker or chat model could not be built."""


class MissingCredentialError(DocRagError):
    """The chat model credential is not configured."""

    def __init__(self, variable: str):
        self.variable = variable
        super().__init__(f"Please set the {variable} environment variable.")


class GenerationError(DocRagError):
    """The chat model failed to produce an answer."""
