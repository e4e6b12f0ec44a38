"""
File-tree document loader.

Walks a path and yields one LangChain Document per text file:

    loader = FileTreeLoader()
    for doc in loader.lazy_load("docs/"):
        print(doc.metadata["source"], len(doc.page_content))

Rules:
    - The root must exist, otherwise InvalidPathError before anything is yielded.
    - Only regular files whose name ends in a recognised extension (.md, .txt).
    - Files are visited in sorted order so runs are reproducible.
    - Empty or whitespace-only files are skipped silently.
    - A file that cannot be read is logged and recorded in `failures`; the
      walk carries on with the next one.
"""

from pathlib import Path
from typing import Iterable, Iterator

from langchain_core.documents import Document
from loguru import logger

from docrag.base.indexer import BaseLoader
from docrag.errors import FileReadError, InvalidPathError

DEFAULT_EXTENSIONS = (".md", ".txt")


class FileTreeLoader(BaseLoader):
    """
    Recursive loader for plain-text documentation.

    `failures` and `skipped` are reset at the start of every walk, so the
    caller can read them once the iterator is exhausted.
    """

    def __init__(self, extensions: Iterable[str] = DEFAULT_EXTENSIONS, encoding: str = "utf-8"):
        self.extensions = tuple(ext.lower() for ext in extensions)
        self.encoding = encoding
        self.failures: list[FileReadError] = []
        self.skipped: list[str] = []

    def lazy_load(self, source: str) -> Iterator[Document]:
        root = Path(source)
        # Checked eagerly so the error surfaces on the call, not on first next().
        if not root.exists():
            raise InvalidPathError(source)

        self.failures = []
        self.skipped = []
        return self._walk(root)

    def _walk(self, root: Path) -> Iterator[Document]:
        for path in self._candidates(root):
            try:
                text = path.read_text(encoding=self.encoding)
            except (OSError, UnicodeDecodeError) as e:
                failure = FileReadError(path, str(e))
                logger.warning(f"Failed to process file {path}: {e}")
                self.failures.append(failure)
                continue

            if not text.strip():
                logger.debug(f"Skipping empty file {path}")
                self.skipped.append(str(path))
                continue

            yield Document(page_content=text, metadata={"source": str(path)})

    def _candidates(self, root: Path) -> Iterator[Path]:
        if root.is_file():
            if self._accepts(root):
                yield root
            return

        for path in sorted(root.rglob("*")):
            if path.is_file() and self._accepts(path):
                yield path

    def _accepts(self, path: Path) -> bool:
        return path.name.lower().endswith(self.extensions)
