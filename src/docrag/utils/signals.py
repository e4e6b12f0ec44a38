"""
Cooperative cancellation for long-running ingests.

SIGINT / SIGTERM set a flag instead of raising mid-write; the pipeline
checks it between files and stops cleanly. A second SIGINT falls back to
KeyboardInterrupt for a stuck process.
"""

import signal
from contextlib import contextmanager
from types import FrameType
from typing import Iterator, Optional

from loguru import logger


class CancellationToken:
    """
    Flag flipped by a signal handler and polled at file boundaries.

    Usage:
        token = CancellationToken()
        with token.installed():
            assistant.ingest(paths, cancel=token)
    """

    def __init__(self) -> None:
        self._cancelled = False
        self._previous: dict[int, object] = {}

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True

    def _handle(self, signum: int, frame: Optional[FrameType]) -> None:
        if self._cancelled and signum == signal.SIGINT:
            raise KeyboardInterrupt
        logger.warning(
            f"Received {signal.Signals(signum).name}, stopping after the current file"
        )
        self.cancel()

    def install(self) -> None:
        for signum in (signal.SIGINT, signal.SIGTERM):
            self._previous[signum] = signal.signal(signum, self._handle)

    def restore(self) -> None:
        for signum, handler in self._previous.items():
            signal.signal(signum, handler)
        self._previous.clear()

    @contextmanager
    def installed(self) -> Iterator["CancellationToken"]:
        self.install()
        try:
            yield self
        finally:
            self.restore()
