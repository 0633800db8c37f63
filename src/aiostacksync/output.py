"""Observer hooks the engine reports to: output lines, progress, cancellation.

All of them are optional; the engine works with none attached.
"""

from __future__ import annotations

import logging
import threading
from typing import Protocol, runtime_checkable

from .exceptions import CancelledSyncError


@runtime_checkable
class OutputSink(Protocol):
    """Append-only, line-oriented log consumer."""

    def append_line(self, line: str) -> None: ...


@runtime_checkable
class ProgressReporter(Protocol):
    """Receives incremental percentage/message updates."""

    def report(self, increment: int, message: str) -> None: ...


class LoggingOutputSink:
    """Forward output lines to a dedicated logger."""

    def __init__(self, logger_name: str = "aiostacksync.output") -> None:
        self._logger = logging.getLogger(logger_name)

    def append_line(self, line: str) -> None:
        self._logger.info("%s", line)


class MemoryOutputSink:
    """Collect output lines in a list."""

    def __init__(self) -> None:
        self.lines: list[str] = []

    def append_line(self, line: str) -> None:
        self.lines.append(line)


class CancelToken:
    """Cooperative cancellation flag, safe to check from worker threads."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise CancelledSyncError("Sync cancelled")
