"""Ring-buffered event log.

Call sites enqueue pre-formatted lines into a fixed-capacity circular
buffer; a periodic flusher drains the buffer to an append-only file.
Enqueueing never touches the file system, and a full buffer silently
drops its oldest unflushed line.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from pathlib import Path
from typing import TextIO

from roadrisk._constants import LOG_CAPACITY, LOG_FLUSH_INTERVAL, LOG_LINE_WIDTH
from roadrisk.exceptions import LogWriteError

_logger = logging.getLogger(__name__)


class RingLogger:
    """Bounded FIFO of log lines with a background file flusher.

    The buffer holds exactly ``capacity`` lines. One extra slot is kept
    so that ``head == tail`` always means empty.

    ``_lock`` guards only the ring pointers and slots. File I/O happens
    outside it, serialised by ``_io_lock``.
    """

    def __init__(
        self,
        path: str | Path,
        *,
        capacity: int = LOG_CAPACITY,
        line_width: int = LOG_LINE_WIDTH,
        flush_interval: float = LOG_FLUSH_INTERVAL,
    ) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._path = Path(path)
        self._capacity = capacity
        self._line_width = line_width
        self._flush_interval = flush_interval
        self._slots: list[str] = [""] * (capacity + 1)
        self._head = 0
        self._tail = 0
        self._lock = threading.Lock()
        self._io_lock = threading.Lock()
        self._fp: TextIO | None = None
        self._error_reported = False
        self.dropped = 0

    @property
    def path(self) -> Path:
        return self._path

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        with self._lock:
            return (self._head - self._tail) % len(self._slots)

    # ------------------------------------------------------------------
    # Producer side
    # ------------------------------------------------------------------

    def enqueue(self, line: str) -> None:
        """Append a line, evicting the oldest unflushed one when full."""
        text = line.replace("\n", " ")[: self._line_width]
        with self._lock:
            self._slots[self._head] = text
            self._head = (self._head + 1) % len(self._slots)
            if self._head == self._tail:
                self._tail = (self._tail + 1) % len(self._slots)
                self.dropped += 1

    def pending(self) -> list[str]:
        """Unflushed lines, oldest first, without consuming them."""
        with self._lock:
            return self._pending_locked()

    def _pending_locked(self) -> list[str]:
        size = len(self._slots)
        return [self._slots[(self._tail + i) % size] for i in range((self._head - self._tail) % size)]

    def _drain(self) -> list[str]:
        with self._lock:
            lines = self._pending_locked()
            self._tail = self._head
        return lines

    # ------------------------------------------------------------------
    # File side
    # ------------------------------------------------------------------

    def open(self) -> None:
        """Open the log file for appending.

        Raises
        ------
        LogWriteError
            If the file cannot be opened.
        """
        with self._io_lock:
            self._open_locked()

    def _open_locked(self) -> TextIO:
        if self._fp is None:
            try:
                self._fp = self._path.open("a", encoding="utf-8")
            except OSError as exc:
                raise LogWriteError(f"Cannot open log file {self._path}: {exc}", path=str(self._path)) from exc
        return self._fp

    def _report(self, exc: Exception) -> None:
        if self._error_reported:
            return
        self._error_reported = True
        _logger.error("Event log flush failed: %s", exc)

    def flush(self) -> int:
        """Write every buffered line to the file and return how many were written.

        If the file cannot be opened the lines stay buffered. A write
        failure loses the lines drained for that cycle. Either failure is
        reported once until a later flush succeeds.
        """
        with self._io_lock:
            try:
                fp = self._open_locked()
            except LogWriteError as exc:
                self._report(exc)
                return 0

            lines = self._drain()
            if not lines:
                return 0
            try:
                fp.write("".join(f"{line}\n" for line in lines))
                fp.flush()
            except OSError as exc:
                self._report(exc)
                return 0
            self._error_reported = False
            return len(lines)

    def close(self) -> None:
        with self._io_lock:
            if self._fp is not None:
                try:
                    self._fp.close()
                finally:
                    self._fp = None

    async def run(self) -> None:
        """Flush every ``flush_interval`` seconds until cancelled."""
        while True:
            await asyncio.sleep(self._flush_interval)
            written = await asyncio.to_thread(self.flush)
            if written:
                _logger.debug("Flushed %d log lines", written)


class RingLogHandler(logging.Handler):
    """:mod:`logging` handler that forwards records into a :class:`RingLogger`."""

    def __init__(self, ring: RingLogger, level: int = logging.WARNING) -> None:
        super().__init__(level)
        self._ring = ring
        self.setFormatter(logging.Formatter("[%(created)d] %(levelname)s %(name)s: %(message)s"))

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self._ring.enqueue(self.format(record))
        except Exception:  # noqa: BLE001
            self.handleError(record)
