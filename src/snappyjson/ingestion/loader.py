"""Progress-tracked, cancellable JSON loading.

Bytes are pulled through ``ProgressReader`` in fixed-size reads. Each read
checks the cancellation flag; once set, the reader reports end-of-stream, the
parser sees truncated input, and the failure is surfaced as
``ParseCanceledError`` instead of an ordinary parse error.
"""

from __future__ import annotations

import logging
import os
import threading
from pathlib import Path
from typing import Any, BinaryIO, Callable, Optional

from snappyjson.document import codec
from snappyjson.errors import DocumentParseError, ParseCanceledError, SourceError
from snappyjson.models import ParseProgress

LOGGER = logging.getLogger(__name__)

ProgressSink = Callable[[ParseProgress], None]

DEFAULT_STEP_BYTES = 1024 * 1024
DEFAULT_CHUNK_BYTES = 64 * 1024


class ProgressReader:
    """Counting wrapper around a binary stream."""

    def __init__(
        self,
        inner: BinaryIO,
        *,
        total_bytes: int,
        cancel: threading.Event,
        sink: Optional[ProgressSink] = None,
        path: str = "",
        step_bytes: int = DEFAULT_STEP_BYTES,
    ) -> None:
        self.inner = inner
        self.total_bytes = total_bytes
        self.cancel = cancel
        self.sink = sink
        self.path = path
        self.step_bytes = step_bytes
        self.read_bytes = 0
        self.canceled = False
        self._last_emit = 0

    def read(self, size: int = -1) -> bytes:
        if self.cancel.is_set():
            if not self.canceled:
                self.canceled = True
                self._emit(done=False)
            return b""

        chunk = self.inner.read(size)
        self.read_bytes += len(chunk)
        if self.read_bytes - self._last_emit >= self.step_bytes or not chunk:
            self._emit(done=not chunk)
            self._last_emit = self.read_bytes
        return chunk

    def percent(self) -> float:
        if self.total_bytes > 0:
            return self.read_bytes / self.total_bytes * 100.0
        return 0.0

    def _emit(self, *, done: bool) -> None:
        if self.sink is None:
            return
        self.sink(
            ParseProgress(
                path=self.path,
                read_bytes=self.read_bytes,
                total_bytes=self.total_bytes,
                percent=self.percent(),
                done=done,
                canceled=self.cancel.is_set(),
            )
        )


def load_stream(
    source: BinaryIO,
    *,
    total_bytes: int,
    cancel: threading.Event,
    sink: Optional[ProgressSink] = None,
    path: str = "",
    chunk_bytes: int = DEFAULT_CHUNK_BYTES,
    step_bytes: int = DEFAULT_STEP_BYTES,
) -> Any:
    """Read ``source`` to the end (or until canceled) and parse it as JSON."""
    reader = ProgressReader(
        source,
        total_bytes=total_bytes,
        cancel=cancel,
        sink=sink,
        path=path,
        step_bytes=step_bytes,
    )
    buffer = bytearray()
    try:
        for chunk in iter(lambda: reader.read(chunk_bytes), b""):
            buffer.extend(chunk)
    except OSError as exc:
        raise SourceError(f"Failed reading {path or 'source'}: {exc}") from exc

    try:
        value = codec.loads(buffer)
    except DocumentParseError as exc:
        if reader.canceled:
            raise ParseCanceledError() from exc
        raise
    # truncated input can still happen to be valid JSON
    if reader.canceled:
        raise ParseCanceledError()
    return value


def load_file(
    path: Path | str,
    *,
    cancel: threading.Event,
    sink: Optional[ProgressSink] = None,
    chunk_bytes: int = DEFAULT_CHUNK_BYTES,
    step_bytes: int = DEFAULT_STEP_BYTES,
) -> Any:
    """Open ``path`` and parse it with progress reporting."""
    try:
        handle = open(path, "rb")
    except OSError as exc:
        raise SourceError(str(exc)) from exc

    with handle:
        try:
            total_bytes = os.fstat(handle.fileno()).st_size
        except OSError:
            total_bytes = 0
        LOGGER.info("Parsing %s (%d bytes)", path, total_bytes)
        return load_stream(
            handle,
            total_bytes=total_bytes,
            cancel=cancel,
            sink=sink,
            path=str(path),
            chunk_bytes=chunk_bytes,
            step_bytes=step_bytes,
        )
