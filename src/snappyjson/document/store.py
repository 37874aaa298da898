"""Current-document holder with reader/writer locking and copy-on-write snapshots."""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Any, Iterator

from snappyjson.errors import NoDocumentError

LOGGER = logging.getLogger(__name__)


class ReadWriteLock:
    """Many concurrent readers or one writer; waiting writers block new readers.

    Not reentrant.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._waiting_writers = 0

    @contextmanager
    def read_locked(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._waiting_writers:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write_locked(self) -> Iterator[None]:
        with self._cond:
            self._waiting_writers += 1
            while self._writer or self._readers:
                self._cond.wait()
            self._waiting_writers -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


def copy_tree(root: Any) -> Any:
    """Deep copy of a JSON value using an explicit stack, so depth is unbounded."""
    if not isinstance(root, (dict, list)):
        return root

    copied: Any = {} if isinstance(root, dict) else []
    stack = [(root, copied)]
    while stack:
        source, target = stack.pop()
        entries = source.items() if isinstance(source, dict) else enumerate(source)
        for key, value in entries:
            if isinstance(value, dict):
                child: Any = {}
                stack.append((value, child))
            elif isinstance(value, list):
                child = []
                stack.append((value, child))
            else:
                child = value
            if isinstance(target, dict):
                target[key] = child
            else:
                target.append(child)
    return copied


class Document:
    """A parsed JSON value plus the number of snapshots currently holding it."""

    def __init__(self, root: Any, *, source: str | None = None) -> None:
        self.root = root
        self.source = source
        self._pins = 0
        self._pin_lock = threading.Lock()

    @property
    def shared(self) -> bool:
        with self._pin_lock:
            return self._pins > 0

    def pin(self) -> None:
        with self._pin_lock:
            self._pins += 1

    def unpin(self) -> None:
        with self._pin_lock:
            self._pins -= 1

    def clone(self) -> "Document":
        return Document(copy_tree(self.root), source=self.source)


class Snapshot:
    """Pinned view of a document; mutations clone instead of touching it."""

    def __init__(self, document: Document) -> None:
        document.pin()
        self.document = document
        self.root = document.root
        self._released = False

    def release(self) -> None:
        if not self._released:
            self._released = True
            self.document.unpin()

    def __enter__(self) -> "Snapshot":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.release()


class DocumentStore:
    """Holds the single current document."""

    def __init__(self) -> None:
        self._lock = ReadWriteLock()
        self._current: Document | None = None
        self.generation = 0

    @property
    def loaded(self) -> bool:
        return self._current is not None

    @property
    def current(self) -> Document | None:
        return self._current

    def _require(self) -> Document:
        if self._current is None:
            raise NoDocumentError()
        return self._current

    def replace(self, root: Any, *, source: str | None = None) -> Document:
        """Install a freshly parsed value as the current document."""
        document = Document(root, source=source)
        with self._lock.write_locked():
            self._current = document
            self.generation += 1
        LOGGER.info("Loaded document from %s (generation %d)", source or "<memory>", self.generation)
        return document

    @contextmanager
    def read(self) -> Iterator[Any]:
        """Yield the current root while holding the read lock."""
        with self._lock.read_locked():
            yield self._require().root

    def snapshot(self) -> Snapshot:
        """Pin the current document for use after the read lock is released."""
        with self._lock.read_locked():
            return Snapshot(self._require())

    @contextmanager
    def mutating(self) -> Iterator[Document]:
        """Yield a writable document under the write lock.

        If the current document is pinned by a snapshot it is cloned first.
        The yielded document becomes current only if the block succeeds.
        """
        with self._lock.write_locked():
            document = self._require()
            if document.shared:
                LOGGER.debug("Document is shared with a snapshot, cloning before write")
                document = document.clone()
            yield document
            self._current = document
            self.generation += 1
