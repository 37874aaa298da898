"""Application state shared by every command handler."""

from __future__ import annotations

import itertools
import logging
import threading
from concurrent.futures import ThreadPoolExecutor

from snappyjson.config import AppConfig
from snappyjson.document.store import DocumentStore
from snappyjson.events import EventBus

LOGGER = logging.getLogger(__name__)


class AppState:
    """Owns the document store, event bus, worker pool and process-wide flags."""

    def __init__(self, config: AppConfig | None = None) -> None:
        self.config = config or AppConfig()
        self.store = DocumentStore()
        self.events = EventBus()
        self.cancel_parse = threading.Event()
        self.executor = ThreadPoolExecutor(
            max_workers=self.config.max_workers, thread_name_prefix="snappy-worker"
        )
        self._search_ids = itertools.count(1)
        self._search_id_lock = threading.Lock()

    def next_search_id(self) -> int:
        with self._search_id_lock:
            return next(self._search_ids)

    def close(self) -> None:
        LOGGER.debug("Shutting down worker pool")
        self.executor.shutdown(wait=True)

    def __enter__(self) -> "AppState":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
