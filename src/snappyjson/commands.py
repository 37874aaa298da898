"""Command handlers: the request/response surface used by the web app and CLI.

Every handler takes the shared ``AppState`` as its first argument. Errors are
raised as ``SnappyError`` subclasses and leave the current document unchanged.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future
from pathlib import Path
from typing import List

from snappyjson.document import codec
from snappyjson.document import mutation
from snappyjson.document import pointer as jp
from snappyjson.document.projection import list_children, node_for_pointer
from snappyjson.errors import EmptyQueryError, ParseCanceledError
from snappyjson.events import PARSE_PROGRESS
from snappyjson.external import clipboard, dialog
from snappyjson.ingestion.loader import load_file
from snappyjson.models import Node, ParseProgress, SearchResponse
from snappyjson.search import engine
from snappyjson.search.matcher import SearchFlags
from snappyjson.state import AppState
from snappyjson.utils import files

LOGGER = logging.getLogger(__name__)


def _first_page(state: AppState, root: object) -> List[Node]:
    config = state.config
    return list_children(root, "", 0, config.page_size, max_chars=config.preview_chars)


# -- Loading -----------------------------------------------------------------


def _load_file(state: AppState, path: str | Path) -> List[Node]:
    config = state.config

    def emit_progress(progress: ParseProgress) -> None:
        state.events.emit(PARSE_PROGRESS, progress.to_payload())

    try:
        root = load_file(
            path,
            cancel=state.cancel_parse,
            sink=emit_progress,
            chunk_bytes=config.read_chunk_bytes,
            step_bytes=config.progress_step_bytes,
        )
    except ParseCanceledError:
        LOGGER.info("Parsing %s canceled", path)
        raise

    state.store.replace(root, source=str(path))
    return _first_page(state, root)


def open_file(state: AppState, path: str | Path) -> List[Node]:
    """Parse ``path`` with progress events and make it the current document."""
    state.cancel_parse.clear()
    return _load_file(state, path)


def open_file_async(state: AppState, path: str | Path) -> "Future[List[Node]]":
    """Queue ``open_file`` on the worker pool.

    The cancel flag is reset here, so a ``cancel_parse`` issued while the load
    is still queued aborts it.
    """
    state.cancel_parse.clear()
    return state.executor.submit(_load_file, state, path)


def open_clipboard(state: AppState) -> List[Node]:
    text = clipboard.read_text()
    root = codec.loads(text, what="Clipboard does not contain valid JSON")
    state.store.replace(root, source="<clipboard>")
    return _first_page(state, root)


def cancel_parse(state: AppState) -> None:
    LOGGER.debug("Cancellation requested")
    state.cancel_parse.set()


# -- Navigation --------------------------------------------------------------


def load_children(state: AppState, pointer: str, offset: int, limit: int) -> List[Node]:
    with state.store.read() as root:
        return list_children(root, pointer, offset, limit, max_chars=state.config.preview_chars)


def get_node_value(state: AppState, pointer: str) -> str:
    """Compact JSON text of the value at ``pointer``."""
    with state.store.read() as root:
        return codec.dumps(jp.resolve(root, pointer))


def copy_node_value(state: AppState, pointer: str) -> None:
    """Put the pretty-printed value at ``pointer`` on the system clipboard."""
    with state.store.read() as root:
        text = codec.dumps_pretty(jp.resolve(root, pointer))
    clipboard.write_text(text)


# -- Search ------------------------------------------------------------------


def search(
    state: AppState,
    query: str,
    search_keys: bool = True,
    search_values: bool = True,
    search_paths: bool = False,
    case_sensitive: bool = False,
    regex: bool = False,
    whole_word: bool = False,
    offset: int = 0,
    limit: int = 50,
) -> SearchResponse:
    flags = SearchFlags(search_keys, search_values, search_paths, case_sensitive, regex, whole_word)
    with state.store.snapshot() as snapshot:
        return engine.search(
            snapshot.root,
            query,
            flags,
            offset=offset,
            limit=limit,
            max_chars=state.config.preview_chars,
        )


def search_async(state: AppState, query: str, **options: object) -> "Future[SearchResponse]":
    return state.executor.submit(search, state, query, **options)


def search_stream(
    state: AppState,
    query: str,
    search_keys: bool = True,
    search_values: bool = True,
    search_paths: bool = False,
    case_sensitive: bool = False,
    regex: bool = False,
    whole_word: bool = False,
) -> int:
    """Start a background search and return its id.

    Results arrive as ``search_batch`` events followed by one ``search_done``.
    Earlier streaming searches keep running.
    """
    snapshot = state.store.snapshot()
    if not query.strip():
        snapshot.release()
        raise EmptyQueryError()

    flags = SearchFlags(search_keys, search_values, search_paths, case_sensitive, regex, whole_word)
    search_id = state.next_search_id()
    config = state.config

    def run() -> int:
        with snapshot:
            return engine.stream_search(
                snapshot.root,
                query,
                flags,
                search_id=search_id,
                emit=state.events.emit,
                batch_size=config.batch_size,
                max_chars=config.preview_chars,
            )

    def log_failure(future: "Future[int]") -> None:
        exc = future.exception()
        if exc is not None:
            LOGGER.error("Streaming search %d failed", search_id, exc_info=exc)

    LOGGER.info("Starting streaming search %d for %r", search_id, query)
    state.executor.submit(run).add_done_callback(log_failure)
    return search_id


# -- Mutation ----------------------------------------------------------------


def set_node_value(state: AppState, pointer: str, new_value: str) -> Node:
    with state.store.mutating() as document:
        mutation.set_scalar(document, pointer, new_value)
        LOGGER.info("Updated value at %r", pointer)
        return node_for_pointer(document.root, pointer, max_chars=state.config.preview_chars)


def set_subtree(state: AppState, pointer: str, new_json: str) -> Node:
    with state.store.mutating() as document:
        mutation.set_subtree(document, pointer, new_json)
        LOGGER.info("Replaced subtree at %r", pointer)
        return node_for_pointer(document.root, pointer, max_chars=state.config.preview_chars)


def parse_stringified_json(state: AppState, pointer: str) -> Node:
    with state.store.mutating() as document:
        mutation.promote_stringified_json(document, pointer)
        LOGGER.info("Expanded stringified JSON at %r", pointer)
        return node_for_pointer(document.root, pointer, max_chars=state.config.preview_chars)


# -- External collaborators --------------------------------------------------


def save_last_opened_file(state: AppState, file_path: str) -> None:
    files.save_last_opened_file(state.config.config_file, file_path)


def load_last_opened_file(state: AppState) -> str:
    return files.load_last_opened_file(state.config.config_file)


def clear_last_opened_file(state: AppState) -> None:
    files.clear_last_opened_file(state.config.config_file)


def open_file_dialog(state: AppState) -> str | None:
    return dialog.ask_json_file()
