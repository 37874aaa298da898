"""Key/value/path search over a JSON document.

Two delivery modes share the same per-node matching rules:

* ``search`` walks the tree depth-first in document order, collects every
  match and returns one page of them with the exact total.
* ``stream_search`` walks the tree with an explicit stack and emits
  fixed-size batches as soon as they fill up, followed by one done event.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, Iterator, List, Tuple

from snappyjson.document import pointer as jp
from snappyjson.document.codec import scalar_text
from snappyjson.document.projection import DEFAULT_PREVIEW_CHARS, child_node, make_node
from snappyjson.models import SearchResponse, SearchResult
from snappyjson.search.matcher import Matcher, SearchFlags

LOGGER = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 10

Emit = Callable[[str, Dict[str, Any]], None]


def _is_container(value: Any) -> bool:
    return isinstance(value, (dict, list))


def _value_text(value: Any) -> str | None:
    if isinstance(value, str):
        return value
    if isinstance(value, (bool, int, float)):
        return scalar_text(value)
    return None


def _match_path(matcher: Matcher, value: Any, pointer: str, max_chars: int) -> Iterator[SearchResult]:
    if matcher.flags.search_paths and matcher.matches(pointer):
        yield SearchResult(
            node=make_node(pointer, jp.last_token(pointer), value, max_chars=max_chars),
            match_type="path",
            match_text=pointer,
        )


def _match_entry(
    matcher: Matcher, pointer: str, key: str | int, value: Any, max_chars: int
) -> Iterator[SearchResult]:
    """Key and value matches for one entry of the container at ``pointer``."""
    flags = matcher.flags
    in_object = isinstance(key, str)
    if in_object and flags.search_keys and matcher.matches(key):
        yield SearchResult(
            node=child_node(pointer, key, value, max_chars=max_chars),
            match_type="key",
            match_text=key,
        )
    if flags.search_values:
        text = _value_text(value)
        if text is not None and matcher.matches(text):
            yield SearchResult(
                node=child_node(pointer, key, value, max_chars=max_chars),
                match_type="value",
                match_text=text,
                context=f"in key: {key}" if in_object else f"in index: {key}",
            )


def _entries(value: Any) -> Iterator[Tuple[str | int, Any]]:
    if isinstance(value, dict):
        yield from value.items()
    elif isinstance(value, list):
        yield from enumerate(value)


def collect_matches(
    root: Any, matcher: Matcher, *, max_chars: int = DEFAULT_PREVIEW_CHARS
) -> List[SearchResult]:
    """Every match in document order (depth-first, parents before children)."""
    results: List[SearchResult] = list(_match_path(matcher, root, "", max_chars))
    stack: List[Tuple[str, Iterator[Tuple[str | int, Any]]]] = [("", _entries(root))]
    while stack:
        pointer, entries = stack[-1]
        for key, child in entries:
            results.extend(_match_entry(matcher, pointer, key, child, max_chars))
            if _is_container(child):
                child_pointer = jp.join(pointer, key)
                results.extend(_match_path(matcher, child, child_pointer, max_chars))
                stack.append((child_pointer, _entries(child)))
                break
        else:
            stack.pop()
    return results


def iter_matches(
    root: Any, matcher: Matcher, *, max_chars: int = DEFAULT_PREVIEW_CHARS
) -> Iterator[SearchResult]:
    """Every match, found with an explicit work stack (children visited last-in first-out)."""
    stack: List[Tuple[Any, str]] = [(root, "")]
    while stack:
        value, pointer = stack.pop()
        yield from _match_path(matcher, value, pointer, max_chars)
        for key, child in _entries(value):
            yield from _match_entry(matcher, pointer, key, child, max_chars)
            if _is_container(child):
                stack.append((child, jp.join(pointer, key)))


def search(
    root: Any,
    query: str,
    flags: SearchFlags,
    *,
    offset: int = 0,
    limit: int = 50,
    max_chars: int = DEFAULT_PREVIEW_CHARS,
) -> SearchResponse:
    """Collect all matches, then return the ``offset``/``limit`` page."""
    if not query.strip():
        return SearchResponse(results=[], total_count=0, has_more=False)

    offset = max(offset, 0)
    limit = max(limit, 0)
    matches = collect_matches(root, Matcher(query, flags), max_chars=max_chars)
    total = len(matches)
    return SearchResponse(
        results=matches[offset : offset + limit],
        total_count=total,
        has_more=offset + limit < total,
    )


def iter_batches(
    root: Any,
    query: str,
    flags: SearchFlags,
    *,
    batch_size: int = DEFAULT_BATCH_SIZE,
    max_chars: int = DEFAULT_PREVIEW_CHARS,
) -> Iterator[List[SearchResult]]:
    """Group streamed matches into lists of ``batch_size`` (the last may be shorter)."""
    batch: List[SearchResult] = []
    for result in iter_matches(root, Matcher(query, flags), max_chars=max_chars):
        batch.append(result)
        if len(batch) >= batch_size:
            yield batch
            batch = []
    if batch:
        yield batch


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


def stream_search(
    root: Any,
    query: str,
    flags: SearchFlags,
    *,
    search_id: int,
    emit: Emit,
    batch_size: int = DEFAULT_BATCH_SIZE,
    max_chars: int = DEFAULT_PREVIEW_CHARS,
) -> int:
    """Emit ``search_batch`` events as matches accumulate, then ``search_done``.

    The done event is emitted even if traversal fails. Returns the total.
    """
    started = time.monotonic()
    total = 0
    try:
        for batch in iter_batches(root, query, flags, batch_size=batch_size, max_chars=max_chars):
            total += len(batch)
            emit(
                "search_batch",
                {
                    "id": search_id,
                    "batch": [result.to_dict() for result in batch],
                    "total_so_far": total,
                    "elapsed_ms": _elapsed_ms(started),
                },
            )
    finally:
        elapsed = _elapsed_ms(started)
        emit("search_done", {"id": search_id, "total": total, "elapsed_ms": elapsed})
        LOGGER.debug("Search %d finished: %d matches in %d ms", search_id, total, elapsed)
    return total
