"""Project JSON values into lightweight tree nodes."""

from __future__ import annotations

from itertools import islice
from typing import Any, List

from snappyjson.document import pointer as jp
from snappyjson.document.codec import scalar_text, value_type
from snappyjson.errors import InvalidPointerError
from snappyjson.models import Node
from snappyjson.utils.text import truncate

DEFAULT_PREVIEW_CHARS = 120


def preview(value: Any, *, max_chars: int = DEFAULT_PREVIEW_CHARS) -> str:
    if isinstance(value, dict):
        return f"{{…}} {len(value)} keys" if value else "{} 0 keys"
    if isinstance(value, list):
        return f"[…] {len(value)} items" if value else "[] 0 items"
    if isinstance(value, str):
        return truncate(value, max_chars)
    return scalar_text(value)


def make_node(
    pointer: str, key: str | None, value: Any, *, max_chars: int = DEFAULT_PREVIEW_CHARS
) -> Node:
    child_count = len(value) if isinstance(value, (dict, list)) else 0
    return Node(
        pointer=pointer,
        key=key,
        value_type=value_type(value),
        has_children=child_count > 0,
        child_count=child_count,
        preview=preview(value, max_chars=max_chars),
    )


def child_node(
    parent_pointer: str, key: str | int, value: Any, *, max_chars: int = DEFAULT_PREVIEW_CHARS
) -> Node:
    """Node for the entry ``key`` of the container at ``parent_pointer``."""
    return make_node(jp.join(parent_pointer, key), str(key), value, max_chars=max_chars)


def node_for_pointer(root: Any, pointer: str, *, max_chars: int = DEFAULT_PREVIEW_CHARS) -> Node:
    """Build the node addressed by ``pointer``.

    Raises InvalidPointerError when the pointer does not resolve.
    """
    value = jp.resolve(root, pointer)
    return make_node(pointer, jp.last_token(pointer), value, max_chars=max_chars)


def list_children(
    root: Any,
    pointer: str,
    offset: int,
    limit: int,
    *,
    max_chars: int = DEFAULT_PREVIEW_CHARS,
) -> List[Node]:
    """Return one page of children of the container at ``pointer``.

    An unresolvable pointer falls back to the root. Scalars and windows past
    the end yield an empty list.
    """
    try:
        target = jp.resolve(root, pointer)
    except InvalidPointerError:
        target, pointer = root, ""

    offset = max(offset, 0)
    limit = max(limit, 0)
    if isinstance(target, dict):
        entries = islice(target.items(), offset, offset + limit)
        return [child_node(pointer, key, value, max_chars=max_chars) for key, value in entries]
    if isinstance(target, list):
        window = target[offset : offset + limit]
        return [
            child_node(pointer, offset + i, value, max_chars=max_chars)
            for i, value in enumerate(window)
        ]
    return []
