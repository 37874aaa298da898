"""JSON Pointer (RFC 6901) helpers."""

from __future__ import annotations

import re
from typing import Any, List

from snappyjson.errors import InvalidPointerError

_INDEX_RE = re.compile(r"^(0|[1-9][0-9]*)$")


def escape_token(raw: str) -> str:
    """Escape a key for use as a pointer segment (``~`` -> ``~0``, ``/`` -> ``~1``)."""
    return raw.replace("~", "~0").replace("/", "~1")


def unescape_token(token: str) -> str:
    return token.replace("~1", "/").replace("~0", "~")


def join(parent: str, token: str | int) -> str:
    """Append a child segment to ``parent``.

    Integers are array indexes and are appended as-is; strings are escaped.
    """
    if isinstance(token, int):
        return f"{parent}/{token}"
    return f"{parent}/{escape_token(token)}"


def split(pointer: str) -> List[str]:
    """Split a pointer into unescaped tokens.

    Raises InvalidPointerError when a non-empty pointer does not start with ``/``.
    """
    if pointer == "":
        return []
    if not pointer.startswith("/"):
        raise InvalidPointerError(pointer)
    return [unescape_token(token) for token in pointer.split("/")[1:]]


def last_token(pointer: str) -> str | None:
    if pointer == "":
        return None
    return unescape_token(pointer.rsplit("/", 1)[-1])


def parse_index(token: str, length: int) -> int | None:
    """Return the array index named by ``token`` or None if out of range/invalid."""
    if not _INDEX_RE.match(token):
        return None
    index = int(token)
    if index >= length:
        return None
    return index


def step_key(target: Any, token: str, pointer: str) -> str | int:
    """Return the dict key or list index ``token`` names inside ``target``."""
    if isinstance(target, dict):
        if token not in target:
            raise InvalidPointerError(pointer)
        return token
    if isinstance(target, list):
        index = parse_index(token, len(target))
        if index is None:
            raise InvalidPointerError(pointer)
        return index
    raise InvalidPointerError(pointer)


def resolve(root: Any, pointer: str) -> Any:
    """Resolve ``pointer`` against ``root``.

    Raises InvalidPointerError when any segment does not exist.
    """
    target = root
    for token in split(pointer):
        target = target[step_key(target, token, pointer)]
    return target
