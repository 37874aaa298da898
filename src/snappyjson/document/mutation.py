"""In-place edits of the current document."""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from typing import Any

from snappyjson.document import codec
from snappyjson.document import pointer as jp
from snappyjson.document.store import Document
from snappyjson.errors import DocumentParseError, InvalidEditError

LOGGER = logging.getLogger(__name__)

_INT_RE = re.compile(r"^[+-]?[0-9]+$")
_FLOAT_RE = re.compile(
    r"^[+-]?(?:(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|inf|infinity|nan)$",
    re.IGNORECASE,
)


@dataclass(slots=True)
class Slot:
    """Writable location of one value: a container plus the key inside it.

    The root slot uses the owning document as container and ``None`` as key.
    """

    container: Any
    key: Any

    def get(self) -> Any:
        if isinstance(self.container, Document):
            return self.container.root
        return self.container[self.key]

    def set(self, value: Any) -> None:
        if isinstance(self.container, Document):
            self.container.root = value
        else:
            self.container[self.key] = value


def locate(document: Document, pointer: str) -> Slot:
    """Walk from the root once and return the slot addressed by ``pointer``."""
    tokens = jp.split(pointer)
    if not tokens:
        return Slot(document, None)

    parent = document.root
    for token in tokens[:-1]:
        parent = parent[jp.step_key(parent, token, pointer)]
    return Slot(parent, jp.step_key(parent, tokens[-1], pointer))


def parse_number(text: str) -> int | float:
    """Parse an integer first, then a float; reject anything else or non-finite."""
    trimmed = text.strip()
    if _INT_RE.match(trimmed):
        try:
            return int(trimmed)
        except ValueError as exc:  # exceeds the int string-conversion limit
            raise InvalidEditError("Invalid number literal") from exc
    if _FLOAT_RE.match(trimmed):
        number = float(trimmed)
        if not math.isfinite(number):
            raise InvalidEditError("Invalid number")
        return number
    raise InvalidEditError("Invalid number literal")


def parse_bool(text: str) -> bool:
    lowered = text.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    raise InvalidEditError("Invalid boolean (expected true/false)")


def set_scalar(document: Document, pointer: str, new_text: str) -> None:
    """Replace a string, number or boolean, keeping its JSON type."""
    slot = locate(document, pointer)
    current = slot.get()

    if isinstance(current, bool):
        slot.set(parse_bool(new_text))
    elif isinstance(current, str):
        slot.set(new_text)
    elif isinstance(current, (int, float)):
        slot.set(parse_number(new_text))
    elif current is None:
        raise InvalidEditError("Editing null not supported")
    else:
        raise InvalidEditError("Editing non-scalar value not supported")
    LOGGER.debug("Set scalar at %r", pointer)


def _container_kind(value: Any) -> str | None:
    if isinstance(value, dict):
        return "object"
    if isinstance(value, list):
        return "array"
    return None


def set_subtree(document: Document, pointer: str, new_json: str) -> None:
    """Replace an object/array wholesale with one of the same kind."""
    try:
        parsed = codec.loads(new_json)
    except DocumentParseError as exc:
        raise InvalidEditError(str(exc)) from exc

    new_kind = _container_kind(parsed)
    if new_kind is None:
        raise InvalidEditError("Edited subtree must be an object or array")

    slot = locate(document, pointer)
    existing_kind = _container_kind(slot.get())
    if existing_kind is None:
        raise InvalidEditError("Current value is not an object or array")
    if existing_kind != new_kind:
        raise InvalidEditError("Type change not allowed (must remain object/array)")

    slot.set(parsed)
    LOGGER.debug("Replaced %s subtree at %r", new_kind, pointer)


def promote_stringified_json(document: Document, pointer: str) -> None:
    """Replace a string holding an encoded object/array with the decoded value."""
    slot = locate(document, pointer)
    current = slot.get()
    if not isinstance(current, str):
        raise InvalidEditError("Target node is not a string")

    trimmed = current.strip()
    bracketed = (trimmed.startswith("{") and trimmed.endswith("}")) or (
        trimmed.startswith("[") and trimmed.endswith("]")
    )
    if not bracketed:
        raise InvalidEditError("String does not look like a JSON object/array")

    try:
        parsed = codec.loads(trimmed)
    except DocumentParseError as exc:
        raise InvalidEditError(str(exc)) from exc
    if _container_kind(parsed) is None:
        raise InvalidEditError("Parsed value is not an object/array")

    slot.set(parsed)
    LOGGER.debug("Promoted stringified JSON at %r", pointer)
