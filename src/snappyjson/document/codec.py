"""Strict JSON encoding/decoding used for documents and edits."""

from __future__ import annotations

import json
from typing import Any

from snappyjson.errors import DocumentEncodeError, DocumentParseError


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


def loads(data: str | bytes | bytearray, *, what: str = "Parse error") -> Any:
    """Parse JSON text, rejecting NaN/Infinity literals.

    Raises DocumentParseError carrying the line/column of the failure.
    """
    try:
        return json.loads(data, parse_constant=_reject_constant)
    except json.JSONDecodeError as exc:
        raise DocumentParseError(
            f"{what}: {exc.msg} at line {exc.lineno} column {exc.colno}",
            line=exc.lineno,
            column=exc.colno,
        ) from exc
    except (ValueError, UnicodeDecodeError) as exc:
        raise DocumentParseError(f"{what}: {exc}") from exc
    except RecursionError as exc:
        raise DocumentParseError(f"{what}: nesting too deep") from exc


def _dumps(value: Any, **options: Any) -> str:
    try:
        return json.dumps(value, ensure_ascii=False, **options)
    except RecursionError as exc:
        raise DocumentEncodeError("Value is nested too deeply to serialize") from exc


def dumps(value: Any) -> str:
    return _dumps(value, separators=(",", ":"))


def dumps_pretty(value: Any) -> str:
    return _dumps(value, indent=2)


def value_type(value: Any) -> str:
    # bool first: bool is a subclass of int
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, dict):
        return "object"
    if isinstance(value, list):
        return "array"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (int, float)):
        return "number"
    return "null"


def scalar_text(value: Any) -> str:
    """Canonical JSON text of a number, boolean or null."""
    return json.dumps(value)
