"""System clipboard access through pyperclip."""

from __future__ import annotations

import pyperclip

from snappyjson.errors import SourceError


def read_text() -> str:
    try:
        text = pyperclip.paste()
    except pyperclip.PyperclipException as exc:
        raise SourceError(f"Failed reading clipboard text: {exc}") from exc
    return text or ""


def write_text(text: str) -> None:
    try:
        pyperclip.copy(text)
    except pyperclip.PyperclipException as exc:
        raise SourceError(f"Failed writing clipboard text: {exc}") from exc
