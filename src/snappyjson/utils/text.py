"""Text helpers for previews and search normalization."""

from __future__ import annotations

import re
from typing import Iterator

ELLIPSIS = "…"

_WORD_SPLIT_RE = re.compile(r"[\W_]")


def truncate(text: str, max_chars: int) -> str:
    """Cut ``text`` to ``max_chars`` characters, marking the cut with an ellipsis."""
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + ELLIPSIS


def normalize(text: str, *, case_sensitive: bool) -> str:
    return text if case_sensitive else text.lower()


def iter_words(text: str) -> Iterator[str]:
    """Yield tokens of ``text`` split on every non-alphanumeric character.

    Empty tokens between adjacent separators are kept.
    """
    yield from _WORD_SPLIT_RE.split(text)
