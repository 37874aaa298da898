"""Query normalization and the text matching policy."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from snappyjson.utils.text import iter_words, normalize

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class SearchFlags:
    search_keys: bool = True
    search_values: bool = True
    search_paths: bool = False
    case_sensitive: bool = False
    regex: bool = False
    whole_word: bool = False


class Matcher:
    """Decides whether a candidate text matches a query.

    Priority: regex search, then whole-word token equality, then substring.
    An invalid regex matches nothing. A case-insensitive regex is compiled
    from the raw query with ``re.IGNORECASE``; the query is not lowercased,
    so escapes such as ``\\D`` keep their meaning.
    """

    def __init__(self, query: str, flags: SearchFlags) -> None:
        self.flags = flags
        self.query = normalize(query, case_sensitive=flags.case_sensitive)
        self.pattern: re.Pattern[str] | None = None
        if flags.regex:
            try:
                self.pattern = re.compile(query, 0 if flags.case_sensitive else re.IGNORECASE)
            except re.error as exc:
                LOGGER.debug("Invalid regex %r: %s", query, exc)

    def matches(self, text: str) -> bool:
        candidate = normalize(text, case_sensitive=self.flags.case_sensitive)
        if self.flags.regex:
            return self.pattern is not None and self.pattern.search(candidate) is not None
        if self.flags.whole_word:
            return any(word == self.query for word in iter_words(candidate))
        return self.query in candidate
