"""Core SnappyJSON data models."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional


@dataclass(slots=True)
class Node:
    """Lightweight summary of one JSON value, addressed by a JSON Pointer."""

    pointer: str
    key: Optional[str]
    value_type: str
    has_children: bool
    child_count: int
    preview: str


@dataclass(slots=True)
class SearchResult:
    """A single key, value or path match."""

    node: Node
    match_type: str
    match_text: str
    context: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class SearchResponse:
    results: List[SearchResult]
    total_count: int
    has_more: bool


@dataclass(slots=True)
class ParseProgress:
    path: str
    read_bytes: int
    total_bytes: int
    percent: float
    done: bool
    canceled: bool

    def to_payload(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "readBytes": self.read_bytes,
            "totalBytes": self.total_bytes,
            "percent": self.percent,
            "done": self.done,
            "canceled": self.canceled,
        }
