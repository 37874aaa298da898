"""Exception hierarchy shared by every SnappyJSON command."""

from __future__ import annotations


class SnappyError(Exception):
    """Base class for all errors surfaced to a command caller."""


class NoDocumentError(SnappyError):
    def __init__(self) -> None:
        super().__init__("No document loaded")


class InvalidPointerError(SnappyError):
    def __init__(self, pointer: str) -> None:
        super().__init__(f"Invalid pointer: {pointer}")
        self.pointer = pointer


class EmptyQueryError(SnappyError):
    def __init__(self) -> None:
        super().__init__("Empty query")


class SourceError(SnappyError):
    """The byte source (file, clipboard) could not be opened or read."""


class DocumentParseError(SnappyError):
    """Input is not valid JSON."""

    def __init__(self, message: str, *, line: int | None = None, column: int | None = None) -> None:
        super().__init__(message)
        self.line = line
        self.column = column


class ParseCanceledError(DocumentParseError):
    """Parsing stopped because the user requested cancellation."""

    def __init__(self) -> None:
        super().__init__("Operation canceled")


class InvalidEditError(SnappyError):
    """A mutation was rejected because it would violate a type constraint."""


class LastFileError(SnappyError):
    """The last-opened-file record is missing, stale or unwritable."""


class DocumentEncodeError(SnappyError):
    """A value could not be serialized back to JSON text."""
