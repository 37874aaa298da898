"""Tests for the progress-tracked loader."""

from __future__ import annotations

import io
import json
import threading
from pathlib import Path
from typing import List

import pytest

from snappyjson.errors import DocumentParseError, ParseCanceledError, SourceError
from snappyjson.ingestion.loader import ProgressReader, load_file, load_stream
from snappyjson.models import ParseProgress


def _big_payload(min_bytes: int) -> bytes:
    row = {"name": "x" * 200, "n": 1}
    count = min_bytes // 220 + 1
    return json.dumps([row] * count).encode("utf-8")


class TestProgressReader:
    """Test ProgressReader counting and events."""

    def test_emits_every_step_and_at_end(self) -> None:
        events: List[ParseProgress] = []
        data = b"x" * 100
        reader = ProgressReader(
            io.BytesIO(data),
            total_bytes=len(data),
            cancel=threading.Event(),
            sink=events.append,
            step_bytes=40,
        )

        while reader.read(20):
            pass

        assert [e.read_bytes for e in events] == [40, 80, 100]
        assert events[-1].done is True
        assert events[-1].percent == pytest.approx(100.0)
        assert all(not e.done for e in events[:-1])

    def test_percent_zero_without_total(self) -> None:
        events: List[ParseProgress] = []
        reader = ProgressReader(
            io.BytesIO(b"abc"), total_bytes=0, cancel=threading.Event(), sink=events.append
        )

        while reader.read(10):
            pass

        assert events[-1].percent == 0.0
        assert events[-1].read_bytes == 3

    def test_cancel_reports_end_of_stream(self) -> None:
        events: List[ParseProgress] = []
        cancel = threading.Event()
        reader = ProgressReader(
            io.BytesIO(b"x" * 100), total_bytes=100, cancel=cancel, sink=events.append
        )

        assert reader.read(10) == b"x" * 10
        cancel.set()

        assert reader.read(10) == b""
        assert reader.read(10) == b""
        assert reader.canceled is True
        assert reader.read_bytes == 10
        assert len([e for e in events if e.canceled]) == 1


class TestLoadStream:
    """Test load_stream parsing."""

    def test_parses_document(self) -> None:
        data = b'{"users": [{"name": "Ann"}]}'

        value = load_stream(io.BytesIO(data), total_bytes=len(data), cancel=threading.Event())

        assert value == {"users": [{"name": "Ann"}]}

    def test_malformed_json_has_location(self) -> None:
        data = b'{\n  "a": }'

        with pytest.raises(DocumentParseError) as info:
            load_stream(io.BytesIO(data), total_bytes=len(data), cancel=threading.Event())

        assert not isinstance(info.value, ParseCanceledError)
        assert info.value.line == 2

    def test_rejects_nan(self) -> None:
        with pytest.raises(DocumentParseError):
            load_stream(io.BytesIO(b"[NaN]"), total_bytes=5, cancel=threading.Event())

    def test_cancel_mid_parse(self) -> None:
        """Cancelling from the progress sink truncates the stream."""
        data = _big_payload(3 * 1024 * 1024)
        cancel = threading.Event()

        def sink(progress: ParseProgress) -> None:
            cancel.set()

        with pytest.raises(ParseCanceledError, match="canceled"):
            load_stream(
                io.BytesIO(data),
                total_bytes=len(data),
                cancel=cancel,
                sink=sink,
            )

    def test_cancel_before_start(self) -> None:
        cancel = threading.Event()
        cancel.set()

        with pytest.raises(ParseCanceledError):
            load_stream(io.BytesIO(b"[1, 2, 3]"), total_bytes=9, cancel=cancel)


class TestLoadFile:
    """Test load_file."""

    def test_load_file(self, tmp_path: Path) -> None:
        path = tmp_path / "doc.json"
        path.write_text('{"a": 1}', encoding="utf-8")
        events: List[ParseProgress] = []

        value = load_file(path, cancel=threading.Event(), sink=events.append)

        assert value == {"a": 1}
        assert events[-1].done is True
        assert events[-1].total_bytes == 8
        assert events[-1].path == str(path)

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(SourceError):
            load_file(tmp_path / "missing.json", cancel=threading.Event())
