"""End-to-end tests for the command handlers."""

from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Any, Dict, Iterator, List
from unittest.mock import patch

import pytest

from snappyjson import commands
from snappyjson.config import AppConfig
from snappyjson.errors import (
    EmptyQueryError,
    InvalidEditError,
    InvalidPointerError,
    LastFileError,
    NoDocumentError,
    ParseCanceledError,
    SourceError,
)
from snappyjson.events import PARSE_PROGRESS, SEARCH_BATCH, SEARCH_DONE, Event
from snappyjson.state import AppState


USERS = {"users": [{"name": "Ann"}, {"name": "Bo"}]}


@pytest.fixture
def state(tmp_path: Path) -> Iterator[AppState]:
    with AppState(AppConfig(config_dir=tmp_path / "config")) as app_state:
        yield app_state


@pytest.fixture
def users_file(tmp_path: Path) -> Path:
    path = tmp_path / "users.json"
    path.write_text(json.dumps(USERS), encoding="utf-8")
    return path


def _collect_until_done(subscription: Any, search_id: int) -> List[Event]:
    events: List[Event] = []
    while True:
        event = subscription.get(timeout=5)
        assert event is not None, "timed out waiting for search events"
        if event.payload.get("id") != search_id:
            continue
        events.append(event)
        if event.name == SEARCH_DONE:
            return events


class TestOpenFile:
    """Test open_file and cancellation."""

    def test_open_and_browse(self, state: AppState, users_file: Path) -> None:
        nodes = commands.open_file(state, users_file)

        assert [(n.pointer, n.value_type, n.child_count) for n in nodes] == [
            ("/users", "array", 2)
        ]
        children = commands.load_children(state, "/users", 0, 100)
        assert [n.pointer for n in children] == ["/users/0", "/users/1"]

    def test_progress_events(self, state: AppState, users_file: Path) -> None:
        received: List[Dict[str, Any]] = []
        state.events.add_listener(PARSE_PROGRESS, received.append)

        commands.open_file(state, users_file)

        assert received[-1]["done"] is True
        assert received[-1]["readBytes"] == users_file.stat().st_size
        assert received[-1]["path"] == str(users_file)

    def test_async_open(self, state: AppState, users_file: Path) -> None:
        nodes = commands.open_file_async(state, users_file).result(timeout=5)

        assert nodes[0].key == "users"

    def test_parse_error_keeps_previous_document(
        self, state: AppState, users_file: Path, tmp_path: Path
    ) -> None:
        commands.open_file(state, users_file)
        bad = tmp_path / "bad.json"
        bad.write_text('{"a": ', encoding="utf-8")

        with pytest.raises(Exception, match="Parse error"):
            commands.open_file(state, bad)

        assert commands.get_node_value(state, "/users/0/name") == '"Ann"'

    def test_missing_file(self, state: AppState, tmp_path: Path) -> None:
        with pytest.raises(SourceError):
            commands.open_file(state, tmp_path / "missing.json")

    def test_cancel_keeps_previous_document(self, tmp_path: Path, users_file: Path) -> None:
        """Canceling from a progress listener aborts the load."""
        config = AppConfig(config_dir=tmp_path, progress_step_bytes=1024, read_chunk_bytes=1024)
        big = tmp_path / "big.json"
        big.write_text(json.dumps([{"n": i, "text": "x" * 50} for i in range(5000)]))
        received: List[Dict[str, Any]] = []

        with AppState(config) as state:
            commands.open_file(state, users_file)

            def on_progress(payload: Dict[str, Any]) -> None:
                received.append(payload)
                commands.cancel_parse(state)

            state.events.add_listener(PARSE_PROGRESS, on_progress)

            with pytest.raises(ParseCanceledError):
                commands.open_file(state, big)

            assert received[-1]["canceled"] is True
            assert commands.get_node_value(state, "/users/1/name") == '"Bo"'

    def test_cancel_while_load_is_queued(self, tmp_path: Path, users_file: Path) -> None:
        """A cancel issued before a queued load starts still aborts it."""
        release = threading.Event()

        with AppState(AppConfig(config_dir=tmp_path, max_workers=1)) as state:
            commands.open_file(state, users_file)
            blocker = state.executor.submit(release.wait, 5)

            future = commands.open_file_async(state, users_file)
            commands.cancel_parse(state)
            release.set()

            assert blocker.result(timeout=5) is True
            with pytest.raises(ParseCanceledError):
                future.result(timeout=5)
            assert state.cancel_parse.is_set()
            assert commands.get_node_value(state, "/users/0/name") == '"Ann"'

    def test_cancel_flag_reset_on_next_open(self, state: AppState, users_file: Path) -> None:
        commands.cancel_parse(state)

        nodes = commands.open_file(state, users_file)

        assert len(nodes) == 1


class TestNavigation:
    """Test reads against the current document."""

    def test_no_document(self, state: AppState) -> None:
        with pytest.raises(NoDocumentError):
            commands.load_children(state, "", 0, 10)
        with pytest.raises(NoDocumentError):
            commands.get_node_value(state, "")
        with pytest.raises(NoDocumentError):
            commands.search(state, "x")

    def test_get_node_value(self, state: AppState, users_file: Path) -> None:
        commands.open_file(state, users_file)

        assert commands.get_node_value(state, "/users/0") == '{"name":"Ann"}'
        assert commands.get_node_value(state, "") == json.dumps(USERS, separators=(",", ":"))

    def test_get_invalid_pointer(self, state: AppState, users_file: Path) -> None:
        commands.open_file(state, users_file)

        with pytest.raises(InvalidPointerError):
            commands.get_node_value(state, "/users/5")

    def test_copy_node_value(self, state: AppState, users_file: Path) -> None:
        commands.open_file(state, users_file)

        with patch("snappyjson.external.clipboard.pyperclip.copy") as mock_copy:
            commands.copy_node_value(state, "/users/0")

        mock_copy.assert_called_once_with('{\n  "name": "Ann"\n}')


class TestClipboard:
    def test_open_clipboard(self, state: AppState) -> None:
        with patch("snappyjson.external.clipboard.pyperclip.paste", return_value='[1, {"a": 2}]'):
            nodes = commands.open_clipboard(state)

        assert [n.pointer for n in nodes] == ["/0", "/1"]

    def test_invalid_clipboard(self, state: AppState) -> None:
        with patch("snappyjson.external.clipboard.pyperclip.paste", return_value="not json"):
            with pytest.raises(Exception, match="Clipboard does not contain valid JSON"):
                commands.open_clipboard(state)

        assert state.store.loaded is False


class TestSearchCommands:
    """Test bulk and streaming search."""

    def test_bulk_search(self, state: AppState, users_file: Path) -> None:
        commands.open_file(state, users_file)

        response = commands.search(state, "ann", search_keys=False, search_values=True)

        assert response.total_count == 1
        assert response.results[0].node.pointer == "/users/0/name"
        assert response.results[0].match_text == "Ann"

    def test_async_search(self, state: AppState, users_file: Path) -> None:
        commands.open_file(state, users_file)

        response = commands.search_async(state, "name", search_values=False).result(timeout=5)

        assert response.total_count == 2

    def test_stream_search(self, state: AppState, users_file: Path) -> None:
        commands.open_file(state, users_file)

        with state.events.subscribe([SEARCH_BATCH, SEARCH_DONE]) as subscription:
            search_id = commands.search_stream(state, "ann", search_keys=False)
            events = _collect_until_done(subscription, search_id)

        assert [e.name for e in events] == [SEARCH_BATCH, SEARCH_DONE]
        batch = events[0].payload["batch"]
        assert batch[0]["node"]["pointer"] == "/users/0/name"
        assert batch[0]["context"] == "in key: name"
        assert events[-1].payload["total"] == 1

    def test_stream_ids_increase(self, state: AppState, users_file: Path) -> None:
        commands.open_file(state, users_file)

        with state.events.subscribe([SEARCH_DONE]) as subscription:
            first = commands.search_stream(state, "a")
            second = commands.search_stream(state, "b")
            _collect_until_done(subscription, first)

        assert second == first + 1

    def test_stream_empty_query(self, state: AppState, users_file: Path) -> None:
        commands.open_file(state, users_file)

        with pytest.raises(EmptyQueryError):
            commands.search_stream(state, "  ")
        assert state.store.current is not None
        assert state.store.current.shared is False

    def test_stream_without_document(self, state: AppState) -> None:
        with pytest.raises(NoDocumentError):
            commands.search_stream(state, "x")


class TestMutationCommands:
    """Test the editing handlers."""

    def test_set_node_value(self, state: AppState, tmp_path: Path) -> None:
        path = tmp_path / "n.json"
        path.write_text('{"n": 1, "s": "x"}')
        commands.open_file(state, path)

        node = commands.set_node_value(state, "/n", "42")

        assert node.preview == "42"
        assert commands.get_node_value(state, "/n") == "42"

    def test_set_subtree_kind_change(self, state: AppState, tmp_path: Path) -> None:
        path = tmp_path / "a.json"
        path.write_text('{"a": {"x": 1}}')
        commands.open_file(state, path)

        with pytest.raises(InvalidEditError):
            commands.set_subtree(state, "/a", "[1,2,3]")

        assert commands.get_node_value(state, "/a") == '{"x":1}'

    def test_set_subtree(self, state: AppState, users_file: Path) -> None:
        commands.open_file(state, users_file)

        node = commands.set_subtree(state, "/users", '[{"name": "Cy"}]')

        assert node.child_count == 1
        assert commands.search(state, "cy").total_count == 1

    def test_parse_stringified_json(self, state: AppState, tmp_path: Path) -> None:
        path = tmp_path / "s.json"
        path.write_text(json.dumps({"payload": '{"inner": [1, 2]}'}))
        commands.open_file(state, path)

        node = commands.parse_stringified_json(state, "/payload")

        assert node.value_type == "object"
        assert commands.get_node_value(state, "/payload/inner/1") == "2"

    def test_snapshot_isolated_from_edit(self, state: AppState, users_file: Path) -> None:
        """Readers holding a snapshot never observe a later edit."""
        commands.open_file(state, users_file)

        with state.store.snapshot() as snapshot:
            commands.set_node_value(state, "/users/0/name", "Zed")
            assert snapshot.root["users"][0]["name"] == "Ann"

        assert commands.get_node_value(state, "/users/0/name") == '"Zed"'

    def test_edit_deep_document_while_snapshot_held(self, state: AppState) -> None:
        """Copy-on-write works for documents nested deeper than the recursion limit."""
        depth = 3000
        root: Dict[str, Any] = {"a": 1}
        for _ in range(depth - 1):
            root = {"a": root}
        state.store.replace(root, source="deep")
        pointer = "/a" * depth

        with state.store.snapshot() as snapshot:
            node = commands.set_node_value(state, pointer, "2")

            leaf = snapshot.root
            for _ in range(depth):
                leaf = leaf["a"]
            assert leaf == 1

        assert node.preview == "2"
        assert state.store.current is not snapshot.document

    def test_search_deep_document(self, state: AppState) -> None:
        depth = 3000
        root: Dict[str, Any] = {"leaf": "needle"}
        for _ in range(depth):
            root = {"a": root}
        state.store.replace(root, source="deep")

        response = commands.search(state, "needle", search_keys=False)

        assert response.total_count == 1
        assert response.results[0].node.pointer == "/a" * depth + "/leaf"


class TestLastOpenedFile:
    def test_round_trip(self, state: AppState, users_file: Path) -> None:
        commands.save_last_opened_file(state, str(users_file))

        assert commands.load_last_opened_file(state) == str(users_file)

        commands.clear_last_opened_file(state)
        with pytest.raises(LastFileError):
            commands.load_last_opened_file(state)


class TestFileDialog:
    def test_delegates_to_dialog(self, state: AppState) -> None:
        with patch("snappyjson.commands.dialog.ask_json_file", return_value="/tmp/x.json"):
            assert commands.open_file_dialog(state) == "/tmp/x.json"
