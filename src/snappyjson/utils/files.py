"""Utility helpers for working with files."""

from __future__ import annotations

from pathlib import Path

from snappyjson.errors import LastFileError


def save_last_opened_file(config_file: Path, file_path: str) -> None:
    """Record ``file_path`` as the last opened document."""
    try:
        config_file.parent.mkdir(parents=True, exist_ok=True)
        config_file.write_text(file_path, encoding="utf-8")
    except OSError as exc:
        raise LastFileError(f"Failed to save config file: {exc}") from exc


def load_last_opened_file(config_file: Path) -> str:
    """Return the recorded path if it still exists on disk."""
    if not config_file.exists():
        raise LastFileError("No config file found")

    try:
        content = config_file.read_text(encoding="utf-8")
    except OSError as exc:
        raise LastFileError(f"Failed to read config file: {exc}") from exc

    file_path = content.strip()
    if not file_path or not Path(file_path).exists():
        raise LastFileError("Last opened file no longer exists")
    return file_path


def clear_last_opened_file(config_file: Path) -> None:
    if config_file.exists():
        try:
            config_file.unlink()
        except OSError as exc:
            raise LastFileError(f"Failed to remove config file: {exc}") from exc
