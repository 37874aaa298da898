"""Application configuration defaults."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path

CONFIG_FILE_NAME = ".snappy"


def _get_default_config_dir() -> Path:
    """Get the per-user configuration directory based on platform."""
    if sys.platform == "win32":
        appdata = os.environ.get("APPDATA", os.path.expanduser("~"))
        return Path(appdata) / "SnappyJSON"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "SnappyJSON"

    # XDG on everything else
    xdg = os.environ.get("XDG_CONFIG_HOME")
    base = Path(xdg) if xdg else Path.home() / ".config"
    return base / "snappyjson"


@dataclass(slots=True)
class AppConfig:
    config_dir: Path | None = None
    preview_chars: int = 120
    page_size: int = 100
    batch_size: int = 10
    progress_step_bytes: int = 1024 * 1024
    read_chunk_bytes: int = 64 * 1024
    max_workers: int = 4

    def __post_init__(self) -> None:
        if self.config_dir is None:
            self.config_dir = _get_default_config_dir()

    @property
    def config_file(self) -> Path:
        if self.config_dir is None:
            self.config_dir = _get_default_config_dir()
        return Path(self.config_dir) / CONFIG_FILE_NAME
