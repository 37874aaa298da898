"""Native file picker."""

from __future__ import annotations

import logging

from snappyjson.errors import SourceError

LOGGER = logging.getLogger(__name__)


def ask_json_file() -> str | None:
    """Show an open-file dialog filtered to JSON; None when dismissed."""
    try:
        import tkinter as tk
        from tkinter import filedialog
    except ImportError as exc:  # pragma: no cover - depends on the Python build
        raise SourceError("tkinter is not available for the file dialog") from exc

    try:
        root = tk.Tk()
    except tk.TclError as exc:
        raise SourceError(f"Unable to open file dialog: {exc}") from exc

    root.withdraw()
    try:
        path = filedialog.askopenfilename(
            title="Open JSON File",
            filetypes=[("JSON files", "*.json"), ("All files", "*")],
        )
    finally:
        root.destroy()

    if not path:
        LOGGER.debug("File dialog dismissed")
        return None
    return str(path)
