"""Clipboard and file-dialog collaborators."""
