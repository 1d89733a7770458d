"""Formatting utilities for git-workty."""

from .status import format_dirty, format_sync, shorten_path

__all__ = [
    "format_dirty",
    "format_sync",
    "shorten_path",
]
