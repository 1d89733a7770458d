"""Shared constants for git-workty."""

from dataclasses import dataclass
from typing import List


@dataclass
class ColumnDefinition:
    """Definition of a table column."""

    key: str
    label: str
    width: int = 0  # 0 means auto-width


# Dashboard columns, shared by the table view and the picker lines
COLUMNS: List[ColumnDefinition] = [
    ColumnDefinition("marker", "", 1),
    ColumnDefinition("name", "Name"),
    ColumnDefinition("dirty", "Dirty", 4),
    ColumnDefinition("sync", "Sync", 9),
    ColumnDefinition("path", "Path"),
]


@dataclass(frozen=True)
class Icons:
    """Symbols used to render worktree state."""

    current: str
    dirty: str
    clean: str
    arrow_up: str
    arrow_down: str
    gone: str


UNICODE_ICONS = Icons(current="▶", dirty="●", clean="✓", arrow_up="↑", arrow_down="↓", gone="✗")
ASCII_ICONS = Icons(current=">", dirty="*", clean="-", arrow_up="^", arrow_down="v", gone="x")

NO_UPSTREAM = "-"


# Rich styles for dashboard rows
STYLE_CURRENT = "bold green"
STYLE_DIRTY = "yellow"
STYLE_CLEAN = "green"
STYLE_PATH = "dim"


# Process exit codes
EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CANCELLED = 130


# Remote used for fetch/push and pull-request checkouts
DEFAULT_REMOTE = "origin"

# Worktree/branch name for a pull-request checkout
PR_NAME_TEMPLATE = "pr-{number}"
