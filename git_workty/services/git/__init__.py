"""Git-related services for git-workty."""

from .backend import GitBackend
from .repository import discover_repository
from .worktrees import WorktreeService, find_worktree, parse_worktree_list, slugify

__all__ = [
    "GitBackend",
    "WorktreeService",
    "discover_repository",
    "find_worktree",
    "parse_worktree_list",
    "slugify",
]
