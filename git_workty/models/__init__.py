"""Value types shared across git-workty."""

from .repository import Repository, same_path
from .worktree import Worktree
from .status import WorktreeStatus

__all__ = ["Repository", "Worktree", "WorktreeStatus", "same_path"]
