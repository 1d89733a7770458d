"""Worktree data models."""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, TYPE_CHECKING

from git_workty.models.repository import same_path

if TYPE_CHECKING:
    from git_workty.models.repository import Repository

BRANCH_REF_PREFIX = "refs/heads/"


@dataclass(frozen=True)
class Worktree:
    """One checkout directory bound to the repository."""

    path: Path
    head: str
    branch: Optional[str] = None  # Fully-qualified ref, None when detached
    branch_short: Optional[str] = None
    detached: bool = False
    locked: bool = False
    prunable: bool = False

    @property
    def name(self) -> str:
        """Display name: short branch name, else directory name."""
        return self.branch_short or self.path.name or "unknown"

    def is_main_worktree(self, repo: "Repository") -> bool:
        """Is this the repository's main working tree?"""
        return same_path(self.path, repo.root)

    def is_at(self, path: Optional[Path]) -> bool:
        """Is this worktree located at the given path?"""
        return path is not None and same_path(self.path, path)

    def __str__(self) -> str:
        """String representation of worktree."""
        flags = [flag for flag in ("detached", "locked", "prunable") if getattr(self, flag)]
        suffix = f" [{', '.join(flags)}]" if flags else ""
        return f"{self.name} @ {self.path}{suffix}"
