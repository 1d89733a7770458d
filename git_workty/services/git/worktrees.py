"""Worktree registry for git-workty."""

from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from git_workty.models import Repository, Worktree
from git_workty.models.worktree import BRANCH_REF_PREFIX
from git_workty.services.git.backend import GitBackend
from git_workty.logging_config import get_logger

logger = get_logger(__name__)


def _build_worktree(record: Dict[str, Any]) -> Optional[Worktree]:
    """Turn one parsed porcelain record into a Worktree, or None if it is unusable."""
    path = record.get("worktree")
    if not path:
        return None
    if record.get("bare"):
        # The bare repository object itself, not a checkout
        return None

    branch = record.get("branch")
    branch_short = None
    if branch is not None:
        branch_short = branch[len(BRANCH_REF_PREFIX):] if branch.startswith(BRANCH_REF_PREFIX) else branch

    return Worktree(
        path=Path(path),
        head=record.get("HEAD", ""),
        branch=branch,
        branch_short=branch_short,
        detached=bool(record.get("detached")),
        locked=bool(record.get("locked")),
        prunable=bool(record.get("prunable")),
    )


def parse_worktree_list(output: str) -> list[Worktree]:
    """Parse ``git worktree list --porcelain`` output.

    Records are separated by blank lines; each line is ``key value`` or a bare
    ``key``. Records without a ``worktree`` line and ``bare`` records are
    dropped, unknown keys are ignored, and a final record without a trailing
    blank line is still returned.
    """
    worktrees: list[Worktree] = []
    current: Dict[str, Any] = {}

    def flush() -> None:
        if current:
            worktree = _build_worktree(current)
            if worktree is not None:
                worktrees.append(worktree)
            current.clear()

    for line in output.splitlines():
        if not line.strip():
            flush()
            continue

        key, _, value = line.partition(" ")
        if key in ("worktree", "HEAD", "branch"):
            current[key] = value
        elif key in ("detached", "locked", "prunable", "bare"):
            # locked/prunable may carry a reason, which is ignored
            current[key] = True

    flush()
    return worktrees


def main_worktree_path(output: str) -> Optional[Path]:
    """Path of the first porcelain record; git always lists the main worktree first.

    Bare records are kept here: for a bare repository the bare directory
    stands in for the main worktree.
    """
    for line in output.splitlines():
        if line.startswith("worktree "):
            return Path(line[len("worktree "):])
    return None


def find_worktree(worktrees: Iterable[Worktree], name: str) -> Optional[Worktree]:
    """Find a worktree by exact short branch name, then by directory name."""
    worktrees = list(worktrees)
    for wt in worktrees:
        if wt.branch_short == name:
            return wt
    for wt in worktrees:
        if wt.path.name == name:
            return wt
    return None


def slugify(branch_name: str) -> str:
    """Map a branch name to a filesystem-safe path segment.

    Every character that is not alphanumeric, ``-`` or ``_`` becomes ``-``,
    then leading and trailing ``-`` are trimmed.
    """
    slug = "".join(c if c.isalnum() or c in "-_" else "-" for c in branch_name)
    return slug.strip("-")


class WorktreeService:
    """Service for listing and mutating the repository's worktrees."""

    def __init__(self, repo: Repository, backend: GitBackend):
        """Initialize the worktree service.

        Args:
            repo: Discovered repository
            backend: Git backend scoped to the repository
        """
        self.repo = repo
        self.backend = backend

    def list_worktrees(self) -> list[Worktree]:
        """Snapshot of all worktrees, main worktree included.

        Raises:
            GitOperationError: listing failed
        """
        output = self.backend.worktree_list_porcelain()
        worktrees = parse_worktree_list(output)
        logger.debug(f"Found {len(worktrees)} worktrees")
        for wt in worktrees:
            logger.debug(f"  {wt}")
        return worktrees

    def find(self, name: str) -> Optional[Worktree]:
        return find_worktree(self.list_worktrees(), name)

    def find_by_branch(self, worktrees: Iterable[Worktree], branch: str) -> Optional[Worktree]:
        """Worktree that has exactly ``branch`` checked out, if any."""
        return next((wt for wt in worktrees if wt.branch_short == branch), None)

    def current(self, worktrees: Iterable[Worktree]) -> Optional[Worktree]:
        """Worktree containing the start path."""
        return next((wt for wt in worktrees if wt.is_at(self.repo.toplevel)), None)

    def add(self, path: Path, branch: Optional[str] = None, new_branch: Optional[str] = None,
            base: Optional[str] = None, detach: bool = False) -> None:
        self.backend.add_worktree(path, branch=branch, new_branch=new_branch, base=base, detach=detach)
        logger.info(f"Created worktree at {path}")

    def remove(self, worktree: Worktree, force: bool = False) -> None:
        self.backend.remove_worktree(worktree.path, force=force)
        logger.info(f"Removed worktree at {worktree.path}")

    def prune(self) -> None:
        """Prune orphaned worktree metadata."""
        self.backend.prune_worktrees()
        logger.info("Pruned orphaned worktree metadata")
