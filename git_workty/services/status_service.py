"""Per-worktree status aggregation."""

import os
from typing import Optional, Sequence

from git_workty.exceptions import WorktyError
from git_workty.logging_config import get_logger
from git_workty.models import Worktree, WorktreeStatus
from git_workty.services.git.backend import GitBackend
from git_workty.utils.threading import parallel_map

logger = get_logger(__name__)


class StatusService:
    """Computes dirty count, upstream and ahead/behind for worktrees."""

    def __init__(self, backend: GitBackend, workers: Optional[int] = None, sequential: bool = False):
        """Initialize the status service.

        Args:
            backend: Git backend; calls are scoped to each worktree's own path
            workers: Worker pool size (None = auto-detect)
            sequential: Disable the worker pool
        """
        self.backend = backend
        self.workers = workers
        self.sequential = sequential

    def status_of(self, worktree: Worktree) -> WorktreeStatus:
        """Status of one worktree. Never raises: failures degrade to an empty status."""
        if not os.path.isdir(worktree.path):
            logger.debug(f"Worktree path {worktree.path} doesn't exist (prunable)")
            return WorktreeStatus()

        try:
            dirty_count = self.backend.dirty_count(worktree.path)
        except WorktyError as e:
            logger.warning(f"Could not check worktree status for {worktree.path}: {e}")
            return WorktreeStatus()

        upstream, ahead, behind, gone = self._ahead_behind(worktree)
        last_commit_time = self._last_commit_time(worktree)

        return WorktreeStatus(
            dirty_count=dirty_count,
            upstream=upstream,
            ahead=ahead,
            behind=behind,
            upstream_gone=gone,
            last_commit_time=last_commit_time,
        )

    def _ahead_behind(self, worktree: Worktree) -> tuple[Optional[str], Optional[int], Optional[int], bool]:
        """Resolve upstream and divergence: (upstream, ahead, behind, upstream_gone)."""
        if worktree.detached or not worktree.branch_short:
            return None, None, None, False

        try:
            upstream, gone = self.backend.branch_upstream(worktree.path, worktree.branch_short)
        except WorktyError as e:
            logger.debug(f"Could not resolve upstream for {worktree.name}: {e}")
            return None, None, None, False

        if upstream is None:
            return None, None, None, False
        if gone:
            return upstream, None, None, True

        try:
            ahead, behind = self.backend.ahead_behind(worktree.path, worktree.branch_short, upstream)
        except (WorktyError, ValueError) as e:
            # Upstream name is configured but its tip can't be resolved
            logger.debug(f"Could not count commits against {upstream} for {worktree.name}: {e}")
            return upstream, None, None, False

        return upstream, ahead, behind, False

    def _last_commit_time(self, worktree: Worktree) -> Optional[int]:
        try:
            return self.backend.last_commit_time(worktree.path)
        except (WorktyError, ValueError) as e:
            logger.debug(f"Could not read last commit time for {worktree.name}: {e}")
            return None

    def dirty_count(self, worktree: Worktree) -> int:
        """Uncommitted entry count only, 0 when it cannot be determined."""
        try:
            return self.backend.dirty_count(worktree.path)
        except WorktyError as e:
            logger.debug(f"Could not check worktree status for {worktree.path}: {e}")
            return 0

    def is_dirty(self, worktree: Worktree) -> bool:
        return self.dirty_count(worktree) > 0

    def status_of_all(self, worktrees: Sequence[Worktree]) -> list[tuple[Worktree, WorktreeStatus]]:
        """Statuses for all worktrees, computed concurrently, in input order."""
        logger.debug(
            f"Collecting status for {len(worktrees)} worktrees "
            f"({'sequential' if self.sequential else 'parallel'})"
        )
        statuses = parallel_map(self.status_of, worktrees, max_workers=self.workers, sequential=self.sequential)
        return list(zip(worktrees, statuses))
