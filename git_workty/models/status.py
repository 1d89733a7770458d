"""Per-worktree status model."""

import time
from dataclasses import dataclass
from typing import Optional

SECONDS_PER_DAY = 24 * 60 * 60


@dataclass(frozen=True)
class WorktreeStatus:
    """Ephemeral status snapshot of one worktree.

    ``ahead`` and ``behind`` are either both set or both ``None``.
    """

    dirty_count: int = 0
    upstream: Optional[str] = None
    ahead: Optional[int] = None
    behind: Optional[int] = None
    upstream_gone: bool = False
    last_commit_time: Optional[int] = None  # Epoch seconds of HEAD

    def is_dirty(self) -> bool:
        return self.dirty_count > 0

    def has_upstream(self) -> bool:
        return self.upstream is not None

    def age_seconds(self, now: Optional[float] = None) -> Optional[int]:
        """Seconds since the last commit, or None when unknown."""
        if self.last_commit_time is None:
            return None
        now = time.time() if now is None else now
        return int(now) - self.last_commit_time

    def is_stale(self, days: int, now: Optional[float] = None) -> bool:
        """True when the last commit is older than ``days``."""
        age = self.age_seconds(now)
        return age is not None and age > days * SECONDS_PER_DAY
