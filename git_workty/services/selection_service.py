"""Ordering, cleanup-candidate and picker selection over a worktree snapshot."""

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Mapping, Optional, Sequence

from git_workty.constants import Icons
from git_workty.formatters import format_dirty, format_sync, shorten_path
from git_workty.logging_config import get_logger
from git_workty.models import Repository, Worktree, WorktreeStatus

logger = get_logger(__name__)

StatusEntry = tuple[Worktree, WorktreeStatus]


@dataclass(frozen=True)
class CleanFilter:
    """Which kinds of worktrees `clean` may remove."""

    merged: bool = False
    gone: bool = False
    stale_days: Optional[int] = None

    def is_empty(self) -> bool:
        return not (self.merged or self.gone or self.stale_days is not None)

    def needs_status(self) -> bool:
        """Do the requested filters need upstream/commit-time status?"""
        return self.gone or self.stale_days is not None


def sort_worktrees(entries: Sequence[StatusEntry], current_path: Optional[Path]) -> list[StatusEntry]:
    """Dashboard order: current first, then dirty before clean, then by name."""
    return sorted(
        entries,
        key=lambda entry: (
            0 if entry[0].is_at(current_path) else 1,
            0 if entry[1].is_dirty() else 1,
            entry[0].name,
        ),
    )


def protection_reason(
    worktree: Worktree, repo: Repository, base: str, current_path: Optional[Path]
) -> Optional[str]:
    """Why a worktree can never be cleaned up, or None if it may be."""
    if worktree.is_at(current_path):
        return "current worktree"
    if worktree.is_main_worktree(repo):
        return "main worktree"
    if worktree.detached:
        return "detached worktree"
    if worktree.branch_short == base:
        return "base branch"
    return None


def select_clean_candidates(
    worktrees: Sequence[Worktree],
    repo: Repository,
    base: str,
    filters: CleanFilter,
    is_merged: Callable[[str], bool],
    statuses: Optional[Mapping[Path, WorktreeStatus]] = None,
    current_path: Optional[Path] = None,
    now: Optional[float] = None,
) -> list[Worktree]:
    """Worktrees that qualify for cleanup under ``filters``.

    Args:
        worktrees: Registry snapshot
        repo: Repository (identifies the main worktree)
        base: Configured base branch
        filters: Requested filters; no filter selects nothing
        is_merged: Predicate "branch is an ancestor of base"
        statuses: Status per worktree path, needed for gone/stale filters
        current_path: Path of the worktree the command runs in
        now: Clock override for the stale filter

    Returns:
        Candidates in registry order
    """
    if filters.is_empty():
        logger.debug("No clean filter given, selecting nothing")
        return []

    statuses = statuses or {}
    candidates = []
    for wt in worktrees:
        reason = protection_reason(wt, repo, base, current_path)
        if reason:
            logger.debug(f"Skipping {wt.name}: {reason}")
            continue

        status = statuses.get(wt.path)
        if filters.merged and wt.branch_short and is_merged(wt.branch_short):
            logger.debug(f"{wt.name} is merged into {base}")
            candidates.append(wt)
        elif filters.gone and status is not None and status.upstream_gone:
            logger.debug(f"{wt.name} upstream {status.upstream} is gone")
            candidates.append(wt)
        elif (
            filters.stale_days is not None
            and status is not None
            and status.is_stale(filters.stale_days, now)
        ):
            logger.debug(f"{wt.name} is older than {filters.stale_days} days")
            candidates.append(wt)

    return candidates


def partition_dirty(
    candidates: Sequence[Worktree], is_dirty: Callable[[Worktree], bool]
) -> tuple[list[Worktree], list[Worktree]]:
    """Split candidates into (removable, dirty); dirty ones are never removed."""
    removable: list[Worktree] = []
    dirty: list[Worktree] = []
    for wt in candidates:
        (dirty if is_dirty(wt) else removable).append(wt)
    return removable, dirty


def format_pick_line(worktree: Worktree, status: WorktreeStatus, name_width: int, icons: Icons) -> str:
    """One fixed-width picker line: name, dirty, ahead/behind, short path."""
    return (
        f"{worktree.name:<{name_width}}  "
        f"{format_dirty(status, icons)}  "
        f"{format_sync(status, icons):>9}  "
        f"{shorten_path(worktree.path)}"
    )


def pick_lines(entries: Sequence[StatusEntry], icons: Icons) -> list[str]:
    name_width = max((len(wt.name) for wt, _ in entries), default=10)
    return [format_pick_line(wt, status, name_width, icons) for wt, status in entries]


def fuzzy_score(query: str, text: str) -> Optional[int]:
    """Score ``text`` against ``query`` as a case-insensitive subsequence match.

    Returns None when not every query character appears in order. Higher is
    better: consecutive runs and matches at word starts earn bonuses, and
    gaps cost a point each.
    """
    if not query:
        return 0

    query = query.lower()
    lowered = text.lower()
    score = 0
    position = -1
    for char in query:
        found = lowered.find(char, position + 1)
        if found < 0:
            return None
        if found == position + 1:
            score += 5
        else:
            score -= found - position - 1
        if found == 0 or not lowered[found - 1].isalnum():
            score += 3
        position = found
    return score


def fuzzy_filter(query: str, items: Sequence[str]) -> list[int]:
    """Indices of matching items, best score first, ties in original order."""
    scored = [(score, index) for index, item in enumerate(items) if (score := fuzzy_score(query, item)) is not None]
    scored.sort(key=lambda pair: (-pair[0], pair[1]))
    return [index for _, index in scored]
