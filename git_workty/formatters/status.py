"""Status formatting utilities."""

from pathlib import Path

from git_workty.constants import Icons, NO_UPSTREAM
from git_workty.models import WorktreeStatus


def format_dirty(status: WorktreeStatus, icons: Icons) -> str:
    """
    Format the dirty indicator as a fixed-width cell.

    Args:
        status: Worktree status
        icons: Icon set to use

    Returns:
        Dirty icon with file count, or the clean icon
    """
    if status.is_dirty():
        return f"{icons.dirty}{status.dirty_count:>3}"
    return f"{icons.clean:>4}"


def format_sync(status: WorktreeStatus, icons: Icons) -> str:
    """
    Format ahead/behind counts relative to upstream.

    Args:
        status: Worktree status
        icons: Icon set to use

    Returns:
        e.g. "↑2↓0", the gone icon when the upstream ref disappeared,
        or "-" when there is no upstream or counts are unknown
    """
    if status.upstream_gone:
        return f"{icons.gone}gone"
    if status.ahead is None or status.behind is None:
        return NO_UPSTREAM
    return f"{icons.arrow_up}{status.ahead}{icons.arrow_down}{status.behind}"


def shorten_path(path: Path) -> str:
    """Replace the home directory prefix with ``~``."""
    try:
        return f"~/{Path(path).relative_to(Path.home())}"
    except (ValueError, RuntimeError):
        return str(path)
