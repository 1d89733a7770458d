"""Repository discovery."""

from pathlib import Path
from typing import Optional

from git_workty.exceptions import GitOperationError, NotARepositoryError
from git_workty.logging_config import get_logger
from git_workty.models import Repository
from git_workty.services.git.backend import GitBackend
from git_workty.services.git.worktrees import main_worktree_path

logger = get_logger(__name__)


def _canonical(path: Path) -> Path:
    try:
        return path.resolve()
    except OSError:
        return path


def _main_worktree(backend: GitBackend, start: Path) -> Optional[Path]:
    """Main worktree as git reports it, the same from every linked worktree."""
    try:
        output = backend.worktree_list_porcelain(cwd=start)
    except GitOperationError as e:
        logger.debug(f"Could not list worktrees from {start}: {e}")
        return None
    path = main_worktree_path(output)
    return _canonical(path) if path is not None else None


def discover_repository(start_path: Optional[Path] = None, backend: Optional[GitBackend] = None) -> Repository:
    """Find the repository containing ``start_path`` (default: the cwd).

    Raises:
        NotARepositoryError: start_path is not inside a git repository
        BackendUnavailableError: git is not installed
    """
    start = Path(start_path) if start_path is not None else Path.cwd()
    if not start.is_dir():
        raise NotARepositoryError(start)

    backend = backend or GitBackend(start)
    try:
        toplevel = Path(backend.show_toplevel(start))
        common = backend.git_common_dir(start)
    except GitOperationError as e:
        logger.debug(f"Repository discovery failed from {start}: {e}")
        raise NotARepositoryError(start)

    toplevel = _canonical(toplevel)
    common_dir = Path(common)
    if not common_dir.is_absolute():
        common_dir = start / common_dir
    common_dir = _canonical(common_dir)

    root = _main_worktree(backend, start)
    if root is None:
        # The main working tree owns the shared .git directory
        root = common_dir.parent if common_dir.name == ".git" else toplevel

    repo = Repository(root=root, common_dir=common_dir, toplevel=toplevel)
    logger.debug(f"Discovered repository: root={repo.root} common_dir={repo.common_dir} toplevel={repo.toplevel}")
    return repo
