"""Environment diagnostics for git-workty."""

from pathlib import Path
from typing import Optional

from git_workty.config import config_exists, load_config
from git_workty.exceptions import WorktyError
from git_workty.logging_config import get_logger
from git_workty.services.display_service import DisplayService
from git_workty.services.git import GitBackend, WorktreeService, discover_repository
from git_workty.services.github_service import GitHubService

logger = get_logger(__name__)


def run_doctor(start_path: Optional[Path], display: DisplayService, backend: Optional[GitBackend] = None) -> bool:
    """Check the environment and report each result.

    Returns:
        True if every required check passed
    """
    all_ok = True

    def check(name: str, ok: bool) -> bool:
        nonlocal all_ok
        display.print_check(name, ok)
        if not ok:
            all_ok = False
        return ok

    start = Path(start_path) if start_path is not None else Path.cwd()
    backend = backend or GitBackend(start if start.is_dir() else Path.cwd())

    version = backend.version()
    check("Git installed", version is not None)
    if version:
        display.print_note(version)

    if not check("Inside Git repository", backend.is_inside_work_tree(start)):
        display.print_info("\nhint: Run this command from inside a Git repository.")
        return False

    try:
        repo = discover_repository(start, backend)
    except WorktyError as e:
        check(f"Failed to discover repo: {e}", False)
        return False

    display.print_note(f"Repository root: {repo.root}")
    display.print_note(f"Common dir: {repo.common_dir}")

    try:
        worktrees = WorktreeService(repo, GitBackend(repo.root)).list_worktrees()
    except WorktyError as e:
        logger.debug(f"Worktree listing failed: {e}")
        worktrees = None
    check("Can list worktrees", worktrees is not None)

    if worktrees is not None:
        display.print_note(f"Found {len(worktrees)} worktree(s)")
        prunable = [wt for wt in worktrees if wt.prunable]
        if prunable:
            display.print_note(f"{len(prunable)} prunable worktree(s) found", ok=False)
            display.print_note("hint: Run `git worktree prune` to clean up.")

    config = None
    if check("Config exists", config_exists(repo)):
        try:
            config = load_config(repo)
        except WorktyError as e:
            check(f"Config parse error: {e}", False)
        else:
            display.print_note(f"Base branch: {config.base}")
            display.print_note(f"Workspace root: {config.root}")
    else:
        display.print_note("Using default config (no workty.toml found)")

    github = GitHubService(GitBackend(repo.root), config or {})
    if github.is_installed():
        display.print_note(f"GitHub repository: {github.github_repo}", ok=True)
        if github.is_authenticated():
            display.print_note("GitHub API authenticated", ok=True)
        else:
            display.print_note("GitHub API not authenticated", ok=False)
            display.print_note("hint: Set GITHUB_TOKEN to enable PR features.")
    else:
        display.print_note("origin is not a GitHub repository (PR features unavailable)")

    display.print_info("")
    if all_ok:
        display.print_success("All checks passed!")
    else:
        display.print_warning("Some checks failed. See hints above.")
    return all_ok
