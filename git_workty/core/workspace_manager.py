"""Core functionality for git-workty"""

import shlex
import subprocess
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from git_workty.config import Config
from git_workty.constants import DEFAULT_REMOTE, PR_NAME_TEMPLATE
from git_workty.exceptions import (
    AbortedError,
    BackendUnavailableError,
    BranchInUseError,
    ConfirmationRequiredError,
    DirtyWorktreeError,
    PathExistsError,
    ProtectedWorktreeError,
    WorktreeNotFoundError,
    WorktyError,
)
from git_workty.logging_config import get_logger
from git_workty.models import Repository, Worktree, WorktreeStatus
from git_workty.services.display_service import DisplayService
from git_workty.services.git import GitBackend, WorktreeService, find_worktree, slugify
from git_workty.services.github_service import GITHUB_HINT, GitHubService
from git_workty.services.selection_service import (
    CleanFilter,
    partition_dirty,
    pick_lines,
    select_clean_candidates,
    sort_worktrees,
)
from git_workty.services.status_service import StatusService

logger = get_logger(__name__)


@dataclass
class RemoveResult:
    """Outcome of removing a single worktree."""

    worktree: Worktree
    branch_deleted: Optional[bool] = None  # None when branch deletion wasn't requested


@dataclass
class CleanResult:
    """Outcome of a batch cleanup."""

    candidates: list[Worktree] = field(default_factory=list)
    dirty: list[Worktree] = field(default_factory=list)
    removed: list[Worktree] = field(default_factory=list)
    failed: list[tuple[Worktree, str]] = field(default_factory=list)
    dry_run: bool = False
    aborted: bool = False

    @property
    def removed_count(self) -> int:
        return len(self.removed)


class WorkspaceManager:
    """Main class for managing a repository's worktrees."""

    def __init__(
        self,
        repo: Repository,
        config: Config,
        backend: Optional[GitBackend] = None,
        display: Optional[DisplayService] = None,
        assume_yes: bool = False,
        interactive: Optional[bool] = None,
        start_path: Optional[Path] = None,
    ):
        """Initialize WorkspaceManager.

        Args:
            repo: Discovered repository
            config: Loaded configuration
            backend: Git backend (defaults to one rooted at the main worktree)
            display: Output service
            assume_yes: Skip confirmation prompts (--yes)
            interactive: Whether prompts can be shown (defaults to stdin being a TTY)
            start_path: Directory the command was run from; relative paths resolve against it
        """
        self.repo = repo
        self.config = config
        self.backend = backend or GitBackend(repo.root)
        self.display = display or DisplayService()
        self.assume_yes = assume_yes
        self.interactive = sys.stdin.isatty() if interactive is None else interactive
        self.start_path = Path(start_path).absolute() if start_path is not None else repo.toplevel

        self.worktree_service = WorktreeService(repo, self.backend)
        self.status_service = StatusService(self.backend, workers=config.workers, sequential=config.sequential)
        self._github_service: Optional[GitHubService] = None

    @property
    def current_path(self) -> Path:
        """Worktree the command was started from."""
        return self.repo.toplevel

    @property
    def github_service(self) -> GitHubService:
        if self._github_service is None:
            self._github_service = GitHubService(self.backend, self.config)
        return self._github_service

    def _confirm(self, prompt: str, action: str) -> bool:
        """Confirm a destructive action.

        Raises:
            ConfirmationRequiredError: no --yes and nobody to ask
        """
        if self.assume_yes:
            return True
        if not self.interactive:
            raise ConfirmationRequiredError(action)
        return self.display.confirm(prompt)

    # Listing and lookup

    def list_entries(self) -> list[tuple[Worktree, WorktreeStatus]]:
        """All worktrees with status, in dashboard order."""
        worktrees = self.worktree_service.list_worktrees()
        entries = self.status_service.status_of_all(worktrees)
        return sort_worktrees(entries, self.current_path)

    def show_list(self, json_output: bool = False) -> None:
        entries = self.list_entries()
        if json_output:
            self.display.display_json(self.repo, entries, self.current_path)
        else:
            self.display.display_worktree_table(entries, self.current_path)

    def go(self, name: str) -> Path:
        """Path of the worktree called ``name``."""
        worktree = self.worktree_service.find(name)
        if worktree is None:
            raise WorktreeNotFoundError(name)
        return worktree.path

    def pick(self) -> Optional[Path]:
        """Let the user fuzzy-pick a worktree; None means the picker was cancelled."""
        if not sys.stdin.isatty():
            raise WorktyError(
                "Cannot run interactive picker in non-TTY environment",
                "Use `git workty go <name>` for non-interactive selection.",
            )

        entries = self.list_entries()
        if not entries:
            raise WorktyError("No worktrees found")

        # Imported here so non-interactive commands don't pay for textual
        from git_workty.tui import run_picker

        index = run_picker(pick_lines(entries, self.display.icons))
        if index is None:
            logger.debug("Picker cancelled")
            return None
        return entries[index][0].path

    # Creation

    def _resolve_start_point(self, base: str, fetch: bool) -> str:
        """Base ref to branch from, optionally refreshed from its upstream."""
        if not fetch:
            return base

        upstream = self.backend.resolve_upstream(base)
        if upstream is None:
            logger.info(f"'{base}' has no upstream, branching from the local ref")
            return base

        remote, _, remote_branch = upstream.partition("/")
        try:
            self.backend.fetch(remote, remote_branch)
        except WorktyError as e:
            logger.warning(f"Could not fetch {upstream}: {e}")
            self.display.print_warning(f"Could not fetch {upstream}, branching from local '{base}'")
            return base

        logger.info(f"Fetched {upstream}")
        return upstream

    def _ensure_parent(self, path: Path) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise WorktyError(f"Failed to create directory: {path.parent} ({e})")

    def create(
        self,
        name: str,
        base: Optional[str] = None,
        path: Optional[Path] = None,
        fetch: Optional[bool] = None,
        push: Optional[bool] = None,
    ) -> Path:
        """Create a worktree for branch ``name``.

        An existing local branch is checked out as is; otherwise a new branch
        is created from ``base`` (default: the configured base branch).

        Args:
            name: Branch name
            base: Start point for a new branch
            path: Explicit target directory
            fetch: Fetch the base's upstream first (default from config)
            push: Publish a new branch with a tracking upstream (default from config)

        Returns:
            Path of the new worktree

        Raises:
            PathExistsError: target directory already exists
            BranchInUseError: branch is checked out in another worktree
            GitOperationError: git refused to create the worktree
        """
        fetch = self.config.fetch_base if fetch is None else fetch
        push = self.config.push_new if push is None else push

        if path:
            # An absolute path replaces start_path when joined
            target = self.start_path / Path(path).expanduser()
        else:
            target = self.config.worktree_path(self.repo, slugify(name))
        if target.exists():
            raise PathExistsError(target)

        existing = self.worktree_service.find_by_branch(self.worktree_service.list_worktrees(), name)
        if existing is not None:
            raise BranchInUseError(name, existing.path)

        self._ensure_parent(target)

        if self.backend.branch_exists(name):
            self.display.print_info(f"Using existing branch '{name}'")
            self.worktree_service.add(target, branch=name)
            return target

        base = base or self.config.base
        self.display.print_info(f"Creating new branch '{name}' from '{base}'")
        start_point = self._resolve_start_point(base, fetch)
        self.worktree_service.add(target, new_branch=name, base=start_point)

        if push:
            try:
                self.backend.push(DEFAULT_REMOTE, name, set_upstream=True, cwd=target)
                logger.info(f"Published {name} to {DEFAULT_REMOTE}")
            except WorktyError as e:
                logger.warning(f"Could not push {name}: {e}")
                self.display.print_warning(f"Could not set upstream for '{name}': {e}")

        return target

    def open_path(self, path: Path) -> None:
        """Launch the configured open command on ``path`` without waiting for it."""
        if not self.config.open_cmd:
            self.display.print_warning("No open_cmd configured; set open_cmd in workty.toml")
            return

        args = shlex.split(self.config.open_cmd) + [str(path)]
        logger.debug(f"Launching {args}")
        try:
            subprocess.Popen(
                args,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                start_new_session=True,
            )
        except OSError as e:
            logger.warning(f"Could not launch {args[0]}: {e}")
            self.display.print_warning(f"Could not run '{self.config.open_cmd}': {e}")

    # Removal

    def _check_removable(self, worktree: Worktree, name: str) -> None:
        if worktree.is_at(self.current_path):
            raise ProtectedWorktreeError(
                name,
                "the current worktree",
                "Change to a different worktree first with `wcd` or `git workty go`.",
            )
        if worktree.is_main_worktree(self.repo):
            raise ProtectedWorktreeError(
                name,
                "the main worktree",
                "The main worktree is the original repository clone.",
            )

    def remove(self, name: str, force: bool = False, delete_branch: bool = False) -> RemoveResult:
        """Remove the worktree called ``name``.

        Raises:
            WorktreeNotFoundError: no worktree matches
            ProtectedWorktreeError: target is the current or main worktree
            DirtyWorktreeError: uncommitted changes and no force
            ConfirmationRequiredError: non-interactive without --yes
            AbortedError: user declined
        """
        worktree = find_worktree(self.worktree_service.list_worktrees(), name)
        if worktree is None:
            raise WorktreeNotFoundError(name)

        self._check_removable(worktree, name)

        dirty_count = self.status_service.dirty_count(worktree)
        if dirty_count and not force:
            raise DirtyWorktreeError(name, dirty_count)
        if dirty_count:
            self.display.print_warning(f"Worktree '{name}' has uncommitted changes (--force specified)")

        suffix = " and its branch" if delete_branch else ""
        if not self._confirm(f"Remove worktree '{name}'{suffix}?", f"remove worktree '{name}'"):
            raise AbortedError()

        self.worktree_service.remove(worktree, force=force)
        self.display.print_success(f"Removed worktree '{name}'")
        result = RemoveResult(worktree=worktree)

        if delete_branch and worktree.branch_short:
            branch = worktree.branch_short
            try:
                self.backend.delete_branch(branch)
            except WorktyError as e:
                logger.warning(f"Could not delete branch {branch}: {e}")
                self.display.print_warning(f"Could not delete branch '{branch}': {e}")
                self.display.print_info(f"hint: Use `git branch -D {branch}` to force delete.")
                result.branch_deleted = False
            else:
                self.display.print_success(f"Deleted branch '{branch}'")
                result.branch_deleted = True

        return result

    def _is_merged(self, branch: str) -> bool:
        try:
            return self.backend.is_ancestor(branch, self.config.base)
        except WorktyError as e:
            logger.debug(f"Could not check whether {branch} is merged into {self.config.base}: {e}")
            return False

    def clean(self, filters: CleanFilter, dry_run: bool = False) -> CleanResult:
        """Remove every worktree matching ``filters`` after one confirmation.

        Dirty candidates are reported and skipped. A failure on one worktree
        is recorded and the rest are still processed.
        """
        result = CleanResult(dry_run=dry_run)
        worktrees = self.worktree_service.list_worktrees()

        statuses: dict[Path, WorktreeStatus] = {}
        if filters.needs_status():
            statuses = {wt.path: status for wt, status in self.status_service.status_of_all(worktrees)}

        result.candidates = select_clean_candidates(
            worktrees,
            self.repo,
            self.config.base,
            filters,
            self._is_merged,
            statuses=statuses,
            current_path=self.current_path,
        )
        if not result.candidates:
            self.display.print_info("No worktrees to clean up.")
            return result

        def is_dirty(wt: Worktree) -> bool:
            if wt.path in statuses:
                return statuses[wt.path].is_dirty()
            return self.status_service.is_dirty(wt)

        removable, result.dirty = partition_dirty(result.candidates, is_dirty)

        self.display.print_info("Worktrees to remove:")
        for wt in result.candidates:
            self.display.print_info(f"  - {wt.name}{' (dirty)' if wt in result.dirty else ''}")

        if dry_run:
            self.display.print_info("Dry run - no worktrees removed.")
            return result

        if result.dirty:
            self.display.print_warning(
                f"{len(result.dirty)} worktree(s) have uncommitted changes and will be skipped."
            )
        if not removable:
            self.display.print_info("All candidate worktrees have uncommitted changes. Nothing to remove.")
            return result

        if not self._confirm(f"Remove {len(removable)} worktree(s)?", "remove worktrees"):
            self.display.print_info("Aborted.")
            result.aborted = True
            return result

        for wt in removable:
            try:
                self.worktree_service.remove(wt)
            except WorktyError as e:
                logger.warning(f"Failed to remove {wt.path}: {e}")
                self.display.print_warning(f"Failed to remove '{wt.name}': {e}")
                result.failed.append((wt, str(e)))
            else:
                self.display.print_success(f"Removed worktree '{wt.name}'")
                result.removed.append(wt)

        if result.removed:
            try:
                self.worktree_service.prune()
            except WorktyError as e:
                logger.warning(f"Could not prune worktree metadata: {e}")
                self.display.print_warning(f"Could not prune worktree metadata: {e}")

        self.display.print_info(f"Cleaned up {result.removed_count} worktree(s).")
        return result

    # Pull requests

    def create_pr(self, number: int) -> tuple[Path, bool]:
        """Worktree for pull request ``number``, creating it if needed.

        Returns:
            Tuple of (worktree path, whether it was created now)
        """
        github = self.github_service
        if not github.is_installed():
            raise BackendUnavailableError("GitHub", f"origin is not a GitHub repository. {GITHUB_HINT}")
        if not github.is_authenticated():
            raise BackendUnavailableError("GitHub API", GITHUB_HINT)

        pr_name = PR_NAME_TEMPLATE.format(number=number)
        for wt in self.worktree_service.list_worktrees():
            if wt.branch_short == pr_name or wt.path.name == pr_name:
                self.display.print_info(f"PR #{number} already has a worktree at {wt.path}")
                return wt.path, False

        branch = github.get_pr_branch(number)
        self.display.print_info(f"PR #{number} uses branch '{branch}'")

        target = self.config.worktree_path(self.repo, slugify(pr_name))
        if target.exists():
            raise PathExistsError(target)

        self._ensure_parent(target)
        self.worktree_service.add(target, detach=True)
        github.checkout_pr(target, number)
        return target, True
