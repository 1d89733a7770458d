"""Git backend: every query and mutation git-workty sends to git."""

import os
from pathlib import Path
from typing import Optional, Union

# Let a missing git binary surface as GitCommandNotFound instead of an ImportError
os.environ.setdefault("GIT_PYTHON_REFRESH", "quiet")

import git  # noqa: E402

from git_workty.exceptions import BackendUnavailableError, GitOperationError
from git_workty.logging_config import get_logger

logger = get_logger(__name__)

PathLike = Union[str, Path]

GIT_INSTALL_HINT = "Install Git from https://git-scm.com/ and make sure it is on PATH."


def _error_message(e: git.exc.GitCommandError) -> str:
    """Extract a readable message from a GitCommandError."""
    stderr = (e.stderr if hasattr(e, "stderr") and e.stderr else str(e)).strip()
    # GitPython wraps stderr as "\n  stderr: '...'"
    if stderr.startswith("stderr:"):
        stderr = stderr[len("stderr:"):].strip()
    stderr = stderr.strip("'").strip()
    status = e.status if hasattr(e, "status") else "unknown"
    if stderr:
        return f"(exit {status}) {stderr}"
    return f"exit code {status}"


class GitBackend:
    """Runs git commands through GitPython, scoped to a working directory.

    Each call builds a fresh ``git.Git`` command object, so one backend can be
    shared by worker threads without any locking.
    """

    def __init__(self, cwd: PathLike):
        """Initialize the backend.

        Args:
            cwd: Directory commands run in unless a call overrides it
        """
        self.cwd = str(cwd)

    def _git(self, cwd: Optional[PathLike] = None) -> git.Git:
        return git.Git(str(cwd) if cwd is not None else self.cwd)

    def _execute(self, args: tuple, cwd: Optional[PathLike], **kwargs):
        directory = str(cwd) if cwd is not None else self.cwd
        if not os.path.isdir(directory):
            raise GitOperationError(args[0] if args else "", f"directory does not exist: {directory}")

        logger.debug(f"git {' '.join(args)} (in {directory})")
        try:
            return self._git(directory).execute(["git", *args], **kwargs)
        except git.exc.GitCommandNotFound:
            raise BackendUnavailableError("git", GIT_INSTALL_HINT)

    def run(self, *args: str, cwd: Optional[PathLike] = None) -> str:
        """Run a git command and return its stdout.

        Raises:
            GitOperationError: git exited with a non-zero status
            BackendUnavailableError: git is not installed
        """
        try:
            return self._execute(args, cwd)
        except git.exc.GitCommandError as e:
            raise GitOperationError(args[0] if args else "", _error_message(e))

    def run_status(self, *args: str, cwd: Optional[PathLike] = None) -> tuple[int, str, str]:
        """Run a git command and return ``(status, stdout, stderr)`` without raising."""
        return self._execute(args, cwd, with_extended_output=True, with_exceptions=False)

    # Discovery

    def version(self) -> Optional[str]:
        """Installed git version string, or None if git is unavailable."""
        try:
            return git.Git().execute(["git", "--version"])
        except (git.exc.GitCommandNotFound, git.exc.GitCommandError):
            return None

    def is_inside_work_tree(self, path: Optional[PathLike] = None) -> bool:
        try:
            status, out, _ = self.run_status("rev-parse", "--is-inside-work-tree", cwd=path)
        except GitOperationError:
            return False
        return status == 0 and out.strip() == "true"

    def show_toplevel(self, path: Optional[PathLike] = None) -> str:
        return self.run("rev-parse", "--show-toplevel", cwd=path).strip()

    def git_common_dir(self, path: Optional[PathLike] = None) -> str:
        return self.run("rev-parse", "--path-format=absolute", "--git-common-dir", cwd=path).strip()

    def remote_url(self, remote: str = "origin") -> Optional[str]:
        status, out, _ = self.run_status("remote", "get-url", remote)
        return out.strip() if status == 0 and out.strip() else None

    # Worktree listing and status

    def worktree_list_porcelain(self, cwd: Optional[PathLike] = None) -> str:
        return self.run("worktree", "list", "--porcelain", cwd=cwd)

    def status_porcelain(self, path: PathLike) -> str:
        """Porcelain status including untracked files, without submodule noise."""
        return self.run(
            "status",
            "--porcelain=v1",
            "--untracked-files=all",
            "--ignore-submodules=all",
            cwd=path,
        )

    def dirty_count(self, path: PathLike) -> int:
        """Number of entries with uncommitted changes in the worktree at ``path``."""
        output = self.status_porcelain(path)
        return sum(1 for line in output.splitlines() if line.strip())

    def branch_upstream(self, path: PathLike, branch: str) -> tuple[Optional[str], bool]:
        """Configured upstream of ``branch`` and whether its remote ref is gone.

        Returns:
            Tuple of (upstream short name or None, upstream_gone)
        """
        output = self.run(
            "for-each-ref",
            "--format=%(upstream:short)%00%(upstream:track)",
            f"refs/heads/{branch}",
            cwd=path,
        ).strip()
        if not output:
            return None, False

        upstream, _, track = output.partition("\x00")
        if not upstream:
            return None, False
        return upstream, track.strip() == "[gone]"

    def ahead_behind(self, path: PathLike, local: str, upstream: str) -> tuple[int, int]:
        """Commits reachable only from ``local`` and only from ``upstream``."""
        output = self.run("rev-list", "--left-right", "--count", f"{local}...{upstream}", cwd=path)
        ahead, behind = output.split()
        return int(ahead), int(behind)

    def last_commit_time(self, path: PathLike) -> Optional[int]:
        """Commit time of HEAD in epoch seconds, or None for an unborn branch."""
        status, out, _ = self.run_status("log", "-1", "--format=%ct", cwd=path)
        if status != 0 or not out.strip():
            return None
        return int(out.strip())

    # Branch queries

    def branch_exists(self, branch: str) -> bool:
        status, _, _ = self.run_status("rev-parse", "--verify", "--quiet", f"refs/heads/{branch}")
        return status == 0

    def is_ancestor(self, ancestor: str, descendant: str) -> bool:
        """Is ``ancestor`` reachable from ``descendant``?"""
        status, _, stderr = self.run_status("merge-base", "--is-ancestor", ancestor, descendant)
        if status == 0:
            return True
        if status == 1:
            return False
        raise GitOperationError("merge-base", f"(exit {status}) {stderr.strip()}")

    def resolve_upstream(self, ref: str) -> Optional[str]:
        """Upstream of ``ref`` (e.g. ``origin/main``), or None if unset."""
        status, out, _ = self.run_status(
            "rev-parse", "--abbrev-ref", "--symbolic-full-name", f"{ref}@{{upstream}}"
        )
        if status != 0 or not out.strip():
            return None
        return out.strip()

    # Mutations

    def add_worktree(
        self,
        path: PathLike,
        branch: Optional[str] = None,
        new_branch: Optional[str] = None,
        base: Optional[str] = None,
        detach: bool = False,
    ) -> None:
        """Create a worktree at ``path``.

        Args:
            path: Target directory
            branch: Existing branch to attach to
            new_branch: Name of a branch to create from ``base``
            base: Start point for ``new_branch`` or a detached checkout
            detach: Check out ``base`` (or HEAD) detached
        """
        args = ["worktree", "add"]
        if new_branch:
            args += ["-b", new_branch]
        if detach:
            args.append("--detach")
        args.append(str(path))
        if branch:
            args.append(branch)
        elif base:
            args.append(base)
        self.run(*args)

    def remove_worktree(self, path: PathLike, force: bool = False) -> None:
        args = ["worktree", "remove"]
        if force:
            args.append("--force")
        args.append(str(path))
        self.run(*args)

    def prune_worktrees(self) -> None:
        self.run("worktree", "prune")

    def delete_branch(self, branch: str, force: bool = False) -> None:
        self.run("branch", "-D" if force else "-d", branch)

    def fetch(self, remote: str, refspec: Optional[str] = None, cwd: Optional[PathLike] = None) -> None:
        args = ["fetch", remote]
        if refspec:
            args.append(refspec)
        self.run(*args, cwd=cwd)

    def push(self, remote: str, branch: str, set_upstream: bool = True, cwd: Optional[PathLike] = None) -> None:
        args = ["push"]
        if set_upstream:
            args.append("--set-upstream")
        args += [remote, branch]
        self.run(*args, cwd=cwd)

    def checkout_new_branch(self, path: PathLike, branch: str, start_point: str) -> None:
        """Create or reset ``branch`` at ``start_point`` and check it out in ``path``."""
        self.run("checkout", "-B", branch, start_point, cwd=path)
