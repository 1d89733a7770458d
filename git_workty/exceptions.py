"""Custom exceptions for git-workty"""

from pathlib import Path
from typing import Optional


class WorktyError(Exception):
    """Base exception for all git-workty errors."""

    exit_code = 1

    def __init__(self, message: str, hint: Optional[str] = None):
        self.message = message
        self.hint = hint
        super().__init__(message)


class GitOperationError(WorktyError):
    """Exception raised for errors in Git operations."""

    def __init__(self, operation: str, message: Optional[str] = None, hint: Optional[str] = None):
        self.operation = operation

        error_msg = f"git {operation} failed"
        if message:
            error_msg += f": {message}"

        super().__init__(error_msg, hint)


class BackendUnavailableError(WorktyError):
    """Exception raised when git (or another backend tool) cannot be used."""

    def __init__(self, tool: str, hint: Optional[str] = None):
        self.tool = tool
        super().__init__(f"{tool} is not available", hint)


class NotARepositoryError(WorktyError):
    """Exception raised when no repository is found from the start path."""

    def __init__(self, path: Path):
        self.path = path
        super().__init__(
            f"Not a git repository: {path}",
            "Run this command from inside a Git repository, or pass -C <path>.",
        )


class ConfigError(WorktyError):
    """Exception raised for an unreadable or invalid configuration file."""


class WorktreeNotFoundError(WorktyError):
    """Exception raised when no worktree matches a name."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(
            f"Worktree '{name}' not found",
            "Use `git workty pick` to select a worktree interactively, "
            "or `git workty list` to see all worktrees.",
        )


class PathExistsError(WorktyError):
    """Exception raised when the target directory for a new worktree exists."""

    def __init__(self, path: Path):
        self.path = path
        super().__init__(
            f"Directory already exists: {path}",
            "Use --path to specify a different location.",
        )


class BranchInUseError(WorktyError):
    """Exception raised when a branch is already checked out in another worktree."""

    def __init__(self, branch: str, path: Path):
        self.branch = branch
        self.path = path
        super().__init__(
            f"Branch '{branch}' is already checked out at: {path}",
            f"Use `git workty go {branch}` to switch to it.",
        )


class DirtyWorktreeError(WorktyError):
    """Exception raised when uncommitted changes block a destructive operation."""

    def __init__(self, name: str, dirty_count: int):
        self.name = name
        self.dirty_count = dirty_count
        super().__init__(
            f"Worktree '{name}' has uncommitted changes ({dirty_count} file(s))",
            "Use --force to remove anyway, or commit/stash changes first.",
        )


class ProtectedWorktreeError(WorktyError):
    """Exception raised when attempting to remove the current or main worktree."""

    def __init__(self, name: str, reason: str, hint: Optional[str] = None):
        self.name = name
        self.reason = reason
        super().__init__(f"Cannot remove {reason} '{name}'", hint)


class ConfirmationRequiredError(WorktyError):
    """Exception raised when a destructive action needs --yes in a non-interactive session."""

    def __init__(self, action: str):
        self.action = action
        super().__init__(
            f"Refusing to {action} without confirmation in a non-interactive session",
            "Pass --yes to confirm destructive operations from scripts.",
        )


class AbortedError(WorktyError):
    """Exception raised when the user declines a confirmation prompt."""

    def __init__(self):
        super().__init__("Aborted.")


class GitHubAPIError(WorktyError):
    """Exception raised for errors in GitHub API operations."""

    def __init__(self, operation: str, message: Optional[str] = None, hint: Optional[str] = None):
        self.operation = operation

        error_msg = f"GitHub API operation '{operation}' failed"
        if message:
            error_msg += f": {message}"

        super().__init__(error_msg, hint)


class PullRequestNotFoundError(GitHubAPIError):
    """Exception raised when a pull request number does not exist."""

    def __init__(self, number: int):
        self.number = number
        super().__init__("get_pull", f"Pull request #{number} not found")
