"""GitHub pull-request backend"""
import os
from pathlib import Path
from typing import Optional, TYPE_CHECKING, Union
from urllib.parse import urlparse

from github import Auth, Github, GithubException, UnknownObjectException

from git_workty.constants import DEFAULT_REMOTE, PR_NAME_TEMPLATE
from git_workty.exceptions import BackendUnavailableError, GitHubAPIError, PullRequestNotFoundError
from git_workty.logging_config import get_logger
from git_workty.services.git.backend import GitBackend

if TYPE_CHECKING:
    from github.Repository import Repository as GitHubRepository
    from git_workty.config import Config

logger = get_logger(__name__)

GITHUB_HINT = "Set GITHUB_TOKEN (or github_token in workty.toml) and make sure origin points at github.com."


def parse_github_repo(remote_url: Optional[str]) -> Optional[str]:
    """Extract ``owner/name`` from a GitHub remote URL, or None for other hosts."""
    if not remote_url or "github.com" not in remote_url:
        return None

    if remote_url.startswith("git@"):
        # SSH URL format (git@github.com:org/repo.git)
        path = remote_url.split("github.com:", 1)[1]
    else:
        # HTTPS or ssh:// URL format (https://github.com/org/repo.git)
        path = urlparse(remote_url).path.strip("/")

    if path.endswith(".git"):
        path = path[:-4]
    return path or None


class GitHubService:
    def __init__(self, backend: GitBackend, config: Union['Config', dict]):
        """Initialize the service."""
        self.backend = backend
        self.config = config
        self.github_token = config.get("github_token") or os.environ.get("GITHUB_TOKEN")
        self.github_repo: Optional[str] = parse_github_repo(backend.remote_url(DEFAULT_REMOTE))
        self.github: Optional[Github] = None
        self.gh_repo: Optional['GitHubRepository'] = None

    def is_installed(self) -> bool:
        """Is the origin remote hosted on GitHub?"""
        return self.github_repo is not None

    def has_token(self) -> bool:
        return bool(self.github_token)

    def is_authenticated(self) -> bool:
        """Does the configured token work against the GitHub API?"""
        if not self.has_token():
            return False
        try:
            login = Github(auth=Auth.Token(self.github_token)).get_user().login
        except (GithubException, OSError) as e:
            logger.debug(f"[GitHub] Authentication check failed: {e}")
            return False
        logger.debug(f"[GitHub] Authenticated as {login}")
        return True

    def _repo(self) -> 'GitHubRepository':
        """Lazily connect to the GitHub repository behind origin."""
        if self.gh_repo is not None:
            return self.gh_repo
        if not self.is_installed():
            raise BackendUnavailableError("GitHub", GITHUB_HINT)

        self.github = Github(auth=Auth.Token(self.github_token))
        try:
            self.gh_repo = self.github.get_repo(self.github_repo)
        except (GithubException, OSError) as e:
            raise GitHubAPIError("get_repo", str(e), GITHUB_HINT)
        logger.debug(f"[GitHub] Connected to {self.github_repo}")
        return self.gh_repo

    def get_pr_branch(self, number: int) -> str:
        """Head branch name of pull request ``number``.

        Raises:
            PullRequestNotFoundError: no such pull request
            GitHubAPIError: the API call failed
        """
        try:
            pull = self._repo().get_pull(number)
        except UnknownObjectException:
            raise PullRequestNotFoundError(number)
        except (GithubException, OSError) as e:
            raise GitHubAPIError("get_pull", str(e))

        branch = pull.head.ref
        logger.debug(f"[GitHub] PR #{number} head branch: {branch}")
        return branch

    def checkout_pr(self, path: Path, number: int) -> None:
        """Check out pull request ``number`` in the worktree at ``path`` as branch ``pr-N``."""
        branch = PR_NAME_TEMPLATE.format(number=number)
        self.backend.fetch(DEFAULT_REMOTE, f"pull/{number}/head", cwd=path)
        self.backend.checkout_new_branch(path, branch, "FETCH_HEAD")
        logger.info(f"Checked out PR #{number} as {branch} in {path}")
