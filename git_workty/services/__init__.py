"""Services for git-workty."""

from .display_service import DisplayService
from .github_service import GitHubService
from .status_service import StatusService

__all__ = ["DisplayService", "GitHubService", "StatusService"]
