"""
git-workty - Git worktrees as daily-driver workspaces
"""

from .__version__ import __version__
from .core import WorkspaceManager
from .cli.main import main

__all__ = ["WorkspaceManager", "main", "__version__"]
