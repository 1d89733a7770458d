"""Core functionality for git-workty."""

from .doctor import run_doctor
from .workspace_manager import CleanResult, RemoveResult, WorkspaceManager

__all__ = ["CleanResult", "RemoveResult", "WorkspaceManager", "run_doctor"]
