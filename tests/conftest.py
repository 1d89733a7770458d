"""Pytest fixtures for git-workty tests"""
import tempfile
from pathlib import Path
from unittest.mock import Mock

import git
import pytest

from git_workty.config import Config
from git_workty.models import Repository, Worktree, WorktreeStatus
from git_workty.services.display_service import DisplayService
from git_workty.services.git import GitBackend, discover_repository


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir).resolve()


@pytest.fixture
def git_repo(temp_dir):
    """Create a real Git repository for testing."""
    repo_path = temp_dir / "test_repo"
    repo_path.mkdir()

    # Initialize repository
    repo = git.Repo.init(repo_path)

    # Configure git user for commits
    repo.config_writer().set_value("user", "name", "Test User").release()
    repo.config_writer().set_value("user", "email", "test@example.com").release()

    # Create initial commit on main branch
    test_file = repo_path / "README.md"
    test_file.write_text("# Test Repository\n")
    repo.index.add(["README.md"])
    repo.index.commit("Initial commit")

    # Rename master to main if needed
    repo.git.branch('-M', 'main')

    yield repo

    # Cleanup
    repo.close()


@pytest.fixture
def git_repo_with_branches(git_repo):
    """Create a Git repository with a merged and an unmerged branch."""
    repo = git_repo
    repo_path = Path(repo.working_dir)

    # Branch that is merged back into main
    repo.git.checkout('-b', 'feat/x')
    (repo_path / "x.txt").write_text("X content\n")
    repo.index.add(["x.txt"])
    repo.index.commit("Add x")
    repo.git.checkout('main')
    repo.git.merge('feat/x', '--no-ff', '-m', 'Merge feat/x')

    # Branch with work that main doesn't have
    repo.git.checkout('-b', 'feat/y')
    (repo_path / "y.txt").write_text("Y content\n")
    repo.index.add(["y.txt"])
    repo.index.commit("Add y")

    repo.git.checkout('main')

    yield repo


@pytest.fixture
def repository(git_repo):
    """Discovered Repository for the real test repository."""
    return discover_repository(Path(git_repo.working_dir))


@pytest.fixture
def workspace_config(temp_dir):
    """Configuration placing new worktrees inside the temp directory."""
    return Config(root=str(temp_dir / "workspaces" / "{repo}"))


@pytest.fixture
def fake_repo():
    """Repository handle for tests that never touch the filesystem."""
    return Repository(
        root=Path("/work/repo"),
        common_dir=Path("/work/repo/.git"),
        toplevel=Path("/work/repo"),
    )


@pytest.fixture
def make_worktree():
    """Factory for Worktree records."""
    def _make(path, branch_short=None, detached=False, head="abc123", locked=False, prunable=False):
        return Worktree(
            path=Path(path),
            head=head,
            branch=f"refs/heads/{branch_short}" if branch_short else None,
            branch_short=branch_short,
            detached=detached,
            locked=locked,
            prunable=prunable,
        )
    return _make


@pytest.fixture
def mock_backend():
    """Create a mock GitBackend."""
    backend = Mock(spec=GitBackend)
    backend.cwd = "/work/repo"
    backend.dirty_count = Mock(return_value=0)
    backend.branch_upstream = Mock(return_value=(None, False))
    backend.last_commit_time = Mock(return_value=None)
    backend.branch_exists = Mock(return_value=False)
    backend.is_ancestor = Mock(return_value=False)
    backend.remote_url = Mock(return_value=None)
    return backend


@pytest.fixture
def mock_display():
    """Create a mock DisplayService."""
    display = Mock(spec=DisplayService)
    display.icons = DisplayService().icons
    display.confirm = Mock(return_value=True)
    return display


@pytest.fixture
def clean_status():
    return WorktreeStatus()
