"""Tests for WorkspaceManager"""
from pathlib import Path
from unittest.mock import Mock, patch

import pytest

from git_workty.config import Config
from git_workty.core import WorkspaceManager
from git_workty.exceptions import (
    AbortedError,
    BackendUnavailableError,
    BranchInUseError,
    ConfirmationRequiredError,
    DirtyWorktreeError,
    GitOperationError,
    PathExistsError,
    ProtectedWorktreeError,
    WorktreeNotFoundError,
    WorktyError,
)
from git_workty.models import Repository
from git_workty.services.selection_service import CleanFilter

SCENARIO_A = (
    "worktree /work/repo\nHEAD 1111111\nbranch refs/heads/main\n\n"
    "worktree /work/feat-x\nHEAD 2222222\nbranch refs/heads/feat/x\n\n"
    "worktree /work/feat-y\nHEAD 3333333\nbranch refs/heads/feat/y\n\n"
)


def porcelain(*records):
    """Build porcelain output from (path, branch) pairs; branch None means detached."""
    lines = []
    for path, branch in records:
        lines.append(f"worktree {path}\nHEAD abc\n")
        lines.append(f"branch refs/heads/{branch}\n\n" if branch else "detached\n\n")
    return "".join(lines)


@pytest.fixture
def manager(fake_repo, mock_backend, mock_display):
    """WorkspaceManager over a mocked backend, with --yes."""
    mock_backend.worktree_list_porcelain = Mock(return_value=SCENARIO_A)
    return WorkspaceManager(
        fake_repo, Config(), backend=mock_backend, display=mock_display, assume_yes=True, interactive=False
    )


class TestGo:
    """Test path lookup."""

    def test_go_by_branch(self, manager):
        """Test resolving a worktree by branch name."""
        assert manager.go("feat/x") == Path("/work/feat-x")

    def test_go_by_directory(self, manager):
        """Test resolving a worktree by directory name."""
        assert manager.go("feat-y") == Path("/work/feat-y")

    def test_go_not_found(self, manager):
        """Test that an unknown name raises NotFound."""
        with pytest.raises(WorktreeNotFoundError):
            manager.go("nope")


class TestListEntries:
    """Test the dashboard data."""

    def test_current_first(self, fake_repo, mock_backend, mock_display):
        """Test that the current worktree is listed first."""
        mock_backend.worktree_list_porcelain = Mock(return_value=SCENARIO_A)
        repo = Repository(root=fake_repo.root, common_dir=fake_repo.common_dir, toplevel=Path("/work/feat-y"))
        manager = WorkspaceManager(repo, Config(), backend=mock_backend, display=mock_display, interactive=False)

        entries = manager.list_entries()

        assert [wt.name for wt, _ in entries] == ["feat/y", "feat/x", "main"]

    def test_show_list_json(self, manager, mock_display):
        """Test that --json renders the JSON document."""
        manager.show_list(json_output=True)

        mock_display.display_json.assert_called_once()
        mock_display.display_worktree_table.assert_not_called()


class TestClean:
    """Test batch cleanup."""

    def test_scenario_merged_only(self, manager, mock_backend):
        """Test that only the merged worktree is removed."""
        mock_backend.is_ancestor = Mock(side_effect=lambda branch, base: branch == "feat/x")
        mock_backend.dirty_count = Mock(side_effect=lambda path: 2 if Path(path) == Path("/work/feat-y") else 0)

        result = manager.clean(CleanFilter(merged=True))

        assert [wt.name for wt in result.candidates] == ["feat/x"]
        assert result.removed_count == 1
        mock_backend.remove_worktree.assert_called_once_with(Path("/work/feat-x"), force=False)
        mock_backend.prune_worktrees.assert_called_once()

    def test_no_filter_removes_nothing(self, manager, mock_backend, mock_display):
        """Test that clean without filters is a no-op."""
        mock_backend.is_ancestor = Mock(return_value=True)

        result = manager.clean(CleanFilter())

        assert result.candidates == []
        mock_backend.remove_worktree.assert_not_called()
        mock_display.print_info.assert_any_call("No worktrees to clean up.")

    def test_dirty_candidate_skipped(self, manager, mock_backend, mock_display):
        """Test that 3 candidates with 1 dirty removes exactly 2."""
        mock_backend.worktree_list_porcelain = Mock(return_value=porcelain(
            ("/work/repo", "main"), ("/work/a", "a"), ("/work/b", "b"), ("/work/c", "c"),
        ))
        mock_backend.is_ancestor = Mock(return_value=True)
        mock_backend.dirty_count = Mock(side_effect=lambda path: 1 if Path(path) == Path("/work/b") else 0)

        result = manager.clean(CleanFilter(merged=True))

        assert len(result.candidates) == 3
        assert [wt.name for wt in result.dirty] == ["b"]
        assert result.removed_count == 2
        assert mock_backend.remove_worktree.call_count == 2
        mock_display.print_warning.assert_any_call("1 worktree(s) have uncommitted changes and will be skipped.")

    def test_partial_failure_is_isolated(self, manager, mock_backend):
        """Test that one failed removal doesn't stop the rest."""
        mock_backend.worktree_list_porcelain = Mock(return_value=porcelain(
            ("/work/repo", "main"), ("/work/a", "a"), ("/work/b", "b"), ("/work/c", "c"),
        ))
        mock_backend.is_ancestor = Mock(return_value=True)

        def remove(path, force=False):
            if Path(path) == Path("/work/a"):
                raise GitOperationError("worktree", "locked")

        mock_backend.remove_worktree = Mock(side_effect=remove)

        result = manager.clean(CleanFilter(merged=True))

        assert [wt.name for wt in result.removed] == ["b", "c"]
        assert len(result.failed) == 1
        assert result.failed[0][0].name == "a"
        assert "locked" in result.failed[0][1]

    def test_all_failures_skip_prune(self, manager, mock_backend):
        """Test that prune only runs after a successful removal."""
        mock_backend.is_ancestor = Mock(return_value=True)
        mock_backend.remove_worktree = Mock(side_effect=GitOperationError("worktree", "nope"))

        result = manager.clean(CleanFilter(merged=True))

        assert result.removed_count == 0
        mock_backend.prune_worktrees.assert_not_called()

    def test_prune_failure_is_soft(self, manager, mock_backend, mock_display):
        """Test that a failing prune only warns."""
        mock_backend.is_ancestor = Mock(return_value=True)
        mock_backend.prune_worktrees = Mock(side_effect=GitOperationError("worktree", "prune failed"))

        result = manager.clean(CleanFilter(merged=True))

        assert result.removed_count == 2
        assert mock_display.print_warning.called

    def test_dry_run(self, manager, mock_backend, mock_display):
        """Test that dry run lists candidates without removing."""
        mock_backend.is_ancestor = Mock(return_value=True)

        result = manager.clean(CleanFilter(merged=True), dry_run=True)

        assert len(result.candidates) == 2
        mock_backend.remove_worktree.assert_not_called()
        mock_display.confirm.assert_not_called()
        mock_display.print_info.assert_any_call("Dry run - no worktrees removed.")

    def test_non_interactive_requires_yes(self, manager, mock_backend):
        """Test that clean refuses to run unattended without --yes."""
        manager.assume_yes = False
        mock_backend.is_ancestor = Mock(return_value=True)

        with pytest.raises(ConfirmationRequiredError):
            manager.clean(CleanFilter(merged=True))

        mock_backend.remove_worktree.assert_not_called()

    def test_single_confirmation_for_batch(self, manager, mock_backend, mock_display):
        """Test that the whole batch is confirmed once."""
        manager.assume_yes = False
        manager.interactive = True
        mock_backend.is_ancestor = Mock(return_value=True)

        result = manager.clean(CleanFilter(merged=True))

        mock_display.confirm.assert_called_once_with("Remove 2 worktree(s)?")
        assert result.removed_count == 2

    def test_declined_confirmation(self, manager, mock_backend, mock_display):
        """Test that declining removes nothing."""
        manager.assume_yes = False
        manager.interactive = True
        mock_display.confirm = Mock(return_value=False)
        mock_backend.is_ancestor = Mock(return_value=True)

        result = manager.clean(CleanFilter(merged=True))

        assert result.aborted is True
        mock_backend.remove_worktree.assert_not_called()

    def test_merge_check_failure_is_not_merged(self, manager, mock_backend):
        """Test that an ancestry error leaves the worktree alone."""
        mock_backend.is_ancestor = Mock(side_effect=GitOperationError("merge-base", "bad ref"))

        result = manager.clean(CleanFilter(merged=True))

        assert result.candidates == []

    def test_gone_filter_uses_status(self, manager, mock_backend, temp_dir):
        """Test that the gone filter collects status first."""
        feat = temp_dir / "feat-x"
        feat.mkdir()
        mock_backend.worktree_list_porcelain = Mock(return_value=porcelain(("/work/repo", "main"), (feat, "feat/x")))
        mock_backend.branch_upstream = Mock(return_value=("origin/feat/x", True))

        result = manager.clean(CleanFilter(gone=True))

        assert [wt.name for wt in result.removed] == ["feat/x"]


class TestRemove:
    """Test single removal."""

    def test_remove(self, manager, mock_backend, mock_display):
        """Test removing a clean worktree."""
        result = manager.remove("feat/x")

        assert result.worktree.name == "feat/x"
        assert result.branch_deleted is None
        mock_backend.remove_worktree.assert_called_once_with(Path("/work/feat-x"), force=False)
        mock_display.print_success.assert_called_once_with("Removed worktree 'feat/x'")

    def test_remove_not_found(self, manager):
        """Test that an unknown name raises NotFound."""
        with pytest.raises(WorktreeNotFoundError):
            manager.remove("missing")

    def test_remove_main_is_protected(self, fake_repo, mock_backend, mock_display):
        """Test that the main worktree can never be removed."""
        mock_backend.worktree_list_porcelain = Mock(return_value=SCENARIO_A)
        repo = Repository(root=fake_repo.root, common_dir=fake_repo.common_dir, toplevel=Path("/work/feat-x"))
        manager = WorkspaceManager(repo, Config(), backend=mock_backend, display=mock_display, assume_yes=True)

        with pytest.raises(ProtectedWorktreeError) as exc_info:
            manager.remove("main", force=True)

        assert "main worktree" in str(exc_info.value)
        mock_backend.remove_worktree.assert_not_called()

    def test_remove_current_is_protected(self, fake_repo, mock_backend, mock_display):
        """Test that the current worktree can never be removed."""
        mock_backend.worktree_list_porcelain = Mock(return_value=SCENARIO_A)
        repo = Repository(root=fake_repo.root, common_dir=fake_repo.common_dir, toplevel=Path("/work/feat-x"))
        manager = WorkspaceManager(repo, Config(), backend=mock_backend, display=mock_display, assume_yes=True)

        with pytest.raises(ProtectedWorktreeError) as exc_info:
            manager.remove("feat/x", force=True)

        assert "current worktree" in str(exc_info.value)
        assert exc_info.value.exit_code == 1

    def test_remove_dirty_requires_force(self, manager, mock_backend):
        """Test the dirty guard."""
        mock_backend.dirty_count = Mock(return_value=3)

        with pytest.raises(DirtyWorktreeError) as exc_info:
            manager.remove("feat/x")

        assert exc_info.value.dirty_count == 3
        mock_backend.remove_worktree.assert_not_called()

    def test_remove_dirty_with_force_warns(self, manager, mock_backend, mock_display):
        """Test that force removes a dirty worktree with a warning."""
        mock_backend.dirty_count = Mock(return_value=3)

        manager.remove("feat/x", force=True)

        mock_backend.remove_worktree.assert_called_once_with(Path("/work/feat-x"), force=True)
        mock_display.print_warning.assert_called_once()

    def test_remove_requires_yes_when_non_interactive(self, manager, mock_backend):
        """Test that scripts must pass --yes."""
        manager.assume_yes = False

        with pytest.raises(ConfirmationRequiredError):
            manager.remove("feat/x")

        mock_backend.remove_worktree.assert_not_called()

    def test_remove_declined(self, manager, mock_backend, mock_display):
        """Test that declining the prompt aborts."""
        manager.assume_yes = False
        manager.interactive = True
        mock_display.confirm = Mock(return_value=False)

        with pytest.raises(AbortedError):
            manager.remove("feat/x", delete_branch=True)

        mock_display.confirm.assert_called_once_with("Remove worktree 'feat/x' and its branch?")
        mock_backend.remove_worktree.assert_not_called()

    def test_remove_with_branch(self, manager, mock_backend):
        """Test deleting the branch after removal."""
        result = manager.remove("feat/x", delete_branch=True)

        assert result.branch_deleted is True
        mock_backend.delete_branch.assert_called_once_with("feat/x")

    def test_branch_delete_failure_is_soft(self, manager, mock_backend, mock_display):
        """Test that a failed branch deletion doesn't undo the removal."""
        mock_backend.delete_branch = Mock(side_effect=GitOperationError("branch", "not fully merged"))

        result = manager.remove("feat/x", delete_branch=True)

        assert result.branch_deleted is False
        mock_backend.remove_worktree.assert_called_once()
        assert mock_display.print_warning.called


class TestCreate:
    """Test worktree creation."""

    @pytest.fixture
    def creator(self, fake_repo, mock_backend, mock_display, workspace_config):
        mock_backend.worktree_list_porcelain = Mock(return_value=SCENARIO_A)
        return WorkspaceManager(
            fake_repo, workspace_config, backend=mock_backend, display=mock_display, interactive=False
        )

    def test_new_branch_from_config_base(self, creator, mock_backend, temp_dir):
        """Test creating a new branch from the default base."""
        path = creator.create("feat/z")

        assert path == temp_dir / "workspaces" / "repo" / "feat-z"
        assert path.parent.is_dir()
        mock_backend.add_worktree.assert_called_once_with(
            path, branch=None, new_branch="feat/z", base="main", detach=False
        )

    def test_new_branch_from_explicit_base(self, creator, mock_backend):
        """Test --from overrides the configured base."""
        creator.create("feat/z", base="develop")

        assert mock_backend.add_worktree.call_args.kwargs["base"] == "develop"

    def test_existing_branch_is_attached(self, creator, mock_backend, mock_display):
        """Test that an existing local branch is checked out as is."""
        mock_backend.branch_exists = Mock(return_value=True)

        path = creator.create("feat/z")

        mock_backend.add_worktree.assert_called_once_with(
            path, branch="feat/z", new_branch=None, base=None, detach=False
        )
        mock_display.print_info.assert_called_with("Using existing branch 'feat/z'")

    def test_explicit_path(self, creator, mock_backend, temp_dir):
        """Test that --path overrides the workspace root."""
        target = temp_dir / "elsewhere" / "z"

        path = creator.create("feat/z", path=target)

        assert path == target
        assert target.parent.is_dir()

    def test_relative_path_uses_start_path(self, fake_repo, mock_backend, mock_display, workspace_config, temp_dir):
        """Test that a relative --path resolves against the start directory, not the cwd."""
        mock_backend.worktree_list_porcelain = Mock(return_value=SCENARIO_A)
        start = temp_dir / "from-here"
        manager = WorkspaceManager(
            fake_repo, workspace_config, backend=mock_backend, display=mock_display,
            interactive=False, start_path=start,
        )

        path = manager.create("feat/z", path=Path("sub") / "z")

        assert path == start / "sub" / "z"
        assert mock_backend.add_worktree.call_args.args[0] == start / "sub" / "z"

    def test_start_path_defaults_to_current_worktree(self, creator, fake_repo):
        assert creator.start_path == fake_repo.toplevel

    def test_path_exists(self, creator, mock_backend, temp_dir):
        """Test that an existing directory is never reused."""
        with pytest.raises(PathExistsError):
            creator.create("feat/z", path=temp_dir)

        mock_backend.add_worktree.assert_not_called()

    def test_branch_in_use(self, creator, mock_backend):
        """Test that a branch checked out elsewhere is reported."""
        with pytest.raises(BranchInUseError) as exc_info:
            creator.create("feat/x")

        assert exc_info.value.path == Path("/work/feat-x")
        mock_backend.add_worktree.assert_not_called()

    def test_fetch_base_upstream(self, creator, mock_backend):
        """Test branching from the freshly fetched upstream of the base."""
        mock_backend.resolve_upstream = Mock(return_value="origin/main")

        creator.create("feat/z", fetch=True)

        mock_backend.fetch.assert_called_once_with("origin", "main")
        assert mock_backend.add_worktree.call_args.kwargs["base"] == "origin/main"

    def test_fetch_failure_falls_back_to_local_base(self, creator, mock_backend, mock_display):
        """Test that a failing fetch only warns."""
        mock_backend.resolve_upstream = Mock(return_value="origin/main")
        mock_backend.fetch = Mock(side_effect=GitOperationError("fetch", "offline"))

        creator.create("feat/z", fetch=True)

        assert mock_backend.add_worktree.call_args.kwargs["base"] == "main"
        assert mock_display.print_warning.called

    def test_push_failure_is_soft(self, creator, mock_backend, mock_display):
        """Test that failing to publish the new branch doesn't fail create."""
        mock_backend.push = Mock(side_effect=GitOperationError("push", "no remote"))

        path = creator.create("feat/z", push=True)

        assert path.name == "feat-z"
        mock_backend.push.assert_called_once_with("origin", "feat/z", set_upstream=True, cwd=path)
        assert mock_display.print_warning.called

    def test_push_uses_config_default(self, fake_repo, mock_backend, mock_display, temp_dir):
        """Test that push_new in config enables publishing."""
        mock_backend.worktree_list_porcelain = Mock(return_value=SCENARIO_A)
        config = Config(root=str(temp_dir / "ws"), push_new=True)
        manager = WorkspaceManager(fake_repo, config, backend=mock_backend, display=mock_display)

        manager.create("feat/z")

        mock_backend.push.assert_called_once()

    def test_explicit_false_overrides_config(self, fake_repo, mock_backend, mock_display, temp_dir):
        """Test that push=False and fetch=False win over enabled config defaults."""
        mock_backend.worktree_list_porcelain = Mock(return_value=SCENARIO_A)
        config = Config(root=str(temp_dir / "ws"), push_new=True, fetch_base=True)
        manager = WorkspaceManager(fake_repo, config, backend=mock_backend, display=mock_display)

        manager.create("feat/z", fetch=False, push=False)

        mock_backend.push.assert_not_called()
        mock_backend.fetch.assert_not_called()
        assert mock_backend.add_worktree.call_args.kwargs["base"] == "main"


class TestOpenPath:
    """Test launching the open command."""

    def test_open_command_launched(self, manager, mock_display):
        """Test that the command is split with shell rules and the path appended."""
        manager.config.open_cmd = "code --reuse-window"

        with patch("git_workty.core.workspace_manager.subprocess.Popen") as mock_popen:
            manager.open_path(Path("/work/feat-x"))

        assert mock_popen.call_args.args[0] == ["code", "--reuse-window", "/work/feat-x"]

    def test_open_command_failure_is_soft(self, manager, mock_display):
        """Test that a missing editor only warns."""
        manager.config.open_cmd = "no-such-editor"

        with patch("git_workty.core.workspace_manager.subprocess.Popen", side_effect=FileNotFoundError("nope")):
            manager.open_path(Path("/work/feat-x"))

        assert mock_display.print_warning.called

    def test_no_open_command(self, manager, mock_display):
        """Test the warning when no command is configured."""
        with patch("git_workty.core.workspace_manager.subprocess.Popen") as mock_popen:
            manager.open_path(Path("/work/feat-x"))

        mock_popen.assert_not_called()
        assert mock_display.print_warning.called


class TestCreatePr:
    """Test pull-request worktrees."""

    @pytest.fixture
    def pr_manager(self, fake_repo, mock_backend, mock_display, workspace_config):
        mock_backend.worktree_list_porcelain = Mock(return_value=SCENARIO_A)
        manager = WorkspaceManager(fake_repo, workspace_config, backend=mock_backend, display=mock_display)
        github = Mock()
        github.is_installed.return_value = True
        github.is_authenticated.return_value = True
        github.get_pr_branch.return_value = "contributor-fix"
        manager._github_service = github
        return manager

    def test_creates_detached_worktree_and_checks_out(self, pr_manager, mock_backend, temp_dir):
        """Test the PR checkout flow."""
        path, created = pr_manager.create_pr(42)

        assert created is True
        assert path == temp_dir / "workspaces" / "repo" / "pr-42"
        mock_backend.add_worktree.assert_called_once_with(
            path, branch=None, new_branch=None, base=None, detach=True
        )
        pr_manager.github_service.checkout_pr.assert_called_once_with(path, 42)

    def test_existing_pr_worktree_reused(self, pr_manager, mock_backend):
        """Test that an existing pr-N worktree is returned."""
        mock_backend.worktree_list_porcelain = Mock(return_value=porcelain(("/work/repo", "main"), ("/work/pr-42", None)))

        path, created = pr_manager.create_pr(42)

        assert path == Path("/work/pr-42")
        assert created is False
        mock_backend.add_worktree.assert_not_called()

    def test_not_github(self, pr_manager):
        """Test that a non-GitHub origin is reported."""
        pr_manager.github_service.is_installed.return_value = False

        with pytest.raises(BackendUnavailableError):
            pr_manager.create_pr(42)

    def test_not_authenticated(self, pr_manager):
        """Test that missing authentication is reported."""
        pr_manager.github_service.is_authenticated.return_value = False

        with pytest.raises(BackendUnavailableError):
            pr_manager.create_pr(42)


class TestWorkspaceManagerIntegration:
    """End-to-end tests against a real repository."""

    @pytest.fixture
    def real_manager(self, git_repo_with_branches, workspace_config, mock_display):
        from git_workty.services.git import discover_repository

        repo = discover_repository(Path(git_repo_with_branches.working_dir))
        return WorkspaceManager(repo, workspace_config, display=mock_display, assume_yes=True, interactive=False)

    def test_scenario_clean_merged(self, real_manager):
        """Test that clean --merged removes only the merged, clean worktree."""
        x_path = real_manager.create("feat/x")
        y_path = real_manager.create("feat/y")
        (y_path / "scratch.txt").write_text("uncommitted\n")

        result = real_manager.clean(CleanFilter(merged=True))

        assert [wt.name for wt in result.candidates] == ["feat/x"]
        assert result.removed_count == 1
        assert not x_path.exists()
        assert y_path.exists()

    def test_scenario_branch_in_use(self, real_manager):
        """Test that a second worktree for the same branch is refused."""
        first = real_manager.create("feat/z")

        with pytest.raises(BranchInUseError) as exc_info:
            real_manager.create("feat/z", path=first.parent / "another")

        assert Path(exc_info.value.path).resolve() == first.resolve()

    def test_create_and_remove_with_branch(self, real_manager, git_repo_with_branches):
        """Test the full create, go, remove cycle."""
        path = real_manager.create("feat/new")
        assert real_manager.go("feat/new").resolve() == path.resolve()

        result = real_manager.remove("feat/new", delete_branch=True)

        assert result.branch_deleted is True
        assert not path.exists()
        assert "feat/new" not in [h.name for h in git_repo_with_branches.heads]

    def test_list_entries_main_first(self, real_manager):
        """Test that the main worktree is current and listed first."""
        real_manager.create("feat/x")

        entries = real_manager.list_entries()

        assert entries[0][0].branch_short == "main"
        assert len(entries) == 2


class TestPick:
    """Test the interactive picker flow."""

    def test_non_tty_rejected(self, manager):
        """Test that the picker refuses to run without a terminal."""
        with patch("git_workty.core.workspace_manager.sys.stdin") as mock_stdin:
            mock_stdin.isatty.return_value = False
            with pytest.raises(WorktyError) as exc_info:
                manager.pick()

        assert "non-TTY" in exc_info.value.message
        assert "git workty go" in exc_info.value.hint

    def test_selection_returns_path(self, manager):
        """Test that the chosen line maps back to its worktree."""
        with patch("git_workty.core.workspace_manager.sys.stdin") as mock_stdin, \
                patch("git_workty.tui.run_picker", return_value=1) as mock_picker:
            mock_stdin.isatty.return_value = True
            path = manager.pick()

        lines = mock_picker.call_args.args[0]
        assert len(lines) == 3
        assert lines[1].startswith("feat/x")
        assert path == Path("/work/feat-x")

    def test_cancel_returns_none(self, manager):
        """Test that cancelling the picker gives no path."""
        with patch("git_workty.core.workspace_manager.sys.stdin") as mock_stdin, \
                patch("git_workty.tui.run_picker", return_value=None):
            mock_stdin.isatty.return_value = True
            assert manager.pick() is None
