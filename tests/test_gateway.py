"""Tests for the git command gateway"""
import os
from unittest.mock import patch

import git
import pytest

from worktree_keeper.exceptions import (
    GitCommandFailedError,
    GitVersionError,
    NoRepositoryError,
    WorktreeAlreadyExistsError,
)
from worktree_keeper.services.git.gateway import (
    CommandResult,
    GitCommandGateway,
    find_repository_root,
)


class TestCommandResult:
    """Test the captured command outcome."""

    def test_success_flag(self):
        assert CommandResult(command=("git", "status"), exit_code=0).success
        assert not CommandResult(command=("git", "status"), exit_code=1).success

    def test_command_line(self):
        result = CommandResult(command=("git", "worktree", "list"), exit_code=0)
        assert result.command_line == "git worktree list"

    def test_raise_for_status_passes_through_success(self):
        result = CommandResult(command=("git",), exit_code=0)
        assert result.raise_for_status("git") is result

    def test_raise_for_status_raises_command_failure(self):
        """Test that a non-zero exit becomes a GitCommandFailedError."""
        result = CommandResult(command=("git", "branch", "-D", "x"), exit_code=1, stderr_text="error: branch 'x' not found.")
        with pytest.raises(GitCommandFailedError) as exc_info:
            result.raise_for_status("git branch -D")
        assert exc_info.value.exit_code == 1
        assert "not found" in exc_info.value.stderr

    def test_raise_for_status_already_exists(self):
        """Test that 'already exists' in stderr selects the specific error."""
        result = CommandResult(
            command=("git", "worktree", "add"),
            exit_code=128,
            stderr_text="fatal: '/repos/app-x' already exists",
        )
        with pytest.raises(WorktreeAlreadyExistsError):
            result.raise_for_status("git worktree add")


class TestFindRepositoryRoot:
    """Test repository root discovery."""

    def test_root_from_root(self, git_repo):
        assert find_repository_root(git_repo.working_dir) == os.path.realpath(git_repo.working_dir)

    def test_root_from_subdirectory(self, git_repo):
        """Test that parent directories are searched."""
        sub = os.path.join(git_repo.working_dir, "src", "pkg")
        os.makedirs(sub)
        assert find_repository_root(sub) == os.path.realpath(git_repo.working_dir)

    def test_not_a_repository(self, temp_dir):
        plain = temp_dir / "plain"
        plain.mkdir()
        with pytest.raises(NoRepositoryError):
            find_repository_root(str(plain))

    def test_missing_path(self, temp_dir):
        with pytest.raises(NoRepositoryError):
            find_repository_root(str(temp_dir / "missing"))

    def test_bare_repository_rejected(self, temp_dir):
        """Test that a bare repository has no working tree root."""
        bare = temp_dir / "bare.git"
        git.Repo.init(bare, bare=True).close()
        with pytest.raises(NoRepositoryError):
            find_repository_root(str(bare))


class TestGitCommandGateway:
    """Test running real git commands through the gateway."""

    def test_run_captures_stdout_lines(self, git_repo):
        gateway = GitCommandGateway(git_repo.working_dir)
        result = gateway.run("rev-parse", "--abbrev-ref", "HEAD")
        assert result.success
        assert result.stdout_lines == ["main"]
        assert result.command == ("git", "rev-parse", "--abbrev-ref", "HEAD")

    def test_non_zero_exit_is_reported_not_raised(self, git_repo):
        """Test that failures come back as results with stderr text."""
        gateway = GitCommandGateway(git_repo.working_dir)
        result = gateway.run("branch", "-D", "does-not-exist")
        assert not result.success
        assert result.exit_code != 0
        assert "does-not-exist" in result.stderr_text

    def test_missing_working_directory(self, temp_dir):
        """Test that a deleted repository folder raises NoRepositoryError."""
        gateway = GitCommandGateway(str(temp_dir / "gone"))
        with pytest.raises(NoRepositoryError) as exc_info:
            gateway.run("status")
        assert "does not exist" in str(exc_info.value)

    def test_missing_git_binary(self, git_repo):
        """Test that a git binary that cannot be started raises a command failure."""
        gateway = GitCommandGateway(git_repo.working_dir)
        error = git.exc.GitCommandNotFound("git", "not found")
        with patch.object(git.cmd.Git, "execute", side_effect=error):
            with pytest.raises(GitCommandFailedError) as exc_info:
                gateway.run("status")
        assert exc_info.value.exit_code is None

    def test_worktree_list_porcelain(self, git_repo):
        gateway = GitCommandGateway(git_repo.working_dir)
        result = gateway.worktree_list()
        assert result.success
        assert result.stdout_lines[0] == f"worktree {os.path.realpath(git_repo.working_dir)}"

    def test_worktree_add_command_shapes(self, git_repo):
        """Test the argument layout of the three add variants."""
        gateway = GitCommandGateway(git_repo.working_dir)
        with patch.object(gateway, "run") as run:
            gateway.worktree_add("/p", "b", create_branch=True)
            gateway.worktree_add("/p", "b")
            gateway.worktree_add("/p")
        assert [c.args for c in run.call_args_list] == [
            ("worktree", "add", "-b", "b", "/p"),
            ("worktree", "add", "/p", "b"),
            ("worktree", "add", "/p"),
        ]

    def test_worktree_remove_force_flag(self, git_repo):
        gateway = GitCommandGateway(git_repo.working_dir)
        with patch.object(gateway, "run") as run:
            gateway.worktree_remove("/p")
            gateway.worktree_remove("/p", force=False)
        assert [c.args for c in run.call_args_list] == [
            ("worktree", "remove", "/p", "--force"),
            ("worktree", "remove", "/p"),
        ]

    def test_common_dir_is_absolute(self, git_repo):
        gateway = GitCommandGateway(git_repo.working_dir)
        assert gateway.common_dir() == os.path.join(os.path.realpath(git_repo.working_dir), ".git")

    def test_version_is_cached(self, git_repo):
        gateway = GitCommandGateway(git_repo.working_dir)
        with patch.object(git.cmd.Git, "version_info", new=(2, 40, 1)):
            assert gateway.version_info() == (2, 40, 1)
        # Cached even after the patch is gone
        assert gateway.version_info() == (2, 40, 1)

    def test_ensure_version_rejects_old_git(self, git_repo):
        gateway = GitCommandGateway(git_repo.working_dir)
        gateway._version_info = (2, 4, 0)
        with pytest.raises(GitVersionError) as exc_info:
            gateway.ensure_version((2, 5, 0), "git worktree list")
        assert exc_info.value.required == (2, 5, 0)
        assert exc_info.value.found == (2, 4, 0)

    def test_ensure_version_accepts_newer_git(self, git_repo):
        gateway = GitCommandGateway(git_repo.working_dir)
        gateway._version_info = (2, 43, 0)
        gateway.ensure_version((2, 11, 0), "git status --porcelain=v2")
