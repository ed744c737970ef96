"""Tests for the command-line interface"""
import io
import os
from pathlib import Path

import git
import pytest

from worktree_keeper import config as config_module
from worktree_keeper.cli import main, parse_args


@pytest.fixture(autouse=True)
def isolated_user_config(temp_dir, monkeypatch):
    """Keep the real user config out of CLI runs."""
    monkeypatch.setattr(config_module, "USER_CONFIG_FILE", temp_dir / "no-user-config.json")


@pytest.fixture
def non_interactive(monkeypatch):
    monkeypatch.setattr("sys.stdin", io.StringIO())


class TestParseArgs:
    """Test argument parsing."""

    def test_list(self):
        args = parse_args(["list"])
        assert args.command == "list"
        assert args.repo == "."
        assert args.verbose is False

    def test_create_defaults(self):
        args = parse_args(["create", "login"])
        assert args.name == "login"
        assert args.branch is None
        assert args.existing_branch is False
        assert args.copy_ignored is None
        assert args.all is False

    def test_create_with_selection(self):
        args = parse_args(["--repo", "/r", "create", "login", "-b", "feature/login", "--select", ".env", "*.local"])
        assert args.repo == "/r"
        assert args.branch == "feature/login"
        assert args.select == [".env", "*.local"]

    def test_select_and_all_are_exclusive(self):
        with pytest.raises(SystemExit):
            parse_args(["create", "x", "--all", "--select", ".env"])

    def test_delete_branch_flag(self):
        assert parse_args(["delete", "/p"]).delete_branch is None
        assert parse_args(["delete", "/p", "--delete-branch"]).delete_branch is True

    def test_command_required(self):
        with pytest.raises(SystemExit):
            parse_args([])

    def test_watch_interval(self):
        assert parse_args(["watch", "--interval", "0.5"]).interval == 0.5


class TestMain:
    """Test end-to-end CLI runs against real repositories."""

    def test_list(self, git_repo, capsys):
        assert main(["--repo", git_repo.working_dir, "list"]) == 0
        assert "main" in capsys.readouterr().out

    def test_create_and_delete_with_branch(self, git_repo, capsys):
        repo_dir = git_repo.working_dir
        target = f"{repo_dir}-cli"

        assert main(["--repo", repo_dir, "create", "cli"]) == 0
        assert os.path.isdir(target)
        assert "cli" in [head.name for head in git_repo.heads]

        assert main(["--repo", repo_dir, "delete", target, "--delete-branch"]) == 0
        assert not os.path.exists(target)
        assert "cli" not in [head.name for head in git_repo.heads]

    def test_delete_relative_path_from_subdirectory(self, git_repo, monkeypatch):
        """Test that a relative delete path is taken from the current directory."""
        repo_dir = git_repo.working_dir
        target = f"{repo_dir}-feat"
        assert main(["--repo", repo_dir, "create", "feat"]) == 0
        sub = Path(repo_dir) / "sub"
        sub.mkdir()
        monkeypatch.chdir(sub)

        assert main(["delete", "../../test_repo-feat", "--delete-branch"]) == 0
        assert not os.path.exists(target)
        assert "feat" not in [head.name for head in git_repo.heads]

    def test_create_attaches_existing_branch(self, git_repo):
        repo_dir = git_repo.working_dir
        git_repo.create_head("feature/ready")

        assert main(["--repo", repo_dir, "create", "ready", "-b", "feature/ready"]) == 0

        worktree = git.Repo(f"{repo_dir}-ready")
        assert worktree.active_branch.name == "feature/ready"
        worktree.close()

    def test_create_copies_all_ignored(self, git_repo_with_ignored, capsys):
        repo_dir = git_repo_with_ignored.working_dir

        assert main(["--repo", repo_dir, "create", "all-files", "--all"]) == 0

        target = Path(f"{repo_dir}-all-files")
        assert (target / ".env").read_text() == "SECRET=1\n"
        assert (target / "build" / "out.bin").exists()
        assert "Copied 3 of 3 items" in capsys.readouterr().out

    def test_create_copies_selected_patterns(self, git_repo_with_ignored):
        repo_dir = git_repo_with_ignored.working_dir

        assert main(["--repo", repo_dir, "create", "env-only", "--select", ".env"]) == 0

        target = Path(f"{repo_dir}-env-only")
        assert (target / ".env").exists()
        assert not (target / "app.log").exists()

    def test_copy_ignored_without_selection_is_non_interactive(self, git_repo_with_ignored, non_interactive):
        """Test that piping into the CLI copies nothing that was not preselected."""
        repo_dir = git_repo_with_ignored.working_dir

        assert main(["--repo", repo_dir, "create", "quiet", "--copy-ignored"]) == 0

        target = Path(f"{repo_dir}-quiet")
        assert target.is_dir()
        assert not (target / ".env").exists()

    def test_copy_into_existing_worktree(self, git_repo_with_ignored):
        repo_dir = git_repo_with_ignored.working_dir
        assert main(["--repo", repo_dir, "create", "later"]) == 0

        assert main(["--repo", repo_dir, "copy", f"{repo_dir}-later", "--select", "*.log"]) == 0

        assert Path(f"{repo_dir}-later", "app.log").stat().st_size == 2048

    def test_scan(self, git_repo_with_ignored, capsys):
        assert main(["--repo", git_repo_with_ignored.working_dir, "scan"]) == 0
        out = capsys.readouterr().out
        assert ".env" in out
        assert "directory" in out

    def test_prune(self, git_repo):
        assert main(["--repo", git_repo.working_dir, "prune"]) == 0

    def test_not_a_repository(self, temp_dir, capsys):
        plain = temp_dir / "plain"
        plain.mkdir()

        assert main(["--repo", str(plain), "list"]) == 1
        assert "No Git repository found" in capsys.readouterr().out

    def test_stray_directory_reports_git_failure(self, git_repo, capsys):
        stray = Path(f"{git_repo.working_dir}-stray")
        stray.mkdir()
        (stray / "keep.txt").write_text("keep")

        assert main(["--repo", git_repo.working_dir, "create", "stray"]) == 1
        assert "Git command failed" in capsys.readouterr().out

    def test_missing_config_file(self, git_repo, temp_dir, capsys):
        code = main(["--repo", git_repo.working_dir, "--config", str(temp_dir / "missing.json"), "list"])
        assert code == 1
        assert "Config file not found" in capsys.readouterr().out
