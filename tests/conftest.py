"""Pytest fixtures for git-worktree-keeper tests"""
import os
import tempfile
from pathlib import Path
from unittest.mock import Mock

import git
import pytest

from worktree_keeper.services.git.gateway import CommandResult, GitCommandGateway


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing (symlinks resolved)."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(os.path.realpath(tmpdir))


@pytest.fixture
def mock_config():
    """Create a mock configuration dictionary."""
    return {
        'verbose': False,
        'debug': False,
        'debounce_ms': 50,
        'copy_ignored_files': False,
        'default_selected_patterns': [],
        'exclude_patterns': [],
        'delete_branch_with_worktree': False,
        'force_remove': True,
        'sequential': False,
        'workers': None,
    }


@pytest.fixture
def git_repo(temp_dir):
    """Create a real Git repository for testing."""
    repo_path = temp_dir / "test_repo"
    repo_path.mkdir()

    repo = git.Repo.init(repo_path)

    # Configure git user for commits
    repo.config_writer().set_value("user", "name", "Test User").release()
    repo.config_writer().set_value("user", "email", "test@example.com").release()

    test_file = repo_path / "README.md"
    test_file.write_text("# Test Repository\n")
    repo.index.add(["README.md"])
    repo.index.commit("Initial commit")

    # Rename master to main if needed
    try:
        repo.git.branch('-M', 'main')
    except Exception:
        pass

    yield repo

    repo.close()


@pytest.fixture
def git_repo_with_ignored(git_repo):
    """A repository with a .gitignore and a few ignored files and directories."""
    repo = git_repo
    repo_path = Path(repo.working_dir)

    (repo_path / ".gitignore").write_text(".env\nbuild/\n*.log\n")
    repo.index.add([".gitignore"])
    repo.index.commit("Add gitignore")

    (repo_path / ".env").write_text("SECRET=1\n")
    (repo_path / "app.log").write_text("x" * 2048)
    (repo_path / "build" / "sub").mkdir(parents=True)
    (repo_path / "build" / "out.bin").write_bytes(b"\x00\x01\x02")
    (repo_path / "build" / "sub" / "deep.txt").write_text("deep\n")

    yield repo


@pytest.fixture
def make_result():
    """Build CommandResult objects for mocked gateways."""
    def _make(stdout_lines=None, exit_code=0, stderr="", command=("git",)):
        return CommandResult(
            command=tuple(command),
            exit_code=exit_code,
            stdout_lines=list(stdout_lines or []),
            stderr_text=stderr,
        )
    return _make


@pytest.fixture
def mock_gateway(temp_dir):
    """A gateway mock bound to temp_dir, with a recent git version."""
    gateway = Mock(spec=GitCommandGateway)
    gateway.repo_root = str(temp_dir)
    gateway.ensure_version = Mock(return_value=None)
    gateway.version_info = Mock(return_value=(2, 43, 0))
    return gateway
