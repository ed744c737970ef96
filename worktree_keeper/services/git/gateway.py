"""Gateway to the git binary.

Every worktree, branch and status query goes through ``GitCommandGateway``,
which runs git synchronously in the repository root and reports the exit
code, stdout lines and stderr text without retrying. Callers that must not
block (see ``WorktreeController``) are responsible for running it on a
worker thread.
"""

import os
from dataclasses import dataclass, field
from threading import Lock
from typing import List, Optional, Tuple

import git

from worktree_keeper.exceptions import (
    GitCommandFailedError,
    GitVersionError,
    NoRepositoryError,
    command_failed,
)
from worktree_keeper.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class CommandResult:
    """Captured outcome of one git invocation."""

    command: Tuple[str, ...]
    exit_code: int
    stdout_lines: List[str] = field(default_factory=list)
    stderr_text: str = ""

    @property
    def success(self) -> bool:
        return self.exit_code == 0

    @property
    def command_line(self) -> str:
        return " ".join(self.command)

    def raise_for_status(self, operation: str) -> "CommandResult":
        """Raise the matching command failure when git exited non-zero."""
        if not self.success:
            raise command_failed(operation, self.command, self.exit_code, self.stderr_text)
        return self


def find_repository_root(path: str) -> str:
    """Return the working tree root of the repository containing ``path``.

    Raises:
        NoRepositoryError: If ``path`` is not inside a git working tree
    """
    try:
        repo = git.Repo(path, search_parent_directories=True)
    except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError):
        raise NoRepositoryError(path)

    try:
        root = repo.working_tree_dir
    finally:
        repo.close()

    if root is None:
        # Bare repositories have no working tree to place worktrees next to
        raise NoRepositoryError(path, f"Bare repository at '{path}' has no working tree")
    return os.path.realpath(root)


class GitCommandGateway:
    """Runs git commands for one repository root."""

    def __init__(self, repo_root: str, git_executable: str = "git"):
        """Initialize the gateway.

        Args:
            repo_root: Working directory for every invocation
            git_executable: Name or path of the git binary
        """
        self.repo_root = repo_root
        self.git_executable = git_executable
        self._version_info: Optional[Tuple[int, ...]] = None
        self._version_lock = Lock()

    def _get_git(self) -> git.cmd.Git:
        """Get a fresh git command wrapper bound to the repository root."""
        return git.cmd.Git(self.repo_root)

    def run(self, *args: str) -> CommandResult:
        """Run ``git <args>`` in the repository root and capture its output.

        Raises:
            NoRepositoryError: If the repository folder no longer exists
            GitCommandFailedError: If git could not be started at all
        """
        command = (self.git_executable, *args)
        if not os.path.isdir(self.repo_root):
            raise NoRepositoryError(
                self.repo_root, f"Working directory '{self.repo_root}' does not exist"
            )

        logger.debug(f"Running: {' '.join(command)}")
        try:
            status, stdout, stderr = self._get_git().execute(
                list(command),
                with_extended_output=True,
                with_exceptions=False,
            )
        except git.exc.GitCommandNotFound as e:
            raise GitCommandFailedError(f"git {args[0]}", command, None, str(e))

        stdout_lines = stdout.splitlines() if stdout else []
        logger.debug(f"Exit {status} from: {' '.join(command)} ({len(stdout_lines)} lines)")
        return CommandResult(
            command=command,
            exit_code=status,
            stdout_lines=stdout_lines,
            stderr_text=(stderr or "").strip(),
        )

    def version_info(self) -> Tuple[int, ...]:
        """Return the installed git version, read once per gateway."""
        with self._version_lock:
            if self._version_info is None:
                self._version_info = tuple(self._get_git().version_info)
                logger.debug(f"git version {'.'.join(map(str, self._version_info))}")
            return self._version_info

    def ensure_version(self, minimum: Tuple[int, ...], feature: str) -> None:
        """Raise GitVersionError if git is older than ``minimum``."""
        found = self.version_info()
        if found < minimum:
            raise GitVersionError(feature, minimum, found)

    # Worktree commands

    def worktree_add(self, path: str, branch: Optional[str] = None, create_branch: bool = False) -> CommandResult:
        """`git worktree add`, optionally creating a new branch."""
        if branch and create_branch:
            return self.run("worktree", "add", "-b", branch, path)
        if branch:
            return self.run("worktree", "add", path, branch)
        return self.run("worktree", "add", path)

    def worktree_list(self) -> CommandResult:
        return self.run("worktree", "list", "--porcelain")

    def worktree_remove(self, path: str, force: bool = True) -> CommandResult:
        args = ["worktree", "remove", path]
        if force:
            args.append("--force")
        return self.run(*args)

    def worktree_prune(self) -> CommandResult:
        return self.run("worktree", "prune")

    # Branch commands

    def branch_list(self, name: str) -> CommandResult:
        return self.run("branch", "--list", name)

    def branch_delete(self, name: str) -> CommandResult:
        return self.run("branch", "-D", name)

    # Status

    def status_ignored(self) -> CommandResult:
        return self.run("status", "--ignored", "--porcelain=v2")

    def common_dir(self) -> str:
        """Absolute path of the shared metadata directory."""
        result = self.run("rev-parse", "--git-common-dir").raise_for_status("git rev-parse")
        path = result.stdout_lines[0].strip() if result.stdout_lines else ".git"
        return os.path.normpath(os.path.join(self.repo_root, path))
