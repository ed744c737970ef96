"""Custom exceptions for git-worktree-keeper"""

import re
import traceback
from typing import Optional, Sequence

from worktree_keeper.constants import (
    ALREADY_EXISTS_MARKER,
    MAX_ERROR_OUTPUT_CHARS,
    MAX_TRACEBACK_LINES,
)

_HOME_PATTERNS = [
    (re.compile(r"/Users/[^/\s]+/"), "/Users/<user>/"),
    (re.compile(r"/home/[^/\s]+/"), "/home/<user>/"),
    (re.compile(r"[A-Za-z]:\\Users\\[^\\\s]+\\"), r"C:\\Users\\<user>\\"),
]


def sanitize_paths(text: Optional[str]) -> Optional[str]:
    """Redact user-home path segments from text meant for display."""
    if text is None:
        return None
    for pattern, replacement in _HOME_PATTERNS:
        text = pattern.sub(replacement, text)
    return text


class WorktreeKeeperError(Exception):
    """Base exception for all git-worktree-keeper errors."""
    pass


class NoRepositoryError(WorktreeKeeperError):
    """Exception raised when no Git repository is found at the expected location."""

    def __init__(self, path: Optional[str] = None, message: Optional[str] = None):
        self.path = path
        error_msg = message
        if error_msg is None:
            error_msg = f"No Git repository found at '{path}'" if path else "No Git repository found"
        super().__init__(error_msg)


class GitCommandFailedError(WorktreeKeeperError):
    """Exception raised when the git binary exits with a non-zero status."""

    def __init__(
        self,
        operation: str,
        command: Sequence[str],
        exit_code: Optional[int],
        stderr: Optional[str] = None,
    ):
        self.operation = operation
        self.command = list(command)
        self.exit_code = exit_code
        self.stderr = (stderr or "").strip()

        if self.stderr:
            error_msg = f"{operation} failed (exit {exit_code}): {self.stderr}"
        else:
            error_msg = f"{operation} failed with exit code {exit_code}"
        super().__init__(error_msg)

    @property
    def command_line(self) -> str:
        return " ".join(self.command)

    @property
    def sanitized_stderr(self) -> str:
        return sanitize_paths(self.stderr)[:MAX_ERROR_OUTPUT_CHARS]


class WorktreeAlreadyExistsError(GitCommandFailedError):
    """Exception raised when git reports that the worktree path or branch already exists."""
    pass


class ScanFailedError(WorktreeKeeperError):
    """Exception raised when the ignored-files status query fails outright."""

    def __init__(self, repo_root: str, cause: Optional[Exception] = None):
        self.repo_root = repo_root
        self.cause = cause
        error_msg = f"Failed to scan ignored files in '{repo_root}'"
        if cause:
            error_msg += f": {cause}"
        super().__init__(error_msg)


class GitVersionError(WorktreeKeeperError):
    """Exception raised when the installed git is too old for a feature."""

    def __init__(self, feature: str, required: tuple, found: tuple):
        self.feature = feature
        self.required = required
        self.found = found
        required_str = ".".join(str(part) for part in required)
        found_str = ".".join(str(part) for part in found)
        super().__init__(f"{feature} requires git {required_str} or newer (found {found_str})")


class OperationCancelledError(WorktreeKeeperError):
    """Exception raised when the caller cancels a long-running operation."""

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Operation '{operation}' was cancelled")


class UnknownWorktreeError(WorktreeKeeperError):
    """Wraps an unclassified exception, keeping a short excerpt of its traceback."""

    def __init__(self, operation: str, cause: BaseException):
        self.operation = operation
        self.cause = cause
        lines = traceback.format_exception(type(cause), cause, cause.__traceback__)
        excerpt = "".join(lines).splitlines()[:MAX_TRACEBACK_LINES]
        self.excerpt = sanitize_paths("\n".join(excerpt))
        super().__init__(f"Unexpected error during {operation}: {cause}")


def command_failed(operation: str, command: Sequence[str], exit_code: int, stderr: str) -> GitCommandFailedError:
    """Build the right command failure for git's error text."""
    if ALREADY_EXISTS_MARKER in (stderr or "").lower():
        return WorktreeAlreadyExistsError(operation, command, exit_code, stderr)
    return GitCommandFailedError(operation, command, exit_code, stderr)
