"""Structured error records produced from worktree exceptions."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ErrorType(Enum):
    """Kind of an operation-level failure."""
    GIT_COMMAND_FAILED = "git_command_failed"
    NO_REPOSITORY = "no_repository"
    WORKTREE_ALREADY_EXISTS = "worktree_already_exists"
    BRANCH_DELETE_FAILED = "branch_delete_failed"
    FILE_OPERATION_FAILED = "file_operation_failed"
    SCAN_FAILED = "scan_failed"
    CANCELLED = "cancelled"
    UNKNOWN_ERROR = "unknown_error"


@dataclass(frozen=True)
class StructuredError:
    """A failure with git-specific fields present only where they apply."""

    error_type: ErrorType
    message: str
    git_command: Optional[str] = None
    git_exit_code: Optional[int] = None
    git_error_output: Optional[str] = None
    excerpt: Optional[str] = None
