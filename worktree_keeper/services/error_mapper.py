"""Maps worktree exceptions to structured error records."""

from typing import Optional

from worktree_keeper.constants import ALREADY_EXISTS_MARKER, NOT_A_REPOSITORY_MARKER
from worktree_keeper.exceptions import (
    GitCommandFailedError,
    GitVersionError,
    NoRepositoryError,
    OperationCancelledError,
    ScanFailedError,
    UnknownWorktreeError,
    sanitize_paths,
)
from worktree_keeper.models.errors import ErrorType, StructuredError


def infer_command_error_type(error: GitCommandFailedError) -> ErrorType:
    """Classify a command failure from its error text and command line."""
    output = error.stderr.lower()
    if ALREADY_EXISTS_MARKER in output:
        return ErrorType.WORKTREE_ALREADY_EXISTS
    if NOT_A_REPOSITORY_MARKER in output:
        return ErrorType.NO_REPOSITORY
    if "branch" in error.command:
        return ErrorType.BRANCH_DELETE_FAILED
    return ErrorType.GIT_COMMAND_FAILED


def _command_error(error: GitCommandFailedError, error_type: Optional[ErrorType] = None) -> StructuredError:
    return StructuredError(
        error_type=error_type or infer_command_error_type(error),
        message=sanitize_paths(str(error)),
        git_command=sanitize_paths(error.command_line),
        git_exit_code=error.exit_code,
        git_error_output=error.sanitized_stderr,
    )


def map_to_structured_error(error: Optional[BaseException]) -> Optional[StructuredError]:
    """Turn an exception into a StructuredError; None passes through."""
    if error is None:
        return None

    if isinstance(error, GitCommandFailedError):
        return _command_error(error)

    if isinstance(error, ScanFailedError):
        if isinstance(error.cause, GitCommandFailedError):
            return _command_error(error.cause, ErrorType.SCAN_FAILED)
        return StructuredError(ErrorType.SCAN_FAILED, sanitize_paths(str(error)))

    if isinstance(error, NoRepositoryError):
        return StructuredError(ErrorType.NO_REPOSITORY, sanitize_paths(str(error)))

    if isinstance(error, OperationCancelledError):
        return StructuredError(ErrorType.CANCELLED, str(error))

    if isinstance(error, GitVersionError):
        return StructuredError(ErrorType.GIT_COMMAND_FAILED, str(error))

    if isinstance(error, UnknownWorktreeError):
        return StructuredError(
            ErrorType.UNKNOWN_ERROR,
            sanitize_paths(str(error)),
            excerpt=error.excerpt,
        )

    if isinstance(error, OSError):
        return StructuredError(ErrorType.FILE_OPERATION_FAILED, sanitize_paths(str(error)))

    wrapped = UnknownWorktreeError("operation", error)
    return StructuredError(
        ErrorType.UNKNOWN_ERROR,
        sanitize_paths(str(error) or type(error).__name__),
        excerpt=wrapped.excerpt,
    )
