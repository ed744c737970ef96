"""User-facing error messages with sanitized technical details."""

import re
from dataclasses import dataclass, field
from typing import List, Optional

from worktree_keeper.exceptions import (
    GitCommandFailedError,
    NoRepositoryError,
    ScanFailedError,
    UnknownWorktreeError,
    sanitize_paths,
)

_MISSING_WORKDIR = re.compile(r"working directory ['\"]([^'\"]+)['\"]", re.IGNORECASE)


@dataclass(frozen=True)
class UiError:
    """A failure explained for people, with copyable details."""

    title: str
    summary: str
    actions: List[str] = field(default_factory=list)
    details: Optional[str] = None


def _root_cause(error: BaseException) -> BaseException:
    current = error
    seen = {id(current)}
    while current.__cause__ is not None and id(current.__cause__) not in seen:
        current = current.__cause__
        seen.add(id(current))
    return current


def _is_missing_working_directory(message: str) -> bool:
    lowered = message.lower()
    return "working directory" in lowered and ("does not exist" in lowered or "no such file" in lowered)


def build_details(
    operation: Optional[str] = None,
    command: Optional[str] = None,
    working_directory: Optional[str] = None,
    exit_code: Optional[int] = None,
    error_output: Optional[str] = None,
) -> str:
    """Build the "Details (for debugging)" block with home paths redacted."""
    lines = ["Details (for debugging):"]
    if operation:
        lines.append(f"Operation: {operation}")
    if command:
        lines.append(f"Command: {sanitize_paths(command)}")
    if working_directory:
        lines.append(f"Working directory: {sanitize_paths(working_directory)}")
    if exit_code is not None:
        lines.append(f"Exit code: {exit_code}")
    if error_output and error_output.strip():
        lines.append("Error:")
        lines.append(sanitize_paths(error_output.strip()))
    return "\n".join(lines)


def map_ui_error(error: BaseException, operation: Optional[str] = None) -> UiError:
    """Map an exception to a title, summary, suggested actions and details."""
    message = (str(_root_cause(error)) or str(error) or "Unknown error").strip()

    if _is_missing_working_directory(message):
        match = _MISSING_WORKDIR.search(message)
        return UiError(
            title="Project folder no longer exists",
            summary="Git couldn't run because the repository folder is missing or was moved.",
            actions=[
                "Run the command again from the repository's current location",
                "If the folder was deleted by mistake, restore it and try again",
            ],
            details=build_details(
                operation=operation,
                working_directory=match.group(1) if match else None,
                error_output=message,
            ),
        )

    if isinstance(error, NoRepositoryError):
        return UiError(
            title="No Git repository found",
            summary="There is no Git repository here, so worktrees can't be managed.",
            actions=[
                "Run the command from inside a Git working tree",
                "Or pass the repository location with --repo",
            ],
            details=build_details(operation=operation, error_output=message),
        )

    command_error = error.cause if isinstance(error, ScanFailedError) else error
    if isinstance(command_error, GitCommandFailedError):
        return UiError(
            title="Git command failed",
            summary="Git ran but returned an error while trying to complete the operation.",
            actions=[
                "Run the command shown in Details from a terminal in that repository",
                "Make sure you can access the folder and the repository isn't locked",
            ],
            details=build_details(
                operation=operation,
                command=command_error.command_line,
                exit_code=command_error.exit_code,
                error_output=command_error.stderr or message,
            ),
        )

    excerpt = error.excerpt if isinstance(error, UnknownWorktreeError) else None
    return UiError(
        title="Unexpected error",
        summary="Something went wrong while trying to complete the operation.",
        actions=["Try again", "If it keeps happening, run with --debug and keep the log"],
        details=build_details(operation=operation, error_output=excerpt or message),
    )
