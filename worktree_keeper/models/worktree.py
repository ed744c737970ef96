"""Worktree data models."""

import os
from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from worktree_keeper.models.ignored_file import CopyOutcome


@dataclass(frozen=True)
class WorktreeEntry:
    """Information about a registered git worktree."""

    path: str
    head_commit: str
    branch: Optional[str] = None  # None = detached HEAD
    is_main: bool = False  # Is this the main working tree?
    is_bare: bool = False
    branch_ref: Optional[str] = None  # Full ref, e.g. refs/heads/feature/login

    @property
    def is_detached(self) -> bool:
        return self.branch is None

    @property
    def is_orphaned(self) -> bool:
        """True when git still tracks the worktree but its directory is gone."""
        return not os.path.exists(self.path)

    @property
    def branch_name(self) -> Optional[str]:
        """Branch name usable with `git branch`, keeping slashes."""
        if self.branch_ref and self.branch_ref.startswith("refs/heads/"):
            return self.branch_ref[len("refs/heads/"):]
        return self.branch

    @property
    def short_commit(self) -> str:
        return self.head_commit[:8]

    def __str__(self) -> str:
        """String representation of worktree."""
        label = self.branch or "(detached)"
        main_marker = " (main)" if self.is_main else ""
        return f"{label} @ {self.path}{main_marker}"


@dataclass(frozen=True)
class CreateOutcome:
    """Result of attempting to create a worktree.

    ``was_created`` is False only when an already-registered worktree at
    ``resolved_path`` was reused.
    """

    resolved_path: str
    was_created: bool


@dataclass(frozen=True)
class DeleteOutcome:
    """Result of removing a worktree and, optionally, its branch."""

    worktree_path: str
    branch_deleted: bool = False
    branch_error: Optional[str] = None


@dataclass(frozen=True)
class PropagationOutcome:
    """Result of the create-worktree-and-copy-ignored-files workflow."""

    create: CreateOutcome
    ignored_found: int = 0
    selection_cancelled: bool = False
    copy: Optional["CopyOutcome"] = None

    @property
    def had_ignored_files(self) -> bool:
        return self.ignored_found > 0
