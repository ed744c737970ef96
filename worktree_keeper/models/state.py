"""Immutable state snapshot for the worktree controller."""

from dataclasses import dataclass, field
from typing import Optional, Tuple

from worktree_keeper.models.errors import StructuredError
from worktree_keeper.models.ignored_file import CopyOutcome, IgnoredFileEntry
from worktree_keeper.models.worktree import WorktreeEntry


@dataclass(frozen=True)
class WorktreeState:
    """Snapshot of the worktree list and the ignored-files workflow."""

    worktrees: Tuple[WorktreeEntry, ...] = field(default_factory=tuple)
    is_loading: bool = False
    error: Optional[StructuredError] = None

    # Ignored files workflow
    ignored_files: Tuple[IgnoredFileEntry, ...] = field(default_factory=tuple)
    is_scanning: bool = False
    scan_error: Optional[StructuredError] = None
    copy_outcome: Optional[CopyOutcome] = None
