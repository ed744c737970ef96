"""Formatting utilities for git-worktree-keeper.

- size: ignored entry sizes
- worktree: worktree rows and copy outcome summaries
- errors: user-facing error messages
"""

from .size import format_size
from .worktree import (
    format_branch,
    format_copy_summary,
    format_create_outcome,
    get_worktree_kind,
)
from .errors import UiError, build_details, map_ui_error

__all__ = [
    "format_size",
    "format_branch",
    "format_copy_summary",
    "format_create_outcome",
    "get_worktree_kind",
    "UiError",
    "build_details",
    "map_ui_error",
]
