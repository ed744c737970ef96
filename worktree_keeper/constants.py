"""Shared constants for git-worktree-keeper."""

from dataclasses import dataclass
from typing import List


# Minimum Git versions for the features we drive
MIN_GIT_VERSION_WORKTREE_LIST = (2, 5, 0)
MIN_GIT_VERSION_PORCELAIN_V2 = (2, 11, 0)

# `git worktree list --porcelain` record prefixes
PORCELAIN_WORKTREE_PREFIX = "worktree "
PORCELAIN_HEAD_PREFIX = "HEAD "
PORCELAIN_BRANCH_PREFIX = "branch "
PORCELAIN_BARE_MARKER = "bare"
PORCELAIN_DETACHED_MARKER = "detached"

# `git status --ignored --porcelain=v2` marker for ignored entries
IGNORED_STATUS_PREFIX = "! "

# Repository metadata root (directory in the main worktree, file in linked ones)
GIT_METADATA_NAME = ".git"

# Error text that marks a worktree/branch collision
ALREADY_EXISTS_MARKER = "already exists"
NOT_A_REPOSITORY_MARKER = "not a git repository"

# Per-item copy failure reasons
REASON_OUTSIDE_ROOT = "Invalid path: outside allowed directory"
REASON_LINK_OUTSIDE_ROOT = "Symbolic link points outside allowed directory"
REASON_NOT_FOUND = "File not found (may have been deleted)"
REASON_PERMISSION_DENIED = "Permission denied"
REASON_CANCELLED = "Cancelled before copy"

# Limits for sanitized error output
MAX_ERROR_OUTPUT_CHARS = 500
MAX_TRACEBACK_LINES = 5

DEFAULT_DEBOUNCE_MS = 250


@dataclass
class ColumnDefinition:
    """Definition of a table column."""

    key: str
    label: str
    width: int = 0  # 0 means auto-width


WORKTREE_COLUMNS: List[ColumnDefinition] = [
    ColumnDefinition("path", "Path", 50),
    ColumnDefinition("branch", "Branch", 25),
    ColumnDefinition("head", "HEAD", 10),
    ColumnDefinition("kind", "Kind", 10),
]

IGNORED_COLUMNS: List[ColumnDefinition] = [
    ColumnDefinition("index", "#", 5),
    ColumnDefinition("path", "Path", 50),
    ColumnDefinition("kind", "Kind", 10),
    ColumnDefinition("size", "Size", 14),
]

# Symbol constants
SYMBOL_SELECTED = "✓"
SYMBOL_UNSELECTED = " "
SYMBOL_MAIN = "*"

# Worktree kind display names
KIND_MAIN = "main"
KIND_LINKED = "linked"
KIND_ORPHANED = "orphaned"

# CLI colors (Rich color names)
CLI_COLORS = {
    KIND_MAIN: "cyan",
    KIND_LINKED: None,
    KIND_ORPHANED: "yellow",
}
