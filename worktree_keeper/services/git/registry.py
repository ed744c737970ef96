"""Parser for `git worktree list --porcelain` output.

Format::

    worktree /path/to/main
    HEAD 1234abcd...
    branch refs/heads/main

    worktree /path/to/linked
    HEAD 5678ef01...
    detached

Records are separated by blank lines. The listing does not say which entry
is the main worktree, so the flag is recomputed from the filesystem: a main
worktree holds a ``.git`` directory, a linked one a ``.git`` file pointing at
the shared store. A bare repository record is treated as the main entry
since it is the metadata root itself. This is a best-effort inference.
"""

import os
from dataclasses import replace
from typing import Iterable, List, Optional

from worktree_keeper.constants import (
    GIT_METADATA_NAME,
    PORCELAIN_BARE_MARKER,
    PORCELAIN_BRANCH_PREFIX,
    PORCELAIN_DETACHED_MARKER,
    PORCELAIN_HEAD_PREFIX,
    PORCELAIN_WORKTREE_PREFIX,
)
from worktree_keeper.logging_config import get_logger
from worktree_keeper.models.worktree import WorktreeEntry

logger = get_logger(__name__)


def canonical_path(path: str) -> str:
    """Absolute path with symlinks resolved, for comparing worktree locations."""
    return os.path.normcase(os.path.realpath(path))


def is_main_worktree_path(path: str) -> bool:
    """True if ``path`` holds a directory-form ``.git`` metadata root."""
    return os.path.isdir(os.path.join(canonical_path(path), GIT_METADATA_NAME))


class _Record:
    """Fields collected for the worktree record being parsed."""

    def __init__(self):
        self.path: Optional[str] = None
        self.commit: Optional[str] = None
        self.branch_ref: Optional[str] = None
        self.is_bare = False

    def to_entry(self) -> Optional[WorktreeEntry]:
        if self.path is None or self.commit is None:
            return None
        branch = self.branch_ref.rsplit("/", 1)[-1] if self.branch_ref else None
        return WorktreeEntry(
            path=self.path,
            head_commit=self.commit,
            branch=branch,
            is_main=self.is_bare,
            is_bare=self.is_bare,
            branch_ref=self.branch_ref,
        )


def parse_porcelain_records(lines: Iterable[str]) -> List[WorktreeEntry]:
    """Reduce porcelain lines to entries without touching the filesystem.

    A record is kept only if both its path and HEAD were seen. The main flag
    reflects the ``bare`` marker only.
    """
    entries: List[WorktreeEntry] = []
    record = _Record()

    for raw_line in lines:
        line = raw_line.rstrip("\r\n")

        if not line.strip():
            entry = record.to_entry()
            if entry:
                entries.append(entry)
            record = _Record()
            continue

        if line.startswith(PORCELAIN_WORKTREE_PREFIX):
            record.path = line[len(PORCELAIN_WORKTREE_PREFIX):]
        elif line.startswith(PORCELAIN_HEAD_PREFIX):
            record.commit = line[len(PORCELAIN_HEAD_PREFIX):].strip()
        elif line.startswith(PORCELAIN_BRANCH_PREFIX):
            record.branch_ref = line[len(PORCELAIN_BRANCH_PREFIX):].strip()
        elif line == PORCELAIN_BARE_MARKER:
            record.is_bare = True
        elif line == PORCELAIN_DETACHED_MARKER:
            record.branch_ref = None

    # Handle last entry if output has no trailing blank line
    entry = record.to_entry()
    if entry:
        entries.append(entry)

    return entries


def parse_worktree_porcelain(lines: Iterable[str]) -> List[WorktreeEntry]:
    """Parse the listing and recompute each entry's main flag from disk."""
    entries = [
        replace(entry, is_main=entry.is_bare or is_main_worktree_path(entry.path))
        for entry in parse_porcelain_records(lines)
    ]

    main_count = sum(1 for entry in entries if entry.is_main)
    if entries and main_count != 1:
        logger.debug(f"Expected one main worktree, detected {main_count}")

    logger.debug(f"Parsed {len(entries)} worktrees")
    for entry in entries:
        logger.debug(f"  {entry}")
    return entries
