"""Ignored file models and copy results."""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, Tuple


class FileKind(Enum):
    """Kind of an ignored filesystem entry."""
    FILE = "file"
    DIRECTORY = "directory"


@dataclass(frozen=True)
class IgnoredFileEntry:
    """A file or directory matched by the repository's ignore rules."""

    relative_path: str
    kind: FileKind
    size_bytes: Optional[int] = None  # None for directories or unreadable files
    selected: bool = False

    @property
    def is_directory(self) -> bool:
        return self.kind == FileKind.DIRECTORY

    def with_selected(self, selected: bool = True) -> "IgnoredFileEntry":
        """Return a copy with the selection flag changed."""
        return replace(self, selected=selected)


@dataclass(frozen=True)
class CopyOutcome:
    """Result of copying ignored entries into a worktree.

    Every selected entry passed to the copy engine ends up in exactly one
    of ``succeeded`` or ``failed``.
    """

    succeeded: Tuple[str, ...] = field(default_factory=tuple)
    failed: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)  # (relative path, reason)

    @property
    def has_failures(self) -> bool:
        return bool(self.failed)

    @property
    def success_count(self) -> int:
        return len(self.succeeded)

    @property
    def failure_count(self) -> int:
        return len(self.failed)

    @property
    def total(self) -> int:
        return self.success_count + self.failure_count
