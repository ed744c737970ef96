"""Service for copying ignored files and directories between worktrees.

Copies keep file attributes and overwrite existing destinations. A failing
item is recorded and the batch carries on, so one locked or deleted file
never stops the rest from being copied.

Two independent guards keep writes inside the destination root:
relative paths are normalized and must stay within both roots, and the
recursive directory copy never follows symbolic links.
"""

import os
import shutil
from threading import Event
from typing import Callable, Iterable, List, Optional, Tuple

from worktree_keeper.constants import (
    REASON_CANCELLED,
    REASON_LINK_OUTSIDE_ROOT,
    REASON_NOT_FOUND,
    REASON_OUTSIDE_ROOT,
    REASON_PERMISSION_DENIED,
)
from worktree_keeper.logging_config import get_logger
from worktree_keeper.models.ignored_file import CopyOutcome, FileKind, IgnoredFileEntry

logger = get_logger(__name__)

ProgressCallback = Callable[[str, int, int], None]


class _CopyCancelled(Exception):
    """Raised inside a directory walk when the caller cancels."""


class _LinkOutsideRoot(Exception):
    """Raised when a selected entry is a symlink leaving the source root."""


def is_within(root: str, path: str) -> bool:
    """True if normalized ``path`` lies strictly inside normalized ``root``."""
    root = os.path.normpath(root)
    path = os.path.normpath(path)
    if path == root:
        return False
    try:
        return os.path.commonpath([root, path]) == root
    except ValueError:
        # Different drives on Windows
        return False


def describe_copy_error(error: BaseException) -> str:
    """Human-readable reason for a per-item copy failure."""
    if isinstance(error, FileNotFoundError):
        return REASON_NOT_FOUND
    if isinstance(error, PermissionError):
        return REASON_PERMISSION_DENIED
    if isinstance(error, (IsADirectoryError, NotADirectoryError, FileExistsError, shutil.SameFileError)):
        reason = getattr(error, "strerror", None) or str(error)
        return f"File system error: {reason}"
    if isinstance(error, OSError):
        return f"I/O error: {error}"
    return f"Unexpected error: {error}"


class FileOperationsService:
    """Copies a selection of ignored entries from one root to another."""

    def copy_items(
        self,
        source_root: str,
        dest_root: str,
        items: Iterable[IgnoredFileEntry],
        cancel_event: Optional[Event] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> CopyOutcome:
        """Copy every selected item from source_root to dest_root.

        Args:
            source_root: Root the relative paths are resolved against
            dest_root: Root to copy into (usually a new worktree)
            items: Entries to copy; unselected ones are skipped
            cancel_event: Set by the caller to stop before the next item
            on_progress: Called as (relative_path, index, total) before each item

        Returns:
            CopyOutcome listing each selected item exactly once
        """
        source_root = os.path.normpath(os.path.abspath(source_root))
        dest_root = os.path.normpath(os.path.abspath(dest_root))
        selected = [item for item in items if item.selected]

        succeeded: List[str] = []
        failed: List[Tuple[str, str]] = []

        for index, item in enumerate(selected):
            if cancel_event is not None and cancel_event.is_set():
                logger.info(f"Copy cancelled, {len(selected) - index} items not copied")
                failed.extend((rest.relative_path, REASON_CANCELLED) for rest in selected[index:])
                break

            if on_progress:
                on_progress(item.relative_path, index, len(selected))

            source_path = os.path.normpath(os.path.join(source_root, item.relative_path))
            dest_path = os.path.normpath(os.path.join(dest_root, item.relative_path))

            if (
                not is_within(source_root, source_path)
                or not is_within(dest_root, dest_path)
                or not self._parent_is_inside(source_root, source_path)
            ):
                logger.warning(f"Refusing to copy {item.relative_path!r}: outside allowed directory")
                failed.append((item.relative_path, REASON_OUTSIDE_ROOT))
                continue

            try:
                if item.kind == FileKind.DIRECTORY:
                    self._copy_directory(source_path, dest_path, source_root, cancel_event)
                else:
                    self._copy_file(source_path, dest_path, source_root)
                succeeded.append(item.relative_path)
                logger.debug(f"Copied {item.relative_path}")
            except _LinkOutsideRoot:
                logger.warning(f"Refusing to copy {item.relative_path!r}: symlink points outside allowed directory")
                failed.append((item.relative_path, REASON_LINK_OUTSIDE_ROOT))
            except _CopyCancelled:
                failed.append((item.relative_path, "Cancelled during copy"))
                failed.extend((rest.relative_path, REASON_CANCELLED) for rest in selected[index + 1:])
                logger.info("Copy cancelled during directory copy")
                break
            except Exception as e:
                reason = describe_copy_error(e)
                logger.warning(f"Failed to copy {item.relative_path}: {reason}")
                failed.append((item.relative_path, reason))

        logger.info(f"Copied {len(succeeded)} of {len(selected)} items ({len(failed)} failed)")
        return CopyOutcome(succeeded=tuple(succeeded), failed=tuple(failed))

    @staticmethod
    def _parent_is_inside(root: str, path: str) -> bool:
        """Reject paths reached through a symlinked parent directory that leaves root."""
        real_root = os.path.realpath(root)
        real_parent = os.path.realpath(os.path.dirname(path))
        return real_parent == real_root or is_within(real_root, real_parent)

    def _copy_file(self, source: str, dest: str, source_root: str) -> None:
        """Copy a single file, creating parent directories if needed."""
        if os.path.islink(source):
            if not self._copy_link(source, dest, source_root):
                raise _LinkOutsideRoot()
            return
        if not os.path.lexists(source):
            raise FileNotFoundError(2, "No such file or directory", source)
        os.makedirs(os.path.dirname(dest), exist_ok=True)
        shutil.copy2(source, dest)

    def _copy_link(self, source: str, dest: str, source_root: str) -> bool:
        """Recreate a symlink whose target stays inside source_root.

        Absolute targets are rewritten relative to the link's directory so the
        copy resolves inside the destination tree. Returns False, without
        touching dest, when the link leaves source_root.
        """
        target = os.path.realpath(source)
        if not is_within(os.path.realpath(source_root), target):
            logger.warning(f"Skipping symlink pointing outside the repository: {source}")
            return False
        os.makedirs(os.path.dirname(dest), exist_ok=True)
        if os.path.lexists(dest):
            if os.path.isdir(dest) and not os.path.islink(dest):
                shutil.rmtree(dest)
            else:
                os.unlink(dest)
        if os.path.isabs(os.readlink(source)):
            link_dir = os.path.realpath(os.path.dirname(source))
            os.symlink(os.path.relpath(target, link_dir), dest)
        else:
            shutil.copy2(source, dest, follow_symlinks=False)
        return True

    def _copy_directory(
        self,
        source: str,
        dest: str,
        source_root: str,
        cancel_event: Optional[Event],
    ) -> None:
        """Recursively copy a directory without following symbolic links."""
        if not os.path.isdir(source):
            raise FileNotFoundError(2, "No such file or directory", source)

        def on_walk_error(error: OSError) -> None:
            raise error

        for dirpath, dirnames, filenames in os.walk(source, onerror=on_walk_error, followlinks=False):
            target_dir = os.path.join(dest, os.path.relpath(dirpath, source))
            os.makedirs(target_dir, exist_ok=True)

            # os.walk lists symlinked directories but does not descend into them
            for name in [d for d in dirnames if os.path.islink(os.path.join(dirpath, d))]:
                self._copy_link(os.path.join(dirpath, name), os.path.join(target_dir, name), source_root)

            for name in filenames:
                if cancel_event is not None and cancel_event.is_set():
                    raise _CopyCancelled()
                source_file = os.path.join(dirpath, name)
                target_file = os.path.join(target_dir, name)
                if os.path.islink(source_file):
                    self._copy_link(source_file, target_file, source_root)
                elif os.path.isfile(source_file):
                    shutil.copy2(source_file, target_file)
                else:
                    logger.debug(f"Skipping special file {source_file}")
