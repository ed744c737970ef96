"""Service for detecting files and directories ignored by the repository.

Uses ``git status --ignored --porcelain=v2`` so that every ignore source is
honoured (nested .gitignore files, .git/info/exclude and the global excludes
file). Requires git 2.11.0+ for porcelain v2.
"""

import codecs
import os
import posixpath
from concurrent.futures import ThreadPoolExecutor
from threading import Event
from typing import Iterable, List, Optional, TYPE_CHECKING, Union

from worktree_keeper.constants import IGNORED_STATUS_PREFIX, MIN_GIT_VERSION_PORCELAIN_V2
from worktree_keeper.exceptions import (
    GitCommandFailedError,
    OperationCancelledError,
    ScanFailedError,
)
from worktree_keeper.logging_config import get_logger
from worktree_keeper.models.ignored_file import FileKind, IgnoredFileEntry
from worktree_keeper.services.git.gateway import GitCommandGateway
from worktree_keeper.utils.threading import get_optimal_worker_count

if TYPE_CHECKING:
    from worktree_keeper.config import Config

logger = get_logger(__name__)


def unquote_path(path: str) -> str:
    """Undo git's C-style quoting of paths with unusual characters."""
    if len(path) >= 2 and path.startswith('"') and path.endswith('"'):
        raw = codecs.escape_decode(path[1:-1].encode("utf-8"))[0]
        return raw.decode("utf-8", errors="surrogateescape")
    return path


def is_safe_relative_path(path: str) -> bool:
    """True for a relative path that stays inside its root once normalized."""
    if not path or os.path.isabs(path) or path.startswith("/"):
        return False
    normalized = posixpath.normpath(path.replace("\\", "/"))
    return normalized != ".." and not normalized.startswith("../")


def parse_ignored_paths(lines: Iterable[str]) -> List[str]:
    """Extract relative paths from lines carrying the ignored marker."""
    paths = []
    for line in lines:
        if not line.startswith(IGNORED_STATUS_PREFIX):
            continue
        path = unquote_path(line[len(IGNORED_STATUS_PREFIX):].strip())
        # Directories are reported with a trailing slash
        path = path.rstrip("/")
        if not path:
            continue
        if not is_safe_relative_path(path):
            logger.debug(f"Skipping unsafe ignored path: {path!r}")
            continue
        paths.append(path)
    return paths


class IgnoredFilesService:
    """Discovers ignored entries in a repository and describes them."""

    def __init__(
        self,
        gateway: GitCommandGateway,
        config: Optional[Union["Config", dict]] = None,
    ):
        """Initialize the service.

        Args:
            gateway: Gateway bound to the repository root to scan
            config: Configuration dictionary or Config object
        """
        config = config or {}
        self.gateway = gateway
        self.repo_root = gateway.repo_root
        self.sequential = config.get("sequential", False)
        self.workers = config.get("workers", None)

    def scan(self, cancel_event: Optional[Event] = None) -> List[IgnoredFileEntry]:
        """Scan the repository for ignored files and directories.

        Paths that vanish between the status query and the stat are dropped.

        Args:
            cancel_event: Set by the caller to stop before the next stat

        Returns:
            Ignored entries in git's output order, empty when nothing is ignored

        Raises:
            ScanFailedError: If the status query itself fails
            OperationCancelledError: If cancel_event is set during the scan
        """
        self.gateway.ensure_version(MIN_GIT_VERSION_PORCELAIN_V2, "Ignored file scan")

        try:
            result = self.gateway.status_ignored().raise_for_status("git status --ignored")
        except GitCommandFailedError as e:
            logger.error(f"Ignored file scan failed: {e}")
            raise ScanFailedError(self.repo_root, e) from e

        relative_paths = parse_ignored_paths(result.stdout_lines)
        logger.debug(f"git reported {len(relative_paths)} ignored paths")
        if not relative_paths:
            return []

        def describe(relative_path: str) -> Optional[IgnoredFileEntry]:
            if cancel_event is not None and cancel_event.is_set():
                raise OperationCancelledError("scan ignored files")
            return self._describe(relative_path)

        if self.sequential or len(relative_paths) == 1:
            described = [describe(path) for path in relative_paths]
        else:
            workers = min(get_optimal_worker_count(self.workers), len(relative_paths))
            with ThreadPoolExecutor(max_workers=workers) as executor:
                # map() keeps git's ordering
                described = list(executor.map(describe, relative_paths))

        entries = [entry for entry in described if entry is not None]
        logger.info(f"Found {len(entries)} ignored entries in {self.repo_root}")
        return entries

    def _describe(self, relative_path: str) -> Optional[IgnoredFileEntry]:
        """Stat one path; None if it no longer exists."""
        absolute_path = os.path.join(self.repo_root, relative_path)
        if not os.path.lexists(absolute_path):
            logger.debug(f"Ignored path disappeared before stat: {relative_path}")
            return None

        if os.path.isdir(absolute_path) and not os.path.islink(absolute_path):
            return IgnoredFileEntry(relative_path=relative_path, kind=FileKind.DIRECTORY)

        try:
            size = os.path.getsize(absolute_path)
        except OSError as e:
            logger.debug(f"Could not read size of {relative_path}: {e}")
            size = None

        return IgnoredFileEntry(relative_path=relative_path, kind=FileKind.FILE, size_bytes=size)
