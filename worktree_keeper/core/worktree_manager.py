"""Worktree lifecycle orchestration for git-worktree-keeper"""

from contextlib import contextmanager
from fnmatch import fnmatch
from threading import Event
from typing import Callable, List, Optional, Sequence, Union

from worktree_keeper.config import Config
from worktree_keeper.exceptions import UnknownWorktreeError, WorktreeKeeperError
from worktree_keeper.logging_config import get_logger
from worktree_keeper.models.ignored_file import CopyOutcome, IgnoredFileEntry
from worktree_keeper.models.worktree import (
    CreateOutcome,
    DeleteOutcome,
    PropagationOutcome,
    WorktreeEntry,
)
from worktree_keeper.services.file_operations_service import FileOperationsService, ProgressCallback
from worktree_keeper.services.git import GitCommandGateway, WorktreeService, find_repository_root
from worktree_keeper.services.ignored_files_service import IgnoredFilesService
from worktree_keeper.utils.threading import repository_lock

logger = get_logger(__name__)

# Receives the scanned entries and returns them with `selected` set,
# or None when the caller declines to choose.
SelectionCallback = Callable[[List[IgnoredFileEntry]], Optional[Sequence[IgnoredFileEntry]]]


class WorktreeManager:
    """Main class for managing worktrees of one repository.

    All calls block; run them off any UI thread. Mutating operations
    (create, delete, copy) are serialized per repository within the process.
    """

    def __init__(self, repo_path: str, config: Optional[Union[Config, dict]] = None):
        """Initialize WorktreeManager.

        Args:
            repo_path: Path inside the git repository
            config: Configuration dict or Config object

        Raises:
            NoRepositoryError: If repo_path is not inside a git working tree
        """
        if config is None:
            config = Config()
        elif isinstance(config, dict):
            config = Config.from_dict(config)
        self.config = config

        self.repo_root = find_repository_root(repo_path)
        self.gateway = GitCommandGateway(self.repo_root, config.git_executable)
        self.worktree_service = WorktreeService(self.gateway)
        self.ignored_files_service = IgnoredFilesService(self.gateway, config)
        self.file_operations = FileOperationsService()
        self._mutation_lock = repository_lock(self.repo_root)

        logger.debug(f"Worktree manager ready for {self.repo_root}")

    @contextmanager
    def _operation(self, name: str):
        """Wrap unclassified errors raised by an operation."""
        try:
            yield
        except WorktreeKeeperError:
            raise
        except Exception as e:
            logger.error(f"Unexpected error during {name}: {e}")
            raise UnknownWorktreeError(name, e) from e

    def list_worktrees(self) -> List[WorktreeEntry]:
        """List all worktrees with the main worktree flagged."""
        with self._operation("list worktrees"):
            return self.worktree_service.list_worktrees()

    def create_worktree(
        self,
        name: str,
        branch: Optional[str] = None,
        create_new_branch: Optional[bool] = True,
    ) -> CreateOutcome:
        """Create (or reuse) the worktree for ``name``."""
        with self._mutation_lock, self._operation("create worktree"):
            return self.worktree_service.create_worktree(name, branch, create_new_branch)

    def delete_worktree(self, path: str, branch: Optional[str] = None) -> DeleteOutcome:
        """Remove the worktree at ``path``; delete ``branch`` too when given."""
        with self._mutation_lock, self._operation("delete worktree"):
            return self.worktree_service.delete_worktree(
                path, branch, force=self.config.force_remove
            )

    def prune_worktrees(self) -> None:
        with self._mutation_lock, self._operation("prune worktrees"):
            self.worktree_service.prune_worktrees()

    def scan_ignored(self, cancel_event: Optional[Event] = None) -> List[IgnoredFileEntry]:
        """Scan for ignored entries, applying the configured exclude and default-select patterns."""
        with self._operation("scan ignored files"):
            entries = self.ignored_files_service.scan(cancel_event)
        return self.apply_patterns(entries)

    def apply_patterns(self, entries: List[IgnoredFileEntry]) -> List[IgnoredFileEntry]:
        exclude = self.config.exclude_patterns
        preselect = self.config.default_selected_patterns
        result = []
        for entry in entries:
            if any(fnmatch(entry.relative_path, pattern) for pattern in exclude):
                logger.debug(f"Excluding {entry.relative_path} from selection")
                continue
            if any(fnmatch(entry.relative_path, pattern) for pattern in preselect):
                entry = entry.with_selected(True)
            result.append(entry)
        return result

    def copy_selected(
        self,
        source_root: str,
        dest_root: str,
        entries: Sequence[IgnoredFileEntry],
        cancel_event: Optional[Event] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> CopyOutcome:
        """Copy the selected entries from source_root into dest_root."""
        with self._mutation_lock, self._operation("copy ignored files"):
            return self.file_operations.copy_items(
                source_root, dest_root, entries, cancel_event, on_progress
            )

    def create_with_ignored_files(
        self,
        name: str,
        branch: Optional[str] = None,
        create_new_branch: Optional[bool] = True,
        select: Optional[SelectionCallback] = None,
        cancel_event: Optional[Event] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> PropagationOutcome:
        """Scan ignored files, let the caller pick, create the worktree and copy the pick.

        Declining the selection only skips the copy; the worktree is still
        created. The copy runs after the create has succeeded (created or
        reused) and is awaited before returning.

        Raises:
            ScanFailedError: If the ignored-file scan fails (nothing is created)
            GitCommandFailedError: If the worktree cannot be created
        """
        entries = self.scan_ignored(cancel_event)

        if not entries:
            logger.info("No ignored files found, creating worktree without copying")
            create = self.create_worktree(name, branch, create_new_branch)
            return PropagationOutcome(create=create, ignored_found=0)

        chosen: Optional[Sequence[IgnoredFileEntry]] = entries
        if select is not None:
            chosen = select(list(entries))
        selection_cancelled = chosen is None
        selected = [entry for entry in (chosen or []) if entry.selected]
        if selection_cancelled:
            logger.info("Selection cancelled, worktree will be created without copying files")

        with self._mutation_lock:
            create = self.create_worktree(name, branch, create_new_branch)
            copy = None
            if selected:
                logger.info(f"Copying {len(selected)} ignored entries to {create.resolved_path}")
                copy = self.copy_selected(
                    self.repo_root, create.resolved_path, selected, cancel_event, on_progress
                )

        return PropagationOutcome(
            create=create,
            ignored_found=len(entries),
            selection_cancelled=selection_cancelled,
            copy=copy,
        )
