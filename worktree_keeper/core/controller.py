"""Serialized controller holding the immutable worktree state.

Every operation is submitted to a single-worker executor (the lane). The
``WorktreeState`` snapshot is only ever replaced from that lane, so
completions never interleave their writes. Listeners receive each new
snapshot on the lane thread.
"""

from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import replace
from threading import Event, Lock
from typing import Callable, List, Optional

from worktree_keeper.core.worktree_manager import SelectionCallback, WorktreeManager
from worktree_keeper.logging_config import get_logger
from worktree_keeper.models.ignored_file import IgnoredFileEntry
from worktree_keeper.models.state import WorktreeState
from worktree_keeper.models.worktree import PropagationOutcome
from worktree_keeper.services.error_mapper import map_to_structured_error
from worktree_keeper.utils.threading import RefreshDebouncer

logger = get_logger(__name__)

StateListener = Callable[[WorktreeState], None]


class WorktreeController:
    """Runs worktree operations off the caller's thread and publishes state snapshots."""

    def __init__(self, manager: WorktreeManager, debounce_seconds: Optional[float] = None):
        self.manager = manager
        if debounce_seconds is None:
            debounce_seconds = manager.config.debounce_seconds
        self._state = WorktreeState()
        self._state_lock = Lock()
        self._listeners: List[StateListener] = []
        self._lane = ThreadPoolExecutor(max_workers=1, thread_name_prefix="worktree-lane")
        self._debouncer = RefreshDebouncer(debounce_seconds, self.refresh)

    @property
    def state(self) -> WorktreeState:
        with self._state_lock:
            return self._state

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a listener; returns a function that unregisters it."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def _update(self, change: Callable[[WorktreeState], WorktreeState]) -> None:
        """Replace the snapshot. Only called from the lane."""
        with self._state_lock:
            self._state = change(self._state)
            snapshot = self._state
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                logger.error(f"State listener failed: {e}")

    # Refresh

    def request_refresh(self) -> None:
        """Debounced refresh for change notifications."""
        self._debouncer.request_refresh()

    def refresh(self) -> Future:
        return self._lane.submit(self._refresh)

    def _refresh(self):
        self._update(lambda s: replace(s, is_loading=True, error=None))
        try:
            worktrees = self.manager.list_worktrees()
        except Exception as e:
            logger.warning(f"Failed to load worktrees: {e}")
            self._update(lambda s: replace(s, is_loading=False, error=map_to_structured_error(e)))
            raise
        self._update(lambda s: replace(s, worktrees=tuple(worktrees), is_loading=False))
        return worktrees

    # Mutations

    def create_worktree(self, name: str, branch: Optional[str] = None, create_new_branch: Optional[bool] = True) -> Future:
        return self._lane.submit(self._mutate, self.manager.create_worktree, name, branch, create_new_branch)

    def delete_worktree(self, path: str, branch: Optional[str] = None) -> Future:
        return self._lane.submit(self._mutate, self.manager.delete_worktree, path, branch)

    def _mutate(self, operation, *args):
        try:
            outcome = operation(*args)
        except Exception as e:
            self._update(lambda s: replace(s, error=map_to_structured_error(e)))
            raise
        self._refresh_quietly()
        return outcome

    def _refresh_quietly(self) -> None:
        try:
            self._refresh()
        except Exception:
            # Already recorded in state.error
            pass

    # Ignored files workflow

    def scan_ignored(self, cancel_event: Optional[Event] = None) -> Future:
        return self._lane.submit(self._scan, cancel_event)

    def _scan(self, cancel_event: Optional[Event]) -> List[IgnoredFileEntry]:
        self._update(lambda s: replace(s, is_scanning=True, scan_error=None, ignored_files=()))
        try:
            entries = self.manager.scan_ignored(cancel_event)
        except Exception as e:
            self._update(lambda s: replace(s, is_scanning=False, scan_error=map_to_structured_error(e)))
            raise
        self._update(lambda s: replace(s, is_scanning=False, ignored_files=tuple(entries)))
        return entries

    def create_with_ignored_files(
        self,
        name: str,
        branch: Optional[str] = None,
        create_new_branch: Optional[bool] = True,
        select: Optional[SelectionCallback] = None,
        cancel_event: Optional[Event] = None,
    ) -> Future:
        return self._lane.submit(
            self._create_with_ignored_files, name, branch, create_new_branch, select, cancel_event
        )

    def _create_with_ignored_files(self, name, branch, create_new_branch, select, cancel_event) -> PropagationOutcome:
        self._update(lambda s: replace(s, is_scanning=True, scan_error=None, copy_outcome=None))
        try:
            outcome = self.manager.create_with_ignored_files(
                name, branch, create_new_branch, select, cancel_event
            )
        except Exception as e:
            error = map_to_structured_error(e)
            self._update(lambda s: replace(s, is_scanning=False, error=error))
            raise
        self._update(lambda s: replace(s, is_scanning=False, copy_outcome=outcome.copy))
        self._refresh_quietly()
        return outcome

    def wait_idle(self, timeout: Optional[float] = None) -> None:
        """Block until everything submitted so far has run."""
        self._lane.submit(lambda: None).result(timeout)

    def close(self) -> None:
        self._debouncer.cancel()
        self._lane.shutdown(wait=True)

