"""Threading utilities: worker sizing, per-repository locks and refresh debouncing."""

import os
import sys
from threading import Lock, RLock, Timer
from typing import Any, Callable, Dict, Optional

from worktree_keeper.logging_config import get_logger

logger = get_logger(__name__)


def is_free_threading_enabled() -> bool:
    """Detect if Python is running with free-threading enabled.

    Returns:
        True if running on Python 3.13+ with GIL disabled (free-threading mode)
        False if running with GIL enabled or Python < 3.13
    """
    try:
        # sys._is_gil_enabled() returns False when GIL is disabled
        # Available in Python 3.13+
        return hasattr(sys, "_is_gil_enabled") and not sys._is_gil_enabled()
    except Exception:
        # Python < 3.13 always has GIL enabled
        return False


def get_python_threading_mode() -> str:
    """Get a description of the current threading mode."""
    if not hasattr(sys, "_is_gil_enabled"):
        return "GIL-enabled (Python < 3.13)"
    return "free-threading" if is_free_threading_enabled() else "GIL-enabled"


def get_optimal_worker_count(user_specified: Optional[int] = None) -> int:
    """Calculate optimal worker count based on threading mode and CPU count.

    Args:
        user_specified: User-specified worker count, if provided

    Returns:
        Optimal number of workers for I/O-bound stat calls
    """
    if user_specified is not None and user_specified > 0:
        return user_specified

    cpu_count = os.cpu_count() or 1

    if is_free_threading_enabled():
        # Free-threading: use more workers, capped to avoid excessive overhead
        return min(64, cpu_count * 2)

    # CPU_count + 4 is a good heuristic for I/O-bound work
    return min(32, cpu_count + 4)


def get_threading_info() -> Dict[str, Any]:
    """Get information about Python threading configuration."""
    return {
        "mode": get_python_threading_mode(),
        "free_threading": is_free_threading_enabled(),
        "cpu_count": os.cpu_count() or 1,
        "optimal_workers": get_optimal_worker_count(),
        "python_version": f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}",
    }


_repository_locks: Dict[str, RLock] = {}
_repository_locks_guard = Lock()


def repository_lock(repo_root: str) -> RLock:
    """Return the process-wide lock serializing mutations of one repository.

    The lock is re-entrant so a workflow holding it can call other
    mutating operations on the same repository.
    """
    key = os.path.normcase(os.path.realpath(repo_root))
    with _repository_locks_guard:
        lock = _repository_locks.get(key)
        if lock is None:
            lock = RLock()
            _repository_locks[key] = lock
        return lock


class RefreshDebouncer:
    """Coalesces refresh requests into a single call after a quiet period.

    Each request cancels the pending timer and schedules a new one, so a
    burst of N requests inside the window produces one ``on_refresh`` call.
    """

    def __init__(self, delay_seconds: float, on_refresh: Callable[[], None]):
        self.delay_seconds = delay_seconds
        self.on_refresh = on_refresh
        self._timer: Optional[Timer] = None
        self._lock = Lock()

    def request_refresh(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            timer = Timer(self.delay_seconds, lambda: self._fire(timer))
            timer.daemon = True
            self._timer = timer
            timer.start()

    def _fire(self, timer: Timer) -> None:
        with self._lock:
            if self._timer is not timer:
                # Superseded by a newer request
                return
            self._timer = None
        try:
            self.on_refresh()
        except Exception as e:
            logger.error(f"Refresh failed: {e}")

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._timer is not None

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = None
