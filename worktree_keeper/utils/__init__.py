"""Utility functions for git-worktree-keeper.

This package provides utility modules:
- threading: worker sizing, per-repository locks and refresh debouncing
"""

from .threading import (
    RefreshDebouncer,
    get_optimal_worker_count,
    get_python_threading_mode,
    get_threading_info,
    is_free_threading_enabled,
    repository_lock,
)

__all__ = [
    "RefreshDebouncer",
    "get_optimal_worker_count",
    "get_python_threading_mode",
    "get_threading_info",
    "is_free_threading_enabled",
    "repository_lock",
]
