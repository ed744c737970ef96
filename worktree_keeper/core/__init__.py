"""Worktree orchestration: the blocking manager and the serialized controller."""

from .worktree_manager import SelectionCallback, WorktreeManager
from .controller import WorktreeController

__all__ = ["SelectionCallback", "WorktreeController", "WorktreeManager"]
