"""Git-related services for git-worktree-keeper."""

from .gateway import CommandResult, GitCommandGateway, find_repository_root
from .planner import compute_target_path, sanitize_worktree_name
from .registry import is_main_worktree_path, parse_worktree_porcelain
from .worktrees import WorktreeService

__all__ = [
    "CommandResult",
    "GitCommandGateway",
    "WorktreeService",
    "compute_target_path",
    "find_repository_root",
    "is_main_worktree_path",
    "parse_worktree_porcelain",
    "sanitize_worktree_name",
]
