"""
git-worktree-keeper - Git worktree management with ignored-file propagation
"""

from .__version__ import __version__
from .core import WorktreeController, WorktreeManager
from .cli.main import main

__all__ = ["WorktreeController", "WorktreeManager", "main", "__version__"]
