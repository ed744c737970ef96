"""Target path planning for new worktrees."""

import os
import re

_PATH_SEPARATORS = re.compile(r"[/\\]+")


def sanitize_worktree_name(name: str) -> str:
    """Make a worktree name safe to use as a single path component.

    Runs of path separators become ``-``; surrounding whitespace is trimmed
    and inner whitespace is kept.

    Raises:
        ValueError: If nothing usable is left of the name
    """
    sanitized = _PATH_SEPARATORS.sub("-", (name or "").strip()).strip("-").strip()
    if not sanitized or sanitized in (".", ".."):
        raise ValueError(f"Invalid worktree name: {name!r}")
    return sanitized


def compute_target_path(repo_root: str, worktree_name: str) -> str:
    """Return ``<parent of repo_root>/<repo dir name>-<worktree_name>``.

    Pure function: the filesystem is not touched.
    """
    root = os.path.abspath(repo_root).rstrip(os.sep) or os.sep
    parent, project_name = os.path.split(root)
    return os.path.join(parent, f"{project_name}-{sanitize_worktree_name(worktree_name)}")
