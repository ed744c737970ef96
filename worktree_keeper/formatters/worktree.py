"""Worktree and copy outcome formatting utilities."""

from worktree_keeper.constants import KIND_LINKED, KIND_MAIN, KIND_ORPHANED
from worktree_keeper.models.ignored_file import CopyOutcome
from worktree_keeper.models.worktree import CreateOutcome, WorktreeEntry


def get_worktree_kind(entry: WorktreeEntry) -> str:
    """Return main, linked or orphaned for a worktree entry."""
    if entry.is_main:
        return KIND_MAIN
    if entry.is_orphaned:
        return KIND_ORPHANED
    return KIND_LINKED


def format_branch(entry: WorktreeEntry) -> str:
    """Branch name, or a detached marker with the short commit."""
    if entry.branch_name:
        return entry.branch_name
    return f"(detached {entry.short_commit})"


def format_create_outcome(outcome: CreateOutcome) -> str:
    verb = "Created" if outcome.was_created else "Reused existing"
    return f"{verb} worktree at {outcome.resolved_path}"


def format_copy_summary(outcome: CopyOutcome) -> str:
    """
    Summarize a copy outcome in one line.

    Example:
        "Copied 12 of 13 items (1 failed)"
    """
    summary = f"Copied {outcome.success_count} of {outcome.total} items"
    if outcome.has_failures:
        summary += f" ({outcome.failure_count} failed)"
    return summary
