"""Size formatting utilities."""

from worktree_keeper.models.ignored_file import IgnoredFileEntry


def format_size(entry: IgnoredFileEntry) -> str:
    """
    Format the size of an ignored entry for display.

    Args:
        entry: Ignored file or directory

    Returns:
        "(directory)", "(unknown size)" or a B/KB/MB string
    """
    if entry.is_directory:
        return "(directory)"
    if entry.size_bytes is None:
        return "(unknown size)"
    if entry.size_bytes < 1024:
        return f"{entry.size_bytes} B"
    if entry.size_bytes < 1024 * 1024:
        return f"{entry.size_bytes // 1024} KB"
    return f"{entry.size_bytes // (1024 * 1024)} MB"
