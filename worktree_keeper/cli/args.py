"""Command-line argument parsing for git-worktree-keeper."""

import argparse
from worktree_keeper.__version__ import __version__


def _add_selection_args(parser: argparse.ArgumentParser) -> None:
    group = parser.add_mutually_exclusive_group()
    group.add_argument(
        "--select",
        nargs="+",
        metavar="PATTERN",
        help="Copy ignored entries matching these glob patterns (skips the prompt)",
    )
    group.add_argument("--all", action="store_true", help="Copy every ignored entry")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="git-worktree-keeper",
        description="Manage git worktrees and copy ignored files (.env, caches, IDE config) into new ones",
    )
    parser.add_argument("--version", action="version", version=f"git-worktree-keeper {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show verbose output")
    parser.add_argument(
        "--debug", action="store_true", help="Show debug information for troubleshooting"
    )
    parser.add_argument("--repo", default=".", help="Path inside the repository (default: current directory)")
    parser.add_argument("--config", metavar="FILE", help="JSON config file")

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.required = True

    subparsers.add_parser("list", help="List worktrees")

    create = subparsers.add_parser("create", help="Create a worktree next to the repository")
    create.add_argument("name", help="Worktree name; the directory becomes <repo>-<name>")
    create.add_argument("-b", "--branch", help="Branch name (default: the worktree name)")
    create.add_argument(
        "--existing-branch",
        action="store_true",
        help="Require an existing branch (default: attach it if it exists, create it otherwise)",
    )
    create.add_argument(
        "--copy-ignored",
        action="store_true",
        default=None,
        help="Scan ignored files and copy a selection into the new worktree",
    )
    _add_selection_args(create)

    delete = subparsers.add_parser("delete", help="Remove a worktree")
    delete.add_argument("path", help="Path of the worktree to remove")
    delete.add_argument(
        "--delete-branch",
        action="store_true",
        default=None,
        help="Also delete the worktree's branch (best-effort)",
    )

    subparsers.add_parser("scan", help="List ignored files that could be copied")

    copy = subparsers.add_parser("copy", help="Copy ignored files into an existing worktree")
    copy.add_argument("dest", help="Destination worktree root")
    _add_selection_args(copy)

    subparsers.add_parser("prune", help="Prune metadata of worktrees whose directories are gone")

    watch = subparsers.add_parser("watch", help="Re-list worktrees whenever they change")
    watch.add_argument(
        "--interval", type=float, default=1.0, help="Polling interval in seconds (default: 1.0)"
    )

    return parser


def parse_args(argv=None):
    """Parse command-line arguments."""
    return build_parser().parse_args(argv)
