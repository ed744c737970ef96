"""Command-line entry point for git-worktree-keeper"""

import os
import sys
import time
from fnmatch import fnmatch
from typing import Callable, List, Optional, Tuple

from rich.console import Console
from rich.progress import Progress

from worktree_keeper.config import Config, load_config
from worktree_keeper.core import SelectionCallback, WorktreeController, WorktreeManager
from worktree_keeper.exceptions import WorktreeKeeperError
from worktree_keeper.formatters import format_create_outcome, map_ui_error
from worktree_keeper.logging_config import get_logger, setup_logging
from worktree_keeper.models.ignored_file import IgnoredFileEntry
from worktree_keeper.models.state import WorktreeState
from worktree_keeper.services.display_service import DisplayService
from worktree_keeper.services.git import find_repository_root
from worktree_keeper.utils.threading import get_threading_info

from .args import parse_args

console = Console()
logger = get_logger(__name__)

OPERATION_NAMES = {
    "list": "list worktrees",
    "create": "create worktree",
    "delete": "delete worktree",
    "scan": "scan ignored files",
    "copy": "copy ignored files",
    "prune": "prune worktrees",
    "watch": "watch worktrees",
}


def build_selector(args, display: DisplayService) -> SelectionCallback:
    """Pick entries from --all/--select, an interactive prompt, or the configured defaults."""
    if getattr(args, "all", False):
        return lambda entries: [entry.with_selected(True) for entry in entries]

    patterns = getattr(args, "select", None)
    if patterns:
        def select_by_pattern(entries: List[IgnoredFileEntry]) -> List[IgnoredFileEntry]:
            return [
                entry.with_selected(entry.selected or any(fnmatch(entry.relative_path, p) for p in patterns))
                for entry in entries
            ]
        return select_by_pattern

    if sys.stdin.isatty():
        return display.prompt_selection

    # Non-interactive: copy only what the config pre-selected
    return lambda entries: entries


def _with_progress(run: Callable[[Callable[[str, int, int], None]], object], quiet: bool):
    """Run ``run(on_progress)`` while showing a copy progress bar."""
    if quiet:
        return run(lambda *_: None)
    with Progress(console=console, transient=True) as progress:
        task = progress.add_task("Copying", total=None)

        def on_progress(relative_path: str, index: int, total: int) -> None:
            progress.update(task, total=total, completed=index, description=f"Copying {relative_path}")

        return run(on_progress)


def _metadata_signature(common_dir: str) -> Tuple:
    """Cheap fingerprint of the worktree registry for change polling."""
    parts = []
    for name in ("HEAD", "worktrees"):
        try:
            parts.append((name, os.stat(os.path.join(common_dir, name)).st_mtime_ns))
        except FileNotFoundError:
            parts.append((name, None))
    try:
        with os.scandir(os.path.join(common_dir, "worktrees")) as it:
            for entry in sorted(it, key=lambda e: e.name):
                try:
                    head_mtime = os.stat(os.path.join(entry.path, "HEAD")).st_mtime_ns
                except FileNotFoundError:
                    head_mtime = None
                parts.append((entry.name, head_mtime))
    except FileNotFoundError:
        pass
    return tuple(parts)


def _watch(manager: WorktreeManager, display: DisplayService, interval: float) -> int:
    controller = WorktreeController(manager)

    def on_state(state: WorktreeState) -> None:
        if state.is_loading:
            return
        if state.error is not None:
            console.print(f"[red]{state.error.message}[/red]")
        else:
            display.display_worktrees(state.worktrees)

    controller.subscribe(on_state)
    common_dir = manager.gateway.common_dir()
    signature = _metadata_signature(common_dir)
    controller.refresh()
    console.print(f"[dim]Watching {common_dir} (Ctrl+C to stop)[/dim]")
    try:
        while True:
            time.sleep(interval)
            current = _metadata_signature(common_dir)
            if current != signature:
                signature = current
                controller.request_refresh()
    except KeyboardInterrupt:
        console.print("\n[yellow]Stopped watching[/yellow]")
    finally:
        controller.close()
    return 0


def run_command(args, config: Config) -> int:
    """Execute the parsed subcommand."""
    display = DisplayService(verbose=config.verbose, debug=config.debug)
    manager = WorktreeManager(args.repo, config)

    if args.command == "list":
        display.display_worktrees(manager.list_worktrees())

    elif args.command == "create":
        branch = args.branch or args.name
        create_new_branch = False if args.existing_branch else None
        copy_ignored = args.copy_ignored if args.copy_ignored is not None else config.copy_ignored_files
        if copy_ignored or args.all or args.select:
            selector = build_selector(args, display)
            outcome = _with_progress(
                lambda on_progress: manager.create_with_ignored_files(
                    args.name, branch, create_new_branch, select=selector, on_progress=on_progress
                ),
                quiet=config.debug,
            )
            display.display_propagation(outcome)
        else:
            outcome = manager.create_worktree(args.name, branch, create_new_branch)
            console.print(f"[green]{format_create_outcome(outcome)}[/green]")

    elif args.command == "delete":
        path = os.path.abspath(args.path)
        delete_branch = (
            args.delete_branch if args.delete_branch is not None else config.delete_branch_with_worktree
        )
        branch: Optional[str] = None
        if delete_branch:
            entry = manager.worktree_service.find_worktree(path)
            branch = entry.branch_name if entry else None
            if branch is None:
                console.print("[yellow]Worktree has no branch to delete[/yellow]")
        outcome = manager.delete_worktree(path, branch)
        display.display_delete_outcome(outcome, branch)

    elif args.command == "scan":
        display.display_ignored_files(manager.scan_ignored())

    elif args.command == "copy":
        entries = manager.scan_ignored()
        if not entries:
            console.print("[green]No ignored files found[/green]")
            return 0
        chosen = build_selector(args, display)(entries)
        selected = [entry for entry in (chosen or []) if entry.selected]
        if not selected:
            console.print("Nothing selected, no files copied")
            return 0
        outcome = _with_progress(
            lambda on_progress: manager.copy_selected(
                manager.repo_root, os.path.abspath(args.dest), selected, on_progress=on_progress
            ),
            quiet=config.debug,
        )
        display.display_copy_outcome(outcome)

    elif args.command == "prune":
        manager.prune_worktrees()
        console.print("[green]Pruned orphaned worktree metadata[/green]")

    elif args.command == "watch":
        return _watch(manager, display, args.interval)

    return 0


def main(argv=None) -> int:
    """Main entry point for the application."""
    parsed_args = None
    try:
        parsed_args = parse_args(argv)
        setup_logging(verbose=parsed_args.verbose, debug=parsed_args.debug)

        try:
            repo_root = find_repository_root(parsed_args.repo)
        except WorktreeKeeperError:
            repo_root = None
        config = load_config(
            repo_root,
            parsed_args.config,
            verbose=parsed_args.verbose or None,
            debug=parsed_args.debug or None,
        )

        if parsed_args.debug:
            console.print("[yellow]Debug mode enabled[/yellow]")
            threading_info = get_threading_info()
            console.print("[yellow]Threading Information:[/yellow]")
            for key, value in threading_info.items():
                console.print(f"  {key}: {value}")
            console.print("[yellow]Configuration:[/yellow]")
            for key, value in config.to_dict().items():
                console.print(f"  {key}: {value}")

        return run_command(parsed_args, config)
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        return 1
    except WorktreeKeeperError as e:
        operation = OPERATION_NAMES.get(getattr(parsed_args, "command", None))
        DisplayService(
            verbose=bool(parsed_args and parsed_args.verbose),
            debug=bool(parsed_args and parsed_args.debug),
        ).display_error(map_ui_error(e, operation))
        return 1
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1


if __name__ == "__main__":
    sys.exit(main())
