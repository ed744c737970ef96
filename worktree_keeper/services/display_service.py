"""Display service for worktrees, ignored files and outcomes"""
import re
from typing import List, Optional, Sequence

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from worktree_keeper.constants import (
    CLI_COLORS,
    IGNORED_COLUMNS,
    SYMBOL_MAIN,
    SYMBOL_SELECTED,
    SYMBOL_UNSELECTED,
    WORKTREE_COLUMNS,
)
from worktree_keeper.formatters import (
    UiError,
    format_branch,
    format_copy_summary,
    format_create_outcome,
    format_size,
    get_worktree_kind,
)
from worktree_keeper.logging_config import get_logger
from worktree_keeper.models.ignored_file import CopyOutcome, IgnoredFileEntry
from worktree_keeper.models.worktree import DeleteOutcome, PropagationOutcome, WorktreeEntry

console = Console()
logger = get_logger(__name__)

_RANGE = re.compile(r"^(\d+)\s*-\s*(\d+)$")


def parse_selection(answer: str, count: int) -> Optional[List[int]]:
    """Parse "1,3-5" / "all" into zero-based indexes; None for an empty answer.

    Raises:
        ValueError: If the answer references unknown entries
    """
    answer = answer.strip().lower()
    if not answer:
        return None
    if answer == "all":
        return list(range(count))

    indexes: List[int] = []
    for part in answer.split(","):
        part = part.strip()
        if not part:
            continue
        match = _RANGE.match(part)
        if match:
            start, end = int(match.group(1)), int(match.group(2))
            numbers = range(min(start, end), max(start, end) + 1)
        elif part.isdigit():
            numbers = [int(part)]
        else:
            raise ValueError(f"Not a number or range: {part!r}")
        for number in numbers:
            if not 1 <= number <= count:
                raise ValueError(f"No entry #{number}")
            if number - 1 not in indexes:
                indexes.append(number - 1)
    return indexes


class DisplayService:
    def __init__(self, verbose: bool = False, debug: bool = False):
        self.verbose = verbose
        self.debug_mode = debug

    def display_worktrees(self, worktrees: Sequence[WorktreeEntry]) -> None:
        """Display a table of worktrees."""
        if not worktrees:
            console.print("[yellow]No worktrees found[/yellow]")
            return

        table = Table()
        for col in WORKTREE_COLUMNS:
            table.add_column(col.label)

        for entry in worktrees:
            kind = get_worktree_kind(entry)
            path = escape(f"{entry.path} {SYMBOL_MAIN}" if entry.is_main else entry.path)
            table.add_row(
                path,
                format_branch(entry),
                entry.short_commit,
                kind,
                style=CLI_COLORS.get(kind),
            )
        console.print(table)

    def display_ignored_files(self, entries: Sequence[IgnoredFileEntry]) -> None:
        """Display ignored entries with their selection marks."""
        if not entries:
            console.print("[green]No ignored files found[/green]")
            return

        table = Table()
        table.add_column("")
        for col in IGNORED_COLUMNS:
            table.add_column(col.label)

        for index, entry in enumerate(entries, start=1):
            table.add_row(
                SYMBOL_SELECTED if entry.selected else SYMBOL_UNSELECTED,
                str(index),
                escape(entry.relative_path),
                entry.kind.value,
                format_size(entry),
            )
        console.print(table)

    def prompt_selection(self, entries: List[IgnoredFileEntry]) -> Optional[List[IgnoredFileEntry]]:
        """Ask which entries to copy; None when the user skips copying."""
        self.display_ignored_files(entries)
        while True:
            answer = Prompt.ask(
                "Entries to copy ([cyan]1,3-5[/cyan], [cyan]all[/cyan], empty to skip)",
                default="",
                show_default=False,
            )
            try:
                indexes = parse_selection(answer, len(entries))
            except ValueError as e:
                console.print(f"[red]{e}[/red]")
                continue
            if indexes is None:
                return None
            return [entry.with_selected(i in indexes) for i, entry in enumerate(entries)]

    def display_copy_outcome(self, outcome: CopyOutcome) -> None:
        """Display the copy summary and a table of failures."""
        color = "yellow" if outcome.has_failures else "green"
        console.print(f"[{color}]{format_copy_summary(outcome)}[/{color}]")
        if self.verbose:
            for path in outcome.succeeded:
                console.print(f"  [green]✓[/green] {path}")
        if outcome.has_failures:
            table = Table(title="Failed")
            table.add_column("Path")
            table.add_column("Reason")
            for path, reason in outcome.failed:
                table.add_row(escape(path), escape(reason), style="red")
            console.print(table)

    def display_propagation(self, outcome: PropagationOutcome) -> None:
        console.print(f"[green]{format_create_outcome(outcome.create)}[/green]")
        if not outcome.had_ignored_files:
            console.print("No ignored files to copy")
        elif outcome.selection_cancelled:
            console.print("[yellow]Selection skipped, no files copied[/yellow]")
        elif outcome.copy is None:
            console.print("No files selected, nothing copied")
        else:
            self.display_copy_outcome(outcome.copy)

    def display_delete_outcome(self, outcome: DeleteOutcome, branch: Optional[str]) -> None:
        console.print(f"[green]Removed worktree at {outcome.worktree_path}[/green]")
        if outcome.branch_deleted:
            console.print(f"[green]Deleted branch {branch}[/green]")
        elif outcome.branch_error:
            console.print(f"[yellow]Branch {branch} was kept: {outcome.branch_error}[/yellow]")

    def display_error(self, error: UiError) -> None:
        """Display a user-facing error panel."""
        body = [error.summary]
        if error.actions:
            body.append("")
            body.extend(f"• {action}" for action in error.actions)
        if error.details and (self.verbose or self.debug_mode):
            body.append("")
            body.append(error.details)
        console.print(Panel("\n".join(body), title=f"[red]{error.title}[/red]", border_style="red"))
