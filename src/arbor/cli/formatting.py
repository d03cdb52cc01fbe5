"""Rich formatting helpers for the Arbor CLI.

Provides functions that format SDK data structures for terminal display.
Rich auto-detects TTY and degrades gracefully when piped (no ANSI codes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.table import Table

if TYPE_CHECKING:
    from arbor.models.commit import CommitInfo
    from arbor.models.objects import TreeEntry


def get_console() -> Console:
    """Create a Rich Console that auto-detects TTY for graceful pipe degradation."""
    return Console(stderr=False)


def format_log_compact(entries: list[CommitInfo], console: Console) -> None:
    """Display commit log in compact table format."""
    if not entries:
        console.print("[dim]No commits.[/dim]")
        return

    table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
    table.add_column("Hash", style="yellow", width=8)
    table.add_column("Time", style="dim")
    table.add_column("Author", style="cyan")
    table.add_column("Message")

    for entry in entries:
        table.add_row(
            entry.commit_hash[:8],
            entry.author.when.strftime("%Y-%m-%d %H:%M"),
            escape(entry.author.name),
            escape(entry.summary),
        )

    console.print(table)


def format_log_verbose(entries: list[CommitInfo], console: Console) -> None:
    """Display commit log with full details, like ``git log``."""
    if not entries:
        console.print("[dim]No commits.[/dim]")
        return

    for i, entry in enumerate(entries):
        if i > 0:
            console.print()
        console.print(f"[yellow]commit {entry.commit_hash}[/yellow]")
        if len(entry.parent_hashes) > 1:
            console.print(f"Merge:  {' '.join(p[:8] for p in entry.parent_hashes)}")
        console.print(f"Author: {escape(str(entry.author))}", highlight=False)
        console.print(f"Date:   {entry.author.when.strftime('%a %b %d %H:%M:%S %Y %z')}")
        if entry.is_signed:
            console.print("Signed: [green]yes[/green]")
        console.print()
        for line in entry.message.splitlines():
            console.print(f"    {escape(line)}", highlight=False)


def format_tree(entries: list[TreeEntry], console: Console) -> None:
    """Display tree entries like ``git ls-tree``."""
    for entry in entries:
        console.print(
            f"{entry.mode.value:0>6} {entry.mode.object_type} {entry.hash}\t{escape(entry.name)}",
            highlight=False,
        )


def format_error(message: str, console: Console) -> None:
    """Display an error message."""
    console.print(f"[red]Error:[/red] {escape(message)}", highlight=False)
