"""arbor log -- show first-parent history."""

from __future__ import annotations

import click

from arbor.cli.formatting import format_log_compact, format_log_verbose


@click.command()
@click.option("-n", "--limit", default=20, type=int, help="Maximum number of commits to show.")
@click.option("-v", "--verbose", is_flag=True, help="Show full commit details.")
@click.pass_context
def log(ctx: click.Context, limit: int, verbose: bool) -> None:
    """Show commit history from HEAD backward."""
    from arbor.cli import _repo_session

    with _repo_session(ctx) as (repo, console):
        entries = repo.log(limit=limit)
        if verbose:
            format_log_verbose(entries, console)
        else:
            format_log_compact(entries, console)
