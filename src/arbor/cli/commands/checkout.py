"""arbor checkout -- move HEAD to a branch or a commit."""

from __future__ import annotations

import click


@click.command()
@click.argument("target")
@click.option("--detach", is_flag=True, help="Treat TARGET as a commit and detach HEAD.")
@click.pass_context
def checkout(ctx: click.Context, target: str, detach: bool) -> None:
    """Attach HEAD to branch TARGET, or detach it at commit TARGET.

    Only HEAD moves; staged entries are left as they are.
    """
    from arbor.cli import _repo_session

    with _repo_session(ctx) as (repo, console):
        if detach:
            repo.checkout_detached(target.lower())
            console.print(f"HEAD detached at [yellow]{target[:8]}[/yellow]")
        else:
            repo.switch(target)
            console.print(f"Switched to branch [green]{target}[/green]")
