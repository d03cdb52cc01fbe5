"""arbor init -- create a repository database."""

from __future__ import annotations

import click


@click.command()
@click.option("--name", "user_name", default=None, help="Set user.name for commits.")
@click.option("--email", "user_email", default=None, help="Set user.email for commits.")
@click.pass_context
def init(ctx: click.Context, user_name: str | None, user_email: str | None) -> None:
    """Create the database (if needed) with HEAD on the default branch."""
    from arbor.cli import _repo_session

    with _repo_session(ctx, create=True) as (repo, console):
        if user_name:
            repo.set_config("user.name", user_name)
        if user_email:
            repo.set_config("user.email", user_email)
        console.print(
            f"Initialized arbor repository [green]{repo.repo_id}[/green] "
            f"in {ctx.obj['db_path']} (branch [green]{repo.current_branch}[/green])"
        )
