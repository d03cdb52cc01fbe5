"""arbor config -- read or set user identity."""

from __future__ import annotations

import click


@click.command()
@click.argument("key")
@click.argument("value", required=False)
@click.pass_context
def config(ctx: click.Context, key: str, value: str | None) -> None:
    """Get or set a configuration KEY (user.name, user.email)."""
    from arbor.cli import _repo_session

    with _repo_session(ctx) as (repo, console):
        if value is None:
            current = repo.get_config(key)
            if current is None:
                raise SystemExit(1)
            click.echo(current)
        else:
            repo.set_config(key, value)
