"""arbor commit -- record staged entries as a new commit."""

from __future__ import annotations

import click
from rich.markup import escape


@click.command()
@click.option("-m", "--message", required=True, help="Commit message.")
@click.option("--amend", is_flag=True, help="Replace the tip commit, reusing its tree.")
@click.option("--allow-empty", is_flag=True, help="Allow a commit with nothing staged.")
@click.option("-a", "--all", "all_", is_flag=True, help="Stage modified and deleted tracked files first.")
@click.option("--root", default=".", type=click.Path(file_okay=False), help="Working-tree root for -a.")
@click.option("--author", default=None, help='Override the author ("Name <email>").')
@click.option(
    "-S",
    "--gpg-sign",
    "gpg_key",
    default=None,
    is_flag=False,
    flag_value="",
    help="Sign the commit with GnuPG (optionally naming the key).",
)
@click.pass_context
def commit(
    ctx: click.Context,
    message: str,
    amend: bool,
    allow_empty: bool,
    all_: bool,
    root: str,
    author: str | None,
    gpg_key: str | None,
) -> None:
    """Create a commit from the staged entries and advance HEAD."""
    from arbor.cli import _repo_session
    from arbor.models.commit import CommitOptions, Signature
    from arbor.signing import GpgSigner

    with _repo_session(ctx, root=root if all_ else None) as (repo, console):
        options = CommitOptions(
            all=all_,
            amend=amend,
            allow_empty_commits=allow_empty,
            author=Signature.parse_identity(author) if author else None,
            signer=GpgSigner(gpg_key or None) if gpg_key is not None else None,
        )
        commit_hash = repo.commit(message, options)
        where = repo.current_branch or "detached HEAD"
        summary = message.splitlines()[0] if message else ""
        console.print(
            f"\\[[green]{escape(where)}[/green] [yellow]{commit_hash[:8]}[/yellow]] {escape(summary)}",
            highlight=False,
        )
