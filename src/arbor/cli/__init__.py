"""Arbor CLI -- terminal interface for building and inspecting commits.

This module is NEVER imported from arbor/__init__.py.
It is only loaded via the ``arbor`` entry point defined in pyproject.toml.
"""

from __future__ import annotations

import os
from contextlib import contextmanager
from typing import TYPE_CHECKING

try:
    import click
except ImportError:
    raise ImportError(
        "CLI dependencies not installed. Install with: pip install arbor[cli]"
    ) from None

from arbor.cli.formatting import format_error, get_console

if TYPE_CHECKING:
    from collections.abc import Iterator

    from rich.console import Console

    from arbor.repo import Repository


@click.group()
@click.option(
    "--db",
    default=".arbor.db",
    envvar="ARBOR_DB",
    help="Path to arbor database.",
)
@click.option(
    "--repo-id",
    default="default",
    envvar="ARBOR_REPO_ID",
    help="Repository ID within the database.",
)
@click.pass_context
def cli(ctx: click.Context, db: str, repo_id: str) -> None:
    """Arbor: content-addressed commits in a SQLite object store."""
    ctx.ensure_object(dict)
    ctx.obj["db_path"] = db
    ctx.obj["repo_id"] = repo_id


def _get_repo(ctx: click.Context, *, create: bool = False, root: str | None = None) -> "Repository":  # noqa: F821 (forward ref)
    """Open a Repository from Click context.

    Unless *create* is set, the database must already exist.  *root*
    enables working-tree scanning for ``commit -a``.
    """
    from arbor.exceptions import RepositoryNotFoundError
    from arbor.repo import Repository
    from arbor.worktree import FilesystemScanner

    db_path = ctx.obj["db_path"]
    if not create and not os.path.exists(db_path):
        raise RepositoryNotFoundError(f"Database not found: {db_path} (run 'arbor init')")

    scanner = FilesystemScanner(root) if root is not None else None
    return Repository.open(path=db_path, repo_id=ctx.obj["repo_id"], scanner=scanner)


@contextmanager
def _repo_session(
    ctx: click.Context, *, create: bool = False, root: str | None = None
) -> Iterator[tuple[Repository, Console]]:
    """Context manager that opens a Repository, yields (repo, console), and handles cleanup.

    Ensures the repository is closed on exit and formats exceptions as
    CLI errors.
    """
    console = get_console()
    try:
        repo = _get_repo(ctx, create=create, root=root)
        try:
            yield repo, console
        finally:
            repo.close()
    except SystemExit:
        raise
    except Exception as e:
        format_error(str(e), console)
        raise SystemExit(1) from None


# Register subcommands after cli group is defined
from arbor.cli.commands.init import init  # noqa: E402
from arbor.cli.commands.config import config  # noqa: E402
from arbor.cli.commands.add import add  # noqa: E402
from arbor.cli.commands.commit import commit  # noqa: E402
from arbor.cli.commands.log import log  # noqa: E402
from arbor.cli.commands.objects import cat_file, ls_tree  # noqa: E402
from arbor.cli.commands.checkout import checkout  # noqa: E402

cli.add_command(init)
cli.add_command(config)
cli.add_command(add)
cli.add_command(commit)
cli.add_command(log)
cli.add_command(cat_file)
cli.add_command(ls_tree)
cli.add_command(checkout)
