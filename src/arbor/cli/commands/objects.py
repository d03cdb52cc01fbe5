"""arbor cat-file / ls-tree -- inspect stored objects."""

from __future__ import annotations

import click

from arbor.cli.formatting import format_tree


@click.command("cat-file")
@click.argument("object_hash")
@click.option("-t", "show_type", is_flag=True, help="Show the object type only.")
@click.pass_context
def cat_file(ctx: click.Context, object_hash: str, show_type: bool) -> None:
    """Print a stored object."""
    from arbor.cli import _repo_session

    with _repo_session(ctx) as (repo, console):
        obj_type, body = repo.read_object(object_hash.lower())
        if show_type:
            click.echo(obj_type)
        elif obj_type == "tree":
            format_tree(repo.read_tree(object_hash.lower()), console)
        else:
            click.echo(body, nl=False)


@click.command("ls-tree")
@click.argument("tree_ish", default="HEAD")
@click.pass_context
def ls_tree(ctx: click.Context, tree_ish: str) -> None:
    """List the entries of a tree, or of a commit's tree (default HEAD)."""
    from arbor.cli import _repo_session

    with _repo_session(ctx) as (repo, console):
        if tree_ish == "HEAD":
            if repo.head is None:
                raise click.ClickException("HEAD does not point to a commit yet")
            tree_ish = repo.head
        obj_type, _ = repo.read_object(tree_ish.lower())
        tree_hash = repo.get_commit(tree_ish.lower()).tree_hash if obj_type == "commit" else tree_ish.lower()
        format_tree(repo.read_tree(tree_hash), console)
