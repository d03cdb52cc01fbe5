"""arbor add -- stage working-tree files."""

from __future__ import annotations

import os
from pathlib import Path

import click


def _relative(path: Path, root: Path) -> str:
    # Resolve the directory only; a symlink being staged stays a link.
    return (path.parent.resolve() / path.name).relative_to(root).as_posix()


def _expand(target: Path, skip: set[Path]) -> list[Path]:
    if target.is_dir() and not target.is_symlink():
        return sorted(
            p for p in target.rglob("*")
            if (p.is_symlink() or p.is_file()) and p.resolve() not in skip
        )
    return [target]


@click.command()
@click.argument("paths", nargs=-1, required=True)
@click.option(
    "--root",
    default=".",
    type=click.Path(exists=True, file_okay=False),
    help="Working-tree root that staged paths are relative to.",
)
@click.pass_context
def add(ctx: click.Context, paths: tuple[str, ...], root: str) -> None:
    """Store PATHS as blobs and stage them.

    Directories are added recursively.  The database file itself is
    never staged.
    """
    from arbor.cli import _repo_session
    from arbor.worktree import read_worktree_file

    root_path = Path(root).resolve()
    skip = {Path(ctx.obj["db_path"]).resolve()}
    skip |= {Path(ctx.obj["db_path"] + suffix).resolve() for suffix in ("-wal", "-shm")}

    with _repo_session(ctx) as (repo, console):
        for raw in paths:
            target = Path(root_path, raw) if not os.path.isabs(raw) else Path(raw)
            if not os.path.lexists(target):
                raise click.ClickException(f"pathspec '{raw}' did not match any files")
            for path in _expand(target, skip):
                rel = _relative(path, root_path)
                mode, data = read_worktree_file(path)
                entry = repo.stage_file(rel, data, mode)
                console.print(
                    f"[green]staged[/green] {entry.content_hash[:8]} {rel}",
                    highlight=False,
                )
