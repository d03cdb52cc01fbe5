"""Working-tree scanning for ``commit(all=True)``.

Compares tracked paths under a root directory with their staged
digests and reports the ones that were modified or deleted.  Untracked
files are never reported.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING

from arbor.engine.hashing import blob_hash
from arbor.models.objects import FileMode
from arbor.protocols import ChangedFile, WorktreeChanges

if TYPE_CHECKING:
    from collections.abc import Sequence

    from arbor.models.objects import StagedEntry


def read_worktree_file(path: Path) -> tuple[FileMode, bytes]:
    """Read a working-tree file as (mode, blob data).

    Symlinks are stored as their target path, not the file they point at.
    """
    st = path.lstat()
    mode = FileMode.from_stat(st.st_mode)
    if mode is FileMode.SYMLINK:
        return mode, os.fsencode(os.readlink(path))
    return mode, path.read_bytes()


class FilesystemScanner:
    """WorktreeScanner over a directory on disk."""

    def __init__(self, root: str | os.PathLike[str]) -> None:
        self.root = Path(root)

    def changed_paths(self, entries: Sequence[StagedEntry]) -> WorktreeChanges:
        modified: list[ChangedFile] = []
        deleted: list[str] = []
        for entry in entries:
            if entry.mode is FileMode.SUBMODULE:
                continue
            path = self.root.joinpath(*entry.path.split("/"))
            if not os.path.lexists(path) or path.is_dir() and not path.is_symlink():
                deleted.append(entry.path)
                continue
            mode, data = read_worktree_file(path)
            if blob_hash(data) != entry.content_hash or mode is not entry.mode:
                modified.append(ChangedFile(path=entry.path, mode=mode, data=data))
        return WorktreeChanges(modified=modified, deleted=deleted)
