"""Tree builder for Arbor.

Turns a flat list of staged entries into a hierarchy of tree objects
and writes them, bottom-up, to the object store.
"""

from __future__ import annotations

import logging
import posixpath
from typing import TYPE_CHECKING

from arbor.engine.hashing import object_hash
from arbor.engine.objects import Tree
from arbor.exceptions import EmptyCommitError, PathConflictError
from arbor.models.objects import FileMode, TreeEntry

if TYPE_CHECKING:
    from collections.abc import Sequence

    from arbor.models.objects import StagedEntry
    from arbor.storage.repositories import ObjectRepository

logger = logging.getLogger(__name__)

ROOT = ""


class TreeBuilder:
    """Builds and persists the tree objects for a set of staged entries.

    One builder instance handles one build at a time.  Directory nodes
    are kept in a dict keyed by their slash-joined path (``""`` is the
    root); every file and directory path is materialized exactly once.

    Example::

        builder = TreeBuilder(object_repo)
        root_hash = builder.build(index_repo.entries())
    """

    def __init__(self, object_repo: ObjectRepository) -> None:
        self._object_repo = object_repo
        self._trees: dict[str, Tree] = {}
        self._entries: dict[str, TreeEntry] = {}
        self.writes = 0

    def build(
        self,
        entries: Sequence[StagedEntry],
        *,
        allow_empty_commits: bool = False,
    ) -> str:
        """Build the tree for *entries* and return the root tree digest.

        Args:
            entries: Staged entries, in any order.
            allow_empty_commits: If False, an empty entry list is rejected.

        Returns:
            Digest of the root tree.  Every subtree is stored by then.

        Raises:
            EmptyCommitError: If *entries* is empty and empty commits
                are not allowed.
            PathConflictError: If a path is staged twice, or is needed
                both as a file and as a directory.
        """
        if not entries and not allow_empty_commits:
            raise EmptyCommitError()

        self._trees = {ROOT: Tree()}
        self._entries = {}
        self.writes = 0

        for entry in entries:
            self._commit_index_entry(entry)

        root_hash = self._write_tree_recursive(ROOT, self._trees[ROOT])
        logger.debug(
            "Built tree %s from %d entries (%d trees, %d written)",
            root_hash[:12],
            len(entries),
            len(self._trees),
            self.writes,
        )
        return root_hash

    def _commit_index_entry(self, entry: StagedEntry) -> None:
        fullpath = ROOT
        for part in entry.path.split("/"):
            parent = fullpath
            fullpath = posixpath.join(parent, part) if parent else part
            self._materialize(entry, parent, fullpath)

    def _materialize(self, entry: StagedEntry, parent: str, fullpath: str) -> None:
        is_leaf = fullpath == entry.path

        if fullpath in self._trees:
            if is_leaf:
                raise PathConflictError(fullpath, "staged as a file but already a directory")
            return

        if fullpath in self._entries:
            if is_leaf:
                raise PathConflictError(fullpath, "staged more than once")
            raise PathConflictError(fullpath, "staged as a file but needed as a directory")

        name = posixpath.basename(fullpath)
        if is_leaf:
            te = TreeEntry(name=name, mode=entry.mode, hash=entry.content_hash)
            self._entries[fullpath] = te
        else:
            te = TreeEntry(name=name, mode=FileMode.DIRECTORY)
            self._trees[fullpath] = Tree()

        self._trees[parent].entries.append(te)

    def _write_tree_recursive(self, path: str, tree: Tree) -> str:
        tree.sort()
        for entry in tree.entries:
            if not entry.mode.is_directory and entry.hash is not None:
                continue
            child = posixpath.join(path, entry.name) if path else entry.name
            entry.hash = self._write_tree_recursive(child, self._trees[child])

        body = tree.encode()
        digest = object_hash("tree", body)
        if self._object_repo.exists(digest):
            return digest
        self.writes += 1
        return self._object_repo.put("tree", body)
