"""Tests for TreeBuilder.

Covers determinism, the empty-commit gate, canonical ordering, path
conflicts, and write deduplication.
"""

from __future__ import annotations

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st
from sqlalchemy.orm import sessionmaker

from arbor.engine.hashing import EMPTY_TREE_HASH, blob_hash, object_hash
from arbor.engine.objects import decode_tree
from arbor.engine.tree import TreeBuilder
from arbor.exceptions import CommitValidationError, EmptyCommitError, PathConflictError
from arbor.models.objects import FileMode, StagedEntry, TreeEntry
from arbor.storage.engine import create_arbor_engine, init_db
from arbor.storage.sqlite import SqliteObjectRepository

from tests.strategies import staged_entries

H1 = blob_hash(b"hello\n")
H2 = blob_hash(b"world\n")


def _entry(path: str, content_hash: str = H1, mode: FileMode = FileMode.REGULAR) -> StagedEntry:
    return StagedEntry(path=path, mode=mode, content_hash=content_hash)


def _fresh_object_repo() -> SqliteObjectRepository:
    eng = create_arbor_engine(":memory:")
    init_db(eng)
    return SqliteObjectRepository(sessionmaker(bind=eng)())


def _read_tree(object_repo, digest: str) -> list[TreeEntry]:
    obj_type, body = object_repo.get(digest)
    assert obj_type == "tree"
    return decode_tree(body)


class TestEmptyCommitGate:
    """Empty staged sets."""

    def test_empty_rejected_by_default(self, object_repo) -> None:
        with pytest.raises(EmptyCommitError, match="clean working tree"):
            TreeBuilder(object_repo).build([])

    def test_empty_allowed_yields_empty_tree(self, object_repo) -> None:
        digest = TreeBuilder(object_repo).build([], allow_empty_commits=True)
        assert digest == EMPTY_TREE_HASH
        assert object_repo.exists(EMPTY_TREE_HASH)


class TestBuild:
    """Tree shape and persistence."""

    def test_single_file(self, object_repo) -> None:
        digest = TreeBuilder(object_repo).build([_entry("README")])
        expected_body = b"100644 README\x00" + bytes.fromhex(H1)
        assert digest == object_hash("tree", expected_body)
        assert _read_tree(object_repo, digest) == [
            TreeEntry(name="README", mode=FileMode.REGULAR, hash=H1)
        ]

    def test_nested_directories_are_persisted(self, object_repo) -> None:
        digest = TreeBuilder(object_repo).build(
            [_entry("src/pkg/mod.py"), _entry("src/main.py", H2), _entry("README")]
        )
        root = _read_tree(object_repo, digest)
        assert [(e.name, e.mode) for e in root] == [
            ("README", FileMode.REGULAR),
            ("src", FileMode.DIRECTORY),
        ]
        src = _read_tree(object_repo, root[1].hash)
        assert [e.name for e in src] == ["main.py", "pkg"]
        pkg = _read_tree(object_repo, src[1].hash)
        assert pkg == [TreeEntry(name="mod.py", mode=FileMode.REGULAR, hash=H1)]

    def test_directory_inserted_once(self, object_repo) -> None:
        digest = TreeBuilder(object_repo).build(
            [_entry("dir/a"), _entry("dir/b"), _entry("dir/c")]
        )
        root = _read_tree(object_repo, digest)
        assert len(root) == 1
        assert len(_read_tree(object_repo, root[0].hash)) == 3

    def test_modes_preserved(self, object_repo) -> None:
        digest = TreeBuilder(object_repo).build(
            [
                _entry("run.sh", mode=FileMode.EXECUTABLE),
                _entry("link", blob_hash(b"run.sh"), FileMode.SYMLINK),
                _entry("vendor", "1" * 40, FileMode.SUBMODULE),
            ]
        )
        modes = {e.name: e.mode for e in _read_tree(object_repo, digest)}
        assert modes == {
            "link": FileMode.SYMLINK,
            "run.sh": FileMode.EXECUTABLE,
            "vendor": FileMode.SUBMODULE,
        }

    def test_canonical_ordering_in_root(self, object_repo) -> None:
        digest = TreeBuilder(object_repo).build(
            [_entry("b"), _entry("a/x"), _entry("a.txt"), _entry("a-b")]
        )
        assert [e.name for e in _read_tree(object_repo, digest)] == ["a-b", "a.txt", "a", "b"]

    def test_builder_is_reusable(self, object_repo) -> None:
        builder = TreeBuilder(object_repo)
        first = builder.build([_entry("a")])
        second = builder.build([_entry("b")])
        assert first != second
        assert [e.name for e in _read_tree(object_repo, second)] == ["b"]


class TestPathConflicts:
    """A path cannot be both a file and a directory."""

    def test_file_then_directory(self, object_repo) -> None:
        with pytest.raises(PathConflictError) as exc_info:
            TreeBuilder(object_repo).build([_entry("b"), _entry("a"), _entry("a/x")])
        assert exc_info.value.path == "a"

    def test_directory_then_file(self, object_repo) -> None:
        with pytest.raises(PathConflictError, match="already a directory"):
            TreeBuilder(object_repo).build([_entry("a/x"), _entry("a")])

    def test_duplicate_path(self, object_repo) -> None:
        with pytest.raises(PathConflictError, match="more than once"):
            TreeBuilder(object_repo).build([_entry("a", H1), _entry("a", H2)])

    def test_is_a_validation_error(self, object_repo) -> None:
        with pytest.raises(CommitValidationError):
            TreeBuilder(object_repo).build([_entry("a/b/c"), _entry("a/b")])

    def test_nothing_written_on_conflict(self, object_repo) -> None:
        builder = TreeBuilder(object_repo)
        with pytest.raises(PathConflictError):
            builder.build([_entry("a"), _entry("a/x")])
        assert builder.writes == 0


class TestDeduplication:
    """Identical trees are stored once."""

    def test_rebuild_against_populated_store_writes_nothing(self, object_repo) -> None:
        entries = [_entry("src/a.py"), _entry("src/b.py", H2), _entry("docs/index.md")]
        first = TreeBuilder(object_repo)
        digest = first.build(entries)
        assert first.writes == 3

        second = TreeBuilder(object_repo)
        assert second.build(entries) == digest
        assert second.writes == 0

    def test_fresh_store_gives_same_digest(self, object_repo) -> None:
        entries = [_entry("src/a.py"), _entry("README", H2)]
        populated = TreeBuilder(object_repo)
        populated.build(entries)
        rebuilt = TreeBuilder(object_repo)

        assert TreeBuilder(_fresh_object_repo()).build(entries) == rebuilt.build(entries)
        assert rebuilt.writes == 0

    def test_identical_subtrees_stored_once(self, object_repo) -> None:
        builder = TreeBuilder(object_repo)
        builder.build([_entry("left/file"), _entry("right/file")])
        # root + one shared subtree
        assert builder.writes == 2


class TestDeterminism:
    """Insertion order never changes the root digest."""

    @settings(max_examples=50, suppress_health_check=[HealthCheck.function_scoped_fixture])
    @given(data=st.data(), entries=staged_entries())
    def test_permutation_invariant(self, object_repo, data, entries) -> None:
        shuffled = data.draw(st.permutations(entries))
        assert TreeBuilder(object_repo).build(shuffled) == TreeBuilder(object_repo).build(entries)

    @settings(max_examples=30, suppress_health_check=[HealthCheck.function_scoped_fixture])
    @given(entries=staged_entries())
    def test_root_entries_sorted(self, object_repo, entries) -> None:
        digest = TreeBuilder(object_repo).build(entries)
        root = _read_tree(object_repo, digest)
        keys = [e.sort_key for e in root]
        assert keys == sorted(keys)
        assert len({e.name for e in root}) == len(root)
