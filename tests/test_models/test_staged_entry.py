"""Tests for FileMode, StagedEntry, and TreeEntry."""

from __future__ import annotations

import stat

import pytest
from pydantic import ValidationError

from arbor.engine.hashing import blob_hash
from arbor.models.objects import FileMode, StagedEntry, TreeEntry

H1 = blob_hash(b"hello\n")


class TestFileMode:
    def test_values_are_tree_octal(self) -> None:
        assert [m.value for m in FileMode] == ["100644", "100755", "120000", "40000", "160000"]

    def test_object_types(self) -> None:
        assert FileMode.REGULAR.object_type == "blob"
        assert FileMode.SYMLINK.object_type == "blob"
        assert FileMode.DIRECTORY.object_type == "tree"
        assert FileMode.SUBMODULE.object_type == "commit"

    @pytest.mark.parametrize(
        "st_mode, expected",
        [
            (stat.S_IFREG | 0o644, FileMode.REGULAR),
            (stat.S_IFREG | 0o755, FileMode.EXECUTABLE),
            (stat.S_IFLNK | 0o777, FileMode.SYMLINK),
            (stat.S_IFDIR | 0o755, FileMode.DIRECTORY),
        ],
    )
    def test_from_stat(self, st_mode: int, expected: FileMode) -> None:
        assert FileMode.from_stat(st_mode) is expected


class TestStagedEntry:
    def test_defaults_to_regular(self) -> None:
        assert StagedEntry(path="README", content_hash=H1).mode is FileMode.REGULAR

    def test_hash_lowercased(self) -> None:
        assert StagedEntry(path="a", content_hash=H1.upper()).content_hash == H1

    def test_frozen(self) -> None:
        entry = StagedEntry(path="a", content_hash=H1)
        with pytest.raises(ValidationError):
            entry.path = "b"

    @pytest.mark.parametrize(
        "path",
        ["", "/abs", "dir/", "a//b", "./a", "a/../b", "..", "nul\0byte"],
    )
    def test_invalid_paths(self, path: str) -> None:
        with pytest.raises(ValidationError):
            StagedEntry(path=path, content_hash=H1)

    def test_nested_path_accepted(self) -> None:
        assert StagedEntry(path="src/pkg/.hidden", content_hash=H1).path == "src/pkg/.hidden"

    def test_directory_mode_rejected(self) -> None:
        with pytest.raises(ValidationError, match="directories cannot be staged"):
            StagedEntry(path="src", mode=FileMode.DIRECTORY, content_hash=H1)

    def test_mode_from_string(self) -> None:
        assert StagedEntry(path="a", mode="100755", content_hash=H1).mode is FileMode.EXECUTABLE

    def test_bad_hash(self) -> None:
        with pytest.raises(ValidationError, match="not a hex object digest"):
            StagedEntry(path="a", content_hash="abc")


class TestTreeEntry:
    def test_directory_sort_key_has_slash(self) -> None:
        assert TreeEntry(name="foo", mode=FileMode.DIRECTORY).sort_key == b"foo/"

    def test_file_sort_key_is_name(self) -> None:
        assert TreeEntry(name="foo", mode=FileMode.REGULAR, hash=H1).sort_key == b"foo"

    def test_same_name_file_and_directory_do_not_collide(self) -> None:
        file_key = TreeEntry(name="foo", mode=FileMode.REGULAR).sort_key
        dir_key = TreeEntry(name="foo", mode=FileMode.DIRECTORY).sort_key
        assert file_key < dir_key
