"""Tests for object hashing.

Digests must match git's loose-object digests byte for byte.
"""

from __future__ import annotations

import hashlib

import pytest
from hypothesis import given
from hypothesis import strategies as st

from arbor.engine.hashing import (
    EMPTY_TREE_HASH,
    blob_hash,
    frame_object,
    is_hex_digest,
    object_hash,
)


class TestFrameObject:
    """Tests for the ``<type> <size>\\0`` framing."""

    def test_header_format(self) -> None:
        assert frame_object("blob", b"abc") == b"blob 3\x00abc"

    def test_empty_body(self) -> None:
        assert frame_object("tree", b"") == b"tree 0\x00"

    def test_unknown_type_rejected(self) -> None:
        with pytest.raises(ValueError, match="Unknown object type"):
            frame_object("tag", b"x")


class TestObjectHash:
    """Known digests computed by git itself."""

    def test_empty_blob(self) -> None:
        assert blob_hash(b"") == "e69de29bb2d1d6434b8b29ae775ad8c2e48c5391"

    def test_hello_blob(self) -> None:
        assert blob_hash(b"hello\n") == "ce013625030ba8dba906f756967f9e9ca394464a"

    def test_empty_tree(self) -> None:
        assert object_hash("tree", b"") == EMPTY_TREE_HASH

    def test_type_is_part_of_digest(self) -> None:
        """The same body hashes differently as a blob and as a commit."""
        assert object_hash("blob", b"x") != object_hash("commit", b"x")

    @given(st.binary(max_size=512))
    def test_matches_sha1_of_framed_bytes(self, data: bytes) -> None:
        expected = hashlib.sha1(b"blob %d\x00" % len(data) + data).hexdigest()
        assert blob_hash(data) == expected

    @given(st.binary(max_size=256))
    def test_hex_digest_format(self, data: bytes) -> None:
        assert is_hex_digest(blob_hash(data))


class TestIsHexDigest:
    """Tests for digest validation."""

    def test_accepts_lowercase(self) -> None:
        assert is_hex_digest("a" * 40)

    def test_rejects_uppercase(self) -> None:
        assert not is_hex_digest("A" * 40)

    def test_rejects_short(self) -> None:
        assert not is_hex_digest("a" * 39)

    def test_rejects_trailing_newline(self) -> None:
        assert not is_hex_digest("a" * 40 + "\n")

    def test_rejects_non_hex(self) -> None:
        assert not is_hex_digest("g" * 40)
