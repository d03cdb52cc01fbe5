"""Object hashing for Arbor.

Objects are framed exactly like git loose objects before hashing:
``b"<type> <size>\\0" + body``.  The digest is the SHA-1 hex of the
framed bytes, so identical bodies of the same type always share a
digest.
"""

from __future__ import annotations

import hashlib
import re

OBJECT_TYPES: frozenset[str] = frozenset({"blob", "tree", "commit"})

DIGEST_SIZE = 20
HEX_DIGEST_LENGTH = DIGEST_SIZE * 2

EMPTY_TREE_HASH = "4b825dc642cb6eb9a060e54bf8d69288fbee4904"

_HEX_DIGEST_RE = re.compile(r"[0-9a-f]{40}")


def is_hex_digest(value: str) -> bool:
    """Return True if *value* is a full lowercase hex object digest."""
    return _HEX_DIGEST_RE.fullmatch(value) is not None


def frame_object(obj_type: str, body: bytes) -> bytes:
    """Prefix *body* with its ``<type> <size>\\0`` header.

    Args:
        obj_type: One of ``"blob"``, ``"tree"``, ``"commit"``.
        body: The canonical encoded body of the object.

    Returns:
        The framed bytes that are hashed.
    """
    if obj_type not in OBJECT_TYPES:
        raise ValueError(f"Unknown object type: {obj_type!r}")
    return f"{obj_type} {len(body)}".encode("ascii") + b"\0" + body


def object_hash(obj_type: str, body: bytes) -> str:
    """Compute the hex digest of an object.

    Args:
        obj_type: One of ``"blob"``, ``"tree"``, ``"commit"``.
        body: The canonical encoded body of the object.

    Returns:
        40-character lowercase hex SHA-1 digest.
    """
    return hashlib.sha1(frame_object(obj_type, body)).hexdigest()


def blob_hash(data: bytes) -> str:
    """Digest of *data* stored as a blob."""
    return object_hash("blob", data)
