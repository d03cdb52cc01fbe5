"""Canonical encoding of tree and commit objects.

The byte grammar is git's:

* tree: for each entry in canonical order,
  ``b"<mode> <name>\\0" + <20 raw digest bytes>``
* commit: ``tree``, ``parent`` (one per parent, in order), ``author``
  and ``committer`` header lines, an optional ``gpgsig`` header whose
  continuation lines start with a single space, a blank line, then the
  message verbatim.

The same encoder produces both the signing payload (signature
omitted) and the stored object, so a verifier that strips the
``gpgsig`` header from a stored commit recovers the exact bytes that
were signed.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from arbor.engine.hashing import DIGEST_SIZE, object_hash
from arbor.models.commit import Signature
from arbor.models.objects import FileMode, TreeEntry

SIGNATURE_HEADER = b"gpgsig"


@dataclass
class Tree:
    """In-memory tree object: an ordered list of entries."""

    entries: list[TreeEntry] = field(default_factory=list)

    def sort(self) -> None:
        """Sort entries into canonical order (directories as ``name/``)."""
        self.entries.sort(key=lambda e: e.sort_key)

    def encode(self) -> bytes:
        """Encode the tree body.  Every entry must have a resolved hash."""
        return encode_tree(self.entries)

    @property
    def hash(self) -> str:
        return object_hash("tree", self.encode())


@dataclass
class Commit:
    """In-memory commit object."""

    tree_hash: str
    author: Signature
    committer: Signature
    message: str
    parent_hashes: list[str] = field(default_factory=list)
    signature: bytes | None = None

    def encode(self, *, include_signature: bool = True) -> bytes:
        return encode_commit(self, include_signature=include_signature)

    @property
    def hash(self) -> str:
        return object_hash("commit", self.encode())


def encode_tree(entries: list[TreeEntry]) -> bytes:
    """Encode tree entries, in the order given, into a tree body."""
    parts: list[bytes] = []
    for entry in entries:
        if entry.hash is None:
            raise ValueError(f"tree entry {entry.name!r} has no hash")
        parts.append(f"{entry.mode.value} {entry.name}".encode("utf-8"))
        parts.append(b"\0")
        parts.append(bytes.fromhex(entry.hash))
    return b"".join(parts)


def decode_tree(body: bytes) -> list[TreeEntry]:
    """Decode a tree body into its entries, preserving stored order."""
    entries: list[TreeEntry] = []
    pos = 0
    while pos < len(body):
        space = body.index(b" ", pos)
        nul = body.index(b"\0", space)
        mode = FileMode(body[pos:space].decode("ascii"))
        name = body[space + 1:nul].decode("utf-8")
        raw = body[nul + 1:nul + 1 + DIGEST_SIZE]
        if len(raw) != DIGEST_SIZE:
            raise ValueError("truncated tree entry")
        entries.append(TreeEntry(name=name, mode=mode, hash=raw.hex()))
        pos = nul + 1 + DIGEST_SIZE
    return entries


def encode_commit(commit: Commit, *, include_signature: bool = True) -> bytes:
    """Encode a commit body.

    Args:
        commit: The commit to encode.
        include_signature: When False, the ``gpgsig`` header is left out.
            This is the payload handed to a signer.
    """
    lines = [f"tree {commit.tree_hash}"]
    for parent in commit.parent_hashes:
        lines.append(f"parent {parent}")
    lines.append(f"author {commit.author.encode()}")
    lines.append(f"committer {commit.committer.encode()}")
    header = "\n".join(lines).encode("utf-8")

    if include_signature and commit.signature:
        sig_lines = commit.signature.rstrip(b"\n").split(b"\n")
        header += b"\n" + SIGNATURE_HEADER + b" " + b"\n ".join(sig_lines)

    return header + b"\n\n" + commit.message.encode("utf-8")


def _split_header(body: bytes) -> tuple[list[bytes], bytes]:
    header, sep, message = body.partition(b"\n\n")
    if not sep:
        raise ValueError("commit has no header/message separator")
    return header.split(b"\n"), message


def decode_commit(body: bytes) -> Commit:
    """Decode a commit body.

    Unknown headers are ignored.
    """
    lines, message = _split_header(body)
    fields: dict[bytes, list[bytes]] = {}
    current: bytes | None = None
    for line in lines:
        if line.startswith(b" ") and current is not None:
            fields[current][-1] += b"\n" + line[1:]
            continue
        key, _, value = line.partition(b" ")
        fields.setdefault(key, []).append(value)
        current = key

    if b"tree" not in fields or b"author" not in fields or b"committer" not in fields:
        raise ValueError("commit is missing a required header")

    signature = None
    if SIGNATURE_HEADER in fields:
        signature = fields[SIGNATURE_HEADER][0] + b"\n"

    return Commit(
        tree_hash=fields[b"tree"][0].decode("ascii"),
        parent_hashes=[p.decode("ascii") for p in fields.get(b"parent", [])],
        author=Signature.decode(fields[b"author"][0].decode("utf-8")),
        committer=Signature.decode(fields[b"committer"][0].decode("utf-8")),
        message=message.decode("utf-8"),
        signature=signature,
    )


def split_signature(body: bytes) -> tuple[bytes, bytes | None]:
    """Separate a stored commit body into (signed payload, signature).

    The payload is the body with the ``gpgsig`` header and its
    continuation lines removed, which is byte-for-byte what the signer
    was given.  Returns ``(body, None)`` for unsigned commits.
    """
    lines, message = _split_header(body)
    kept: list[bytes] = []
    sig_lines: list[bytes] = []
    in_signature = False
    for line in lines:
        if in_signature and line.startswith(b" "):
            sig_lines.append(line[1:])
            continue
        in_signature = False
        if line.startswith(SIGNATURE_HEADER + b" "):
            in_signature = True
            sig_lines.append(line[len(SIGNATURE_HEADER) + 1:])
            continue
        kept.append(line)

    if not sig_lines:
        return body, None
    payload = b"\n".join(kept) + b"\n\n" + message
    return payload, b"\n".join(sig_lines) + b"\n"
