"""Protocol definitions for Arbor.

Defines pluggable interfaces (Signer, WorktreeScanner) and frozen
dataclasses for structured output (RefTarget, WorktreeChanges).

No SQLAlchemy imports allowed in this module -- pure domain protocols.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from arbor.models.objects import FileMode, StagedEntry


@dataclass(frozen=True)
class RefTarget:
    """What a reference points at: a commit digest or another ref name.

    Exactly one of ``commit_hash`` and ``symbolic_target`` is set for a
    resolved reference.  An attached HEAD on an unborn branch has a
    ``symbolic_target`` whose branch does not exist yet.
    """

    name: str
    commit_hash: str | None = None
    symbolic_target: str | None = None

    @property
    def is_symbolic(self) -> bool:
        return self.symbolic_target is not None


@dataclass(frozen=True)
class ChangedFile:
    """New content for a tracked path that differs from its staged digest."""

    path: str
    mode: FileMode
    data: bytes


@dataclass(frozen=True)
class WorktreeChanges:
    """Tracked paths that were modified or deleted in the working tree."""

    modified: list[ChangedFile] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)

    def __bool__(self) -> bool:
        return bool(self.modified or self.deleted)


@runtime_checkable
class Signer(Protocol):
    """Produces a detached signature over a commit payload.

    The payload is the canonical commit encoding without the signature
    header.  Signatures need not be byte-identical across calls, but
    must verify against the same payload.
    """

    def sign(self, payload: bytes) -> bytes:
        """Return a detached signature for *payload*."""
        ...


@runtime_checkable
class WorktreeScanner(Protocol):
    """Reports tracked paths whose working-tree content changed."""

    def changed_paths(self, entries: Sequence[StagedEntry]) -> WorktreeChanges:
        """Compare *entries* against the working tree."""
        ...
