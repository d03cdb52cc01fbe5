"""Abstract repository interfaces for Arbor storage.

Defines ABC interfaces for all database operations. No SQLAlchemy
imports here -- pure abstract contracts.

Concrete implementations are in sqlite.py.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from arbor.models.objects import StagedEntry
    from arbor.protocols import RefTarget


class ObjectRepository(ABC):
    """Abstract interface for the content-addressed object store."""

    @abstractmethod
    def exists(self, object_hash: str) -> bool:
        """Return True if an object with this digest is stored."""
        ...

    @abstractmethod
    def put(self, obj_type: str, body: bytes) -> str:
        """Store an object if absent and return its digest.

        Putting an object that already exists is a no-op returning the
        same digest.
        """
        ...

    @abstractmethod
    def get(self, object_hash: str) -> tuple[str, bytes]:
        """Return ``(object_type, body)``.

        Raises ObjectNotFoundError if the digest is unknown.
        """
        ...


class RefRepository(ABC):
    """Abstract interface for reference storage of one repository."""

    @abstractmethod
    def read_ref(self, ref_name: str) -> RefTarget | None:
        """Read a reference without following symbolic targets."""
        ...

    @abstractmethod
    def write_ref(self, ref_name: str, commit_hash: str) -> None:
        """Point a reference directly at a commit, creating it if needed."""
        ...

    @abstractmethod
    def set_symbolic_ref(self, ref_name: str, symbolic_target: str) -> None:
        """Make *ref_name* a symbolic reference to *symbolic_target*."""
        ...

    @abstractmethod
    def get_head(self) -> str | None:
        """Get the HEAD commit hash, resolving symbolic refs."""
        ...

    @abstractmethod
    def is_detached(self) -> bool:
        """Check if HEAD points directly at a commit."""
        ...

    @abstractmethod
    def detach_head(self, commit_hash: str) -> None:
        """Point HEAD directly at a commit."""
        ...

    @abstractmethod
    def attach_head(self, branch_name: str) -> None:
        """Make HEAD a symbolic reference to ``refs/heads/<branch_name>``."""
        ...

    @abstractmethod
    def current_branch(self) -> str | None:
        """Short name of the branch HEAD points to, or None when detached."""
        ...

    @abstractmethod
    def list_branches(self) -> list[str]:
        """Short names of all branches."""
        ...


class IndexRepository(ABC):
    """Abstract interface for the staging area of one repository."""

    @abstractmethod
    def entries(self) -> list[StagedEntry]:
        """All staged entries, ordered by path."""
        ...

    @abstractmethod
    def stage(self, entry: StagedEntry) -> None:
        """Add or replace the entry for ``entry.path``."""
        ...

    @abstractmethod
    def unstage(self, path: str) -> bool:
        """Remove a path.  Returns False if it was not staged."""
        ...

    @abstractmethod
    def clear(self) -> None:
        """Remove every staged entry."""
        ...
