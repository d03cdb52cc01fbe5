"""SQLite implementations of repository interfaces.

All repositories use SQLAlchemy 2.0-style queries (select() + session.execute()).
Each repository takes a Session in its constructor; reference and index
repositories are additionally scoped to one repo_id.

SQLAlchemy failures are re-raised as StorageError (objects, index) or
RefError (refs) with the original exception chained.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from arbor.engine.hashing import object_hash as compute_object_hash
from arbor.exceptions import ObjectNotFoundError, RefError, StorageError
from arbor.models.objects import StagedEntry
from arbor.protocols import RefTarget
from arbor.storage.repositories import IndexRepository, ObjectRepository, RefRepository
from arbor.storage.schema import IndexEntryRow, ObjectRow, RefRow

if TYPE_CHECKING:
    from collections.abc import Iterator

logger = logging.getLogger(__name__)

HEAD = "HEAD"
BRANCH_PREFIX = "refs/heads/"


@contextmanager
def wrap_errors(error_cls: type[Exception], action: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as e:
        raise error_cls(f"{action} failed: {e}") from e


class SqliteObjectRepository(ObjectRepository):
    """SQLite implementation of the object store.

    Content-addressable: put checks existence before insert.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def _get_row(self, object_hash: str) -> ObjectRow | None:
        return self._session.get(ObjectRow, object_hash)

    def exists(self, object_hash: str) -> bool:
        with wrap_errors(StorageError, f"Lookup of object {object_hash}"):
            return self._get_row(object_hash) is not None

    def put(self, obj_type: str, body: bytes) -> str:
        """Store an object only if its digest is not already present (dedup)."""
        digest = compute_object_hash(obj_type, body)
        with wrap_errors(StorageError, f"Write of {obj_type} {digest}"):
            if self._get_row(digest) is not None:
                logger.debug("Object exists: %s %s", obj_type, digest[:12])
                return digest
            self._session.add(
                ObjectRow(
                    object_hash=digest,
                    object_type=obj_type,
                    size=len(body),
                    data=body,
                    created_at=datetime.now(timezone.utc),
                )
            )
            self._session.flush()
        logger.debug("Object written: %s %s (%d bytes)", obj_type, digest[:12], len(body))
        return digest

    def get(self, object_hash: str) -> tuple[str, bytes]:
        with wrap_errors(StorageError, f"Read of object {object_hash}"):
            row = self._get_row(object_hash)
        if row is None:
            raise ObjectNotFoundError(object_hash)
        return row.object_type, row.data


class SqliteRefRepository(RefRepository):
    """SQLite implementation of ref repository.

    HEAD is stored as ref_name="HEAD".  When attached, HEAD has a
    symbolic_target (e.g. "refs/heads/main") and the branch ref stores
    the actual commit hash.  When detached, HEAD stores commit_hash
    directly with symbolic_target=None.

    Branches are stored as ref_name="refs/heads/{name}".
    """

    def __init__(self, session: Session, repo_id: str) -> None:
        self._session = session
        self._repo_id = repo_id

    def _get_ref_row(self, ref_name: str) -> RefRow | None:
        """Get a ref row by ref_name within this repository."""
        stmt = select(RefRow).where(
            RefRow.repo_id == self._repo_id, RefRow.ref_name == ref_name
        )
        with wrap_errors(RefError, f"Read of ref {ref_name}"):
            return self._session.execute(stmt).scalar_one_or_none()

    def _flush(self, ref_name: str) -> None:
        with wrap_errors(RefError, f"Write of ref {ref_name}"):
            self._session.flush()

    def read_ref(self, ref_name: str) -> RefTarget | None:
        row = self._get_ref_row(ref_name)
        if row is None:
            return None
        return RefTarget(
            name=row.ref_name,
            commit_hash=row.commit_hash,
            symbolic_target=row.symbolic_target,
        )

    def write_ref(self, ref_name: str, commit_hash: str) -> None:
        row = self._get_ref_row(ref_name)
        if row is None:
            self._session.add(
                RefRow(repo_id=self._repo_id, ref_name=ref_name, commit_hash=commit_hash)
            )
        else:
            row.commit_hash = commit_hash
            row.symbolic_target = None
        self._flush(ref_name)

    def set_symbolic_ref(self, ref_name: str, symbolic_target: str) -> None:
        row = self._get_ref_row(ref_name)
        if row is None:
            self._session.add(
                RefRow(
                    repo_id=self._repo_id,
                    ref_name=ref_name,
                    commit_hash=None,
                    symbolic_target=symbolic_target,
                )
            )
        else:
            row.symbolic_target = symbolic_target
            row.commit_hash = None
        self._flush(ref_name)

    def get_head(self) -> str | None:
        """Get the HEAD commit hash, resolving symbolic refs."""
        head_ref = self._get_ref_row(HEAD)
        if head_ref is None:
            return None

        # If HEAD is symbolic (attached), resolve through branch ref
        if head_ref.symbolic_target:
            branch_ref = self._get_ref_row(head_ref.symbolic_target)
            return branch_ref.commit_hash if branch_ref else None

        # Detached HEAD: commit_hash stored directly
        return head_ref.commit_hash

    def is_detached(self) -> bool:
        """Check if HEAD is in detached state."""
        head_ref = self._get_ref_row(HEAD)
        if head_ref is None:
            return False  # No HEAD yet = not detached
        return head_ref.symbolic_target is None

    def detach_head(self, commit_hash: str) -> None:
        """Detach HEAD to point directly at a commit hash."""
        self.write_ref(HEAD, commit_hash)

    def attach_head(self, branch_name: str) -> None:
        """Attach HEAD to a branch (symbolic ref)."""
        self.set_symbolic_ref(HEAD, f"{BRANCH_PREFIX}{branch_name}")

    def current_branch(self) -> str | None:
        head_ref = self._get_ref_row(HEAD)
        if head_ref is None or head_ref.symbolic_target is None:
            return None
        target = head_ref.symbolic_target
        if target.startswith(BRANCH_PREFIX):
            return target[len(BRANCH_PREFIX):]
        return target

    def list_branches(self) -> list[str]:
        stmt = select(RefRow).where(
            RefRow.repo_id == self._repo_id,
            RefRow.ref_name.startswith(BRANCH_PREFIX),
        )
        with wrap_errors(RefError, "Listing branches"):
            refs = self._session.execute(stmt).scalars().all()
        return sorted(ref.ref_name[len(BRANCH_PREFIX):] for ref in refs)


class SqliteIndexRepository(IndexRepository):
    """SQLite implementation of the staging area."""

    def __init__(self, session: Session, repo_id: str) -> None:
        self._session = session
        self._repo_id = repo_id

    def entries(self) -> list[StagedEntry]:
        stmt = (
            select(IndexEntryRow)
            .where(IndexEntryRow.repo_id == self._repo_id)
            .order_by(IndexEntryRow.path)
        )
        with wrap_errors(StorageError, "Reading the index"):
            rows = self._session.execute(stmt).scalars().all()
        return [
            StagedEntry(path=row.path, mode=row.mode, content_hash=row.content_hash)
            for row in rows
        ]

    def stage(self, entry: StagedEntry) -> None:
        with wrap_errors(StorageError, f"Staging {entry.path}"):
            row = self._session.get(IndexEntryRow, (self._repo_id, entry.path))
            now = datetime.now(timezone.utc)
            if row is None:
                self._session.add(
                    IndexEntryRow(
                        repo_id=self._repo_id,
                        path=entry.path,
                        mode=entry.mode,
                        content_hash=entry.content_hash,
                        updated_at=now,
                    )
                )
            else:
                row.mode = entry.mode
                row.content_hash = entry.content_hash
                row.updated_at = now
            self._session.flush()

    def unstage(self, path: str) -> bool:
        with wrap_errors(StorageError, f"Unstaging {path}"):
            row = self._session.get(IndexEntryRow, (self._repo_id, path))
            if row is None:
                return False
            self._session.delete(row)
            self._session.flush()
        return True

    def clear(self) -> None:
        with wrap_errors(StorageError, "Clearing the index"):
            self._session.execute(
                delete(IndexEntryRow).where(IndexEntryRow.repo_id == self._repo_id)
            )
            self._session.flush()
