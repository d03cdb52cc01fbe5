"""Repository -- the public SDK entry point for Arbor.

Ties together storage, the staging area, and the commit engine into a
user-facing API.  Users interact with ``Repository.open()``,
``repo.stage_file()``, ``repo.commit()``, etc.

Not thread-safe.  Each thread should open its own ``Repository``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError
from sqlalchemy import select

from arbor.engine.commit import CommitEngine
from arbor.engine.hashing import blob_hash
from arbor.engine.objects import decode_commit, decode_tree
from arbor.exceptions import (
    CommitValidationError,
    ObjectTypeError,
    RefError,
    StorageError,
)
from arbor.models.commit import CommitInfo, CommitOptions
from arbor.models.config import CONFIG_KEYS, USER_EMAIL_KEY, USER_NAME_KEY, RepoConfig
from arbor.models.objects import FileMode, StagedEntry
from arbor.storage.engine import create_arbor_engine, create_session_factory, init_db
from arbor.storage.schema import ArborMetaRow
from arbor.storage.sqlite import (
    HEAD,
    SqliteIndexRepository,
    SqliteObjectRepository,
    SqliteRefRepository,
    wrap_errors,
)

if TYPE_CHECKING:
    from sqlalchemy import Engine
    from sqlalchemy.orm import Session

    from arbor.models.objects import TreeEntry
    from arbor.protocols import WorktreeScanner

logger = logging.getLogger(__name__)

DEFAULT_REPO_ID = "default"


class Repository:
    """Primary entry point for Arbor.

    Create a repository via :meth:`Repository.open` (recommended) or
    :meth:`Repository.from_components` (testing / DI).

    Example::

        with Repository.open("arbor.db") as repo:
            repo.set_config("user.name", "Ada")
            repo.set_config("user.email", "ada@example.com")
            repo.stage_file("README", b"hello\\n")
            commit_hash = repo.commit("init")
    """

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def __init__(
        self,
        *,
        engine: Engine | None,
        session: Session,
        repo_id: str,
        config: RepoConfig,
        object_repo: SqliteObjectRepository,
        ref_repo: SqliteRefRepository,
        index_repo: SqliteIndexRepository,
        scanner: WorktreeScanner | None = None,
    ) -> None:
        self._engine = engine
        self._session = session
        self._repo_id = repo_id
        self._config = config
        self._object_repo = object_repo
        self._ref_repo = ref_repo
        self._index_repo = index_repo
        self._scanner = scanner
        self._commit_engine = self._make_commit_engine()
        self._closed = False

    @classmethod
    def open(
        cls,
        path: str = ":memory:",
        *,
        repo_id: str | None = None,
        config: RepoConfig | None = None,
        scanner: WorktreeScanner | None = None,
    ) -> Repository:
        """Open (or create) an Arbor repository.

        Args:
            path: SQLite path.  ``":memory:"`` for in-memory (default).
                Used unless *config* sets ``db_path`` explicitly.
            repo_id: Repository identifier within the database.
            config: Repository configuration.  Defaults created if *None*.
                User identity stored in the database fills fields left unset.
            scanner: Working-tree scanner used by ``commit(all=True)``.

        Returns:
            A ready-to-use ``Repository`` instance.
        """
        if repo_id is None:
            repo_id = DEFAULT_REPO_ID

        if config is None:
            config = RepoConfig(db_path=path)
        elif "db_path" not in config.model_fields_set:
            config = config.model_copy(update={"db_path": path})

        engine = create_arbor_engine(config.db_path, url=config.db_url)
        init_db(engine)
        session_factory = create_session_factory(engine)
        session = session_factory()

        repo = cls(
            engine=engine,
            session=session,
            repo_id=repo_id,
            config=config,
            object_repo=SqliteObjectRepository(session),
            ref_repo=SqliteRefRepository(session, repo_id),
            index_repo=SqliteIndexRepository(session, repo_id),
            scanner=scanner,
        )
        repo._load_identity()

        # Unborn default branch: HEAD exists before the first commit.
        if repo._ref_repo.read_ref(HEAD) is None:
            repo._ref_repo.attach_head(config.default_branch)
            session.commit()

        return repo

    @classmethod
    def from_components(
        cls,
        *,
        engine: Engine | None = None,
        session: Session,
        repo_id: str = DEFAULT_REPO_ID,
        config: RepoConfig | None = None,
        scanner: WorktreeScanner | None = None,
    ) -> Repository:
        """Create a ``Repository`` from a pre-built session.

        Skips engine/session creation.  Useful for testing and DI.
        """
        if config is None:
            config = RepoConfig()

        return cls(
            engine=engine,
            session=session,
            repo_id=repo_id,
            config=config,
            object_repo=SqliteObjectRepository(session),
            ref_repo=SqliteRefRepository(session, repo_id),
            index_repo=SqliteIndexRepository(session, repo_id),
            scanner=scanner,
        )

    def _make_commit_engine(self) -> CommitEngine:
        return CommitEngine(
            object_repo=self._object_repo,
            ref_repo=self._ref_repo,
            index_repo=self._index_repo,
            config=self._config,
            scanner=self._scanner,
        )

    # ------------------------------------------------------------------
    # Public properties
    # ------------------------------------------------------------------

    @property
    def repo_id(self) -> str:
        """The repository identifier."""
        return self._repo_id

    @property
    def config(self) -> RepoConfig:
        """The repository configuration."""
        return self._config

    @property
    def head(self) -> str | None:
        """Current HEAD commit hash, or *None* if no commits yet."""
        return self._ref_repo.get_head()

    @property
    def is_detached(self) -> bool:
        """Whether HEAD points directly at a commit."""
        return self._ref_repo.is_detached()

    @property
    def current_branch(self) -> str | None:
        """The current branch name, or *None* if HEAD is detached."""
        return self._ref_repo.current_branch()

    def list_branches(self) -> list[str]:
        return self._ref_repo.list_branches()

    # ------------------------------------------------------------------
    # Commit
    # ------------------------------------------------------------------

    def commit(
        self,
        message: str,
        options: CommitOptions | dict[str, Any] | None = None,
    ) -> str:
        """Create a commit from the staged entries.

        Args:
            message: Commit message, stored verbatim.
            options: :class:`CommitOptions`, or a dict of its fields
                (validated).

        Returns:
            Digest of the new commit.  HEAD (or its branch) now points
            to it.

        Raises:
            CommitValidationError: Malformed options, missing author, or
                conflicting staged paths.
            EmptyCommitError: Nothing staged and empty commits not allowed.
            StorageError: The object store failed.
            SigningError: The signer failed.
            RefError: HEAD could not be read or written.

        On any error the session is rolled back, so neither the commit
        object nor the reference move is persisted.
        """
        try:
            commit_hash = self._commit_engine.create_commit(message, options)
        except Exception:
            self._session.rollback()
            raise
        self._session.commit()
        logger.info("Committed %s on %s", commit_hash[:12], self.current_branch or "detached HEAD")
        return commit_hash

    # ------------------------------------------------------------------
    # Staging
    # ------------------------------------------------------------------

    def hash_blob(self, data: bytes, *, write: bool = True) -> str:
        """Digest of *data* as a blob, storing it unless *write* is False."""
        if not write:
            return blob_hash(data)
        digest = self._object_repo.put("blob", data)
        self._session.commit()
        return digest

    def stage(self, path: str, content_hash: str, mode: FileMode = FileMode.REGULAR) -> StagedEntry:
        """Stage an already-stored object at *path*.

        Raises:
            CommitValidationError: If the entry is malformed.
        """
        try:
            entry = StagedEntry(path=path, mode=mode, content_hash=content_hash)
        except ValidationError as e:
            raise CommitValidationError(f"Invalid staged entry: {e}") from e
        self._index_repo.stage(entry)
        self._session.commit()
        return entry

    def stage_file(self, path: str, data: bytes, mode: FileMode = FileMode.REGULAR) -> StagedEntry:
        """Store *data* as a blob and stage it at *path*."""
        try:
            digest = self._object_repo.put("blob", data)
            entry = StagedEntry(path=path, mode=mode, content_hash=digest)
        except ValidationError as e:
            self._session.rollback()
            raise CommitValidationError(f"Invalid staged entry: {e}") from e
        self._index_repo.stage(entry)
        self._session.commit()
        return entry

    def unstage(self, path: str) -> bool:
        """Remove *path* from the staging area.  False if it was not staged."""
        removed = self._index_repo.unstage(path)
        self._session.commit()
        return removed

    def staged(self) -> list[StagedEntry]:
        """Staged entries, ordered by path."""
        return self._index_repo.entries()

    # ------------------------------------------------------------------
    # Reading objects
    # ------------------------------------------------------------------

    def read_object(self, object_hash: str) -> tuple[str, bytes]:
        """Return ``(object_type, body)`` for a stored object."""
        return self._object_repo.get(object_hash)

    def read_tree(self, tree_hash: str) -> list[TreeEntry]:
        """Entries of a stored tree, in stored (canonical) order."""
        obj_type, body = self._object_repo.get(tree_hash)
        if obj_type != "tree":
            raise ObjectTypeError(tree_hash, "tree", obj_type)
        try:
            return decode_tree(body)
        except ValueError as e:
            raise StorageError(f"Corrupt tree object {tree_hash}: {e}") from e

    def get_commit(self, commit_hash: str) -> CommitInfo:
        """Decode a stored commit.

        Raises:
            ObjectNotFoundError: If the digest is unknown.
            ObjectTypeError: If the object is not a commit.
            StorageError: If the stored commit cannot be decoded.
        """
        obj_type, body = self._object_repo.get(commit_hash)
        if obj_type != "commit":
            raise ObjectTypeError(commit_hash, "commit", obj_type)
        try:
            commit = decode_commit(body)
            signature = commit.signature.decode("utf-8") if commit.signature else None
        except ValueError as e:
            raise StorageError(f"Corrupt commit object {commit_hash}: {e}") from e
        return CommitInfo(
            commit_hash=commit_hash,
            tree_hash=commit.tree_hash,
            parent_hashes=commit.parent_hashes,
            author=commit.author,
            committer=commit.committer,
            message=commit.message,
            signature=signature,
        )

    def log(self, limit: int = 20) -> list[CommitInfo]:
        """Walk first-parent history from HEAD backward.

        Returns:
            Up to *limit* commits, newest first.  Empty if no commits.
        """
        history: list[CommitInfo] = []
        current = self.head
        while current is not None and len(history) < limit:
            info = self.get_commit(current)
            history.append(info)
            current = info.parent_hashes[0] if info.parent_hashes else None
        return history

    # ------------------------------------------------------------------
    # References
    # ------------------------------------------------------------------

    def checkout_detached(self, commit_hash: str) -> None:
        """Point HEAD directly at an existing commit."""
        self.get_commit(commit_hash)
        self._ref_repo.detach_head(commit_hash)
        self._session.commit()

    def switch(self, branch: str) -> None:
        """Attach HEAD to *branch* (which may not exist yet)."""
        if not branch or branch.startswith("/") or ".." in branch:
            raise RefError(f"invalid branch name: {branch!r}")
        self._ref_repo.attach_head(branch)
        self._session.commit()

    # ------------------------------------------------------------------
    # Config
    # ------------------------------------------------------------------

    def _meta_key(self, key: str) -> str:
        return f"config.{self._repo_id}.{key}"

    def set_config(self, key: str, value: str) -> None:
        """Persist a configuration value (``user.name`` or ``user.email``).

        The in-memory :class:`RepoConfig` is updated as well.
        """
        if key not in CONFIG_KEYS:
            raise CommitValidationError(
                f"Unknown config key '{key}'. Valid keys: {', '.join(sorted(CONFIG_KEYS))}"
            )
        meta_key = self._meta_key(key)
        with wrap_errors(StorageError, f"Write of config {key}"):
            row = self._session.get(ArborMetaRow, meta_key)
            if row is None:
                self._session.add(ArborMetaRow(key=meta_key, value=value))
            else:
                row.value = value
            self._session.commit()
        self._apply_identity(key, value)

    def get_config(self, key: str) -> str | None:
        """Read a persisted configuration value."""
        stmt = select(ArborMetaRow).where(ArborMetaRow.key == self._meta_key(key))
        with wrap_errors(StorageError, f"Read of config {key}"):
            row = self._session.execute(stmt).scalar_one_or_none()
        return row.value if row is not None else None

    def _apply_identity(self, key: str, value: str) -> None:
        field = {USER_NAME_KEY: "user_name", USER_EMAIL_KEY: "user_email"}[key]
        self._config = self._config.model_copy(update={field: value})
        self._commit_engine = self._make_commit_engine()

    def _load_identity(self) -> None:
        """Fill identity fields the config leaves unset from the database."""
        for key, field in ((USER_NAME_KEY, "user_name"), (USER_EMAIL_KEY, "user_email")):
            if getattr(self._config, field):
                continue
            value = self.get_config(key)
            if value is not None:
                self._apply_identity(key, value)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Close the session and dispose the engine."""
        if self._closed:
            return
        self._closed = True
        self._session.close()
        if self._engine is not None:
            self._engine.dispose()

    def __enter__(self) -> Repository:
        return self

    def __exit__(self, exc_type: type | None, exc_val: BaseException | None, exc_tb: object) -> None:
        self.close()

    def __repr__(self) -> str:
        if self._closed:
            return f"Repository(repo_id='{self._repo_id}', closed=True)"
        return f"Repository(repo_id='{self._repo_id}', head='{self.head}')"
