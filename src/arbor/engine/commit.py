"""Commit engine for Arbor.

Orchestrates one commit operation: option resolution, optional
auto-staging of working-tree changes, tree building (or tree reuse when
amending), commit assembly with optional signing, and the final HEAD or
branch update.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from arbor.engine.objects import Commit, decode_commit
from arbor.engine.tree import TreeBuilder
from arbor.exceptions import (
    CommitValidationError,
    ObjectNotFoundError,
    ObjectTypeError,
    RefError,
    SigningError,
    StorageError,
)
from arbor.models.commit import CommitOptions, Signature
from arbor.models.objects import StagedEntry
from arbor.storage.sqlite import HEAD

if TYPE_CHECKING:
    from arbor.models.config import RepoConfig
    from arbor.protocols import Signer, WorktreeScanner
    from arbor.storage.repositories import (
        IndexRepository,
        ObjectRepository,
        RefRepository,
    )

logger = logging.getLogger(__name__)


class CommitEngine:
    """Creates commits from the staging area of one repository.

    The engine writes through the repositories it is given and never
    commits the session itself; the caller decides whether the whole
    operation becomes durable.  Objects written before a failure are
    harmless, but no commit object or reference move from a failed
    operation should be committed.
    """

    def __init__(
        self,
        object_repo: ObjectRepository,
        ref_repo: RefRepository,
        index_repo: IndexRepository,
        config: RepoConfig,
        scanner: WorktreeScanner | None = None,
    ) -> None:
        self._object_repo = object_repo
        self._ref_repo = ref_repo
        self._index_repo = index_repo
        self._config = config
        self._scanner = scanner

    def resolve_options(
        self, options: CommitOptions | dict[str, Any] | None = None
    ) -> CommitOptions:
        """Validate *options* and fill in the defaults.

        * ``author`` falls back to the configured user identity, stamped
          with the current time.
        * ``committer`` falls back to ``author``.
        * empty ``parents`` become ``[HEAD]`` when HEAD resolves to a commit.

        Raises:
            CommitValidationError: If the options are malformed or no
                author can be determined.
        """
        if options is None:
            options = CommitOptions()
        elif isinstance(options, dict):
            try:
                options = CommitOptions.model_validate(options)
            except ValidationError as e:
                raise CommitValidationError(f"Invalid commit options: {e}") from e

        updates: dict[str, Any] = {}
        author = options.author
        if author is None:
            if not self._config.has_identity:
                raise CommitValidationError(
                    "author field is required: pass an author or set user.name and user.email"
                )
            try:
                author = Signature.now(self._config.user_name, self._config.user_email)
            except ValidationError as e:
                raise CommitValidationError(f"Invalid configured identity: {e}") from e
            updates["author"] = author

        if options.committer is None:
            updates["committer"] = author

        if not options.parents and not options.amend:
            head = self._ref_repo.get_head()
            if head is not None:
                updates["parents"] = [head]

        return options.model_copy(update=updates) if updates else options

    def create_commit(
        self, message: str, options: CommitOptions | dict[str, Any] | None = None
    ) -> str:
        """Create a commit from the current index and advance HEAD.

        Args:
            message: Commit message, stored verbatim.
            options: CommitOptions or a dict of its fields.

        Returns:
            Digest of the new commit.

        Raises:
            CommitValidationError: Malformed options or conflicting paths.
            EmptyCommitError: Nothing staged and empty commits not allowed.
            StorageError: The object store failed.
            SigningError: The signer failed.
            RefError: HEAD could not be read or written.
        """
        opts = self.resolve_options(options)

        if opts.all:
            self.auto_add_modified_and_deleted()

        if opts.amend:
            head = self._ref_repo.get_head()
            if head is None:
                raise RefError("cannot amend: HEAD does not point to a commit")
            tree_hash = self._read_commit(head).tree_hash
            opts = opts.model_copy(update={"parents": [head]})
        else:
            builder = TreeBuilder(self._object_repo)
            tree_hash = builder.build(
                self._index_repo.entries(),
                allow_empty_commits=opts.allow_empty_commits,
            )

        commit_hash = self.build_commit_object(message, opts, tree_hash)
        self.update_head(commit_hash)
        return commit_hash

    def auto_add_modified_and_deleted(self) -> int:
        """Stage tracked paths the scanner reports as modified or deleted.

        Returns the number of paths staged or unstaged.

        Raises:
            CommitValidationError: If no scanner is configured.
        """
        if self._scanner is None:
            raise CommitValidationError("all=True requires a working-tree scanner")

        changes = self._scanner.changed_paths(self._index_repo.entries())
        for changed in changes.modified:
            digest = self._object_repo.put("blob", changed.data)
            self._index_repo.stage(
                StagedEntry(path=changed.path, mode=changed.mode, content_hash=digest)
            )
        for path in changes.deleted:
            self._index_repo.unstage(path)

        count = len(changes.modified) + len(changes.deleted)
        if count:
            logger.debug(
                "Auto-staged %d modified and %d deleted paths",
                len(changes.modified),
                len(changes.deleted),
            )
        return count

    def build_commit_object(
        self, message: str, options: CommitOptions, tree_hash: str
    ) -> str:
        """Assemble, optionally sign, and store a commit object.

        *options* must already be resolved (author and committer set).
        """
        if options.author is None or options.committer is None:
            raise CommitValidationError("author and committer must be resolved before assembly")

        commit = Commit(
            tree_hash=tree_hash,
            author=options.author,
            committer=options.committer,
            message=message,
            parent_hashes=list(options.parents),
        )

        if options.signer is not None:
            commit.signature = self.build_commit_signature(commit, options.signer)

        return self._object_repo.put("commit", commit.encode())

    def build_commit_signature(self, commit: Commit, signer: Signer) -> bytes:
        """Sign the canonical encoding of *commit* without its signature."""
        payload = commit.encode(include_signature=False)
        try:
            signature = signer.sign(payload)
        except SigningError:
            raise
        except Exception as e:
            raise SigningError(f"Signer failed: {e}") from e

        if not signature:
            raise SigningError("Signer returned an empty signature")
        if not isinstance(signature, bytes):
            raise SigningError(
                f"Signer must return bytes, got {type(signature).__name__}"
            )
        try:
            signature.decode("utf-8")
        except UnicodeDecodeError as e:
            raise SigningError("Signature is not ASCII-armored text") from e
        return signature

    def update_head(self, commit_hash: str) -> None:
        """Point HEAD, or the branch HEAD refers to, at *commit_hash*.

        Unconditional overwrite.  A repository with no HEAD gets a
        symbolic HEAD to the default branch first.
        """
        head = self._ref_repo.read_ref(HEAD)
        if head is None:
            self._ref_repo.set_symbolic_ref(HEAD, self._config.default_ref)
            target = self._config.default_ref
        elif head.is_symbolic:
            target = head.symbolic_target
        else:
            logger.warning("Committing on a detached HEAD: %s", commit_hash[:12])
            target = HEAD

        self._ref_repo.write_ref(target, commit_hash)
        logger.info("%s -> %s", target, commit_hash[:12])

    def _read_commit(self, commit_hash: str) -> Commit:
        try:
            obj_type, body = self._object_repo.get(commit_hash)
        except ObjectNotFoundError as e:
            raise RefError(f"HEAD points to a missing commit: {commit_hash}") from e
        if obj_type != "commit":
            raise ObjectTypeError(commit_hash, "commit", obj_type)
        try:
            return decode_commit(body)
        except ValueError as e:
            raise StorageError(f"Corrupt commit object {commit_hash}: {e}") from e
