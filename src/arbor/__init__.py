"""Arbor: content-addressed commit construction.

Builds git-compatible tree and commit objects from a staging area,
signs them on request, and advances HEAD, all on top of a SQLite
object store.
"""

from arbor._version import __version__

# Core entry point
from arbor.repo import Repository

# Commit construction
from arbor.engine.commit import CommitEngine
from arbor.engine.tree import TreeBuilder
from arbor.engine.hashing import EMPTY_TREE_HASH, blob_hash, object_hash
from arbor.engine.objects import (
    Commit,
    Tree,
    decode_commit,
    decode_tree,
    encode_commit,
    encode_tree,
    split_signature,
)

# Models
from arbor.models.commit import CommitInfo, CommitOptions, Signature
from arbor.models.config import RepoConfig
from arbor.models.objects import FileMode, StagedEntry, TreeEntry

# Protocols and output types
from arbor.protocols import (
    ChangedFile,
    RefTarget,
    Signer,
    WorktreeChanges,
    WorktreeScanner,
)

# Pluggable implementations
from arbor.signing import GpgSigner
from arbor.worktree import FilesystemScanner

# Exceptions
from arbor.exceptions import (
    ArborError,
    CommitValidationError,
    EmptyCommitError,
    ObjectNotFoundError,
    ObjectTypeError,
    PathConflictError,
    RefError,
    RepositoryNotFoundError,
    SigningError,
    StorageError,
)

__all__ = [
    "__version__",
    "Repository",
    # Commit construction
    "CommitEngine",
    "TreeBuilder",
    "EMPTY_TREE_HASH",
    "blob_hash",
    "object_hash",
    "Commit",
    "Tree",
    "decode_commit",
    "decode_tree",
    "encode_commit",
    "encode_tree",
    "split_signature",
    # Models
    "CommitInfo",
    "CommitOptions",
    "Signature",
    "RepoConfig",
    "FileMode",
    "StagedEntry",
    "TreeEntry",
    # Protocols
    "ChangedFile",
    "RefTarget",
    "Signer",
    "WorktreeChanges",
    "WorktreeScanner",
    # Implementations
    "GpgSigner",
    "FilesystemScanner",
    # Exceptions
    "ArborError",
    "CommitValidationError",
    "EmptyCommitError",
    "ObjectNotFoundError",
    "ObjectTypeError",
    "PathConflictError",
    "RefError",
    "RepositoryNotFoundError",
    "SigningError",
    "StorageError",
]
