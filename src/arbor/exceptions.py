"""Arbor exception hierarchy.

All Arbor-specific exceptions inherit from ArborError.
"""


class ArborError(Exception):
    """Base exception for all Arbor errors."""


class CommitValidationError(ArborError):
    """Raised when commit options are malformed or incomplete.

    Named CommitValidationError (not ValidationError) to avoid
    collision with pydantic.ValidationError.
    """


class PathConflictError(CommitValidationError):
    """Raised when staged paths cannot form a single tree.

    Either a path is staged twice, or one path is required both as a
    file and as a directory (``a`` and ``a/x``).
    """

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Conflicting staged path '{path}': {reason}")


class EmptyCommitError(ArborError):
    """Raised when there is nothing staged and empty commits are not allowed."""

    def __init__(self) -> None:
        super().__init__("cannot create empty commit: clean working tree")


class StorageError(ArborError):
    """Raised when the object or reference store fails to read or write."""


class ObjectNotFoundError(StorageError):
    """Raised when an object digest lookup fails."""

    def __init__(self, object_hash: str) -> None:
        self.object_hash = object_hash
        super().__init__(f"Object not found: {object_hash}")


class ObjectTypeError(StorageError):
    """Raised when an object exists but has an unexpected type."""

    def __init__(self, object_hash: str, expected: str, actual: str) -> None:
        self.object_hash = object_hash
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Object {object_hash} is a {actual}, expected {expected}"
        )


class SigningError(ArborError):
    """Raised when the signer fails or has no key material."""


class RefError(ArborError):
    """Raised when HEAD or a branch reference cannot be read or written.

    Named RefError (not ReferenceError) to avoid shadowing the builtin
    ReferenceError.
    """


class RepositoryNotFoundError(ArborError):
    """Raised when no repository can be found in a database."""
