"""Tree-level domain models for Arbor.

FileMode is the enum of tree entry modes.
StagedEntry is one tracked file as handed over by the staging area.
TreeEntry is one (mode, name, digest) row of a tree object.
"""

from __future__ import annotations

import enum
import stat
from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, field_validator

from arbor.engine.hashing import is_hex_digest


class FileMode(str, enum.Enum):
    """Tree entry modes, valued by their tree-encoding octal text."""

    REGULAR = "100644"
    EXECUTABLE = "100755"
    SYMLINK = "120000"
    DIRECTORY = "40000"
    SUBMODULE = "160000"

    def __repr__(self) -> str:
        return self.value

    def __str__(self) -> str:
        return self.value

    @property
    def is_directory(self) -> bool:
        return self is FileMode.DIRECTORY

    @property
    def object_type(self) -> str:
        """Type of the object an entry with this mode points at."""
        if self is FileMode.DIRECTORY:
            return "tree"
        if self is FileMode.SUBMODULE:
            return "commit"
        return "blob"

    @classmethod
    def from_stat(cls, st_mode: int) -> FileMode:
        """Map a filesystem ``st_mode`` onto a tree mode."""
        if stat.S_ISLNK(st_mode):
            return cls.SYMLINK
        if stat.S_ISDIR(st_mode):
            return cls.DIRECTORY
        if st_mode & 0o100:
            return cls.EXECUTABLE
        return cls.REGULAR


class StagedEntry(BaseModel):
    """A tracked file at commit time.

    Paths are slash separated and relative to the repository root.
    """

    model_config = {"frozen": True}

    path: str
    mode: FileMode = FileMode.REGULAR
    content_hash: str

    @field_validator("path")
    @classmethod
    def _check_path(cls, v: str) -> str:
        if not v:
            raise ValueError("path must not be empty")
        if v.startswith("/") or v.endswith("/"):
            raise ValueError(f"path must not start or end with '/': {v!r}")
        if "\0" in v:
            raise ValueError("path must not contain NUL")
        for segment in v.split("/"):
            if segment in ("", ".", ".."):
                raise ValueError(f"invalid path segment {segment!r} in {v!r}")
        return v

    @field_validator("mode")
    @classmethod
    def _check_mode(cls, v: FileMode) -> FileMode:
        if v is FileMode.DIRECTORY:
            raise ValueError("directories cannot be staged directly")
        return v

    @field_validator("content_hash")
    @classmethod
    def _check_hash(cls, v: str) -> str:
        v = v.lower()
        if not is_hex_digest(v):
            raise ValueError(f"not a hex object digest: {v!r}")
        return v


@dataclass
class TreeEntry:
    """One row of a tree object.

    ``hash`` is None for a directory whose subtree has not been
    written yet.
    """

    name: str
    mode: FileMode
    hash: Optional[str] = None

    @property
    def sort_key(self) -> bytes:
        """Canonical sort key: directories sort as if named ``name/``."""
        key = self.name.encode("utf-8")
        if self.mode.is_directory:
            return key + b"/"
        return key
