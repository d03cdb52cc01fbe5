"""Commit domain models for Arbor.

Signature is an author/committer identity with a timestamp.
CommitOptions is the configuration record accepted by Repository.commit().
CommitInfo is the SDK-facing model returned when reading commits.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from pydantic import BaseModel, field_validator

from arbor.engine.hashing import is_hex_digest
from arbor.protocols import Signer

_SIGNATURE_RE = re.compile(r"^(?P<name>.*) <(?P<email>.*)> (?P<ts>-?\d+) (?P<tz>[+-]\d{4})$")
_IDENTITY_RE = re.compile(r"^\s*(?P<name>[^<>]*?)\s*<(?P<email>[^<>]*)>\s*$")


def _format_offset(when: datetime) -> str:
    offset = when.utcoffset() or timedelta(0)
    minutes = int(offset.total_seconds()) // 60
    sign = "-" if minutes < 0 else "+"
    hours, mins = divmod(abs(minutes), 60)
    return f"{sign}{hours:02d}{mins:02d}"


class Signature(BaseModel):
    """Identity and timestamp of an author or committer."""

    model_config = {"frozen": True}

    name: str
    email: str
    when: datetime

    @field_validator("name", "email")
    @classmethod
    def _no_delimiters(cls, v: str) -> str:
        if any(c in v for c in "<>\n\0"):
            raise ValueError(f"identity must not contain '<', '>', newline or NUL: {v!r}")
        return v

    @field_validator("when")
    @classmethod
    def _require_timezone(cls, v: datetime) -> datetime:
        if v.tzinfo is None or v.utcoffset() is None:
            raise ValueError("signature time must be timezone-aware")
        return v

    @classmethod
    def now(cls, name: str, email: str) -> Signature:
        """Signature stamped with the current local time."""
        return cls(name=name, email=email, when=datetime.now(timezone.utc).astimezone())

    @classmethod
    def parse_identity(cls, identity: str, when: datetime | None = None) -> Signature:
        """Parse ``"Name <email>"`` into a Signature.

        Raises:
            ValueError: If *identity* is not in ``Name <email>`` form.
        """
        match = _IDENTITY_RE.match(identity)
        if match is None:
            raise ValueError(f"identity must look like 'Name <email>': {identity!r}")
        if when is None:
            when = datetime.now(timezone.utc).astimezone()
        return cls(name=match["name"], email=match["email"], when=when)

    def encode(self) -> str:
        """Encode as ``Name <email> <unix-seconds> <+HHMM>``."""
        return f"{self.name} <{self.email}> {int(self.when.timestamp())} {_format_offset(self.when)}"

    @classmethod
    def decode(cls, raw: str) -> Signature:
        """Inverse of :meth:`encode`."""
        match = _SIGNATURE_RE.match(raw)
        if match is None:
            raise ValueError(f"malformed signature line: {raw!r}")
        tz = match["tz"]
        minutes = int(tz[1:3]) * 60 + int(tz[3:5])
        if tz[0] == "-":
            minutes = -minutes
        tzinfo = timezone(timedelta(minutes=minutes))
        when = datetime.fromtimestamp(int(match["ts"]), tz=tzinfo)
        return cls(name=match["name"], email=match["email"], when=when)

    def __str__(self) -> str:
        return f"{self.name} <{self.email}>"


class CommitOptions(BaseModel):
    """Options recognised by :meth:`Repository.commit`.

    ``parents`` left empty means "HEAD, if there is one".  ``committer``
    left unset means "same as author".
    """

    model_config = {"arbitrary_types_allowed": True}

    all: bool = False
    allow_empty_commits: bool = False
    amend: bool = False
    parents: list[str] = []
    author: Optional[Signature] = None
    committer: Optional[Signature] = None
    signer: Optional[Any] = None

    @field_validator("parents")
    @classmethod
    def _check_parents(cls, v: list[str]) -> list[str]:
        normalized = [p.lower() for p in v]
        for p in normalized:
            if not is_hex_digest(p):
                raise ValueError(f"parent is not a hex object digest: {p!r}")
        return normalized

    @field_validator("signer")
    @classmethod
    def _check_signer(cls, v: object) -> object:
        if v is not None and not isinstance(v, Signer):
            raise ValueError(f"signer must provide sign(payload: bytes) -> bytes, got {type(v).__name__}")
        return v


class CommitInfo(BaseModel):
    """SDK-facing commit information model.

    Decoded from a stored commit object.  Used for data transfer only.
    """

    commit_hash: str
    tree_hash: str
    parent_hashes: list[str] = []
    author: Signature
    committer: Signature
    message: str
    signature: Optional[str] = None

    @property
    def is_signed(self) -> bool:
        return self.signature is not None

    @property
    def summary(self) -> str:
        """First line of the message."""
        return self.message.splitlines()[0] if self.message else ""

    def __str__(self) -> str:
        msg = self.summary
        if len(msg) > 60:
            msg = msg[:57] + "..."
        return f"{self.commit_hash[:8]} {msg}"

    def __repr__(self) -> str:
        return f"CommitInfo({self.commit_hash[:8]} parents={len(self.parent_hashes)} {self.summary!r})"
