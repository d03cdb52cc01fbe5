"""Configuration models for Arbor.

RepoConfig holds per-repository settings.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, field_validator

USER_NAME_KEY = "user.name"
USER_EMAIL_KEY = "user.email"
CONFIG_KEYS: frozenset[str] = frozenset({USER_NAME_KEY, USER_EMAIL_KEY})


class RepoConfig(BaseModel):
    """Per-repository configuration."""

    db_path: str = ":memory:"
    db_url: Optional[str] = None
    default_branch: str = "main"
    user_name: Optional[str] = None
    user_email: Optional[str] = None

    @field_validator("default_branch")
    @classmethod
    def _check_branch(cls, v: str) -> str:
        if not v or v.startswith("/") or v.endswith("/") or " " in v or ".." in v:
            raise ValueError(f"invalid branch name: {v!r}")
        return v

    @property
    def default_ref(self) -> str:
        """Full ref name of the default branch."""
        return f"refs/heads/{self.default_branch}"

    @property
    def has_identity(self) -> bool:
        return bool(self.user_name) and bool(self.user_email)
