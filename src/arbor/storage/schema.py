"""SQLAlchemy ORM schema for Arbor.

Defines all database tables: objects, refs, index_entries, _arbor_meta.

IMPORTANT: FileMode is imported from the domain models -- it is NOT
redefined here. The ORM uses the same Python enum.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Index, Integer, LargeBinary, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from arbor.models.objects import FileMode


class Base(DeclarativeBase):
    """Base class for all Arbor ORM models."""

    pass


class ObjectRow(Base):
    """Content-addressable object storage. Keyed by the object digest.

    Shared by every repository in the database: identical objects are
    stored once.
    """

    __tablename__ = "objects"

    object_hash: Mapped[str] = mapped_column(String(40), primary_key=True)
    object_type: Mapped[str] = mapped_column(String(10), nullable=False)
    size: Mapped[int] = mapped_column(Integer, nullable=False)
    data: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    __table_args__ = (
        Index("ix_objects_type", "object_type"),
    )


class RefRow(Base):
    """Mutable named pointer to a commit (branch, HEAD)."""

    __tablename__ = "refs"

    repo_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    ref_name: Mapped[str] = mapped_column(String(255), primary_key=True)
    commit_hash: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    symbolic_target: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)


class IndexEntryRow(Base):
    """One staged path of a repository's staging area."""

    __tablename__ = "index_entries"

    repo_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    path: Mapped[str] = mapped_column(Text, primary_key=True)
    mode: Mapped[FileMode] = mapped_column(nullable=False)
    content_hash: Mapped[str] = mapped_column(String(40), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)


class ArborMetaRow(Base):
    """Key-value metadata (schema version, per-repo settings)."""

    __tablename__ = "_arbor_meta"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
