"""Shared test fixtures for Arbor.

Provides in-memory SQLite engine, session, and repository fixtures.
"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.orm import Session, sessionmaker

from arbor.engine.commit import CommitEngine
from arbor.models.commit import Signature
from arbor.models.config import RepoConfig
from arbor.storage.engine import create_arbor_engine, init_db
from arbor.storage.sqlite import (
    SqliteIndexRepository,
    SqliteObjectRepository,
    SqliteRefRepository,
)

FIXED_WHEN = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone(timedelta(hours=2)))


@pytest.fixture
def engine():
    """In-memory SQLite engine with all tables created."""
    eng = create_arbor_engine(":memory:")
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session(engine):
    """Session with automatic rollback after each test."""
    SessionLocal = sessionmaker(bind=engine, expire_on_commit=False)
    sess = SessionLocal()
    yield sess
    sess.rollback()
    sess.close()


@pytest.fixture
def sample_repo_id() -> str:
    return "test-repo-001"


@pytest.fixture
def object_repo(session: Session) -> SqliteObjectRepository:
    return SqliteObjectRepository(session)


@pytest.fixture
def ref_repo(session: Session, sample_repo_id: str) -> SqliteRefRepository:
    return SqliteRefRepository(session, sample_repo_id)


@pytest.fixture
def index_repo(session: Session, sample_repo_id: str) -> SqliteIndexRepository:
    return SqliteIndexRepository(session, sample_repo_id)


@pytest.fixture
def author() -> Signature:
    return Signature(name="Ada Lovelace", email="ada@example.com", when=FIXED_WHEN)


@pytest.fixture
def config() -> RepoConfig:
    return RepoConfig(user_name="Ada Lovelace", user_email="ada@example.com")


@pytest.fixture
def commit_engine(object_repo, ref_repo, index_repo, config) -> CommitEngine:
    return CommitEngine(
        object_repo=object_repo,
        ref_repo=ref_repo,
        index_repo=index_repo,
        config=config,
    )


# ------------------------------------------------------------------
# Shared test helpers
# ------------------------------------------------------------------

def make_repo(**kwargs) -> "Repository":
    """Create an in-memory Repository with a configured identity."""
    from arbor import Repository

    kwargs.setdefault(
        "config", RepoConfig(user_name="Ada Lovelace", user_email="ada@example.com")
    )
    return Repository.open(":memory:", **kwargs)


class RecordingSigner:
    """Signer that records payloads and returns a fixed armored block."""

    SIGNATURE = (
        b"-----BEGIN PGP SIGNATURE-----\n"
        b"\n"
        b"iQEzBAABCAAdFiEEexample\n"
        b"=abcd\n"
        b"-----END PGP SIGNATURE-----\n"
    )

    def __init__(self) -> None:
        self.payloads: list[bytes] = []

    def sign(self, payload: bytes) -> bytes:
        self.payloads.append(payload)
        return self.SIGNATURE


class FailingSigner:
    """Signer whose key material is unavailable."""

    def sign(self, payload: bytes) -> bytes:
        raise RuntimeError("no secret key")
