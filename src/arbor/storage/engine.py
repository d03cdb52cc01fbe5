"""SQLite engine, sessions and schema setup for an Arbor database.

One database file holds the shared object store plus the refs, index
and config rows of every repository id.
"""

from __future__ import annotations

from sqlalchemy import Engine, create_engine, event, select
from sqlalchemy.orm import Session, sessionmaker

from arbor.storage.schema import ArborMetaRow, Base

SCHEMA_VERSION = "1"

_SQLITE_PRAGMAS = (
    "PRAGMA journal_mode=WAL",
    "PRAGMA busy_timeout=5000",
    "PRAGMA synchronous=NORMAL",
    "PRAGMA foreign_keys=ON",
)


def create_arbor_engine(db_path: str = ":memory:", *, url: str | None = None) -> Engine:
    """Engine for the database at *db_path*, or at *url* when given.

    ``":memory:"`` gives a private in-memory store.  Concurrent writers
    to one file wait on the busy timeout instead of failing at once.
    """
    if url is None:
        url = "sqlite://" if db_path == ":memory:" else f"sqlite:///{db_path}"
    engine = create_engine(url, echo=False)

    if engine.dialect.name == "sqlite":

        @event.listens_for(engine, "connect")
        def _apply_pragmas(dbapi_conn, connection_record):  # type: ignore[no-untyped-def]
            cursor = dbapi_conn.cursor()
            for pragma in _SQLITE_PRAGMAS:
                cursor.execute(pragma)
            cursor.close()

    return engine


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Session factory for one repository handle.

    Rows stay readable after commit; a commit operation reads back the
    refs it just wrote.
    """
    return sessionmaker(bind=engine, expire_on_commit=False)


def init_db(engine: Engine) -> None:
    """Create missing tables and record the schema version once."""
    Base.metadata.create_all(engine)

    with create_session_factory(engine)() as session:
        existing = session.execute(
            select(ArborMetaRow).where(ArborMetaRow.key == "schema_version")
        ).scalar_one_or_none()

        if existing is None:
            session.add(ArborMetaRow(key="schema_version", value=SCHEMA_VERSION))
            session.commit()
